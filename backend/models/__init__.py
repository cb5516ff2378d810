"""
╔══════════════════════════════════════════════════════════════════════════════╗
║  Studio Ops - Models Package                                                 ║
║                                                                              ║
║  Request bodies for every route                                              ║
║  from models import ClientCreate, EstimateCreate, HandoffUpdate, etc.        ║
╚══════════════════════════════════════════════════════════════════════════════╝
"""

# Client
from .client import (
    ClientCreate,
    ClientUpdate
)

# Contact
from .contact import (
    ContactCreate,
    ContactUpdate
)

# Qualification
from .qualification import QualificationCallUpdate

# Project + deliverables
from .project import (
    DeliverableIn,
    ProjectCreate,
    ProjectUpdate,
    VALID_PROJECT_TYPES,
    VALID_PROJECT_STATUSES
)

# Estimate
from .estimate import (
    EstimateCreate,
    EstimateUpdate
)

# Handoff
from .handoff import (
    HandoffCreate,
    HandoffUpdate
)

# Conversation
from .conversation import (
    ConversationCreate,
    ConversationUpdate,
    Attendee,
    ImportContactsRequest
)

# Sales
from .task import TaskUpdate
from .sales_report import (
    SalesReportParseRequest,
    ImportOptions,
    SalesReportImportRequest
)

# Settings
from .settings import EstimationConfigUpdate

__all__ = [
    "ClientCreate",
    "ClientUpdate",
    "ContactCreate",
    "ContactUpdate",
    "QualificationCallUpdate",
    "DeliverableIn",
    "ProjectCreate",
    "ProjectUpdate",
    "VALID_PROJECT_TYPES",
    "VALID_PROJECT_STATUSES",
    "EstimateCreate",
    "EstimateUpdate",
    "HandoffCreate",
    "HandoffUpdate",
    "ConversationCreate",
    "ConversationUpdate",
    "Attendee",
    "ImportContactsRequest",
    "TaskUpdate",
    "SalesReportParseRequest",
    "ImportOptions",
    "SalesReportImportRequest",
    "EstimationConfigUpdate",
]
