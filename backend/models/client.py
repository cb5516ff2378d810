"""
╔══════════════════════════════════════════════════════════════════════════════╗
║  Studio Ops - Client model (brand or agency in the sales pipeline)           ║
║                                                                              ║
║  RULE: name and vertical are mandatory, checked by the route (400)           ║
║  red_flags arrive as a list or as a JSON-encoded list                        ║
╚══════════════════════════════════════════════════════════════════════════════╝
"""

from typing import Optional, List, Union
from pydantic import BaseModel, field_validator

from services.catalog import VALID_VERTICALS, SALES_STAGE_ORDER


class ClientCreate(BaseModel):
    """Client intake form"""
    name: Optional[str] = None
    vertical: Optional[str] = None
    website: Optional[str] = None
    notes: Optional[str] = None
    classification: Optional[str] = None  # SYSTEM | PROJECT | UNDETERMINED
    deal_behind_spec: bool = False
    red_flags: Union[List[str], str, None] = None

    @field_validator('vertical')
    @classmethod
    def validate_vertical(cls, v):
        if v and v not in VALID_VERTICALS:
            raise ValueError(f"Unknown vertical: {v}")
        return v


class ClientUpdate(BaseModel):
    """Client edit, including sales pipeline fields"""
    name: Optional[str] = None
    vertical: Optional[str] = None
    website: Optional[str] = None
    notes: Optional[str] = None
    classification: Optional[str] = None
    deal_behind_spec: Optional[bool] = None
    red_flags: Union[List[str], str, None] = None
    qualified: Optional[bool] = None

    # Sales pipeline
    deal_owner: Optional[str] = None
    sales_stage: Optional[str] = None
    deal_value: Optional[float] = None
    next_step_notes: Optional[str] = None
    parent_client_id: Optional[str] = None
    end_client: Optional[str] = None

    @field_validator('vertical')
    @classmethod
    def validate_vertical(cls, v):
        if v and v not in VALID_VERTICALS:
            raise ValueError(f"Unknown vertical: {v}")
        return v

    @field_validator('sales_stage')
    @classmethod
    def validate_sales_stage(cls, v):
        if v and v not in SALES_STAGE_ORDER:
            raise ValueError(f"Unknown sales stage: {v}")
        return v
