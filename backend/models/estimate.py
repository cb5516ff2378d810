"""
Studio Ops - Estimate models
"""

from typing import Optional, List
from pydantic import BaseModel, Field

from .project import DeliverableIn


class EstimateCreate(BaseModel):
    project_id: Optional[str] = None
    name: Optional[str] = None
    requires_lora: bool = False
    requires_custom_workflow: bool = False
    contract_months: Optional[int] = Field(default=None, ge=1)
    deliverables: List[DeliverableIn] = []


class EstimateUpdate(BaseModel):
    name: Optional[str] = None
    requires_lora: bool = False
    requires_custom_workflow: bool = False
    contract_months: Optional[int] = Field(default=None, ge=1)
    deliverables: List[DeliverableIn] = []
