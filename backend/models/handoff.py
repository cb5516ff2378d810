"""
Studio Ops - Handoff models
"""

from typing import Optional, Dict, List, Any
from pydantic import BaseModel, field_validator

from services.catalog import HANDOFF_STATUSES, HANDOFF_TYPES

VALID_HANDOFF_TYPES = [h["value"] for h in HANDOFF_TYPES]


class HandoffCreate(BaseModel):
    project_id: Optional[str] = None
    handoff_number: Optional[int] = None
    type: Optional[str] = None
    notes: Optional[str] = None
    due_at: Optional[str] = None

    @field_validator('type')
    @classmethod
    def validate_type(cls, v):
        if v and v not in VALID_HANDOFF_TYPES:
            raise ValueError(f"Unknown handoff type: {v}")
        return v


class HandoffUpdate(BaseModel):
    """Only fields present in the body are applied (due_at may be cleared with null)"""
    status: Optional[str] = None
    checklist: Optional[Dict[str, bool]] = None
    notes: Optional[str] = None
    due_at: Optional[str] = None
    transferred_items: Optional[List[Any]] = None
    email_exported: Optional[bool] = None

    @field_validator('status')
    @classmethod
    def validate_status(cls, v):
        if v and v not in HANDOFF_STATUSES:
            raise ValueError(f"Unknown handoff status: {v}")
        return v
