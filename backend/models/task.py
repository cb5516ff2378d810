"""
Studio Ops - Sales task update
"""

from typing import Optional
from pydantic import BaseModel, field_validator

from services.catalog import TASK_STATUSES, TASK_PRIORITIES


class TaskUpdate(BaseModel):
    """Only fields present in the body are applied (due_date may be cleared with null)"""
    status: Optional[str] = None
    description: Optional[str] = None
    due_date: Optional[str] = None
    owner: Optional[str] = None
    priority: Optional[str] = None

    @field_validator('status')
    @classmethod
    def validate_status(cls, v):
        if v and v not in TASK_STATUSES:
            raise ValueError(f"Unknown task status: {v}")
        return v

    @field_validator('priority')
    @classmethod
    def validate_priority(cls, v):
        if v and v not in TASK_PRIORITIES:
            raise ValueError(f"Unknown task priority: {v}")
        return v
