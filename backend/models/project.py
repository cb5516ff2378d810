"""
╔══════════════════════════════════════════════════════════════════════════════╗
║  Studio Ops - Project and deliverable models                                 ║
║                                                                              ║
║  A deliverable = (platform, creative type, size, duration, monthly count)    ║
║  duration only matters for video types                                       ║
╚══════════════════════════════════════════════════════════════════════════════╝
"""

from typing import Optional, List
from pydantic import BaseModel, Field, field_validator

from services.catalog import (
    PROJECT_TYPES,
    PROJECT_STATUSES,
    VALID_PLATFORMS,
    VALID_CREATIVE_TYPES,
    VALID_SIZES,
)

VALID_PROJECT_TYPES = [t["value"] for t in PROJECT_TYPES]
VALID_PROJECT_STATUSES = [s["value"] for s in PROJECT_STATUSES]


class DeliverableIn(BaseModel):
    """
    Example:
    {"platform": "Meta", "creative_type": "Video", "size": "9x16",
     "duration": 15, "monthly_count": 10}
    """
    platform: str
    creative_type: str
    size: str
    duration: Optional[int] = None
    monthly_count: int = Field(default=1, ge=0)
    estimated_days: Optional[float] = None  # computed when omitted

    @field_validator('platform')
    @classmethod
    def validate_platform(cls, v):
        if v not in VALID_PLATFORMS:
            raise ValueError(f"Unknown platform: {v}")
        return v

    @field_validator('creative_type')
    @classmethod
    def validate_creative_type(cls, v):
        if v not in VALID_CREATIVE_TYPES:
            raise ValueError(f"Unknown creative type: {v}")
        return v

    @field_validator('size')
    @classmethod
    def validate_size(cls, v):
        if v not in VALID_SIZES:
            raise ValueError(f"Unknown size: {v}")
        return v


class ProjectCreate(BaseModel):
    name: Optional[str] = None
    client_id: Optional[str] = None
    type: Optional[str] = None  # SPEC | STANDARD | ADVANCED
    producer: Optional[str] = None
    final_due_date: Optional[str] = None
    acv: Optional[float] = None
    monthly_fee: Optional[float] = None

    @field_validator('type')
    @classmethod
    def validate_type(cls, v):
        if v and v not in VALID_PROJECT_TYPES:
            raise ValueError(f"Unknown project type: {v}")
        return v


class ProjectUpdate(BaseModel):
    name: Optional[str] = None
    type: Optional[str] = None
    status: Optional[str] = None
    current_partition: Optional[int] = Field(default=None, ge=1, le=6)
    producer: Optional[str] = None
    creative_team: Optional[List[str]] = None
    lora_team: Optional[List[str]] = None
    gen_team: Optional[List[str]] = None
    external_artists: Optional[List[str]] = None
    final_due_date: Optional[str] = None
    acv: Optional[float] = None
    monthly_fee: Optional[float] = None
    estimated_margin: Optional[float] = None

    @field_validator('type')
    @classmethod
    def validate_type(cls, v):
        if v and v not in VALID_PROJECT_TYPES:
            raise ValueError(f"Unknown project type: {v}")
        return v

    @field_validator('status')
    @classmethod
    def validate_status(cls, v):
        if v and v not in VALID_PROJECT_STATUSES:
            raise ValueError(f"Unknown project status: {v}")
        return v
