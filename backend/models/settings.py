"""
Studio Ops - Estimation config update
"""

from typing import Optional
from pydantic import BaseModel, Field


class EstimationConfigUpdate(BaseModel):
    """Omitted fields keep their stored value"""
    name: Optional[str] = None

    base_setup_days: Optional[float] = Field(default=None, ge=0)
    lora_setup_days: Optional[float] = Field(default=None, ge=0)
    custom_workflow_days: Optional[float] = Field(default=None, ge=0)

    static_image_days: Optional[float] = Field(default=None, ge=0)
    gif_days: Optional[float] = Field(default=None, ge=0)
    short_video_days: Optional[float] = Field(default=None, ge=0)
    medium_video_days: Optional[float] = Field(default=None, ge=0)
    long_video_days: Optional[float] = Field(default=None, ge=0)

    gen_team_percent: Optional[float] = Field(default=None, ge=0, le=1)
    production_percent: Optional[float] = Field(default=None, ge=0, le=1)
    qc_percent: Optional[float] = Field(default=None, ge=0, le=1)
    client_review_percent: Optional[float] = Field(default=None, ge=0, le=1)
