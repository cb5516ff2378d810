"""
Studio Ops - Contact model

Seniority, department and decision authority are inferred from job_title
when not supplied.
"""

from typing import Optional
from pydantic import BaseModel


class ContactCreate(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    role: Optional[str] = None
    is_primary: bool = False
    job_title: Optional[str] = None
    department: Optional[str] = None
    seniority: Optional[str] = None
    seniority_score: Optional[int] = None
    decision_authority: Optional[str] = None
    buying_role: Optional[str] = None
    linkedin_url: Optional[str] = None
    notes: Optional[str] = None


class ContactUpdate(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    role: Optional[str] = None
    is_primary: Optional[bool] = None
    job_title: Optional[str] = None
    department: Optional[str] = None
    seniority: Optional[str] = None
    seniority_score: Optional[int] = None
    decision_authority: Optional[str] = None
    buying_role: Optional[str] = None
    linkedin_url: Optional[str] = None
    notes: Optional[str] = None
    last_contacted_at: Optional[str] = None
    engagement_score: Optional[int] = None
