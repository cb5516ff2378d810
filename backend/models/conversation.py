"""
Studio Ops - Conversation (call transcript) models
"""

from typing import Optional, List, Dict, Any
from pydantic import BaseModel


class ConversationCreate(BaseModel):
    raw_transcript: Optional[str] = None
    transcript_source: Optional[str] = None
    client_id: Optional[str] = None
    qualification_stages: List[str] = []  # INTRO | PRODUCT_SCOPE | BUDGET_SCOPE | PROPOSAL


class ConversationUpdate(BaseModel):
    """Manual edits of the extracted record; only fields present are applied"""
    transcript_source: Optional[str] = None
    meeting_date: Optional[str] = None
    meeting_duration: Optional[str] = None
    meeting_stage: Optional[str] = None
    client_attendees: Optional[List[Dict[str, Any]]] = None
    team_attendees: Optional[List[Dict[str, Any]]] = None
    call_summary: Optional[Dict[str, Any]] = None
    opportunity_data: Optional[Dict[str, Any]] = None
    test_engagement: Optional[Dict[str, Any]] = None
    follow_up_emails: Optional[List[Dict[str, Any]]] = None
    internal_checklist: Optional[Dict[str, Any]] = None
    client_id: Optional[str] = None
    qualification_call_ids: Optional[List[str]] = None


class Attendee(BaseModel):
    name: str
    role: Optional[str] = None
    notes: Optional[str] = None
    email: Optional[str] = None


class ImportContactsRequest(BaseModel):
    client_id: Optional[str] = None
    attendees: List[Attendee] = []
