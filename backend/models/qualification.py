"""
Studio Ops - Qualification call update
"""

from typing import Optional, Dict, Any
from pydantic import BaseModel


class QualificationCallUpdate(BaseModel):
    """
    Partial update of one of the four calls.

    gate_criteria: {criterion_id: bool}
    gate_cleared: derived from gate_criteria when omitted
    """
    completed: Optional[bool] = None
    notes: Optional[str] = None
    gate_criteria: Optional[Dict[str, bool]] = None
    gate_cleared: Optional[bool] = None
    discovery_answers: Optional[Dict[str, Any]] = None
