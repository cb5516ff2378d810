"""
Studio Ops - Qualification scoring

Two scores exist for a client:
- Intake score: classification + red flags (set on create / edit)
- Call score: progress through the 4 qualification calls (set when a call is saved)

Pure functions, no DB access.
"""

import json
from typing import Dict, List, Optional, Any, Union

from services.catalog import CRITICAL_RED_FLAGS, QUALIFICATION_CALLS


# ==================== GATE CRITERIA ====================

GATE_CRITERIA = {
    1: [
        {"id": "need_timeline", "label": "Defined need and timeline?"},
        {"id": "budget_dm", "label": "Budget authority or DM access?"},
        {"id": "system_or_project", "label": "System or Project opportunity?"},
        {"id": "urgency", "label": "Urgency or triggering event?"},
    ],
    2: [
        {"id": "dm_confirmed", "label": "Decision-maker confirmed and engaged?"},
        {"id": "need_validated", "label": "Need and ability to pay validated?"},
        {"id": "success_criteria", "label": "Success criteria clear?"},
        {"id": "poc_decision", "label": "POC decision made?"},
    ],
    3: [
        {"id": "proposal_info", "label": "All proposal info captured?"},
        {"id": "budget_alignment", "label": "Budget alignment confirmed?"},
        {"id": "special_considerations", "label": "Special considerations understood?"},
        {"id": "call4_proposal", "label": "Call #4 = proposal presentation?"},
    ],
    4: [
        {"id": "all_covered", "label": "All elements covered, no surprises?"},
        {"id": "client_articulate", "label": "Client can articulate the deal back?"},
        {"id": "concerns_addressed", "label": "All concerns raised and addressed?"},
        {"id": "path_to_signature", "label": "Clear path to signature?"},
    ],
}

RED_FLAG_PENALTIES = {
    "BUDGET_UNDER_600K": 40,
    "NO_DECISION_MAKER": 30,
    "ONE_OFF_ONLY": 20,
}
DEFAULT_RED_FLAG_PENALTY = 10

CALL_POINTS = 15
GATE_POINTS = 10


def parse_red_flags(red_flags: Union[str, List[str], None]) -> List[str]:
    """Red flags arrive as a list or a JSON-encoded list"""
    if not red_flags:
        return []
    if isinstance(red_flags, str):
        parsed = json.loads(red_flags)
        if not isinstance(parsed, list):
            raise ValueError("redFlags must be a JSON list")
        return [str(f) for f in parsed]
    return list(red_flags)


def has_critical_flags(red_flags: List[str]) -> bool:
    return any(flag in CRITICAL_RED_FLAGS for flag in red_flags)


def is_qualified_at_intake(red_flags: List[str]) -> bool:
    """A client only starts qualified with a clean red-flag list"""
    return not has_critical_flags(red_flags) and len(red_flags) == 0


def calculate_qualification_score(
    red_flags: List[str],
    classification: Optional[str],
    deal_behind_spec: bool
) -> int:
    """
    Intake score, 0-100.

    Base 50, SYSTEM +30, PROJECT +10, deal behind spec +10,
    then a penalty per red flag.
    """
    score = 50

    if classification == "SYSTEM":
        score += 30
    elif classification == "PROJECT":
        score += 10

    if deal_behind_spec:
        score += 10

    for flag in red_flags:
        score -= RED_FLAG_PENALTIES.get(flag, DEFAULT_RED_FLAG_PENALTY)

    return max(0, min(100, score))


# ==================== CALLS ====================

def call_type_for(call_number: int) -> str:
    return QUALIFICATION_CALLS[call_number - 1]["value"]


def is_valid_call_number(call_number: int) -> bool:
    return 1 <= call_number <= len(QUALIFICATION_CALLS)


def is_gate_cleared(call_number: int, gate_criteria: Dict[str, Any]) -> bool:
    """All criteria of the call checked"""
    criteria = GATE_CRITERIA.get(call_number, [])
    return bool(criteria) and all(gate_criteria.get(c["id"]) for c in criteria)


def calculate_call_progress(calls: List[Dict[str, Any]]) -> Dict[str, Any]:
    """
    Client score from its calls.

    15 points per completed call, 10 per cleared gate, capped at 100.
    Qualified once all 4 calls are done and at least 3 gates cleared.
    """
    completed = sum(1 for c in calls if c.get("completed"))
    cleared = sum(1 for c in calls if c.get("gate_cleared"))

    return {
        "completed_calls": completed,
        "cleared_gates": cleared,
        "qualification_score": min(100, completed * CALL_POINTS + cleared * GATE_POINTS),
        "qualified": completed >= 4 and cleared >= 3,
    }
