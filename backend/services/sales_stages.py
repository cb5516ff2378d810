"""
Studio Ops - Sales pipeline helpers

Deal value strings ("$1.2M", "$500K") and free-text stage mapping
used by the sales report import.
"""

import re
from typing import Optional


DEAL_VALUE_RE = re.compile(r"^([\d.]+)([MK])?$")


def parse_deal_value(value_str: Optional[str]) -> Optional[float]:
    """'$1.2M' -> 1200000.0, '$500K' -> 500000.0, None if unparseable"""
    if not value_str:
        return None

    cleaned = re.sub(r"[\s$,]", "", value_str).upper()
    match = DEAL_VALUE_RE.match(cleaned)
    if not match:
        return None

    try:
        num = float(match.group(1))
    except ValueError:
        # "1.2.3"
        return None

    multiplier = match.group(2)
    if multiplier == "M":
        return num * 1_000_000
    if multiplier == "K":
        return num * 1_000
    return num


def format_deal_value(value: Optional[float]) -> str:
    if value is None:
        return "-"
    if value >= 1_000_000:
        return f"${value / 1_000_000:.1f}M"
    if value >= 1_000:
        return f"${value / 1_000:.0f}K"
    return f"${value:.0f}"


def map_stage_text(stage_text: Optional[str]) -> Optional[str]:
    """Free-text stage from a report -> SALES_STAGES value"""
    if not stage_text:
        return None
    normalized = stage_text.lower().strip()

    if "discovery" in normalized or "intro" in normalized:
        return "DISCOVERY"
    if "scoping" in normalized or "scope" in normalized:
        return "SCOPING"
    if "spec" in normalized or "test" in normalized:
        return "SPEC_PRODUCTION"
    if "negotiat" in normalized:
        return "NEGOTIATION"
    if "proposal" in normalized:
        return "PROPOSAL_SENT"
    if "won" in normalized:
        return "CLOSED_WON"
    if "lost" in normalized:
        return "CLOSED_LOST"
    return None


def normalize_stage_text(stage: Optional[str]) -> str:
    """Undo merged cells: 'SpecProduction' -> 'Spec Production'"""
    if not stage:
        return ""
    for merged, spaced in (
        ("SpecProduction", "Spec Production"),
        ("ProposalSent", "Proposal Sent"),
        ("ClosedWon", "Closed Won"),
        ("ClosedLost", "Closed Lost"),
    ):
        stage = re.sub(merged, spaced, stage, count=1, flags=re.IGNORECASE)
    return stage.strip()
