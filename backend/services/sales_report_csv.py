"""
╔══════════════════════════════════════════════════════════════════════════════╗
║  Studio Ops - Daily Sales Report CSV parser                                  ║
║                                                                              ║
║  Input: CSV export of the Daily Sales Report spreadsheet.                    ║
║  Merged cells shift columns around, so fields are detected by pattern        ║
║  (value, stage, task, name, next step) rather than by position.              ║
║                                                                              ║
║  Layout:                                                                     ║
║    "Daily Sales Report - January 27, 2025"                                   ║
║    "Ben Smith - Sales"            <- owner section header                    ║
║    ,Deal,Value,Stage,...          <- header row (skipped)                    ║
║    Acme Corp,$1.2M,Negotiation,Jan 30 Send SOW,Waiting on legal review       ║
║    ↳ Acme Retail,$300K,Scoping,...  <- sub-deal of the last main deal        ║
║    Total: ...                     <- summary (skipped)                       ║
╚══════════════════════════════════════════════════════════════════════════════╝
"""

import csv
import re
from datetime import date, datetime, timezone
from typing import Dict, List, Optional, Any

from services.catalog import SALES_OWNERS
from services.sales_stages import parse_deal_value, map_stage_text, normalize_stage_text


MONTHS_RE = "Jan|Feb|Mar|Apr|May|Jun|Jul|Aug|Sep|Oct|Nov|Dec"

STAGE_KEYWORDS = [
    "discovery", "scoping", "spec production", "spec", "negotiation",
    "proposal sent", "proposal", "closed won", "closed lost",
]

REPORT_DATE_RE = re.compile(
    r"(January|February|March|April|May|June|July|August|September|October|November|December"
    r"|Jan|Feb|Mar|Apr|May|Jun|Jul|Aug|Sep|Oct|Nov|Dec)\s+\d{1,2},?\s*\d{4}",
    re.IGNORECASE
)
OWNER_HEADER_RE = re.compile(r'^"?(Ben|Luke|Emmet|Kevin)\s+\w+\s*[-–—]\s*Sales', re.IGNORECASE)
OWNER_SUMMARY_RE = re.compile(r'^"?(Ben|Luke|Emmet|Kevin):', re.IGNORECASE)
HEADER_ROW_RE = re.compile(r"^,?Deal,", re.IGNORECASE)
VALUE_RE = re.compile(r"^\$[\d.,]+[KMB]?$", re.IGNORECASE)
MONTH_PREFIX_RE = re.compile(rf"^({MONTHS_RE})\s*\d", re.IGNORECASE)
ORPHAN_ROW_RE = re.compile(rf"^({MONTHS_RE})\s+\d", re.IGNORECASE)
SUB_DEAL_PREFIX_RE = re.compile(r"^[↳→\->]+\s*")
SUB_DEAL_SUFFIX_RE = re.compile(r"\s*\(sub-deal\)\s*", re.IGNORECASE)

TASK_DATE_PATTERNS = [
    re.compile(rf"^({MONTHS_RE})\s*(\d{{1,2}})", re.IGNORECASE),
    re.compile(r"^(\d{1,2})/(\d{1,2})"),
]

MONTH_NUMBERS = {
    "jan": 1, "feb": 2, "mar": 3, "apr": 4, "may": 5, "jun": 6,
    "jul": 7, "aug": 8, "sep": 9, "oct": 10, "nov": 11, "dec": 12,
}

EMPTY_TASK_MARKERS = ("—", "-")

PROCESSING_MODEL = "csv-parser"


# ==================== HELPERS ====================

def parse_csv_line(line: str) -> List[str]:
    """Split one CSV line, honouring quotes and doubled quotes"""
    rows = list(csv.reader([line]))
    if not rows:
        return [""]
    return [field.strip() for field in rows[0]]


def parse_report_date(text: str) -> Optional[date]:
    """'January 27, 2025' / 'Jan 27 2025' -> date"""
    cleaned = re.sub(r"\s+", " ", text.replace(",", " ")).strip()
    for fmt in ("%B %d %Y", "%b %d %Y"):
        try:
            return datetime.strptime(cleaned, fmt).date()
        except ValueError:
            continue
    return None


def _is_stage_field(field: str) -> bool:
    lowered = field.lower()
    return any(kw in lowered for kw in STAGE_KEYWORDS)


def extract_deal_fields(fields: List[str]) -> Dict[str, str]:
    """
    Pick deal name, value, stage, task and next step out of a row
    whose columns may have shifted.
    """
    deal_name = ""
    value_text = ""
    stage = ""
    next_step = ""
    task_due = ""

    for raw in fields:
        field = raw.strip()
        if not field:
            continue

        if not value_text and VALUE_RE.match(field):
            value_text = field
            continue

        if not stage and _is_stage_field(field):
            stage = field
            continue

        if not task_due and (
            MONTH_PREFIX_RE.match(field)
            or "⚠" in field
            or field in EMPTY_TASK_MARKERS
        ):
            task_due = field
            continue

        if (
            not deal_name
            and len(field) > 1
            and not field.startswith("$")
            and not MONTH_PREFIX_RE.match(field)
            and field.lower() not in STAGE_KEYWORDS
        ):
            # Short label, not a sentence
            if (len(field) < 80 and "." not in field) or field.startswith("↳"):
                deal_name = field
                continue

        if not next_step and len(field) > 20:
            next_step = field

    if not next_step:
        for raw in fields:
            field = raw.strip()
            if len(field) > 30 and field not in (deal_name, value_text, stage, task_due):
                next_step = field
                break

    return {
        "deal_name": deal_name,
        "value_text": value_text,
        "stage": stage,
        "next_step": next_step,
        "task_due": task_due,
    }


def parse_task_field(task_text: str, reference_year: int, today: Optional[date] = None) -> Optional[Dict[str, Any]]:
    """
    'Jan 30 Send SOW' / '⚠ 1/15 Follow up' -> task dict.

    A task due today counts as overdue (due at start of day).
    Returns None for empty markers or text with no date and no overdue flag.
    """
    if not task_text or task_text in EMPTY_TASK_MARKERS:
        return None

    today = today or datetime.now(timezone.utc).date()
    flagged_overdue = "⚠" in task_text or "overdue" in task_text.lower()
    clean_text = task_text.replace("⚠", "").strip()

    due_date = None
    description = clean_text

    for pattern in TASK_DATE_PATTERNS:
        match = pattern.match(clean_text)
        if not match:
            continue
        if len(match.group(1)) <= 2:
            month = int(match.group(1))
        else:
            month = MONTH_NUMBERS[match.group(1).lower()]
        day = int(match.group(2))
        try:
            due_date = date(reference_year, month, day)
        except ValueError:
            due_date = None
        description = clean_text.replace(match.group(0), "", 1).strip()
        break

    if due_date is None and not flagged_overdue and description == clean_text:
        return None

    is_overdue = (due_date <= today) if due_date else flagged_overdue

    return {
        "due_date": due_date.isoformat() if due_date else None,
        "due_date_text": task_text,
        "description": description or task_text,
        "is_overdue": is_overdue,
        "priority": "HIGH" if is_overdue else "NORMAL",
    }


def _owner_name(raw: str) -> str:
    for owner in SALES_OWNERS:
        if owner.lower() == raw.lower():
            return owner
    return raw


# ==================== PARSER ====================

def parse_sales_report_csv(csv_content: str, file_name: str, today: Optional[date] = None) -> Dict[str, Any]:
    """
    Parse a Daily Sales Report CSV export.

    Returns the same report shape as the LLM path:
        report_date, report_date_text, file_name, deals_by_owner, all_deals,
        all_leads, all_meetings, totals, processing_model
    """
    clean = csv_content.lstrip("\ufeff")
    lines = [line.strip() for line in clean.split("\n")]

    report_date = today or datetime.now(timezone.utc).date()
    report_date_text = ""
    for line in lines[:5]:
        match = REPORT_DATE_RE.search(line)
        if match:
            report_date_text = match.group(0)
            parsed = parse_report_date(report_date_text)
            if parsed:
                report_date = parsed
            break

    all_deals = []
    deals_by_owner = {owner: [] for owner in SALES_OWNERS}

    current_owner = None
    last_main_deal = None

    for line in lines:
        if not line or re.match(r"^,*$", line):
            continue

        owner_match = OWNER_HEADER_RE.match(line)
        if owner_match:
            current_owner = _owner_name(owner_match.group(1))
            last_main_deal = None
            continue

        if not current_owner:
            continue

        # Header and summary rows
        if HEADER_ROW_RE.match(line):
            continue
        if re.search(r"Total:", line, re.IGNORECASE):
            continue
        if OWNER_SUMMARY_RE.match(line):
            continue
        if re.search(r"Total Active:", line, re.IGNORECASE):
            continue

        data = extract_deal_fields(parse_csv_line(line))
        deal_name = data["deal_name"]
        if not deal_name:
            continue

        # Orphan continuation rows start with a date
        if ORPHAN_ROW_RE.match(deal_name):
            continue

        is_sub_deal = (
            deal_name.startswith("↳")
            or deal_name.startswith("→")
            or "(sub-deal)" in deal_name
        )
        clean_name = SUB_DEAL_SUFFIX_RE.sub("", SUB_DEAL_PREFIX_RE.sub("", deal_name, count=1), count=1).strip()
        if not clean_name:
            continue

        stage = normalize_stage_text(data["stage"])

        task = None
        if data["task_due"] and data["task_due"] not in EMPTY_TASK_MARKERS:
            task = parse_task_field(data["task_due"], report_date.year, today=today)

        deal = {
            "deal_name": clean_name,
            "owner": current_owner,
            "value_text": data["value_text"],
            "value_parsed": parse_deal_value(data["value_text"]),
            "stage": stage,
            "stage_mapped": map_stage_text(stage),
            "next_step": data["next_step"] or None,
            "task": task,
            "is_sub_deal": is_sub_deal,
            "parent_deal_name": last_main_deal["deal_name"] if (is_sub_deal and last_main_deal) else None,
            "matched_client_id": None,
            "match_confidence": None,
            "import_action": None,
        }

        all_deals.append(deal)
        deals_by_owner.setdefault(current_owner, []).append(deal)

        if not is_sub_deal:
            last_main_deal = deal

    return {
        "report_date": report_date.isoformat(),
        "report_date_text": report_date_text,
        "file_name": file_name,
        "deals_by_owner": deals_by_owner,
        "all_deals": all_deals,
        "all_leads": [],
        "all_meetings": [],
        "total_deals": len(all_deals),
        "total_value": sum(d["value_parsed"] or 0 for d in all_deals),
        "total_leads": 0,
        "total_meetings": 0,
        "extracted_at": datetime.now(timezone.utc).isoformat(),
        "processing_model": PROCESSING_MODEL,
    }


def is_csv_content(content: str) -> bool:
    """Heuristic on the first 15 lines: comma-heavy rows or report markers"""
    comma_lines = 0
    structured = False

    for line in content.split("\n")[:15]:
        if line.count(",") > 2:
            comma_lines += 1
        if (
            "Daily Sales Report" in line
            or OWNER_HEADER_RE.match(line)
            or re.search(r"Deal.*Value.*Stage", line, re.IGNORECASE)
            or re.search(r"\$[\d.]+[KMB]", line, re.IGNORECASE)
        ):
            structured = True

    return comma_lines >= 3 or structured
