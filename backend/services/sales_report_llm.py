"""
Studio Ops - Daily Sales Report extraction with Claude

Used when the uploaded report is not a CSV export: PDF text or a
page image (base64 PNG). Produces the same report shape as the CSV parser.
"""

import logging
import re
from datetime import date, datetime, timezone
from typing import Any, Dict, List, Optional

from services.catalog import SALES_OWNERS
from services.llm_client import (
    ClaudeClient,
    InputTooShortError,
    LLMResponseError,
    get_llm_client,
    parse_json_response,
)
from services.sales_stages import parse_deal_value, map_stage_text

logger = logging.getLogger("sales_report")

MIN_REPORT_LENGTH = 50

SYSTEM_PROMPT = """You extract structured data from a studio's Daily Sales Report.

The report has:
1. One deal pipeline per sales owner (Ben, Luke, Emmet, Kevin). Each deal row has
   a name (sometimes "Agency (End Client)"), a value ("$1.2M", "$500K"), a stage
   (Discovery, Scoping, Spec Production, Negotiation, Proposal Sent), a free-text
   next step and a task due ("Jan 27 Schedule kickoff").
2. Key leads: person, company, status, owner.
3. Upcoming meetings: title, date/time, attendees.

Return ONE JSON object:

{
  "report_date": "YYYY-MM-DD from the report header",
  "report_date_text": "raw header date",
  "deals": [{
    "deal_name": "", "owner": "Ben | Luke | Emmet | Kevin",
    "value_text": "$1.2M", "stage": "raw stage text", "next_step": null,
    "task_due_text": null, "task_due_date": "YYYY-MM-DD or null",
    "task_description": null, "is_sub_deal": false, "parent_deal_name": null
  }],
  "leads": [{"name": "", "company": "", "status": "", "owner": ""}],
  "meetings": [{
    "title": "", "date_text": "", "date_parsed": "YYYY-MM-DD or null",
    "time": null, "attendees": [], "related_deal": null
  }]
}

Rules:
- A row like "Treefort Microdrama" under "Treefort" is a sub-deal of it.
- "$1.2M" is 1,200,000 and "$500K" is 500,000; keep value_text verbatim.
- Split "Jan 27 Schedule kickoff" into the date and the action.
- Owners are exactly Ben, Luke, Emmet or Kevin.

Return only the JSON object, without markdown fences or commentary."""

IMAGE_INSTRUCTION = (
    "This is a Daily Sales Report page. Extract all deal pipeline, lead, "
    "and meeting information into the structured JSON format described."
)

MONTH_NUMBERS = {
    "jan": 1, "january": 1, "feb": 2, "february": 2, "mar": 3, "march": 3,
    "apr": 4, "april": 4, "may": 5, "jun": 6, "june": 6, "jul": 7, "july": 7,
    "aug": 8, "august": 8, "sep": 9, "september": 9, "oct": 10, "october": 10,
    "nov": 11, "november": 11, "dec": 12, "december": 12,
}

MONTH_NAME_DATE_RE = re.compile(
    r"^(January|February|March|April|May|June|July|August|September|October|November|December"
    r"|Jan|Feb|Mar|Apr|May|Jun|Jul|Aug|Sep|Oct|Nov|Dec)\s+(\d{1,2})(?:,?\s+(\d{4}))?",
    re.IGNORECASE
)
NUMERIC_DATE_RE = re.compile(r"^(\d{1,2})/(\d{1,2})(?:/(\d{2,4}))?")


def normalize_owner(owner: Optional[str]) -> str:
    """Case-insensitive match against SALES_OWNERS, first owner otherwise"""
    normalized = (owner or "").strip().lower()
    for valid in SALES_OWNERS:
        if normalized == valid.lower():
            return valid
    logger.warning(f'Unknown owner "{owner}", defaulting to {SALES_OWNERS[0]}')
    return SALES_OWNERS[0]


def parse_task_due_date(task_text: Optional[str], reference_year: Optional[int] = None) -> Optional[date]:
    """
    'Jan 27 Schedule meeting' / 'January 27, 2026' / '1/27' / '1/27/26' -> date.
    Two-digit years are 20xx.
    """
    if not task_text:
        return None
    year = reference_year or datetime.now(timezone.utc).year

    match = MONTH_NAME_DATE_RE.match(task_text)
    if match:
        month = MONTH_NUMBERS[match.group(1).lower()]
        day = int(match.group(2))
        if match.group(3):
            year = int(match.group(3))
    else:
        match = NUMERIC_DATE_RE.match(task_text)
        if not match:
            return None
        month = int(match.group(1))
        day = int(match.group(2))
        if match.group(3):
            year = int(match.group(3))
            if year < 100:
                year += 2000

    try:
        return date(year, month, day)
    except ValueError:
        return None


def _parse_iso_date(value: Optional[str]) -> Optional[date]:
    if not value:
        return None
    try:
        return date.fromisoformat(value[:10])
    except ValueError:
        return None


def transform_report(raw: Dict[str, Any], file_name: str, model: str,
                     raw_response: str = "", today: Optional[date] = None) -> Dict[str, Any]:
    """Model JSON -> report dict (same shape as parse_sales_report_csv)"""
    today = today or datetime.now(timezone.utc).date()
    report_date = _parse_iso_date(raw.get("report_date")) or today

    all_deals: List[Dict[str, Any]] = []
    for deal in raw.get("deals") or []:
        task = None
        task_text = deal.get("task_due_text")
        task_description = deal.get("task_description")
        if task_text or task_description:
            due = _parse_iso_date(deal.get("task_due_date")) or parse_task_due_date(task_text, report_date.year)
            is_overdue = due < today if due else False
            task = {
                "due_date": due.isoformat() if due else None,
                "due_date_text": task_text or "",
                "description": task_description or task_text or "",
                "is_overdue": is_overdue,
                "priority": "HIGH" if is_overdue else "NORMAL",
            }

        value_text = deal.get("value_text") or ""
        stage = deal.get("stage") or ""
        all_deals.append({
            "deal_name": deal.get("deal_name") or "",
            "owner": normalize_owner(deal.get("owner")),
            "value_text": value_text,
            "value_parsed": parse_deal_value(value_text),
            "stage": stage,
            "stage_mapped": map_stage_text(stage),
            "next_step": deal.get("next_step"),
            "task": task,
            "is_sub_deal": bool(deal.get("is_sub_deal")),
            "parent_deal_name": deal.get("parent_deal_name"),
            "matched_client_id": None,
            "match_confidence": None,
            "import_action": None,
        })

    deals_by_owner = {owner: [] for owner in SALES_OWNERS}
    for deal in all_deals:
        deals_by_owner[deal["owner"]].append(deal)

    all_leads = [{
        "name": lead.get("name") or "",
        "company": lead.get("company") or "",
        "status": lead.get("status") or "",
        "status_mapped": None,
        "owner": normalize_owner(lead.get("owner")),
    } for lead in raw.get("leads") or []]

    all_meetings = []
    for meeting in raw.get("meetings") or []:
        parsed = _parse_iso_date(meeting.get("date_parsed"))
        all_meetings.append({
            "title": meeting.get("title") or "",
            "date_text": meeting.get("date_text") or "",
            "date_parsed": parsed.isoformat() if parsed else None,
            "time": meeting.get("time"),
            "attendees": meeting.get("attendees") or [],
            "related_deal": meeting.get("related_deal"),
        })

    return {
        "report_date": report_date.isoformat(),
        "report_date_text": raw.get("report_date_text") or "",
        "file_name": file_name,
        "deals_by_owner": deals_by_owner,
        "all_deals": all_deals,
        "all_leads": all_leads,
        "all_meetings": all_meetings,
        "total_deals": len(all_deals),
        "total_value": sum(d["value_parsed"] or 0 for d in all_deals),
        "total_leads": len(all_leads),
        "total_meetings": len(all_meetings),
        "extracted_at": datetime.now(timezone.utc).isoformat(),
        "processing_model": model,
        "raw_response": raw_response,
    }


async def parse_sales_report(
    content: str,
    file_name: str,
    is_base64_image: bool = False,
    client: Optional[ClaudeClient] = None
) -> Dict[str, Any]:
    """
    Extract a report from PDF text or a base64 PNG.

    Returns {"data": report, "usage": {...}}.
    """
    if not content or len(content.strip()) < MIN_REPORT_LENGTH:
        raise InputTooShortError("PDF content is too short. Please provide valid report content.")

    client = client or get_llm_client()

    if is_base64_image:
        user_content = [
            {"type": "image", "source": {"type": "base64", "media_type": "image/png", "data": content}},
            {"type": "text", "text": IMAGE_INSTRUCTION},
        ]
    else:
        user_content = (
            "Extract all deal pipeline, lead, and meeting information from this "
            f"Daily Sales Report text:\n\n---\n{content}\n---\n\n"
            "Return the JSON object with all extracted data."
        )

    logger.info(f"Extracting sales report {file_name} with {client.model}")
    text, usage = await client.complete(SYSTEM_PROMPT, user_content)
    raw = parse_json_response(text)
    if not isinstance(raw, dict):
        raise LLMResponseError("Failed to parse response as JSON: expected an object")

    report = transform_report(raw, file_name, client.model, raw_response=text)
    logger.info(f"Sales report {file_name}: {report['total_deals']} deals, {report['total_leads']} leads")
    return {"data": report, "usage": usage}
