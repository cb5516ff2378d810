"""
╔══════════════════════════════════════════════════════════════════════════════╗
║  Studio Ops - Call transcript processing                                     ║
║                                                                              ║
║  Raw meeting transcript -> structured call record via Claude:                ║
║    meeting metadata, attendees, call summary, opportunity data,              ║
║    test engagement (optional), follow-up emails, internal checklist          ║
║                                                                              ║
║  All keys of the extracted record are snake_case.                            ║
╚══════════════════════════════════════════════════════════════════════════════╝
"""

import logging
import os
from typing import Any, Dict, Optional

from services.llm_client import (
    ClaudeClient,
    InputTooShortError,
    LLMResponseError,
    get_llm_client,
    with_retry,
)

logger = logging.getLogger("transcripts")

MIN_TRANSCRIPT_LENGTH = 100

# Keys of the extracted record, in the order they are persisted
EXTRACTED_FIELDS = [
    "meeting_date", "meeting_duration", "meeting_stage",
    "client_attendees", "team_attendees",
    "call_summary", "opportunity_data", "test_engagement",
    "follow_up_emails", "internal_checklist",
]


SYSTEM_PROMPT = """You analyse sales meeting transcripts for a creative-production studio that
makes AI-generated images, GIFs and videos for brands and their agencies.

Studio context:
- Work is delivered per platform (Meta, TikTok, YouTube, CTV, Programmatic, ...).
- Engagements usually start with a free two-month spec period followed by a
  twelve-month paid contract. Minimum deal size is $600K per year.
- Client verticals: Automotive, CPG, Fashion, Retail, Health, MediaTech,
  RealEstate, Entertainment.

Read the transcript and return ONE JSON object with exactly these keys.
Use null or empty arrays when the transcript does not say.

{
  "meeting_date": "YYYY-MM-DD or null",
  "meeting_duration": "e.g. '45 minutes' or null",
  "meeting_stage": "Discovery | TestEngagement | Proposal | Negotiation | CheckIn | Other",
  "client_attendees": [{"name": "", "role": null, "notes": null, "email": null}],
  "team_attendees": [{"name": "", "role": ""}],
  "call_summary": {
    "account_name": "company or agency",
    "end_client": "brand behind the agency, or null",
    "account_type": "Agency | Direct",
    "industry": "one of the verticals above, or Other",
    "call_type": "e.g. 'Introduction / Discovery'",
    "key_takeaways": {
      "immediate_need": {"what": "", "why": "", "urgency": "HIGH | MEDIUM | LOW", "urgency_note": "quote or null"},
      "use_case": ["..."],
      "concerns": [{"concern": "", "details": ""}]
    },
    "next_steps": [{"owner": "", "action": ""}]
  },
  "opportunity_data": {
    "account_info": {"account_name": "", "end_client": null, "account_type": "", "industry": ""},
    "contacts": [{"name": "", "role": null, "notes": null, "email": null}],
    "opportunity_details": {
      "opportunity_name": "", "use_case": "", "primary_need": "",
      "urgency": "HIGH | MEDIUM | LOW", "stage": ""
    },
    "open_questions": [{"question": "", "why_it_matters": ""}],
    "deal_sizing": {
      "note": null,
      "scenarios": [{"scenario": "", "monthly_fee": "", "acv": ""}]
    }
  },
  "test_engagement": null or {
    "purpose": [{"goal": "", "why_it_matters": ""}],
    "scope": {
      "deliverables": [{"type": "", "quantity": "", "notes": ""}],
      "required_assets": [{"asset_type": "", "purpose": "", "format": ""}],
      "helpful_assets": [{"asset_type": "", "purpose": "", "format": ""}],
      "brief_requirements": ["..."]
    },
    "timeline": [{"phase": "", "duration": "", "activities": ""}],
    "success_criteria": [{"criteria": "", "measure": ""}],
    "risks": [{"risk": "", "likelihood": "HIGH | MEDIUM | LOW", "mitigation": ""}]
  },
  "follow_up_emails": [{"email_type": "", "to": "", "cc": null, "subject": "", "body": ""}],
  "internal_checklist": {
    "data_intake": [{"item": "", "checked": false}],
    "brief_review": [{"item": "", "checked": false}],
    "communication_rhythm": [{"touchpoint": "", "owner": "", "when": ""}]
  }
}

Guidelines:
- Urgency is HIGH only when the client says so explicitly; quote them in urgency_note.
- Give deal sizing scenarios only when budget or volume was discussed.
- test_engagement is null unless a test or pilot was discussed.
- Draft a recap email to the main contact, plus a data request email when
  assets were discussed. Professional, warm, specific to the call.
- Every checklist item starts with "checked": false.

Return only the JSON object, without markdown fences or commentary."""


def build_user_message(transcript: str) -> str:
    return (
        "Analyze this meeting transcript and extract structured information:\n\n"
        f"---\n{transcript}\n---\n\n"
        "Return the JSON object with all extracted data."
    )


def normalize_extracted(data: Dict[str, Any]) -> Dict[str, Any]:
    """Fill missing keys so callers can persist the record field by field"""
    result = {field: data.get(field) for field in EXTRACTED_FIELDS}
    result["client_attendees"] = result["client_attendees"] or []
    result["team_attendees"] = result["team_attendees"] or []
    result["follow_up_emails"] = result["follow_up_emails"] or []
    result["test_engagement"] = result["test_engagement"] or None
    return result


async def process_transcript(transcript: str, client: Optional[ClaudeClient] = None) -> Dict[str, Any]:
    """
    One extraction attempt.

    Returns {"data": extracted record, "usage": {input_tokens, output_tokens}, "model": model}.
    Raises InputTooShortError, ConfigurationError or LLMError.
    """
    if not transcript or len(transcript.strip()) < MIN_TRANSCRIPT_LENGTH:
        raise InputTooShortError("Transcript is too short. Please provide a complete conversation transcript.")

    client = client or get_llm_client()
    logger.info(f"Processing transcript ({len(transcript)} chars) with {client.model}")

    data, usage = await client.complete_json(SYSTEM_PROMPT, build_user_message(transcript))
    if not isinstance(data, dict):
        raise LLMResponseError("Failed to parse response as JSON: expected an object")

    logger.info(f"Transcript processed: {usage['input_tokens']} in / {usage['output_tokens']} out tokens")
    return {"data": normalize_extracted(data), "usage": usage, "model": client.model}


async def process_with_retry(
    transcript: str,
    max_retries: Optional[int] = None,
    client: Optional[ClaudeClient] = None
) -> Dict[str, Any]:
    if max_retries is None:
        max_retries = int(os.environ.get("LLM_MAX_RETRIES", 3))
    return await with_retry(
        lambda: process_transcript(transcript, client=client),
        max_retries=max_retries,
        label="transcript",
    )
