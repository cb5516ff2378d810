"""
Studio Ops - Client request parsing

Uploaded brief (PDF, Word, CSV or plain text) -> text -> Claude ->
list of estimate deliverables snapped onto the catalog values.
"""

import io
import logging
import math
from typing import Any, Dict, List, Optional

import docx
import pdfplumber

from services.catalog import (
    PLATFORMS, CREATIVE_TYPES, SIZES, DURATIONS,
    VALID_PLATFORMS, VALID_CREATIVE_TYPES, VALID_SIZES, VALID_DURATIONS,
)
from services.llm_client import ClaudeClient, LLMError, get_llm_client, parse_json_response

logger = logging.getLogger("request_parser")

MIN_EXTRACTED_LENGTH = 10
PARSE_MAX_TOKENS = 4096

# Creative types that keep a duration
TIMED_CREATIVE_TYPES = ["Video", "UGC", "Branded", "VideoPin", "GIF"]

DEFAULT_PLATFORM = "Meta"
DEFAULT_CREATIVE_TYPE = "Static"
DEFAULT_SIZE = "1x1"

FILE_TYPES = {
    ".pdf": "pdf",
    ".docx": "docx",
    ".doc": "docx",
    ".csv": "csv",
    ".txt": "txt",
}


class FileExtractionError(Exception):
    """Upload could not be turned into text"""


def _options_block() -> str:
    lines = ["**Platforms:**"]
    lines += [f"- {p['value']}: {p['label']}" for p in PLATFORMS]
    lines += ["", "**Creative Types:**"]
    lines += [f"- {t['value']}: {t['label']}" for t in CREATIVE_TYPES]
    lines += ["", "**Sizes:**"]
    lines += [f"- {s['value']}: {s['label']} (for: {', '.join(s['platforms'])})" for s in SIZES]
    lines += ["", "**Video Durations (in seconds):**"]
    lines += [f"- {d['value']}: {d['label']}" for d in DURATIONS]
    return "\n".join(lines)


SYSTEM_PROMPT = f"""You turn creative production requests (emails, spreadsheets, briefs,
free text) into a list of deliverables.

## Available Options

{_options_block()}

## Mapping rules

- Platform: Facebook / Instagram / FB / IG -> Meta; TT -> TikTok; Pins -> Pinterest;
  YT -> YouTube; pre-roll / mid-roll -> OLV; streaming / connected -> CTV;
  broadcast / linear -> TV.
- Creative type: still / image -> Static; multi-image / slides -> Carousel;
  motion -> Video; user generated / creator -> UGC; hero -> Branded; animated -> GIF.
- Size: square / 1080x1080 -> 1x1; vertical / story / reels / 1080x1920 -> 9x16;
  portrait -> 4x5; horizontal / landscape / 1920x1080 -> 16x9; pinterest -> 2x3.
- Duration: seconds from "15s", ":15", "15 sec"; nearest of 6, 9, 15, 30, 45, 60;
  15 when a video has no duration.
- Count: "10x", "10 units", "10 assets". Treat counts as monthly unless stated otherwise.
- When something is ambiguous, make your best guess and list it as an assumption.

## Response

{{
  "deliverables": [
    {{"platform": "Meta", "creative_type": "Video", "size": "9x16", "duration": 15,
      "monthly_count": 10, "notes": "Instagram Reels"}}
  ],
  "summary": "what was extracted",
  "assumptions": ["..."],
  "unparseable_items": ["..."]
}}

duration is null for Static and Carousel. monthly_count is a positive integer.
Return only the JSON object."""


# ==================== TEXT EXTRACTION ====================

def detect_file_type(file_name: str) -> Optional[str]:
    lowered = (file_name or "").lower()
    for suffix, file_type in FILE_TYPES.items():
        if lowered.endswith(suffix):
            return file_type
    return None


def extract_text_from_pdf(content: bytes) -> str:
    with pdfplumber.open(io.BytesIO(content)) as pdf:
        pages = [page.extract_text() or "" for page in pdf.pages]
    return "\n\n".join(pages)


def extract_text_from_docx(content: bytes) -> str:
    document = docx.Document(io.BytesIO(content))
    return "\n".join(p.text for p in document.paragraphs)


def extract_text(content: bytes, file_type: str) -> str:
    """Raises FileExtractionError when the file cannot be read"""
    try:
        if file_type == "pdf":
            return extract_text_from_pdf(content)
        if file_type == "docx":
            return extract_text_from_docx(content)
        return content.decode("utf-8-sig")
    except Exception as e:
        logger.warning(f"Text extraction failed ({file_type}): {e}")
        raise FileExtractionError(
            f"Failed to read {file_type.upper()} file. The file may be corrupted or password-protected."
        ) from e


# ==================== CLEANING ====================

def snap_duration(duration: Any) -> Optional[int]:
    """Nearest standard duration; ties go to the shorter one"""
    if duration is None:
        return None
    try:
        seconds = float(duration)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(seconds):
        return None
    return min(VALID_DURATIONS, key=lambda d: abs(d - seconds))


def clean_deliverable(raw: Any) -> Optional[Dict[str, Any]]:
    """Model output row -> stored shape, None when the row is unusable"""
    if not isinstance(raw, dict):
        return None

    platform = raw.get("platform")
    if platform not in VALID_PLATFORMS:
        platform = DEFAULT_PLATFORM

    creative_type = raw.get("creative_type")
    if creative_type not in VALID_CREATIVE_TYPES:
        creative_type = DEFAULT_CREATIVE_TYPE

    size = raw.get("size")
    if size not in VALID_SIZES:
        size = DEFAULT_SIZE

    try:
        count = float(raw.get("monthly_count") or 1)
    except (TypeError, ValueError):
        count = 1.0
    if not math.isfinite(count):
        return None
    monthly_count = max(1, int(round(count)))

    return {
        "platform": platform,
        "creative_type": creative_type,
        "size": size,
        "duration": snap_duration(raw.get("duration")) if creative_type in TIMED_CREATIVE_TYPES else None,
        "monthly_count": monthly_count,
        "notes": raw.get("notes") or "",
    }


# ==================== PARSING ====================

async def parse_request_file(
    content: bytes,
    file_name: str,
    client: Optional[ClaudeClient] = None
) -> Dict[str, Any]:
    """
    Uploaded request -> cleaned deliverables.

    Raises FileExtractionError for unsupported or unreadable files,
    LLMError when the model call or its JSON fails.
    """
    file_type = detect_file_type(file_name)
    if not file_type:
        raise FileExtractionError(
            "Unsupported file type. Please upload a PDF, Word document (.docx), CSV or text file."
        )

    text = extract_text(content, file_type)
    if not text or len(text.strip()) < MIN_EXTRACTED_LENGTH:
        raise FileExtractionError("Could not extract enough text from the file. Please check the file content.")

    client = client or get_llm_client()
    logger.info(f"Parsing request {file_name} ({file_type}, {len(text)} chars)")

    user_message = (
        f"Parse the following client request (extracted from a {file_type.upper()} file) "
        "and extract all deliverables. If the format is unusual (CSV, table, email, etc.), "
        "do your best to interpret it.\n\n"
        f"FILE NAME: {file_name}\n\n"
        f"EXTRACTED CONTENT:\n{text}\n\n"
        "Remember to return valid JSON with the exact structure specified."
    )
    response_text, usage = await client.complete(SYSTEM_PROMPT, user_message, max_tokens=PARSE_MAX_TOKENS)
    result = parse_json_response(response_text)
    if not isinstance(result, dict):
        raise LLMError("Failed to parse the response. Please try again.")

    deliverables: List[Dict[str, Any]] = []
    unparseable = list(result.get("unparseable_items") or [])
    for raw in result.get("deliverables") or []:
        cleaned = clean_deliverable(raw)
        if cleaned is None:
            logger.warning(f"Dropped invalid deliverable from {file_name}: {raw!r}")
            unparseable.append(str(raw))
            continue
        deliverables.append(cleaned)

    return {
        "success": True,
        "file_name": file_name,
        "file_type": file_type,
        "extracted_text_length": len(text),
        "deliverables": deliverables,
        "summary": result.get("summary") or "",
        "assumptions": result.get("assumptions") or [],
        "unparseable_items": unparseable,
        "usage": usage,
    }
