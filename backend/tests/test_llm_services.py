"""
Studio Ops — Claude-backed services tests
Tests: JSON handling, retry policy, transcript extraction, request parsing,
       sales report extraction. The model is always mocked.
Run: cd backend && pytest tests/test_llm_services.py -v
"""

import asyncio
import json
import pytest
from datetime import date
from unittest.mock import AsyncMock, MagicMock, patch

from services.llm_client import (
    ClaudeClient,
    ConfigurationError,
    InputTooShortError,
    LLMError,
    LLMResponseError,
    strip_code_fences,
    parse_json_response,
    with_retry,
)
from services.transcript_processor import process_transcript, process_with_retry
from services.request_parser import (
    FileExtractionError,
    snap_duration,
    clean_deliverable,
    detect_file_type,
    extract_text,
    parse_request_file,
)
from services.sales_report_llm import (
    normalize_owner,
    parse_task_due_date,
    transform_report,
    parse_sales_report,
)


USAGE = {"input_tokens": 1200, "output_tokens": 300}


def run(coro):
    return asyncio.run(coro)


def mock_client(text=None, data=None, side_effect=None):
    """Stand-in for ClaudeClient; complete() returns text, complete_json() returns data"""
    client = MagicMock()
    client.model = "claude-test"
    client.complete = AsyncMock(return_value=(text, USAGE))
    client.complete_json = AsyncMock(return_value=(data, USAGE), side_effect=side_effect)
    return client


# ═══════════════════════════════════════════════════════════════
# 1. CLIENT / RETRY
# ═══════════════════════════════════════════════════════════════

class TestJsonHandling:

    def test_strip_json_fence(self):
        assert strip_code_fences('```json\n{"a": 1}\n```') == '{"a": 1}'

    def test_strip_plain_fence(self):
        assert strip_code_fences('```\n[1]\n```') == "[1]"

    def test_no_fence(self):
        assert strip_code_fences('  {"a": 1} ') == '{"a": 1}'

    def test_parse(self):
        assert parse_json_response('```json\n{"a": 1}\n```') == {"a": 1}

    def test_parse_error(self):
        with pytest.raises(LLMResponseError, match="Failed to parse response as JSON"):
            parse_json_response("Sorry, I cannot help with that.")


class TestConfiguration:

    def test_missing_key(self):
        client = ClaudeClient(api_key="")
        with pytest.raises(ConfigurationError):
            client.client

    def test_missing_key_not_retried(self):
        client = ClaudeClient(api_key="")
        with pytest.raises(ConfigurationError):
            run(client.complete("system", "hello"))


class TestRetry:

    def test_success_after_failure(self):
        call = AsyncMock(side_effect=[LLMError("overloaded"), "ok"])
        with patch("services.llm_client.asyncio.sleep", new=AsyncMock()) as sleep:
            assert run(with_retry(call)) == "ok"
        assert call.await_count == 2
        sleep.assert_awaited_once_with(2.0)

    def test_gives_up(self):
        call = AsyncMock(side_effect=LLMError("overloaded"))
        with patch("services.llm_client.asyncio.sleep", new=AsyncMock()) as sleep:
            with pytest.raises(LLMError, match="Failed after 3 attempts. Last error: overloaded"):
                run(with_retry(call))
        assert call.await_count == 3
        assert [c.args[0] for c in sleep.await_args_list] == [2.0, 4.0]

    def test_configuration_error_raised_immediately(self):
        call = AsyncMock(side_effect=ConfigurationError("no key"))
        with patch("services.llm_client.asyncio.sleep", new=AsyncMock()) as sleep:
            with pytest.raises(ConfigurationError):
                run(with_retry(call))
        assert call.await_count == 1
        sleep.assert_not_awaited()


# ═══════════════════════════════════════════════════════════════
# 2. TRANSCRIPTS
# ═══════════════════════════════════════════════════════════════

TRANSCRIPT = (
    "Ben: Thanks for joining. Sarah: Happy to be here, we need about forty "
    "vertical videos a month for the spring launch and our budget is around one million."
)


class TestTranscriptProcessor:

    def test_too_short(self):
        with pytest.raises(InputTooShortError):
            run(process_transcript("hello", client=mock_client()))

    def test_normalised_record(self):
        client = mock_client(data={
            "meeting_date": "2025-01-20",
            "meeting_stage": "Discovery",
            "call_summary": {"account_name": "Acme"},
            "test_engagement": {},
        })
        result = run(process_transcript(TRANSCRIPT, client=client))
        data = result["data"]
        assert data["meeting_date"] == "2025-01-20"
        assert data["call_summary"]["account_name"] == "Acme"
        assert data["client_attendees"] == []
        assert data["team_attendees"] == []
        assert data["follow_up_emails"] == []
        assert data["test_engagement"] is None
        assert data["internal_checklist"] is None
        assert result["usage"] == USAGE
        assert result["model"] == "claude-test"

    def test_non_object_rejected(self):
        with pytest.raises(LLMResponseError):
            run(process_transcript(TRANSCRIPT, client=mock_client(data=[1, 2])))

    def test_retry_recovers(self):
        client = mock_client(side_effect=[
            LLMResponseError("bad json"),
            ({"meeting_stage": "Proposal"}, USAGE),
        ])
        with patch("services.llm_client.asyncio.sleep", new=AsyncMock()):
            result = run(process_with_retry(TRANSCRIPT, max_retries=3, client=client))
        assert result["data"]["meeting_stage"] == "Proposal"

    def test_short_transcript_not_retried(self):
        client = mock_client()
        with pytest.raises(InputTooShortError):
            run(process_with_retry("too short", max_retries=3, client=client))
        client.complete_json.assert_not_awaited()


# ═══════════════════════════════════════════════════════════════
# 3. REQUEST PARSER
# ═══════════════════════════════════════════════════════════════

class TestRequestCleaning:

    @pytest.mark.parametrize("raw,expected", [
        (12, 9),
        (20, 15),
        (50, 45),
        (37.5, 30),
        ("30", 30),
        ("abc", None),
        (None, None),
    ])
    def test_snap_duration(self, raw, expected):
        assert snap_duration(raw) == expected

    def test_defaults(self):
        assert clean_deliverable({}) == {
            "platform": "Meta",
            "creative_type": "Static",
            "size": "1x1",
            "duration": None,
            "monthly_count": 1,
            "notes": "",
        }

    def test_static_drops_duration(self):
        assert clean_deliverable({"creative_type": "Static", "duration": 15})["duration"] is None

    def test_video_keeps_snapped_duration(self):
        assert clean_deliverable({"creative_type": "Video", "duration": 20})["duration"] == 15

    def test_counts(self):
        assert clean_deliverable({"monthly_count": "10"})["monthly_count"] == 10
        assert clean_deliverable({"monthly_count": 2.6})["monthly_count"] == 3
        assert clean_deliverable({"monthly_count": 0})["monthly_count"] == 1
        assert clean_deliverable({"monthly_count": "lots"})["monthly_count"] == 1

    def test_unusable_rows(self):
        assert clean_deliverable("10 statics") is None
        assert clean_deliverable(["Meta", "Static"]) is None
        assert clean_deliverable({"monthly_count": float("inf")}) is None
        assert clean_deliverable({"monthly_count": "1e400"}) is None

    def test_infinite_duration_dropped(self):
        assert clean_deliverable({"creative_type": "Video", "duration": float("inf")})["duration"] is None


class TestRequestFiles:

    def test_file_types(self):
        assert detect_file_type("Brief.PDF") == "pdf"
        assert detect_file_type("brief.doc") == "docx"
        assert detect_file_type("sizes.csv") == "csv"
        assert detect_file_type("sizes.xls") is None

    def test_text_with_bom(self):
        assert extract_text("\ufeff10 statics for Meta".encode("utf-8"), "txt") == "10 statics for Meta"

    def test_unreadable_pdf(self):
        with pytest.raises(FileExtractionError):
            extract_text(b"not a pdf", "pdf")

    def test_unsupported_type(self):
        with pytest.raises(FileExtractionError, match="Unsupported file type"):
            run(parse_request_file(b"whatever", "brief.xls", client=mock_client()))

    def test_too_little_text(self):
        with pytest.raises(FileExtractionError, match="Could not extract enough text"):
            run(parse_request_file(b"hi", "brief.txt", client=mock_client()))

    def test_parse(self):
        response = json.dumps({
            "deliverables": [
                {"platform": "Instagram", "creative_type": "Video", "size": "9x16", "duration": 20, "monthly_count": 10},
                {"platform": "TikTok", "creative_type": "Static", "size": "1x1", "duration": 15, "monthly_count": 5},
            ],
            "summary": "Two deliverables",
            "assumptions": ["Instagram mapped to Meta"],
        })
        client = mock_client(text="```json\n" + response + "\n```")
        result = run(parse_request_file(b"10 reels at 20s and 5 TikTok statics", "brief.txt", client=client))

        assert result["success"] is True
        assert result["file_type"] == "txt"
        assert result["deliverables"][0]["platform"] == "Meta"
        assert result["deliverables"][0]["duration"] == 15
        assert result["deliverables"][1]["duration"] is None
        assert result["unparseable_items"] == []
        assert result["usage"] == USAGE

    def test_invalid_rows_reported(self):
        response = (
            '{"deliverables": ['
            '{"platform": "Meta", "creative_type": "Static", "size": "1x1", "monthly_count": 4},'
            '"ten banners",'
            '{"platform": "Meta", "creative_type": "Static", "size": "1x1", "monthly_count": Infinity}'
            ']}'
        )
        client = mock_client(text=response)
        result = run(parse_request_file(b"4 statics, ten banners, endless statics", "brief.txt", client=client))

        assert len(result["deliverables"]) == 1
        assert result["deliverables"][0]["monthly_count"] == 4
        assert len(result["unparseable_items"]) == 2
        assert "ten banners" in result["unparseable_items"]

    def test_non_object_response(self):
        client = mock_client(text="[1, 2, 3]")
        with pytest.raises(LLMError):
            run(parse_request_file(b"10 reels at 20s", "brief.txt", client=client))


# ═══════════════════════════════════════════════════════════════
# 4. SALES REPORT (MODEL PATH)
# ═══════════════════════════════════════════════════════════════

class TestSalesReportHelpers:

    def test_owner(self):
        assert normalize_owner("luke") == "Luke"
        assert normalize_owner(" KEVIN ") == "Kevin"
        assert normalize_owner("Zed") == "Ben"
        assert normalize_owner(None) == "Ben"

    def test_task_dates(self):
        assert parse_task_due_date("Jan 27 Schedule kickoff", 2025) == date(2025, 1, 27)
        assert parse_task_due_date("January 27, 2026 call", 2025) == date(2026, 1, 27)
        assert parse_task_due_date("1/27", 2025) == date(2025, 1, 27)
        assert parse_task_due_date("1/27/26", 2025) == date(2026, 1, 27)

    def test_task_dates_invalid(self):
        assert parse_task_due_date("2/30", 2025) is None
        assert parse_task_due_date("no date here", 2025) is None
        assert parse_task_due_date(None) is None


class TestTransformReport:

    def setup_method(self):
        raw = {
            "report_date": "2025-01-27",
            "report_date_text": "January 27, 2025",
            "deals": [
                {"deal_name": "Acme", "owner": "ben", "value_text": "$1.2M", "stage": "Negotiation",
                 "task_due_text": "Jan 27 Send SOW", "task_due_date": "2025-01-27",
                 "task_description": "Send SOW"},
                {"deal_name": "Globex", "owner": "Someone", "value_text": "$250K", "stage": "Discovery",
                 "task_due_text": "1/20 Follow up"},
                {"deal_name": "Initech", "owner": "Emmet", "value_text": "TBD", "stage": "On hold"},
            ],
            "leads": [{"name": "Sarah", "company": "Umbrella", "status": "Connected", "owner": "kevin"}],
            "meetings": [{"title": "Kickoff", "date_parsed": "2025-01-29", "attendees": ["Ben"]}],
        }
        self.report = transform_report(raw, "report.pdf", "claude-test", today=date(2025, 1, 27))

    def test_shape(self):
        assert self.report["report_date"] == "2025-01-27"
        assert self.report["total_deals"] == 3
        assert self.report["total_leads"] == 1
        assert self.report["total_meetings"] == 1
        assert self.report["total_value"] == pytest.approx(1_450_000)
        assert self.report["processing_model"] == "claude-test"

    def test_owners(self):
        assert [d["owner"] for d in self.report["all_deals"]] == ["Ben", "Ben", "Emmet"]
        assert len(self.report["deals_by_owner"]["Ben"]) == 2
        assert self.report["all_leads"][0]["owner"] == "Kevin"

    def test_due_today_not_overdue(self):
        task = self.report["all_deals"][0]["task"]
        assert task["due_date"] == "2025-01-27"
        assert task["is_overdue"] is False
        assert task["priority"] == "NORMAL"

    def test_past_due_overdue(self):
        task = self.report["all_deals"][1]["task"]
        assert task["due_date"] == "2025-01-20"
        assert task["is_overdue"] is True
        assert task["description"] == "1/20 Follow up"

    def test_no_task(self):
        deal = self.report["all_deals"][2]
        assert deal["task"] is None
        assert deal["value_parsed"] is None
        assert deal["stage_mapped"] is None

    def test_meeting(self):
        assert self.report["all_meetings"][0]["date_parsed"] == "2025-01-29"


class TestParseSalesReport:

    REPORT_TEXT = "Daily Sales Report - January 27, 2025\nBen Smith - Sales\nAcme $1.2M Negotiation"

    def test_too_short(self):
        with pytest.raises(InputTooShortError):
            run(parse_sales_report("tiny", "report.pdf", client=mock_client()))

    def test_text_report(self):
        response = json.dumps({
            "report_date": "2025-01-27",
            "deals": [{"deal_name": "Acme", "owner": "Ben", "value_text": "$1.2M", "stage": "Negotiation"}],
        })
        client = mock_client(text=response)
        result = run(parse_sales_report(self.REPORT_TEXT, "report.pdf", client=client))

        assert result["usage"] == USAGE
        assert result["data"]["total_deals"] == 1
        assert result["data"]["raw_response"] == response
        sent = client.complete.await_args.args[1]
        assert isinstance(sent, str)
        assert self.REPORT_TEXT in sent

    def test_image_report(self):
        client = mock_client(text=json.dumps({"deals": []}))
        run(parse_sales_report("iVBORw0KGgo" * 10, "report.png", is_base64_image=True, client=client))

        sent = client.complete.await_args.args[1]
        assert sent[0]["type"] == "image"
        assert sent[0]["source"]["media_type"] == "image/png"

    def test_bad_json(self):
        client = mock_client(text="I could not read this report.")
        with pytest.raises(LLMResponseError):
            run(parse_sales_report(self.REPORT_TEXT, "report.pdf", client=client))
