"""
Studio Ops — Route helper tests
Tests: overdue / on-time flags, binary upload detection, import diff and
       match annotation, imported client scoring, client update fields,
       job id prefix, deliverable and estimate documents, event log queries.
No database access: only the pure helpers of the route modules are called.
Run: cd backend && pytest tests/test_route_helpers.py -v
"""

from datetime import date

from models import ClientUpdate, DeliverableIn
from routes.tasks import compute_is_overdue
from routes.handoffs import is_on_time
from routes.clients import client_update_fields
from routes.event_log import build_event_query
from routes.sales_report import looks_binary, annotate_matches, deal_changes, task_doc, imported_client_doc
from routes.projects import job_id_prefix, build_deliverable_doc
from routes.estimates import estimate_fields, estimate_line_docs
from services.estimation import calculate_estimate, resolve_config


TODAY = date(2025, 1, 27)


# ═══════════════════════════════════════════════════════════════
# 1. TASKS / HANDOFFS
# ═══════════════════════════════════════════════════════════════

class TestTaskOverdue:

    def test_past_due(self):
        assert compute_is_overdue("2025-01-20", "OPEN", today=TODAY) is True

    def test_due_today_not_overdue(self):
        assert compute_is_overdue("2025-01-27", "OPEN", today=TODAY) is False

    def test_datetime_string(self):
        assert compute_is_overdue("2025-01-20T10:00:00+00:00", "IN_PROGRESS", today=TODAY) is True

    def test_completed_never_overdue(self):
        assert compute_is_overdue("2025-01-01", "COMPLETED", today=TODAY) is False

    def test_missing_or_invalid_date(self):
        assert compute_is_overdue(None, "OPEN", today=TODAY) is False
        assert compute_is_overdue("next week", "OPEN", today=TODAY) is False


class TestHandoffOnTime:

    def test_no_due_date(self):
        assert is_on_time(None, "2025-01-29T12:00:00+00:00") is None

    def test_completed_before_due(self):
        assert is_on_time("2025-01-30", "2025-01-29T12:00:00+00:00") is True

    def test_completed_late(self):
        assert is_on_time("2025-01-30T00:00:00Z", "2025-01-31T09:00:00+00:00") is False

    def test_unparseable_due_date(self):
        assert is_on_time("soon", "2025-01-31T09:00:00+00:00") is None


# ═══════════════════════════════════════════════════════════════
# 2. SALES REPORT IMPORT
# ═══════════════════════════════════════════════════════════════

class TestBinaryDetection:

    def test_text(self):
        assert not looks_binary("Daily Sales Report\n" * 50)

    def test_empty(self):
        assert not looks_binary("")

    def test_control_characters(self):
        assert looks_binary("\x00\x01\x02PK" * 200)


class TestImportHelpers:

    def test_annotate_matches(self):
        report = {"all_deals": [{"deal_name": "Acme Corp"}, {"deal_name": "Globex"}, {"deal_name": "Zenith"}]}
        clients = [{"id": "c1", "name": "Acme, Inc."}, {"id": "c2", "name": "Globax"}]

        matches = annotate_matches(report, clients)
        acme, globex, zenith = report["all_deals"]

        assert acme["matched_client_id"] == "c1"
        assert acme["match_confidence"] == "exact"
        assert acme["import_action"] == "update"

        # fuzzy match needs a human decision
        assert globex["matched_client_id"] == "c2"
        assert globex["import_action"] is None

        assert zenith["matched_client_id"] is None
        assert zenith["import_action"] == "create"
        assert matches["Zenith"] == []

    def test_deal_changes(self):
        client = {"deal_owner": "Ben", "sales_stage": "DISCOVERY", "deal_value": 250000.0, "next_step_notes": None}
        deal = {"owner": "Ben", "stage_mapped": "NEGOTIATION", "value_parsed": 250000.0, "next_step": "Send SOW"}

        changes = deal_changes(client, deal)
        assert changes == [
            {"field": "sales_stage", "old_value": "DISCOVERY", "new_value": "NEGOTIATION"},
            {"field": "next_step_notes", "old_value": None, "new_value": "Send SOW"},
        ]

    def test_no_changes(self):
        client = {"deal_owner": "Luke", "sales_stage": "SCOPING", "deal_value": None, "next_step_notes": None}
        deal = {"owner": "Luke", "stage_mapped": "SCOPING", "value_parsed": None, "next_step": None}
        assert deal_changes(client, deal) == []

    def test_task_doc(self):
        deal = {
            "owner": "Luke",
            "task": {"description": "Follow up", "due_date": "2025-01-15", "is_overdue": True, "priority": "HIGH"},
        }
        doc = task_doc(deal, "c1")
        assert doc["client_id"] == "c1"
        assert doc["owner"] == "Luke"
        assert doc["priority"] == "HIGH"
        assert doc["is_overdue"] is True
        assert doc["status"] == "OPEN"
        assert doc["completed"] is False

    def test_imported_client_scored_like_intake(self):
        sales_fields = {"deal_owner": "Luke", "sales_stage": "DISCOVERY", "deal_value": 250000.0,
                        "next_step_notes": None, "last_imported_at": "2025-01-27T10:00:00+00:00"}
        doc = imported_client_doc({"deal_name": "Zenith"}, sales_fields)

        assert doc["name"] == "Zenith"
        assert doc["classification"] == "UNDETERMINED"
        assert doc["qualification_score"] == 50
        assert doc["qualified"] is True
        assert doc["deal_owner"] == "Luke"
        assert doc["vertical"] == "Entertainment"


# ═══════════════════════════════════════════════════════════════
# 3. PROJECTS / ESTIMATES
# ═══════════════════════════════════════════════════════════════

class TestJobId:

    def test_prefix_from_first_word(self):
        assert job_id_prefix("Saatchi/LA Office") == "SAATCHI"
        assert job_id_prefix("  acme corp") == "ACME"

    def test_prefix_capped(self):
        assert job_id_prefix("Supercalifragilistic Launch") == "SUPERCALIF"


class TestDeliverableDocs:

    def setup_method(self):
        self.config = resolve_config(None)
        self.video = DeliverableIn(platform="Meta", creative_type="Video", size="9x16", duration=15, monthly_count=10)

    def test_days_computed(self):
        doc = build_deliverable_doc("p1", self.video, self.config)
        assert doc["project_id"] == "p1"
        assert doc["estimated_days"] == 2.0
        assert doc["total_count"] == 10

    def test_total_count_override(self):
        doc = build_deliverable_doc("p1", self.video, self.config, total_count=120)
        assert doc["total_count"] == 120

    def test_given_days_kept(self):
        d = DeliverableIn(platform="Meta", creative_type="Static", size="1x1", monthly_count=5, estimated_days=3.5)
        assert build_deliverable_doc("p1", d, self.config)["estimated_days"] == 3.5

    def test_estimate_documents(self):
        result = calculate_estimate([self.video.model_dump()], False, False, 12, self.config)

        fields = estimate_fields(result)
        assert fields["total_monthly_days"] == 2.0
        assert fields["total_assets"] == 120

        lines = estimate_line_docs("e1", result)
        assert len(lines) == 1
        assert lines[0]["estimate_id"] == "e1"
        assert lines[0]["days_per_asset"] == 0.2
        assert lines[0]["estimated_days"] == 2.0


# ═══════════════════════════════════════════════════════════════
# 4. CLIENT UPDATES / EVENT LOG
# ═══════════════════════════════════════════════════════════════

class TestClientUpdateFields:

    def test_only_sent_fields(self):
        assert client_update_fields(ClientUpdate(notes="Renewal in Q3")) == {"notes": "Renewal in Q3"}

    def test_sales_fields_cleared(self):
        fields = client_update_fields(ClientUpdate(deal_owner=None, sales_stage=None, deal_value=None))
        assert fields == {"deal_owner": None, "sales_stage": None, "deal_value": None}

    def test_required_fields_never_nulled(self):
        fields = client_update_fields(ClientUpdate(name=None, vertical=None, qualified=None, end_client=None))
        assert fields == {"end_client": None}


class TestEventQuery:

    def test_empty(self):
        assert build_event_query() == {}

    def test_entity_id_matches_links(self):
        query = build_event_query(entity_id="x1")
        assert {"entity_id": "x1"} in query["$or"]
        assert {"related.client_id": "x1"} in query["$or"]
        assert {"related.conversation_id": "x1"} in query["$or"]

    def test_client_and_project(self):
        query = build_event_query(action="estimate_apply", client_id="c1", project_id="p1")
        assert query["action"] == "estimate_apply"
        assert len(query["$and"]) == 2
        assert {"related.client_id": "c1"} in query["$and"][0]["$or"]
        assert {"entity_type": "project", "entity_id": "p1"} in query["$and"][1]["$or"]

    def test_date_range(self):
        query = build_event_query(since="2025-01-01", until="2025-01-31")
        assert query["created_at"] == {"$gte": "2025-01-01", "$lte": "2025-01-31"}
