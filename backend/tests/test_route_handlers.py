"""
Studio Ops — Route handler tests (Mongo mocked)
Tests: qualification call updates and re-scoring, deliverable list validation,
       contact primary flag, contact import dedup, task status / overdue sync,
       sales report dry run / import / history, estimation config merge,
       event logging.
Each handler is called directly with the module's db replaced by mocks.
Run: cd backend && pytest tests/test_route_handlers.py -v
"""

import asyncio
import pytest
from unittest.mock import AsyncMock, MagicMock, patch

from fastapi import HTTPException

from models import (
    QualificationCallUpdate,
    ContactUpdate,
    ImportContactsRequest,
    TaskUpdate,
    ImportOptions,
    SalesReportImportRequest,
)
from routes.qualification import update_call
from routes.projects import replace_deliverables
from routes.contacts import update_contact
from routes.conversations import import_contacts
from routes.tasks import update_task
from routes.sales_report import build_preview, execute_import, import_report, import_history
from services.event_logger import log_event
from services.settings import save_estimation_config, ESTIMATION_CONFIG_KEY


def run(coro):
    return asyncio.run(coro)


def cursor(docs):
    """find() result: chainable sort/skip/limit, awaitable to_list"""
    c = MagicMock()
    c.sort.return_value = c
    c.skip.return_value = c
    c.limit.return_value = c
    c.to_list = AsyncMock(return_value=list(docs))
    return c


def collection(find_one=None, docs=(), count=0):
    col = MagicMock()
    if isinstance(find_one, list):
        col.find_one = AsyncMock(side_effect=find_one)
    elif callable(find_one):
        col.find_one = AsyncMock(side_effect=find_one)
    else:
        col.find_one = AsyncMock(return_value=find_one)
    col.find = MagicMock(return_value=cursor(docs))
    col.count_documents = AsyncMock(return_value=count)
    for name in ("insert_one", "insert_many", "update_one", "update_many", "delete_one", "delete_many"):
        setattr(col, name, AsyncMock())
    return col


def mock_db(**collections):
    db = MagicMock()
    for name, col in collections.items():
        setattr(db, name, col)
    return db


def set_fields(mock_method):
    """$set document of the last awaited update"""
    return mock_method.await_args.args[1]["$set"]


# ═══════════════════════════════════════════════════════════════
# 1. QUALIFICATION CALLS
# ═══════════════════════════════════════════════════════════════

class TestQualificationCallUpdate:

    def test_unknown_client(self):
        db = mock_db(clients=collection(find_one=None), qualification_calls=collection())
        with patch("routes.qualification.db", db):
            with pytest.raises(HTTPException) as exc:
                run(update_call("does-not-exist", "1", QualificationCallUpdate(completed=True)))

        assert exc.value.status_code == 404
        assert exc.value.detail == "Client not found"
        db.qualification_calls.insert_one.assert_not_awaited()
        db.qualification_calls.update_one.assert_not_awaited()

    @pytest.mark.parametrize("call_number", ["abc", "0", "5", "1.5", ""])
    def test_invalid_call_number(self, call_number):
        db = mock_db(clients=collection(find_one={"id": "c1"}), qualification_calls=collection())
        with patch("routes.qualification.db", db):
            with pytest.raises(HTTPException) as exc:
                run(update_call("c1", call_number, QualificationCallUpdate(completed=True)))

        assert exc.value.status_code == 400
        assert exc.value.detail == "Invalid call number"
        db.clients.find_one.assert_not_awaited()

    def test_score_recomputed_on_client(self):
        call = {"id": "q4", "client_id": "c1", "call_number": 4, "completed": False, "gate_cleared": False}
        all_calls = [
            {"call_number": 1, "completed": True, "gate_cleared": True},
            {"call_number": 2, "completed": True, "gate_cleared": True},
            {"call_number": 3, "completed": True, "gate_cleared": False},
            {"call_number": 4, "completed": True, "gate_cleared": True},
        ]
        db = mock_db(
            clients=collection(find_one={"id": "c1"}),
            qualification_calls=collection(find_one=[call, {**call, "completed": True}], docs=all_calls),
        )
        criteria = {"all_covered": True, "client_articulate": True,
                    "concerns_addressed": True, "path_to_signature": True}

        with patch("routes.qualification.db", db), patch("routes.qualification.log_event", new=AsyncMock()):
            result = run(update_call("c1", "4", QualificationCallUpdate(completed=True, gate_criteria=criteria)))

        call_update = set_fields(db.qualification_calls.update_one)
        assert call_update["completed"] is True
        assert call_update["gate_cleared"] is True
        assert call_update["completed_at"]

        client_update = set_fields(db.clients.update_one)
        assert client_update["qualification_score"] == 90
        assert client_update["qualified"] is True
        assert result["progress"]["completed_calls"] == 4

    def test_missing_call_created(self):
        db = mock_db(
            clients=collection(find_one={"id": "c1"}),
            qualification_calls=collection(find_one=[None, {"id": "new"}], docs=[]),
        )
        with patch("routes.qualification.db", db), patch("routes.qualification.log_event", new=AsyncMock()):
            run(update_call("c1", "2", QualificationCallUpdate(notes="Met the CMO")))

        created = db.qualification_calls.insert_one.await_args.args[0]
        assert created["call_number"] == 2
        assert created["call_type"] == "PRODUCT_SCOPE"
        assert set_fields(db.clients.update_one)["qualification_score"] == 0


# ═══════════════════════════════════════════════════════════════
# 2. PROJECT DELIVERABLES / CONTACTS
# ═══════════════════════════════════════════════════════════════

class TestReplaceDeliverables:

    def test_bare_array_rejected(self):
        db = mock_db(projects=collection(find_one={"id": "p1"}), deliverables=collection())
        with patch("routes.projects.db", db):
            with pytest.raises(HTTPException) as exc:
                run(replace_deliverables("p1", [{"platform": "Meta"}]))

        assert exc.value.status_code == 400
        db.deliverables.delete_many.assert_not_awaited()

    def test_missing_array_rejected(self):
        with pytest.raises(HTTPException) as exc:
            run(replace_deliverables("p1", {"items": []}))
        assert exc.value.status_code == 400
        assert exc.value.detail == "Deliverables array is required"

    def test_invalid_item_rejected(self):
        with pytest.raises(HTTPException) as exc:
            run(replace_deliverables("p1", {"deliverables": [{"platform": "Meta"}]}))
        assert exc.value.status_code == 400
        assert exc.value.detail.startswith("Invalid deliverable")


class TestContactPrimary:

    def test_setting_primary_unsets_others(self):
        existing = {"id": "k1", "client_id": "c1", "name": "Dana", "is_primary": False}
        db = mock_db(contacts=collection(find_one=[existing, {**existing, "is_primary": True}]))

        with patch("routes.contacts.db", db):
            run(update_contact("c1", "k1", ContactUpdate(is_primary=True)))

        db.contacts.update_many.assert_awaited_once_with(
            {"client_id": "c1", "is_primary": True, "id": {"$ne": "k1"}},
            {"$set": {"is_primary": False}},
        )
        assert set_fields(db.contacts.update_one)["is_primary"] is True

    def test_unset_primary(self):
        existing = {"id": "k1", "client_id": "c1", "name": "Dana", "is_primary": True}
        db = mock_db(contacts=collection(find_one=[existing, {**existing, "is_primary": False}]))

        with patch("routes.contacts.db", db):
            result = run(update_contact("c1", "k1", ContactUpdate(is_primary=False)))

        db.contacts.update_many.assert_not_awaited()
        fields = set_fields(db.contacts.update_one)
        assert fields["is_primary"] is False
        assert "name" not in fields
        assert result["contact"]["is_primary"] is False


# ═══════════════════════════════════════════════════════════════
# 3. CONTACT IMPORT
# ═══════════════════════════════════════════════════════════════

class TestImportContacts:

    def setup_method(self):
        self.db = mock_db(
            conversations=collection(find_one={"id": "v1", "client_id": None}),
            clients=collection(find_one={"id": "c1", "name": "Acme"}),
            contacts=collection(docs=[
                {"name": "Jane Doe", "email": "jane@acme.com"},
                {"name": "Bob", "email": None},
            ]),
        )

    def import_attendees(self, attendees):
        request = ImportContactsRequest(client_id="c1", attendees=attendees)
        with patch("routes.conversations.db", self.db):
            return run(import_contacts("v1", request))

    def test_duplicates_skipped(self):
        result = self.import_attendees([
            {"name": "Jane D.", "email": "JANE@acme.com", "role": "CMO"},
            {"name": "bob"},
            {"name": "Priya Patel", "email": "priya@acme.com", "role": "VP Marketing"},
            {"name": "Priya P.", "email": "priya@acme.com"},
        ])

        assert result["imported"] == 1
        assert result["skipped"] == 3
        assert result["message"] == "Imported 1 contacts, skipped 3 duplicates"
        assert [s["reason"] for s in result["skipped_details"]] == [
            "Email already exists", "Name already exists", "Email already exists",
        ]

        contact = self.db.contacts.insert_one.await_args.args[0]
        assert contact["name"] == "Priya Patel"
        assert contact["enrichment_source"] == "CONVERSATION"
        assert contact["is_primary"] is False

    def test_same_name_with_new_email_imported(self):
        result = self.import_attendees([{"name": "Bob", "email": "bob@acme.com"}])
        assert result["imported"] == 1
        assert result["message"] == "Imported 1 contacts"

    def test_conversation_linked_to_client(self):
        self.import_attendees([{"name": "Sam"}])
        assert set_fields(self.db.conversations.update_one)["client_id"] == "c1"

    def test_requires_client(self):
        with pytest.raises(HTTPException) as exc:
            run(import_contacts("v1", ImportContactsRequest(attendees=[{"name": "Sam"}])))
        assert exc.value.status_code == 400


# ═══════════════════════════════════════════════════════════════
# 4. TASKS
# ═══════════════════════════════════════════════════════════════

class TestTaskUpdate:

    def update(self, existing, data):
        db = mock_db(sales_tasks=collection(find_one=[existing, existing]))
        logged = AsyncMock()
        with patch("routes.tasks.db", db), patch("routes.tasks.log_event", new=logged):
            run(update_task(existing["id"], data))
        return set_fields(db.sales_tasks.update_one), logged

    def test_complete(self):
        task = {"id": "t1", "client_id": "c1", "status": "OPEN", "due_date": "2000-01-01",
                "completed": False, "is_overdue": True}
        fields, logged = self.update(task, TaskUpdate(status="COMPLETED"))

        assert fields["completed"] is True
        assert fields["completed_at"]
        assert fields["is_overdue"] is False
        assert logged.await_args.args[:3] == ("task_complete", "task", "t1")

    def test_reopen(self):
        task = {"id": "t1", "status": "COMPLETED", "due_date": "2000-01-01",
                "completed": True, "completed_at": "2000-01-02T00:00:00+00:00", "is_overdue": False}
        fields, logged = self.update(task, TaskUpdate(status="OPEN"))

        assert fields["completed"] is False
        assert fields["completed_at"] is None
        assert fields["is_overdue"] is True
        logged.assert_not_awaited()

    def test_due_date_change(self):
        task = {"id": "t1", "status": "IN_PROGRESS", "due_date": None, "completed": False, "is_overdue": False}
        fields, _ = self.update(task, TaskUpdate(due_date="2000-01-01"))
        assert fields["due_date"] == "2000-01-01"
        assert fields["is_overdue"] is True

    def test_due_date_cleared(self):
        task = {"id": "t1", "status": "OPEN", "due_date": "2000-01-01", "completed": False, "is_overdue": True}
        fields, _ = self.update(task, TaskUpdate(due_date=None))
        assert fields["due_date"] is None
        assert fields["is_overdue"] is False

    def test_description_only(self):
        task = {"id": "t1", "status": "OPEN", "due_date": "2000-01-01", "completed": False, "is_overdue": True}
        fields, _ = self.update(task, TaskUpdate(description="Call back"))
        assert fields["description"] == "Call back"
        assert "is_overdue" not in fields
        assert "completed" not in fields


# ═══════════════════════════════════════════════════════════════
# 5. SALES REPORT IMPORT
# ═══════════════════════════════════════════════════════════════

CLIENTS = {
    "m1": {"id": "m1", "name": "Acme Corp", "deal_owner": "Ben", "sales_stage": "DISCOVERY",
           "deal_value": None, "next_step_notes": None},
}

REPORT = {
    "file_name": "report.csv",
    "report_date": "2025-01-27",
    "total_meetings": 0,
    "all_deals": [
        {"deal_name": "Acme Corp", "matched_client_id": "m1", "owner": "Ben",
         "stage_mapped": "NEGOTIATION", "value_parsed": 1200000.0, "next_step": "Send SOW",
         "task": {"description": "Send SOW", "due_date": "2025-01-30", "is_overdue": False, "priority": "NORMAL"}},
        {"deal_name": "Old Client", "matched_client_id": "gone", "owner": "Luke",
         "stage_mapped": "SCOPING", "value_parsed": None, "next_step": None, "task": None},
        {"deal_name": "Zenith", "matched_client_id": None, "owner": "Luke",
         "stage_mapped": "DISCOVERY", "value_parsed": 250000.0, "next_step": "Intro deck",
         "task": {"description": "Follow up", "due_date": "2025-01-15", "is_overdue": True, "priority": "HIGH"}},
    ],
}


def find_client(query, projection=None):
    return CLIENTS.get(query["id"])


class TestSalesReportImport:

    def setup_method(self):
        self.db = mock_db(
            clients=collection(find_one=find_client),
            sales_tasks=collection(),
            sales_report_imports=collection(),
        )

    def test_preview(self):
        with patch("routes.sales_report.db", self.db):
            preview = run(build_preview(REPORT, ImportOptions(dry_run=True)))

        summary = preview["summary"]
        assert summary["deals_to_update"] == 1
        assert summary["deals_to_create"] == 1
        assert summary["deals_to_skip"] == 1
        assert summary["tasks_to_create"] == 2
        assert "1 deals will be skipped" in summary["warnings"]
        assert "1 deals have no parsed value" in summary["warnings"]

        acme, gone, zenith = preview["deals"]
        assert acme["action"] == "update"
        assert {"field": "sales_stage", "old_value": "DISCOVERY", "new_value": "NEGOTIATION"} in acme["changes"]
        assert gone["reason"] == "Matched client no longer exists"
        assert zenith["action"] == "create"

    def test_preview_without_updates(self):
        with patch("routes.sales_report.db", self.db):
            preview = run(build_preview(REPORT, ImportOptions(update_existing=False, create_new_clients=False)))
        assert preview["summary"]["deals_to_skip"] == 3
        assert preview["summary"]["tasks_to_create"] == 0

    def test_dry_run_writes_nothing(self):
        request = SalesReportImportRequest(extracted_report=REPORT, options=ImportOptions(dry_run=True))
        with patch("routes.sales_report.db", self.db):
            response = run(import_report(request))

        assert "preview" in response
        self.db.clients.insert_one.assert_not_awaited()
        self.db.clients.update_one.assert_not_awaited()
        self.db.sales_tasks.insert_one.assert_not_awaited()
        self.db.sales_report_imports.insert_one.assert_not_awaited()

    def test_execute(self):
        with patch("routes.sales_report.db", self.db), patch("routes.sales_report.log_event", new=AsyncMock()):
            result = run(execute_import(REPORT, ImportOptions()))

        assert result["clients_updated"] == 1
        assert result["clients_created"] == 1
        assert result["tasks_created"] == 2
        assert result["success"] is False
        assert result["errors"] == ['Failed to process deal "Old Client": client not found']

        updated = set_fields(self.db.clients.update_one)
        assert updated["sales_stage"] == "NEGOTIATION"
        assert updated["deal_value"] == 1200000.0

        created = self.db.clients.insert_one.await_args.args[0]
        assert created["name"] == "Zenith"
        assert created["qualification_score"] == 50
        assert created["qualified"] is True

        record = self.db.sales_report_imports.insert_one.await_args.args[0]
        assert record["deals_created"] == 1
        assert record["deals_updated"] == 1
        assert record["tasks_created"] == 2

    def test_execute_without_tasks(self):
        with patch("routes.sales_report.db", self.db), patch("routes.sales_report.log_event", new=AsyncMock()):
            result = run(execute_import(REPORT, ImportOptions(create_tasks=False)))
        assert result["tasks_created"] == 0
        self.db.sales_tasks.insert_one.assert_not_awaited()

    def test_history_paging(self):
        records = [
            {"id": "i3", "imported_at": "2025-01-27T10:00:00+00:00", "errors": None},
            {"id": "i2", "imported_at": "2025-01-26T10:00:00+00:00", "errors": ["boom"]},
        ]
        db = mock_db(sales_report_imports=collection(docs=records, count=3))
        with patch("routes.sales_report.db", db):
            result = run(import_history(limit=2, offset=0))

        assert result["pagination"] == {"total": 3, "limit": 2, "offset": 0, "has_more": True}
        assert [r["has_errors"] for r in result["imports"]] == [False, True]
        db.sales_report_imports.find.return_value.skip.assert_called_with(0)
        db.sales_report_imports.find.return_value.limit.assert_called_with(2)

    def test_history_last_page(self):
        db = mock_db(sales_report_imports=collection(docs=[{"id": "i1", "errors": None}], count=3))
        with patch("routes.sales_report.db", db):
            result = run(import_history(limit=2, offset=2))
        assert result["pagination"]["has_more"] is False


# ═══════════════════════════════════════════════════════════════
# 6. SETTINGS / EVENT LOG
# ═══════════════════════════════════════════════════════════════

class TestSaveEstimationConfig:

    def test_partial_merge(self):
        stored = {"key": ESTIMATION_CONFIG_KEY, "name": "Agency rates", "static_image_days": 0.2}
        upsert = AsyncMock(side_effect=lambda key, data, updated_by: data)

        with patch("services.settings.get_estimation_config", new=AsyncMock(return_value=stored)), \
                patch("services.settings.upsert_setting", new=upsert):
            saved = run(save_estimation_config({"gif_days": 0.25, "qc_percent": None, "name": ""}))

        assert upsert.await_args.args[0] == ESTIMATION_CONFIG_KEY
        assert saved["gif_days"] == 0.25
        assert saved["static_image_days"] == 0.2
        assert saved["qc_percent"] == 0.2
        assert saved["name"] == "Agency rates"


class TestLogEvent:

    def test_stored_with_label_and_links(self):
        db = mock_db(event_log=collection())
        with patch("services.event_logger.db", db):
            event = run(log_event("estimate_apply", "estimate", "e1",
                                  details={"deliverables": 2},
                                  related={"project_id": "p1", "client_id": None, "other": "x"}))

        stored = db.event_log.insert_one.await_args.args[0]
        assert stored["label"] == "Estimate applied to project"
        assert stored["related"] == {"project_id": "p1"}
        assert stored["user"] == "system"
        assert event["id"] == stored["id"]

    def test_unknown_action_still_stored(self):
        db = mock_db(event_log=collection())
        with patch("services.event_logger.db", db):
            run(log_event("client_merge", "client", "c1"))

        stored = db.event_log.insert_one.await_args.args[0]
        assert stored["action"] == "client_merge"
        assert stored["label"] == "Client merge"
