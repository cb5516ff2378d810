"""
╔══════════════════════════════════════════════════════════════════════════════╗
║  Studio Ops - Routes Sales report                                            ║
║                                                                              ║
║  parse   : CSV export (local parser) or PDF text / PNG (Claude)              ║
║            every deal annotated with its client matches                      ║
║  import  : dry run preview, or update/create clients + tasks                 ║
║  history : past imports, newest first                                        ║
╚══════════════════════════════════════════════════════════════════════════════╝
"""

import json
import logging
from fastapi import APIRouter, HTTPException

from config import db, now_iso, new_id
from models import SalesReportParseRequest, SalesReportImportRequest, ImportOptions
from services.client_matching import batch_match_deals, get_suggested_action
from services.event_logger import log_event
from services.llm_client import LLMError, InputTooShortError
from services.qualification import is_qualified_at_intake, calculate_qualification_score
from services.sales_report_csv import parse_sales_report_csv, is_csv_content
from services.sales_report_llm import parse_sales_report

logger = logging.getLogger("sales_report")

router = APIRouter(prefix="/sales-report", tags=["Sales report"])

BINARY_SAMPLE_SIZE = 1000
BINARY_THRESHOLD = 0.1
IMPORT_DEFAULT_VERTICAL = "Entertainment"

ACTION_BY_SUGGESTION = {"use_match": "update", "create_new": "create"}


# ==================== HELPERS ====================

def is_non_printable(char: str) -> bool:
    code = ord(char)
    return code < 9 or 14 <= code <= 31 or 127 <= code <= 159


def looks_binary(content: str) -> bool:
    """More than 10% control characters in the first 1000 chars"""
    sample = content[:BINARY_SAMPLE_SIZE]
    if not sample:
        return False
    non_printable = sum(1 for c in sample if is_non_printable(c))
    return non_printable / len(sample) > BINARY_THRESHOLD


def annotate_matches(report: dict, clients: list) -> dict:
    """Attach matched_client_id / match_confidence / import_action to each deal"""
    matches = batch_match_deals([d["deal_name"] for d in report["all_deals"]], clients)

    for deal in report["all_deals"]:
        deal_matches = matches.get(deal["deal_name"], [])
        best = deal_matches[0] if deal_matches else None
        deal["matched_client_id"] = best["client_id"] if best else None
        deal["match_confidence"] = best["confidence"] if best else None
        deal["import_action"] = ACTION_BY_SUGGESTION.get(get_suggested_action(deal_matches))

    return matches


def deal_changes(client: dict, deal: dict) -> list:
    """Field-level diff shown in the dry run"""
    changes = []
    new_stage = deal.get("stage_mapped") or deal.get("stage")
    pairs = [
        ("deal_owner", client.get("deal_owner"), deal.get("owner")),
        ("sales_stage", client.get("sales_stage"), new_stage),
        ("deal_value", client.get("deal_value"), deal.get("value_parsed")),
        ("next_step_notes", client.get("next_step_notes"), deal.get("next_step")),
    ]
    for field, old, new in pairs:
        if old != new:
            changes.append({
                "field": field,
                "old_value": None if old is None else str(old),
                "new_value": "" if new is None else str(new),
            })
    return changes


def task_doc(deal: dict, client_id: str) -> dict:
    task = deal["task"]
    now = now_iso()
    return {
        "id": new_id(),
        "client_id": client_id,
        "description": task.get("description"),
        "due_date": task.get("due_date"),
        "owner": deal.get("owner"),
        "is_overdue": bool(task.get("is_overdue")),
        "priority": task.get("priority") or "NORMAL",
        "status": "OPEN",
        "completed": False,
        "completed_at": None,
        "created_at": now,
        "updated_at": now,
    }


def imported_client_doc(deal: dict, sales_fields: dict) -> dict:
    """New client for an unmatched deal, scored like a manual intake"""
    classification = "UNDETERMINED"
    now = now_iso()
    return {
        "id": new_id(),
        "name": deal["deal_name"],
        "website": None,
        "vertical": IMPORT_DEFAULT_VERTICAL,
        "notes": None,
        "classification": classification,
        "deal_behind_spec": False,
        "red_flags": [],
        "qualified": is_qualified_at_intake([]),
        "qualification_score": calculate_qualification_score([], classification, False),
        **sales_fields,
        "parent_client_id": None,
        "end_client": None,
        "created_at": now,
        "updated_at": now,
    }


async def build_preview(report: dict, options: ImportOptions) -> dict:
    deals = []
    to_create = to_update = to_skip = tasks_to_create = 0

    for deal in report.get("all_deals", []):
        matched_client = None
        action = "skip"
        reason = None
        changes = []

        if deal.get("matched_client_id"):
            client = await db.clients.find_one({"id": deal["matched_client_id"]}, {"_id": 0})
            if client:
                matched_client = {"id": client["id"], "name": client["name"]}
                if options.update_existing:
                    action = "update"
                    changes = deal_changes(client, deal)
                    to_update += 1
                else:
                    reason = "Update existing disabled"
                    to_skip += 1
            else:
                reason = "Matched client no longer exists"
                to_skip += 1
        elif options.create_new_clients:
            action = "create"
            to_create += 1
        else:
            reason = "No match found and create new disabled"
            to_skip += 1

        if deal.get("task") and options.create_tasks and action != "skip":
            tasks_to_create += 1

        deals.append({
            "extracted": deal,
            "matched_client": matched_client,
            "action": action,
            "reason": reason,
            "changes": changes or None,
        })

    warnings = []
    if to_skip:
        warnings.append(f"{to_skip} deals will be skipped")
    without_value = sum(1 for d in report.get("all_deals", []) if not d.get("value_parsed"))
    if without_value:
        warnings.append(f"{without_value} deals have no parsed value")

    return {
        "deals": deals,
        "leads": [],
        "summary": {
            "deals_to_create": to_create,
            "deals_to_update": to_update,
            "deals_to_skip": to_skip,
            "leads_to_process": len(report.get("all_leads", [])),
            "tasks_to_create": tasks_to_create,
            "warnings": warnings,
        },
    }


async def execute_import(report: dict, options: ImportOptions) -> dict:
    created_clients, updated_clients = [], []
    errors, warnings = [], []
    tasks_created = 0

    for deal in report.get("all_deals", []):
        try:
            client_id = None
            sales_fields = {
                "deal_owner": deal.get("owner"),
                "sales_stage": deal.get("stage_mapped"),
                "deal_value": deal.get("value_parsed"),
                "next_step_notes": deal.get("next_step"),
                "last_imported_at": now_iso(),
            }

            if deal.get("matched_client_id"):
                if not options.update_existing:
                    continue
                client = await db.clients.find_one({"id": deal["matched_client_id"]}, {"_id": 0, "id": 1, "name": 1})
                if not client:
                    errors.append(f'Failed to process deal "{deal.get("deal_name")}": client not found')
                    continue
                await db.clients.update_one(
                    {"id": client["id"]},
                    {"$set": {**sales_fields, "updated_at": now_iso()}}
                )
                client_id = client["id"]
                updated_clients.append({
                    "id": client["id"],
                    "name": client["name"],
                    "changes": [k for k in sales_fields if k != "last_imported_at"],
                })

            elif options.create_new_clients:
                client = imported_client_doc(deal, sales_fields)
                await db.clients.insert_one(client)
                client_id = client["id"]
                created_clients.append({"id": client["id"], "name": client["name"]})

            if client_id and deal.get("task") and options.create_tasks:
                await db.sales_tasks.insert_one(task_doc(deal, client_id))
                tasks_created += 1

        except Exception as e:
            logger.error(f"[IMPORT] deal {deal.get('deal_name')}: {e}")
            errors.append(f'Failed to process deal "{deal.get("deal_name")}": {e}')

    import_record = {
        "id": new_id(),
        "file_name": report.get("file_name"),
        "report_date": report.get("report_date"),
        "imported_at": now_iso(),
        "deals_imported": len(created_clients) + len(updated_clients),
        "deals_created": len(created_clients),
        "deals_updated": len(updated_clients),
        "leads_imported": 0,
        "tasks_created": tasks_created,
        "meetings_found": report.get("total_meetings", 0),
        "raw_extraction": json.dumps(report, default=str),
        "errors": errors or None,
        "warnings": warnings or None,
    }
    await db.sales_report_imports.insert_one(import_record)

    await log_event("sales_report_import", "sales_report_import", import_record["id"], details={
        "file_name": import_record["file_name"],
        "created": len(created_clients),
        "updated": len(updated_clients),
        "tasks": tasks_created,
        "errors": len(errors),
    })
    logger.info(
        f"[IMPORT] {import_record['file_name']}: {len(created_clients)} created, "
        f"{len(updated_clients)} updated, {tasks_created} tasks, {len(errors)} errors"
    )

    return {
        "success": not errors,
        "import_id": import_record["id"],
        "clients_created": len(created_clients),
        "clients_updated": len(updated_clients),
        "contacts_created": 0,
        "tasks_created": tasks_created,
        "created_clients": created_clients,
        "updated_clients": updated_clients,
        "errors": errors,
        "warnings": warnings,
    }


# ==================== ROUTES ====================

@router.post("/parse")
async def parse_report(data: SalesReportParseRequest):
    """Extract deals from a report file and match them to existing clients"""
    if not data.content:
        raise HTTPException(status_code=400, detail="File content is required")
    if not data.file_name:
        raise HTTPException(status_code=400, detail="File name is required")

    if data.file_name.lower().endswith(".csv") or (not data.is_base64_image and is_csv_content(data.content)):
        report = parse_sales_report_csv(data.content, data.file_name)
        method = "csv-parser"
    else:
        if data.is_base64_image:
            method = "claude-image"
        elif looks_binary(data.content):
            raise HTTPException(
                status_code=400,
                detail="PDF file detected but content appears to be binary. Please export the sales "
                       "report as CSV from Google Sheets, or copy-paste the text content."
            )
        else:
            method = "claude-text"

        try:
            result = await parse_sales_report(data.content, data.file_name, is_base64_image=data.is_base64_image)
        except InputTooShortError as e:
            raise HTTPException(status_code=400, detail=str(e))
        except LLMError as e:
            logger.error(f"[PARSE] {data.file_name}: {e}")
            raise HTTPException(status_code=500, detail=str(e))
        report = result["data"]

    if not report["all_deals"]:
        raise HTTPException(status_code=400, detail="No deals found in the file. Please check the file format.")

    clients = await db.clients.find({}, {"_id": 0, "id": 1, "name": 1}).to_list(5000)
    matches = annotate_matches(report, clients)

    logger.info(f"[PARSE] {data.file_name} via {method}: {report['total_deals']} deals")
    return {"success": True, "data": report, "matches": matches, "parsing_method": method}


@router.post("/import")
async def import_report(data: SalesReportImportRequest):
    if not data.extracted_report:
        raise HTTPException(status_code=400, detail="Extracted report data is required")

    if data.options.dry_run:
        preview = await build_preview(data.extracted_report, data.options)
        return {"success": True, "preview": preview}

    result = await execute_import(data.extracted_report, data.options)
    return {"success": True, "result": result}


@router.get("/history")
async def import_history(limit: int = 20, offset: int = 0):
    total = await db.sales_report_imports.count_documents({})
    imports = await db.sales_report_imports.find(
        {}, {"_id": 0, "raw_extraction": 0}
    ).sort("imported_at", -1).skip(offset).limit(limit).to_list(limit)

    for record in imports:
        record["has_errors"] = bool(record.get("errors"))

    return {
        "imports": imports,
        "pagination": {
            "total": total,
            "limit": limit,
            "offset": offset,
            "has_more": offset + len(imports) < total,
        },
    }
