"""
╔══════════════════════════════════════════════════════════════════════════════╗
║  Studio Ops - Routes Handoffs                                                ║
║                                                                              ║
║  Four handoffs per project, each with a typed checklist                      ║
║  COMPLETED -> completed_at, is_on_time, project partition advanced           ║
║  1->2, 2->3, 3->4, 4->6                                                      ║
╚══════════════════════════════════════════════════════════════════════════════╝
"""

import logging
from datetime import datetime, timezone
from fastapi import APIRouter, HTTPException
from typing import Optional

from config import db, now_iso, new_id
from models import HandoffCreate, HandoffUpdate
from services.event_logger import log_event
from services.handoffs import (
    initial_checklist,
    checklist_progress,
    list_checklist_items,
    next_partition,
    build_handoff_email,
    get_handoff_type,
)

logger = logging.getLogger("handoffs")

router = APIRouter(prefix="/handoffs", tags=["Handoffs"])


def is_on_time(due_at: Optional[str], completed_at: str) -> Optional[bool]:
    """None when there is no due date"""
    if not due_at:
        return None
    try:
        due = datetime.fromisoformat(due_at.replace("Z", "+00:00"))
    except ValueError:
        return None
    if due.tzinfo is None:
        due = due.replace(tzinfo=timezone.utc)
    return datetime.fromisoformat(completed_at) <= due


async def _get_handoff_or_404(handoff_id: str) -> dict:
    handoff = await db.handoffs.find_one({"id": handoff_id}, {"_id": 0})
    if not handoff:
        raise HTTPException(status_code=404, detail="Handoff not found")
    return handoff


@router.get("")
async def list_handoffs(project_id: Optional[str] = None, status: Optional[str] = None):
    query = {}
    if project_id:
        query["project_id"] = project_id
    if status:
        query["status"] = status

    handoffs = await db.handoffs.find(query, {"_id": 0}).sort(
        [("handoff_number", 1), ("created_at", -1)]
    ).to_list(500)

    for h in handoffs:
        project = await db.projects.find_one(
            {"id": h.get("project_id")}, {"_id": 0, "id": 1, "name": 1, "job_id": 1, "client_id": 1}
        )
        h["project"] = project
        h["client"] = None
        if project:
            h["client"] = await db.clients.find_one(
                {"id": project.get("client_id")}, {"_id": 0, "id": 1, "name": 1}
            )

    return {"handoffs": handoffs, "count": len(handoffs)}


@router.get("/{handoff_id}")
async def get_handoff(handoff_id: str, include_email: bool = False):
    """Handoff with its checklist definition, progress and optionally the email text"""
    handoff = await _get_handoff_or_404(handoff_id)

    project = await db.projects.find_one({"id": handoff.get("project_id")}, {"_id": 0}) or {}
    client = {}
    if project:
        client = await db.clients.find_one({"id": project.get("client_id")}, {"_id": 0}) or {}

    handoff["project"] = project or None
    handoff["client"] = client or None
    handoff["type_info"] = get_handoff_type(handoff.get("handoff_number"))
    handoff["checklist_definition"] = list_checklist_items(handoff.get("type"))
    handoff["progress"] = checklist_progress(handoff.get("type"), handoff.get("checklist"))

    if include_email:
        handoff["email"] = build_handoff_email(handoff, project, client)

    return {"handoff": handoff}


@router.post("", status_code=201)
async def create_handoff(data: HandoffCreate):
    if not data.project_id or not data.handoff_number or not data.type:
        raise HTTPException(status_code=400, detail="Project ID, handoff number, and type are required")

    project = await db.projects.find_one({"id": data.project_id}, {"_id": 0, "id": 1})
    if not project:
        raise HTTPException(status_code=404, detail="Project not found")

    existing = await db.handoffs.find_one(
        {"project_id": data.project_id, "handoff_number": data.handoff_number}, {"_id": 0, "id": 1}
    )
    if existing:
        raise HTTPException(status_code=400, detail="A handoff with this number already exists for this project")

    now = now_iso()
    handoff = {
        "id": new_id(),
        "project_id": data.project_id,
        "handoff_number": data.handoff_number,
        "type": data.type,
        "status": "IN_PROGRESS",
        "checklist": initial_checklist(data.type),
        "notes": data.notes,
        "due_at": data.due_at,
        "completed_at": None,
        "is_on_time": None,
        "transferred_items": [],
        "email_exported": False,
        "email_exported_at": None,
        "created_at": now,
        "updated_at": now,
    }

    await db.handoffs.insert_one(handoff)
    handoff.pop("_id", None)

    await log_event("handoff_create", "handoff", handoff["id"],
                    details={"handoff_number": data.handoff_number, "type": data.type},
                    related={"project_id": data.project_id})

    return {"success": True, "handoff": handoff}


@router.put("/{handoff_id}")
async def update_handoff(handoff_id: str, data: HandoffUpdate):
    existing = await _get_handoff_or_404(handoff_id)
    provided = data.model_dump(exclude_unset=True)

    update_data = {}
    for field in ("checklist", "notes", "due_at", "transferred_items"):
        if field in provided:
            update_data[field] = provided[field]

    if provided.get("email_exported") is not None:
        update_data["email_exported"] = provided["email_exported"]
        if provided["email_exported"]:
            update_data["email_exported_at"] = now_iso()

    completing = data.status == "COMPLETED" and existing.get("status") != "COMPLETED"
    if data.status:
        update_data["status"] = data.status

    if completing:
        completed_at = now_iso()
        due_at = update_data.get("due_at", existing.get("due_at"))
        update_data["completed_at"] = completed_at
        update_data["is_on_time"] = is_on_time(due_at, completed_at)

    update_data["updated_at"] = now_iso()
    await db.handoffs.update_one({"id": handoff_id}, {"$set": update_data})

    if completing:
        partition = next_partition(existing["handoff_number"])
        if partition:
            await db.projects.update_one(
                {"id": existing["project_id"]},
                {"$set": {"current_partition": partition, "updated_at": now_iso()}}
            )
        await log_event("handoff_complete", "handoff", handoff_id,
                        details={"handoff_number": existing["handoff_number"],
                                 "is_on_time": update_data["is_on_time"],
                                 "partition": partition},
                        related={"project_id": existing["project_id"]})
        logger.info(f"[HANDOFF] #{existing['handoff_number']} completed for project {existing['project_id']}")

    handoff = await db.handoffs.find_one({"id": handoff_id}, {"_id": 0})
    handoff["progress"] = checklist_progress(handoff.get("type"), handoff.get("checklist"))
    return {"success": True, "handoff": handoff}


@router.delete("/{handoff_id}")
async def delete_handoff(handoff_id: str):
    handoff = await _get_handoff_or_404(handoff_id)
    await db.handoffs.delete_one({"id": handoff_id})

    await log_event("handoff_delete", "handoff", handoff_id,
                    details={"handoff_number": handoff.get("handoff_number")},
                    related={"project_id": handoff.get("project_id")})
    return {"success": True}
