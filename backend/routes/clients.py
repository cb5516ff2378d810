"""
╔══════════════════════════════════════════════════════════════════════════════╗
║  Studio Ops - Routes Clients                                                 ║
║                                                                              ║
║  CRUD for brands and agencies in the sales pipeline                          ║
║  Intake score from classification and red flags                              ║
║  DELETE cascades to contacts, qualification calls and sales tasks            ║
╚══════════════════════════════════════════════════════════════════════════════╝
"""

import json
import logging
from fastapi import APIRouter, HTTPException
from typing import Optional

from config import db, now_iso, new_id
from models import ClientCreate, ClientUpdate
from services.event_logger import log_event
from services.qualification import (
    parse_red_flags,
    is_qualified_at_intake,
    calculate_qualification_score,
)

logger = logging.getLogger("clients")

router = APIRouter(prefix="/clients", tags=["Clients"])

# Never stored as null; every other field sent as null is cleared
NON_NULLABLE_FIELDS = ("name", "vertical", "classification", "deal_behind_spec", "qualified")


def _red_flags_or_400(raw):
    try:
        return parse_red_flags(raw)
    except (ValueError, json.JSONDecodeError):
        raise HTTPException(status_code=400, detail="red_flags must be a list or a JSON-encoded list")


def client_update_fields(data: ClientUpdate) -> dict:
    """Fields present in the request body"""
    provided = data.model_dump(exclude_unset=True)
    return {k: v for k, v in provided.items() if v is not None or k not in NON_NULLABLE_FIELDS}


@router.get("")
async def list_clients(
    vertical: Optional[str] = None,
    classification: Optional[str] = None,
    sales_stage: Optional[str] = None,
    deal_owner: Optional[str] = None
):
    """All clients, most recently updated first, with their project count"""
    query = {}
    if vertical:
        query["vertical"] = vertical
    if classification:
        query["classification"] = classification
    if sales_stage:
        query["sales_stage"] = sales_stage
    if deal_owner:
        query["deal_owner"] = deal_owner

    clients = await db.clients.find(query, {"_id": 0}).sort("updated_at", -1).to_list(1000)

    for client in clients:
        client["project_count"] = await db.projects.count_documents({"client_id": client["id"]})

    return {"clients": clients, "count": len(clients)}


@router.get("/{client_id}")
async def get_client(client_id: str):
    """Client with contacts, projects, qualification calls, tasks and deal hierarchy"""
    client = await db.clients.find_one({"id": client_id}, {"_id": 0})
    if not client:
        raise HTTPException(status_code=404, detail="Client not found")

    client["contacts"] = await db.contacts.find(
        {"client_id": client_id}, {"_id": 0}
    ).to_list(500)

    client["projects"] = await db.projects.find(
        {"client_id": client_id}, {"_id": 0}
    ).sort("created_at", -1).to_list(500)

    client["qualification_calls"] = await db.qualification_calls.find(
        {"client_id": client_id}, {"_id": 0}
    ).sort("call_number", 1).to_list(10)

    client["sales_tasks"] = await db.sales_tasks.find(
        {"client_id": client_id}, {"_id": 0}
    ).sort([("completed", 1), ("due_date", 1)]).to_list(500)

    client["sub_deals"] = await db.clients.find(
        {"parent_client_id": client_id},
        {"_id": 0, "id": 1, "name": 1, "deal_value": 1, "sales_stage": 1}
    ).to_list(100)

    client["parent_client"] = None
    if client.get("parent_client_id"):
        client["parent_client"] = await db.clients.find_one(
            {"id": client["parent_client_id"]}, {"_id": 0, "id": 1, "name": 1}
        )

    return {"client": client}


@router.post("", status_code=201)
async def create_client(data: ClientCreate):
    """New client; qualified only with no red flag at all"""
    if not data.name or not data.vertical:
        raise HTTPException(status_code=400, detail="Name and vertical are required")

    red_flags = _red_flags_or_400(data.red_flags)
    classification = data.classification or "UNDETERMINED"

    now = now_iso()
    client = {
        "id": new_id(),
        "name": data.name.strip(),
        "website": data.website or None,
        "vertical": data.vertical,
        "notes": data.notes or None,
        "classification": classification,
        "deal_behind_spec": data.deal_behind_spec,
        "red_flags": red_flags,
        "qualified": is_qualified_at_intake(red_flags),
        "qualification_score": calculate_qualification_score(red_flags, classification, data.deal_behind_spec),
        "deal_owner": None,
        "sales_stage": None,
        "deal_value": None,
        "next_step_notes": None,
        "parent_client_id": None,
        "end_client": None,
        "last_imported_at": None,
        "created_at": now,
        "updated_at": now,
    }

    await db.clients.insert_one(client)
    client.pop("_id", None)

    await log_event("client_create", "client", client["id"], details={"name": client["name"]})
    logger.info(f"[CLIENT] created {client['name']} score={client['qualification_score']}")

    return {"success": True, "client": client}


@router.put("/{client_id}")
async def update_client(client_id: str, data: ClientUpdate):
    """Update, then recompute intake score and qualified flag"""
    existing = await db.clients.find_one({"id": client_id}, {"_id": 0})
    if not existing:
        raise HTTPException(status_code=404, detail="Client not found")

    update_data = client_update_fields(data)

    if "red_flags" in update_data:
        update_data["red_flags"] = _red_flags_or_400(update_data["red_flags"])

    merged = {**existing, **update_data}
    red_flags = merged.get("red_flags") or []

    update_data["qualification_score"] = calculate_qualification_score(
        red_flags, merged.get("classification"), bool(merged.get("deal_behind_spec"))
    )
    if data.qualified is None:
        update_data["qualified"] = is_qualified_at_intake(red_flags)
    update_data["updated_at"] = now_iso()

    await db.clients.update_one({"id": client_id}, {"$set": update_data})

    client = await db.clients.find_one({"id": client_id}, {"_id": 0})
    return {"success": True, "client": client}


@router.delete("/{client_id}")
async def delete_client(client_id: str):
    client = await db.clients.find_one({"id": client_id}, {"_id": 0})
    if not client:
        raise HTTPException(status_code=404, detail="Client not found")

    contacts = await db.contacts.delete_many({"client_id": client_id})
    calls = await db.qualification_calls.delete_many({"client_id": client_id})
    tasks = await db.sales_tasks.delete_many({"client_id": client_id})
    await db.conversations.update_many({"client_id": client_id}, {"$set": {"client_id": None}})
    await db.clients.update_many({"parent_client_id": client_id}, {"$set": {"parent_client_id": None}})
    await db.clients.delete_one({"id": client_id})

    await log_event("client_delete", "client", client_id, details={
        "name": client.get("name"),
        "contacts_deleted": contacts.deleted_count,
        "calls_deleted": calls.deleted_count,
        "tasks_deleted": tasks.deleted_count,
    })
    logger.info(f"[CLIENT] deleted {client.get('name')}")

    return {"success": True}
