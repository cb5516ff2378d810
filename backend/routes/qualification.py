"""
Studio Ops - Routes Qualification calls

Four gated calls per client (INTRO, PRODUCT_SCOPE, BUDGET_SCOPE, PROPOSAL).
Every update recomputes the client's score and qualified flag.
"""

import logging
from fastapi import APIRouter, HTTPException
from typing import Optional

from config import db, now_iso, new_id
from models import QualificationCallUpdate
from services.catalog import QUALIFICATION_CALLS
from services.event_logger import log_event
from services.qualification import (
    GATE_CRITERIA,
    call_type_for,
    is_valid_call_number,
    is_gate_cleared,
    calculate_call_progress,
)

logger = logging.getLogger("qualification")

router = APIRouter(prefix="/clients/{client_id}/qualification", tags=["Qualification"])


def new_call_doc(client_id: str, call_number: int) -> dict:
    now = now_iso()
    return {
        "id": new_id(),
        "client_id": client_id,
        "call_number": call_number,
        "call_type": call_type_for(call_number),
        "completed": False,
        "completed_at": None,
        "notes": None,
        "gate_criteria": {},
        "gate_cleared": False,
        "discovery_answers": {},
        "created_at": now,
        "updated_at": now,
    }


def parse_call_number(raw: str) -> Optional[int]:
    """Path segment -> call number (1-4), None when not one"""
    try:
        call_number = int(raw)
    except (TypeError, ValueError):
        return None
    return call_number if is_valid_call_number(call_number) else None


async def refresh_client_qualification(client_id: str) -> dict:
    """Recompute score/qualified from the calls and store them on the client"""
    calls = await db.qualification_calls.find({"client_id": client_id}, {"_id": 0}).to_list(10)
    progress = calculate_call_progress(calls)

    await db.clients.update_one(
        {"id": client_id},
        {"$set": {
            "qualification_score": progress["qualification_score"],
            "qualified": progress["qualified"],
            "updated_at": now_iso(),
        }}
    )
    return progress


@router.get("")
async def list_calls(client_id: str):
    """Calls in order, each with its linked conversations"""
    calls = await db.qualification_calls.find(
        {"client_id": client_id}, {"_id": 0}
    ).sort("call_number", 1).to_list(10)

    for call in calls:
        call["gate_definition"] = GATE_CRITERIA.get(call["call_number"], [])
        call["conversations"] = await db.conversations.find(
            {"qualification_call_ids": call["id"]},
            {"_id": 0, "id": 1, "meeting_date": 1, "meeting_stage": 1,
             "call_summary": 1, "processed": 1, "created_at": 1}
        ).sort("created_at", -1).to_list(50)

    return {"calls": calls, "count": len(calls)}


@router.post("", status_code=201)
async def init_calls(client_id: str):
    """Create the four calls for a client"""
    client = await db.clients.find_one({"id": client_id}, {"_id": 0, "id": 1})
    if not client:
        raise HTTPException(status_code=404, detail="Client not found")

    existing = await db.qualification_calls.count_documents({"client_id": client_id})
    if existing > 0:
        raise HTTPException(status_code=400, detail="Qualification calls already exist for this client")

    calls = [new_call_doc(client_id, c["number"]) for c in QUALIFICATION_CALLS]
    await db.qualification_calls.insert_many(calls)
    for call in calls:
        call.pop("_id", None)

    logger.info(f"[QUALIFICATION] initialized {len(calls)} calls for client {client_id}")
    return {"success": True, "calls": calls}


@router.put("/{call_number}")
async def update_call(client_id: str, call_number: str, data: QualificationCallUpdate):
    """Update one call (created on the fly if missing)"""
    number = parse_call_number(call_number)
    if number is None:
        raise HTTPException(status_code=400, detail="Invalid call number")
    client = await db.clients.find_one({"id": client_id}, {"_id": 0, "id": 1})
    if not client:
        raise HTTPException(status_code=404, detail="Client not found")

    call = await db.qualification_calls.find_one(
        {"client_id": client_id, "call_number": number}, {"_id": 0}
    )
    if not call:
        call = new_call_doc(client_id, number)
        await db.qualification_calls.insert_one(call)
        call.pop("_id", None)

    update_data = {k: v for k, v in data.model_dump().items() if v is not None}

    if data.completed:
        update_data["completed_at"] = now_iso()

    if data.gate_cleared is None and data.gate_criteria is not None:
        update_data["gate_cleared"] = is_gate_cleared(number, data.gate_criteria)

    update_data["updated_at"] = now_iso()
    await db.qualification_calls.update_one({"id": call["id"]}, {"$set": update_data})

    progress = await refresh_client_qualification(client_id)
    await log_event("qualification_call_update", "qualification_call", call["id"],
                    details={"call_number": number, "score": progress["qualification_score"]},
                    related={"client_id": client_id})

    updated = await db.qualification_calls.find_one({"id": call["id"]}, {"_id": 0})
    return {"success": True, "call": updated, "progress": progress}
