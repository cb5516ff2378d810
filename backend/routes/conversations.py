"""
╔══════════════════════════════════════════════════════════════════════════════╗
║  Studio Ops - Routes Conversations                                           ║
║                                                                              ║
║  Call transcripts, processed by Claude into a structured meeting record      ║
║  Linked to a client and to its qualification calls                           ║
║  Client attendees can be imported as contacts                                ║
╚══════════════════════════════════════════════════════════════════════════════╝
"""

import logging
from fastapi import APIRouter, HTTPException
from typing import Optional

from config import db, now_iso, new_id
from models import ConversationCreate, ConversationUpdate, ImportContactsRequest
from routes.qualification import new_call_doc
from services.catalog import CALL_NUMBER_BY_STAGE
from services.event_logger import log_event
from services.llm_client import LLMError
from services.title_intelligence import infer_contact_fields
from services.transcript_processor import process_with_retry, EXTRACTED_FIELDS

logger = logging.getLogger("conversations")

router = APIRouter(prefix="/conversations", tags=["Conversations"])

MIN_STORED_TRANSCRIPT = 50


async def _get_conversation_or_404(conversation_id: str) -> dict:
    conversation = await db.conversations.find_one({"id": conversation_id}, {"_id": 0})
    if not conversation:
        raise HTTPException(status_code=404, detail="Conversation not found")
    return conversation


async def link_qualification_calls(client_id: str, stages: list) -> list:
    """Find or create the client's call for each stage, returns their ids"""
    call_ids = []
    for stage in stages:
        call_number = CALL_NUMBER_BY_STAGE.get(stage)
        if not call_number:
            continue
        call = await db.qualification_calls.find_one(
            {"client_id": client_id, "call_number": call_number}, {"_id": 0, "id": 1}
        )
        if not call:
            call = new_call_doc(client_id, call_number)
            await db.qualification_calls.insert_one(call)
        if call["id"] not in call_ids:
            call_ids.append(call["id"])
    return call_ids


# ==================== CRUD ====================

@router.get("")
async def list_conversations(client_id: Optional[str] = None, processed: Optional[str] = None):
    query = {}
    if client_id:
        query["client_id"] = client_id
    if processed == "true":
        query["processed"] = True
    elif processed == "false":
        query["processed"] = False

    conversations = await db.conversations.find(
        query, {"_id": 0, "raw_transcript": 0}
    ).sort("created_at", -1).to_list(500)

    for c in conversations:
        c["client"] = None
        if c.get("client_id"):
            c["client"] = await db.clients.find_one(
                {"id": c["client_id"]}, {"_id": 0, "id": 1, "name": 1, "vertical": 1}
            )

    return {"conversations": conversations, "count": len(conversations)}


@router.get("/{conversation_id}")
async def get_conversation(conversation_id: str):
    conversation = await _get_conversation_or_404(conversation_id)

    conversation["client"] = None
    if conversation.get("client_id"):
        conversation["client"] = await db.clients.find_one(
            {"id": conversation["client_id"]}, {"_id": 0, "id": 1, "name": 1, "vertical": 1}
        )
    conversation["qualification_calls"] = await db.qualification_calls.find(
        {"id": {"$in": conversation.get("qualification_call_ids") or []}},
        {"_id": 0, "id": 1, "call_number": 1, "call_type": 1, "completed": 1}
    ).sort("call_number", 1).to_list(10)

    return {"conversation": conversation}


@router.post("", status_code=201)
async def create_conversation(data: ConversationCreate):
    """Store a raw transcript; processing is a separate call"""
    if not data.raw_transcript or len(data.raw_transcript.strip()) < MIN_STORED_TRANSCRIPT:
        raise HTTPException(status_code=400, detail="Transcript is required and must be at least 50 characters")

    call_ids = []
    if data.client_id:
        client = await db.clients.find_one({"id": data.client_id}, {"_id": 0, "id": 1})
        if not client:
            raise HTTPException(status_code=404, detail="Client not found")
        if data.qualification_stages:
            call_ids = await link_qualification_calls(data.client_id, data.qualification_stages)

    now = now_iso()
    conversation = {
        "id": new_id(),
        "client_id": data.client_id,
        "raw_transcript": data.raw_transcript,
        "transcript_source": data.transcript_source or "manual",
        "qualification_call_ids": call_ids,
        "processed": False,
        "processed_at": None,
        "processing_model": None,
        "processing_tokens": None,
        "processing_error": None,
        **{field: None for field in EXTRACTED_FIELDS},
        "created_at": now,
        "updated_at": now,
    }

    await db.conversations.insert_one(conversation)
    conversation.pop("_id", None)

    await log_event("conversation_create", "conversation", conversation["id"],
                    details={"source": conversation["transcript_source"],
                             "length": len(data.raw_transcript)},
                    related={"client_id": data.client_id})

    return {"success": True, "conversation": conversation}


@router.put("/{conversation_id}")
async def update_conversation(conversation_id: str, data: ConversationUpdate):
    """Manual corrections; only fields present in the body are applied"""
    await _get_conversation_or_404(conversation_id)

    update_data = data.model_dump(exclude_unset=True)
    update_data["updated_at"] = now_iso()

    await db.conversations.update_one({"id": conversation_id}, {"$set": update_data})

    conversation = await db.conversations.find_one({"id": conversation_id}, {"_id": 0})
    return {"success": True, "conversation": conversation}


@router.delete("/{conversation_id}")
async def delete_conversation(conversation_id: str):
    conversation = await _get_conversation_or_404(conversation_id)
    await db.conversations.delete_one({"id": conversation_id})

    await log_event("conversation_delete", "conversation", conversation_id,
                    related={"client_id": conversation.get("client_id")})
    return {"success": True}


# ==================== PROCESSING ====================

@router.post("/{conversation_id}/process")
async def process_conversation(conversation_id: str):
    """Run the transcript through Claude and store the extracted record"""
    conversation = await _get_conversation_or_404(conversation_id)

    transcript = conversation.get("raw_transcript")
    if not transcript:
        raise HTTPException(status_code=400, detail="Conversation has no transcript to process")

    logger.info(f"[TRANSCRIPT] processing conversation {conversation_id}")

    try:
        result = await process_with_retry(transcript)
    except LLMError as e:
        await db.conversations.update_one(
            {"id": conversation_id},
            {"$set": {"processing_error": str(e), "updated_at": now_iso()}}
        )
        await log_event("conversation_process_failed", "conversation", conversation_id,
                        details={"error": str(e)},
                        related={"client_id": conversation.get("client_id")})
        logger.error(f"[TRANSCRIPT] {conversation_id} failed: {e}")
        raise HTTPException(status_code=500, detail=str(e))

    extracted = result["data"]
    usage = result["usage"]
    now = now_iso()

    update_data = {
        "processed": True,
        "processed_at": now,
        "processing_model": result.get("model"),
        "processing_tokens": usage["input_tokens"] + usage["output_tokens"],
        "processing_error": None,
        **{field: extracted.get(field) for field in EXTRACTED_FIELDS},
        "updated_at": now,
    }
    await db.conversations.update_one({"id": conversation_id}, {"$set": update_data})

    await log_event("conversation_process", "conversation", conversation_id,
                    details={"tokens": update_data["processing_tokens"],
                             "meeting_stage": extracted.get("meeting_stage")},
                    related={"client_id": conversation.get("client_id")})

    updated = await db.conversations.find_one({"id": conversation_id}, {"_id": 0})
    return {"success": True, "conversation": updated, "extracted_data": extracted, "usage": usage}


@router.post("/{conversation_id}/import-contacts")
async def import_contacts(conversation_id: str, data: ImportContactsRequest):
    """Client attendees -> contacts; duplicates by email (or name) are skipped"""
    if not data.client_id:
        raise HTTPException(status_code=400, detail="Client ID is required")
    if not data.attendees:
        raise HTTPException(status_code=400, detail="No attendees provided")

    conversation = await _get_conversation_or_404(conversation_id)

    client = await db.clients.find_one({"id": data.client_id}, {"_id": 0, "id": 1, "name": 1})
    if not client:
        raise HTTPException(status_code=404, detail="Client not found")

    existing = await db.contacts.find(
        {"client_id": data.client_id}, {"_id": 0, "name": 1, "email": 1}
    ).to_list(1000)
    known_emails = {(c.get("email") or "").lower() for c in existing if c.get("email")}
    known_names = {(c.get("name") or "").lower() for c in existing}

    imported, skipped = [], []
    now = now_iso()

    for attendee in data.attendees:
        name = attendee.name.strip()
        email = (attendee.email or "").strip() or None

        if email and email.lower() in known_emails:
            skipped.append({"name": name, "reason": "Email already exists"})
            continue
        if not email and name.lower() in known_names:
            skipped.append({"name": name, "reason": "Name already exists"})
            continue

        inferred = infer_contact_fields(attendee.role)
        contact = {
            "id": new_id(),
            "client_id": data.client_id,
            "name": name,
            "email": email,
            "phone": None,
            "role": attendee.role,
            "is_primary": False,
            "job_title": attendee.role,
            "department": inferred.get("department"),
            "seniority": inferred.get("seniority"),
            "seniority_score": inferred.get("seniority_score"),
            "decision_authority": inferred.get("decision_authority"),
            "buying_role": None,
            "linkedin_url": None,
            "notes": attendee.notes,
            "last_contacted_at": None,
            "engagement_score": None,
            "enriched_at": now,
            "enrichment_source": "CONVERSATION",
            "created_at": now,
            "updated_at": now,
        }
        await db.contacts.insert_one(contact)
        contact.pop("_id", None)
        imported.append(contact)

        if email:
            known_emails.add(email.lower())
        known_names.add(name.lower())

    if not conversation.get("client_id"):
        await db.conversations.update_one(
            {"id": conversation_id},
            {"$set": {"client_id": data.client_id, "updated_at": now}}
        )

    message = f"Imported {len(imported)} contacts"
    if skipped:
        message += f", skipped {len(skipped)} duplicates"

    logger.info(f"[CONTACTS] {message} from conversation {conversation_id} into {client['name']}")

    return {
        "success": True,
        "imported": len(imported),
        "skipped": len(skipped),
        "contacts": imported,
        "skipped_details": skipped,
        "message": message,
    }
