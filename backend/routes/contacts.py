"""
Studio Ops - Routes Contacts

Contacts are scoped to their client. Seniority, department and decision
authority are inferred from the job title unless given explicitly.
"""

import logging
from fastapi import APIRouter, HTTPException

from config import db, now_iso, new_id
from models import ContactCreate, ContactUpdate
from services.event_logger import log_event
from services.title_intelligence import (
    infer_seniority,
    infer_seniority_score,
    infer_department,
    suggest_decision_authority,
    analyze_title,
)

logger = logging.getLogger("contacts")

router = APIRouter(prefix="/clients/{client_id}/contacts", tags=["Contacts"])


def _clean(value):
    """Trimmed string, None when empty"""
    if value is None:
        return None
    return value.strip() or None


async def _get_client_or_404(client_id: str):
    client = await db.clients.find_one({"id": client_id}, {"_id": 0, "id": 1, "name": 1})
    if not client:
        raise HTTPException(status_code=404, detail="Client not found")
    return client


async def _get_contact_or_404(client_id: str, contact_id: str):
    contact = await db.contacts.find_one({"id": contact_id, "client_id": client_id}, {"_id": 0})
    if not contact:
        raise HTTPException(status_code=404, detail="Contact not found")
    return contact


async def _unset_other_primaries(client_id: str, keep_id: str = None):
    query = {"client_id": client_id, "is_primary": True}
    if keep_id:
        query["id"] = {"$ne": keep_id}
    await db.contacts.update_many(query, {"$set": {"is_primary": False}})


@router.get("")
async def list_contacts(client_id: str):
    """Decision makers first: seniority score desc, primary first, then name"""
    await _get_client_or_404(client_id)

    contacts = await db.contacts.find({"client_id": client_id}, {"_id": 0}).to_list(500)
    contacts.sort(key=lambda c: (
        -(c.get("seniority_score") or 0),
        not c.get("is_primary"),
        (c.get("name") or "").lower(),
    ))

    return {"contacts": contacts, "count": len(contacts)}


@router.post("", status_code=201)
async def create_contact(client_id: str, data: ContactCreate):
    await _get_client_or_404(client_id)

    if not data.name or not data.name.strip():
        raise HTTPException(status_code=400, detail="Contact name is required")

    job_title = _clean(data.job_title)
    seniority = data.seniority
    seniority_score = data.seniority_score
    department = data.department
    decision_authority = data.decision_authority

    if job_title:
        seniority = seniority or infer_seniority(job_title)
        seniority_score = seniority_score or infer_seniority_score(job_title)
        department = department or infer_department(job_title)
        decision_authority = decision_authority or suggest_decision_authority(job_title)

    if data.is_primary:
        await _unset_other_primaries(client_id)

    now = now_iso()
    contact = {
        "id": new_id(),
        "client_id": client_id,
        "name": data.name.strip(),
        "email": _clean(data.email),
        "phone": _clean(data.phone),
        "role": _clean(data.role),
        "is_primary": data.is_primary,
        "job_title": job_title,
        "department": department or None,
        "seniority": seniority or None,
        "seniority_score": seniority_score or None,
        "decision_authority": decision_authority or None,
        "buying_role": data.buying_role or None,
        "linkedin_url": _clean(data.linkedin_url),
        "notes": _clean(data.notes),
        "last_contacted_at": None,
        "engagement_score": None,
        "enriched_at": now if job_title else None,
        "enrichment_source": "MANUAL",
        "created_at": now,
        "updated_at": now,
    }

    await db.contacts.insert_one(contact)
    contact.pop("_id", None)

    await log_event("contact_create", "contact", contact["id"],
                    details={"name": contact["name"]}, related={"client_id": client_id})

    return {"success": True, "contact": contact, "title_analysis": analyze_title(job_title)}


@router.get("/{contact_id}")
async def get_contact(client_id: str, contact_id: str):
    contact = await _get_contact_or_404(client_id, contact_id)
    contact["title_analysis"] = analyze_title(contact.get("job_title"))
    return {"contact": contact}


@router.put("/{contact_id}")
async def update_contact(client_id: str, contact_id: str, data: ContactUpdate):
    """Partial update; a new job title re-infers the fields not supplied"""
    existing = await _get_contact_or_404(client_id, contact_id)
    provided = data.model_dump(exclude_unset=True)

    update_data = {}
    for field in ("name", "email", "phone", "role", "job_title", "linkedin_url", "notes"):
        if field in provided:
            update_data[field] = _clean(provided[field])
    if update_data.get("name") is None and "name" in update_data:
        raise HTTPException(status_code=400, detail="Contact name is required")

    for field in ("is_primary", "department", "seniority", "seniority_score",
                  "decision_authority", "buying_role", "last_contacted_at", "engagement_score"):
        if field in provided:
            update_data[field] = provided[field]

    new_title = update_data.get("job_title")
    title_changed = "job_title" in update_data and new_title != existing.get("job_title")

    if title_changed and new_title:
        if "seniority" not in provided:
            update_data["seniority"] = infer_seniority(new_title)
        if "seniority_score" not in provided:
            update_data["seniority_score"] = infer_seniority_score(new_title)
        if "department" not in provided:
            update_data["department"] = infer_department(new_title)
        if "decision_authority" not in provided:
            update_data["decision_authority"] = suggest_decision_authority(new_title)

    if provided.get("is_primary") and not existing.get("is_primary"):
        await _unset_other_primaries(client_id, keep_id=contact_id)

    if title_changed or any(f in provided for f in ("seniority", "decision_authority", "buying_role")):
        update_data["enriched_at"] = now_iso()
        if not existing.get("enrichment_source"):
            update_data["enrichment_source"] = "MANUAL"

    update_data["updated_at"] = now_iso()
    await db.contacts.update_one({"id": contact_id}, {"$set": update_data})

    contact = await db.contacts.find_one({"id": contact_id}, {"_id": 0})
    return {"success": True, "contact": contact}


@router.delete("/{contact_id}")
async def delete_contact(client_id: str, contact_id: str):
    contact = await _get_contact_or_404(client_id, contact_id)
    await db.contacts.delete_one({"id": contact_id})

    await log_event("contact_delete", "contact", contact_id,
                    details={"name": contact.get("name")}, related={"client_id": client_id})
    return {"success": True}
