"""
Studio Ops - Routes Event Log (audit trail)

Filter by action, entity type, or any id the event touches
(its own entity, or the client/project/estimate/conversation it is linked to).
"""

from fastapi import APIRouter, HTTPException
from typing import Optional
from config import db
from services.event_logger import EVENT_ACTIONS, ENTITY_TYPES, RELATED_KEYS, event_label

router = APIRouter(prefix="/event-log", tags=["EventLog"])

MAX_PAGE_SIZE = 500


def build_event_query(
    action: Optional[str] = None,
    entity_type: Optional[str] = None,
    entity_id: Optional[str] = None,
    client_id: Optional[str] = None,
    project_id: Optional[str] = None,
    since: Optional[str] = None,
    until: Optional[str] = None
) -> dict:
    query = {}
    if action:
        query["action"] = action
    if entity_type:
        query["entity_type"] = entity_type
    if entity_id:
        query["$or"] = [{"entity_id": entity_id}] + [{f"related.{k}": entity_id} for k in RELATED_KEYS]
    if client_id:
        query["$and"] = query.get("$and", []) + [
            {"$or": [{"related.client_id": client_id}, {"entity_type": "client", "entity_id": client_id}]}
        ]
    if project_id:
        query["$and"] = query.get("$and", []) + [
            {"$or": [{"related.project_id": project_id}, {"entity_type": "project", "entity_id": project_id}]}
        ]
    if since or until:
        query["created_at"] = {}
        if since:
            query["created_at"]["$gte"] = since
        if until:
            query["created_at"]["$lte"] = until
    return query


@router.get("")
async def list_events(
    action: Optional[str] = None,
    entity_type: Optional[str] = None,
    entity_id: Optional[str] = None,
    client_id: Optional[str] = None,
    project_id: Optional[str] = None,
    since: Optional[str] = None,
    until: Optional[str] = None,
    limit: int = 100,
    skip: int = 0
):
    """Events, newest first"""
    limit = max(1, min(limit, MAX_PAGE_SIZE))
    query = build_event_query(action, entity_type, entity_id, client_id, project_id, since, until)

    events = await db.event_log.find(
        query, {"_id": 0}
    ).sort("created_at", -1).skip(skip).limit(limit).to_list(limit)

    for event in events:
        event.setdefault("label", event_label(event.get("action", "")))

    total = await db.event_log.count_documents(query)

    return {"events": events, "count": len(events), "total": total}


@router.get("/actions")
async def list_action_types():
    """Known actions with their labels, plus any other action present in the log"""
    logged = await db.event_log.distinct("action")
    actions = sorted(set(EVENT_ACTIONS) | set(logged))
    return {
        "actions": [
            {"value": a, "label": event_label(a), "entity_type": EVENT_ACTIONS.get(a, (None,))[0]}
            for a in actions
        ],
        "entity_types": ENTITY_TYPES,
    }


@router.get("/{event_id}")
async def get_event(event_id: str):
    event = await db.event_log.find_one({"id": event_id}, {"_id": 0})
    if not event:
        raise HTTPException(status_code=404, detail="Event not found")
    event.setdefault("label", event_label(event.get("action", "")))
    return event
