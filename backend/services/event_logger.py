"""
Studio Ops - Event Logger

Audit trail of the sales pipeline: who created, processed, applied or
deleted what, and which client/project it belongs to.
Single function to call from any route/service.
"""

import logging
from typing import Optional

from config import db, now_iso, new_id

logger = logging.getLogger("event_log")

# action -> (entity_type, label)
EVENT_ACTIONS = {
    "client_create": ("client", "Client created"),
    "client_delete": ("client", "Client deleted"),
    "contact_create": ("contact", "Contact added"),
    "contact_delete": ("contact", "Contact removed"),
    "qualification_call_update": ("qualification_call", "Qualification call updated"),
    "project_create": ("project", "Project opened"),
    "project_delete": ("project", "Project deleted"),
    "estimate_create": ("estimate", "Estimate drafted"),
    "estimate_apply": ("estimate", "Estimate applied to project"),
    "estimate_delete": ("estimate", "Estimate deleted"),
    "handoff_create": ("handoff", "Handoff started"),
    "handoff_complete": ("handoff", "Handoff completed"),
    "handoff_delete": ("handoff", "Handoff deleted"),
    "conversation_create": ("conversation", "Transcript added"),
    "conversation_process": ("conversation", "Transcript processed"),
    "conversation_process_failed": ("conversation", "Transcript processing failed"),
    "conversation_delete": ("conversation", "Transcript deleted"),
    "task_complete": ("task", "Sales task completed"),
    "sales_report_import": ("sales_report_import", "Sales report imported"),
    "estimation_config_update": ("settings", "Estimation rates changed"),
    "estimation_config_reset": ("settings", "Estimation rates reset"),
}

ENTITY_TYPES = sorted({entity_type for entity_type, _ in EVENT_ACTIONS.values()})

# Ids an event can be attached to besides its own entity
RELATED_KEYS = ("client_id", "project_id", "estimate_id", "conversation_id")


def event_label(action: str) -> str:
    """Readable label, 'some_action' -> 'Some action' for unknown ones"""
    known = EVENT_ACTIONS.get(action)
    if known:
        return known[1]
    return action.replace("_", " ").capitalize()


def clean_related(related: Optional[dict]) -> dict:
    """Keep only the link ids that are set"""
    return {k: v for k, v in (related or {}).items() if k in RELATED_KEYS and v}


async def log_event(
    action: str,
    entity_type: str,
    entity_id: str,
    user: str = "system",
    details: dict = None,
    related: dict = None
) -> dict:
    """
    Write a single event to the event_log collection.

    Args:
        action: one of EVENT_ACTIONS (unknown actions are stored, with a warning)
        entity_type: client | contact | project | estimate | handoff |
                     conversation | task | sales_report_import | settings
        entity_id: ID of the primary entity
        user: who performed the action
        details: free-form dict (name, counts, old/new values...)
        related: client_id / project_id / estimate_id / conversation_id
    """
    expected = EVENT_ACTIONS.get(action)
    if expected is None:
        logger.warning(f"Unregistered event action: {action}")
    elif expected[0] != entity_type:
        logger.warning(f"Event {action} logged on {entity_type}, expected {expected[0]}")

    event = {
        "id": new_id(),
        "action": action,
        "label": event_label(action),
        "entity_type": entity_type,
        "entity_id": entity_id,
        "user": user,
        "details": details or {},
        "related": clean_related(related),
        "created_at": now_iso()
    }
    await db.event_log.insert_one(event)
    event.pop("_id", None)

    logger.debug(f"{action} {entity_type}:{entity_id}")
    return event
