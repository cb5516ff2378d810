"""
Studio Ops - Routes Reference data

Static tables (verticals, deliverable options, handoff types, ...) for the frontend.
"""

from fastapi import APIRouter, HTTPException

from services.catalog import get_catalog
from services.handoffs import list_checklist_items
from services.qualification import GATE_CRITERIA

router = APIRouter(prefix="/reference", tags=["Reference"])


@router.get("")
async def get_reference():
    catalog = get_catalog()
    catalog["gate_criteria"] = {str(k): v for k, v in GATE_CRITERIA.items()}
    return catalog


@router.get("/handoff-checklists/{handoff_type}")
async def get_handoff_checklist(handoff_type: str):
    items = list_checklist_items(handoff_type)
    if not items:
        raise HTTPException(status_code=404, detail="Unknown handoff type")
    return {"type": handoff_type, "items": items}
