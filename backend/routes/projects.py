"""
╔══════════════════════════════════════════════════════════════════════════════╗
║  Studio Ops - Routes Projects                                                ║
║                                                                              ║
║  Production jobs: job id, milestones, deliverables                           ║
║  job_id = PREFIX-YYYYMMDD-NNN (prefix from the client name)                  ║
║  DELETE cascades to deliverables, milestones, handoffs and estimates         ║
╚══════════════════════════════════════════════════════════════════════════════╝
"""

import re
import logging
from datetime import datetime, timezone
from fastapi import APIRouter, HTTPException, Body
from typing import Optional, Any

from pydantic import ValidationError

from config import db, now_iso, new_id
from models import DeliverableIn, ProjectCreate, ProjectUpdate
from services.catalog import DEFAULT_MILESTONES
from services.event_logger import log_event
from services.estimation import calculate_deliverable_days, round_half_up
from services.settings import get_active_rates

logger = logging.getLogger("projects")

router = APIRouter(prefix="/projects", tags=["Projects"])

JOB_PREFIX_MAX = 10


# ==================== HELPERS ====================

def job_id_prefix(name: str) -> str:
    """Client name -> job id prefix: 'Saatchi/LA Office' -> 'SAATCHI'"""
    return re.split(r"[/\s]", name.strip())[0].upper()[:JOB_PREFIX_MAX]


async def generate_job_id(client_name: str) -> str:
    date_str = datetime.now(timezone.utc).strftime("%Y%m%d")
    base = f"{job_id_prefix(client_name)}-{date_str}"
    existing = await db.projects.count_documents({"job_id": {"$regex": f"^{re.escape(base)}"}})
    return f"{base}-{str(existing + 1).zfill(3)}"


def build_deliverable_doc(project_id: str, d: DeliverableIn, config: dict, total_count: int = None) -> dict:
    """Stored deliverable; estimated_days computed from the rate table when absent"""
    data = d.model_dump()
    estimated_days = data.get("estimated_days")
    if estimated_days is None:
        estimated_days = round_half_up(calculate_deliverable_days(data, config))

    now = now_iso()
    return {
        "id": new_id(),
        "project_id": project_id,
        "platform": d.platform,
        "creative_type": d.creative_type,
        "size": d.size,
        "duration": d.duration,
        "monthly_count": d.monthly_count,
        "total_count": d.monthly_count if total_count is None else total_count,
        "estimated_days": estimated_days,
        "created_at": now,
        "updated_at": now,
    }


def _parse_deliverables_or_400(raw: Any):
    if not isinstance(raw, list):
        raise HTTPException(status_code=400, detail="Deliverables array is required")
    try:
        return [DeliverableIn(**item) for item in raw]
    except (TypeError, ValidationError) as e:
        raise HTTPException(status_code=400, detail=f"Invalid deliverable: {e}")


async def _get_project_or_404(project_id: str) -> dict:
    project = await db.projects.find_one({"id": project_id}, {"_id": 0})
    if not project:
        raise HTTPException(status_code=404, detail="Project not found")
    return project


# ==================== PROJECTS ====================

@router.get("")
async def list_projects(client_id: Optional[str] = None, status: Optional[str] = None):
    query = {}
    if client_id:
        query["client_id"] = client_id
    if status:
        query["status"] = status

    projects = await db.projects.find(query, {"_id": 0}).sort("updated_at", -1).to_list(1000)

    for p in projects:
        p["client"] = await db.clients.find_one(
            {"id": p.get("client_id")}, {"_id": 0, "id": 1, "name": 1}
        )
        handoffs = await db.handoffs.find(
            {"project_id": p["id"]}, {"_id": 0, "handoff_number": 1}
        ).to_list(20)
        p["handoff_numbers"] = sorted(h["handoff_number"] for h in handoffs)
        p["handoff_count"] = len(handoffs)
        p["deliverable_count"] = await db.deliverables.count_documents({"project_id": p["id"]})

    return {"projects": projects, "count": len(projects)}


@router.get("/{project_id}")
async def get_project(project_id: str):
    project = await _get_project_or_404(project_id)

    project["client"] = await db.clients.find_one({"id": project.get("client_id")}, {"_id": 0})
    project["milestones"] = await db.milestones.find(
        {"project_id": project_id}, {"_id": 0}
    ).sort("order", 1).to_list(100)
    project["handoffs"] = await db.handoffs.find(
        {"project_id": project_id}, {"_id": 0}
    ).sort("handoff_number", 1).to_list(20)
    project["estimates"] = await db.estimates.find(
        {"project_id": project_id}, {"_id": 0}
    ).sort("created_at", -1).to_list(100)
    project["deliverables"] = await db.deliverables.find(
        {"project_id": project_id}, {"_id": 0}
    ).sort("created_at", 1).to_list(500)

    return {"project": project}


@router.post("", status_code=201)
async def create_project(data: ProjectCreate):
    """New project with its job id and the default milestone list"""
    if not data.name or not data.client_id or not data.type:
        raise HTTPException(status_code=400, detail="Name, client, and project type are required")

    client = await db.clients.find_one({"id": data.client_id}, {"_id": 0, "id": 1, "name": 1})
    if not client:
        raise HTTPException(status_code=404, detail="Client not found")

    now = now_iso()
    project = {
        "id": new_id(),
        "job_id": await generate_job_id(client["name"]),
        "name": data.name.strip(),
        "client_id": data.client_id,
        "type": data.type,
        "status": "IN_SPEC" if data.type == "SPEC" else "ON_DECK",
        "current_partition": 1,
        "producer": data.producer,
        "creative_team": [],
        "lora_team": [],
        "gen_team": [],
        "external_artists": [],
        "final_due_date": data.final_due_date,
        "acv": data.acv,
        "monthly_fee": data.monthly_fee,
        "estimated_margin": None,
        "created_at": now,
        "updated_at": now,
    }

    await db.projects.insert_one(project)
    project.pop("_id", None)

    milestones = [
        {
            "id": new_id(),
            "project_id": project["id"],
            "name": m["name"],
            "department": m["department"],
            "order": m["order"],
            "completed": False,
            "completed_at": None,
            "due_date": None,
            "created_at": now,
        }
        for m in DEFAULT_MILESTONES
    ]
    await db.milestones.insert_many(milestones)

    await log_event("project_create", "project", project["id"],
                    details={"job_id": project["job_id"], "name": project["name"]},
                    related={"client_id": data.client_id})
    logger.info(f"[PROJECT] created {project['job_id']} for {client['name']}")

    return {"success": True, "project": project}


@router.put("/{project_id}")
async def update_project(project_id: str, data: ProjectUpdate):
    await _get_project_or_404(project_id)

    update_data = {k: v for k, v in data.model_dump().items() if v is not None}
    update_data["updated_at"] = now_iso()

    await db.projects.update_one({"id": project_id}, {"$set": update_data})

    project = await db.projects.find_one({"id": project_id}, {"_id": 0})
    return {"success": True, "project": project}


@router.delete("/{project_id}")
async def delete_project(project_id: str):
    project = await _get_project_or_404(project_id)

    estimate_ids = [
        e["id"] for e in await db.estimates.find(
            {"project_id": project_id}, {"_id": 0, "id": 1}
        ).to_list(1000)
    ]
    await db.estimate_deliverables.delete_many({"estimate_id": {"$in": estimate_ids}})
    await db.estimates.delete_many({"project_id": project_id})
    await db.deliverables.delete_many({"project_id": project_id})
    await db.milestones.delete_many({"project_id": project_id})
    await db.handoffs.delete_many({"project_id": project_id})
    await db.projects.delete_one({"id": project_id})

    await log_event("project_delete", "project", project_id,
                    details={"job_id": project.get("job_id"), "name": project.get("name")})
    logger.info(f"[PROJECT] deleted {project.get('job_id')}")

    return {"success": True}


# ==================== DELIVERABLES ====================

@router.get("/{project_id}/deliverables")
async def list_deliverables(project_id: str):
    deliverables = await db.deliverables.find(
        {"project_id": project_id}, {"_id": 0}
    ).sort("created_at", 1).to_list(500)
    return {"deliverables": deliverables, "count": len(deliverables)}


@router.put("/{project_id}/deliverables")
async def replace_deliverables(project_id: str, body: Any = Body(...)):
    """Replace the whole deliverable list: {"deliverables": [...]}"""
    if not isinstance(body, dict):
        raise HTTPException(status_code=400, detail="Request body must be an object with a deliverables array")
    items = _parse_deliverables_or_400(body.get("deliverables"))
    await _get_project_or_404(project_id)

    config = await get_active_rates()
    docs = [build_deliverable_doc(project_id, d, config) for d in items]

    await db.deliverables.delete_many({"project_id": project_id})
    if docs:
        await db.deliverables.insert_many(docs)
        for doc in docs:
            doc.pop("_id", None)

    await db.projects.update_one({"id": project_id}, {"$set": {"updated_at": now_iso()}})
    return {"success": True, "deliverables": docs, "count": len(docs)}


@router.post("/{project_id}/deliverables", status_code=201)
async def add_deliverable(project_id: str, data: DeliverableIn):
    await _get_project_or_404(project_id)

    config = await get_active_rates()
    doc = build_deliverable_doc(project_id, data, config)

    await db.deliverables.insert_one(doc)
    doc.pop("_id", None)

    await db.projects.update_one({"id": project_id}, {"$set": {"updated_at": now_iso()}})
    return {"success": True, "deliverable": doc}


# ==================== MILESTONES ====================

@router.put("/{project_id}/milestones/{milestone_id}")
async def toggle_milestone(project_id: str, milestone_id: str, body: Any = Body(default=None)):
    """Flip completion, or set it with {"completed": bool}"""
    milestone = await db.milestones.find_one(
        {"id": milestone_id, "project_id": project_id}, {"_id": 0}
    )
    if not milestone:
        raise HTTPException(status_code=404, detail="Milestone not found")

    if not isinstance(body, dict):
        body = {}
    completed = body["completed"] if isinstance(body.get("completed"), bool) else not milestone.get("completed")

    update_data = {
        "completed": completed,
        "completed_at": now_iso() if completed else None,
    }
    if "due_date" in body:
        update_data["due_date"] = body["due_date"]

    await db.milestones.update_one({"id": milestone_id}, {"$set": update_data})
    await db.projects.update_one({"id": project_id}, {"$set": {"updated_at": now_iso()}})

    milestone = await db.milestones.find_one({"id": milestone_id}, {"_id": 0})
    return {"success": True, "milestone": milestone}
