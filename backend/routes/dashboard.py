"""
Studio Ops - Routes Dashboard

Home page counters and recent activity.
"""

from fastapi import APIRouter

from config import db
from services.catalog import ACTIVE_PROJECT_STATUSES

router = APIRouter(prefix="/dashboard", tags=["Dashboard"])

RECENT_LIMIT = 5
PENDING_HANDOFF_STATUSES = ["PENDING", "IN_PROGRESS"]


@router.get("")
async def get_dashboard():
    client_count = await db.clients.count_documents({})
    project_count = await db.projects.count_documents({})
    active_projects = await db.projects.count_documents({"status": {"$in": ACTIVE_PROJECT_STATUSES}})
    pending_handoffs = await db.handoffs.count_documents({"status": {"$in": PENDING_HANDOFF_STATUSES}})

    recent_projects = await db.projects.find(
        {}, {"_id": 0}
    ).sort("updated_at", -1).limit(RECENT_LIMIT).to_list(RECENT_LIMIT)
    for p in recent_projects:
        p["client"] = await db.clients.find_one({"id": p.get("client_id")}, {"_id": 0, "id": 1, "name": 1})

    recent_handoffs = await db.handoffs.find(
        {"status": {"$in": PENDING_HANDOFF_STATUSES}}, {"_id": 0}
    ).sort("created_at", -1).limit(RECENT_LIMIT).to_list(RECENT_LIMIT)
    for h in recent_handoffs:
        h["project"] = await db.projects.find_one(
            {"id": h.get("project_id")}, {"_id": 0, "id": 1, "name": 1, "job_id": 1}
        )

    return {
        "stats": {
            "client_count": client_count,
            "project_count": project_count,
            "active_projects": active_projects,
            "pending_handoffs": pending_handoffs,
        },
        "recent_projects": recent_projects,
        "pending_handoffs": recent_handoffs,
    }
