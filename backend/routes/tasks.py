"""
Studio Ops - Routes Sales tasks

Follow-ups created by sales-report imports (or by hand).
status drives completed/completed_at, due_date drives is_overdue.
"""

import logging
from datetime import datetime, timezone, date
from fastapi import APIRouter, HTTPException
from typing import Optional

from config import db, now_iso
from models import TaskUpdate
from services.event_logger import log_event

logger = logging.getLogger("tasks")

router = APIRouter(prefix="/tasks", tags=["Tasks"])


def compute_is_overdue(due_date: Optional[str], status: Optional[str], today: Optional[date] = None) -> bool:
    """Past due date and not completed"""
    if not due_date or status == "COMPLETED":
        return False
    try:
        due = date.fromisoformat(due_date[:10])
    except ValueError:
        return False
    today = today or datetime.now(timezone.utc).date()
    return due < today


async def _get_task_or_404(task_id: str) -> dict:
    task = await db.sales_tasks.find_one({"id": task_id}, {"_id": 0})
    if not task:
        raise HTTPException(status_code=404, detail="Task not found")
    return task


@router.get("")
async def list_tasks(
    client_id: Optional[str] = None,
    owner: Optional[str] = None,
    completed: Optional[bool] = None
):
    query = {}
    if client_id:
        query["client_id"] = client_id
    if owner:
        query["owner"] = owner
    if completed is not None:
        query["completed"] = completed

    tasks = await db.sales_tasks.find(query, {"_id": 0}).sort(
        [("completed", 1), ("due_date", 1)]
    ).to_list(1000)

    for t in tasks:
        t["client"] = None
        if t.get("client_id"):
            t["client"] = await db.clients.find_one(
                {"id": t["client_id"]}, {"_id": 0, "id": 1, "name": 1}
            )

    return {"tasks": tasks, "count": len(tasks)}


@router.get("/{task_id}")
async def get_task(task_id: str):
    task = await _get_task_or_404(task_id)
    task["client"] = None
    if task.get("client_id"):
        task["client"] = await db.clients.find_one(
            {"id": task["client_id"]}, {"_id": 0, "id": 1, "name": 1}
        )
    return {"task": task}


@router.put("/{task_id}")
async def update_task(task_id: str, data: TaskUpdate):
    existing = await _get_task_or_404(task_id)
    provided = data.model_dump(exclude_unset=True)

    update_data = {}
    for field in ("description", "owner", "priority"):
        if provided.get(field) is not None:
            update_data[field] = provided[field]

    if data.status:
        update_data["status"] = data.status
        update_data["completed"] = data.status == "COMPLETED"
        update_data["completed_at"] = now_iso() if data.status == "COMPLETED" else None

    if "due_date" in provided:
        update_data["due_date"] = provided["due_date"]

    status = update_data.get("status", existing.get("status"))
    due_date = update_data.get("due_date", existing.get("due_date"))
    if "status" in update_data or "due_date" in update_data:
        update_data["is_overdue"] = compute_is_overdue(due_date, status)

    update_data["updated_at"] = now_iso()
    await db.sales_tasks.update_one({"id": task_id}, {"$set": update_data})

    if update_data.get("completed") and not existing.get("completed"):
        await log_event("task_complete", "task", task_id,
                        details={"description": existing.get("description"), "owner": existing.get("owner")},
                        related={"client_id": existing.get("client_id")})
        logger.info(f"[TASK] completed {task_id}")

    task = await db.sales_tasks.find_one({"id": task_id}, {"_id": 0})
    return {"success": True, "task": task}


@router.delete("/{task_id}")
async def delete_task(task_id: str):
    await _get_task_or_404(task_id)
    await db.sales_tasks.delete_one({"id": task_id})
    return {"success": True}
