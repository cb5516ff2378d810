"""
╔══════════════════════════════════════════════════════════════════════════════╗
║  Studio Ops - Routes Estimates                                               ║
║                                                                              ║
║  Effort estimates for a project, all computed by calculate_estimate()        ║
║  with the stored estimation config                                           ║
║  apply -> the estimate's lines become the project's deliverables             ║
║  parse-file -> deliverables extracted from an uploaded client request        ║
╚══════════════════════════════════════════════════════════════════════════════╝
"""

import logging
from fastapi import APIRouter, HTTPException, UploadFile, File
from typing import Optional, List

from config import db, now_iso, new_id
from models import EstimateCreate, EstimateUpdate, DeliverableIn
from services.estimation import calculate_estimate
from services.event_logger import log_event
from services.llm_client import LLMError
from services.request_parser import parse_request_file, FileExtractionError
from services.settings import get_active_rates

logger = logging.getLogger("estimates")

router = APIRouter(prefix="/estimates", tags=["Estimates"])

DEFAULT_ESTIMATE_NAME = "Draft Estimate"
DEFAULT_CONTRACT_MONTHS = 12


# ==================== HELPERS ====================

async def compute_estimate(
    deliverables: List[DeliverableIn],
    requires_lora: bool,
    requires_custom_workflow: bool,
    contract_months: int
) -> dict:
    config = await get_active_rates()
    return calculate_estimate(
        [d.model_dump() for d in deliverables],
        requires_lora,
        requires_custom_workflow,
        contract_months,
        config,
    )


def estimate_fields(result: dict) -> dict:
    """Calculator output -> stored estimate totals"""
    return {
        "project_type": result["project_type"],
        "setup_days": result["setup_days"],
        "total_monthly_days": result["total_monthly_days"],
        "monthly_gen_team_days": result["monthly_gen_team_days"],
        "monthly_production_days": result["monthly_production_days"],
        "monthly_qc_days": result["monthly_qc_days"],
        "monthly_client_review_days": result["monthly_client_review_days"],
        "total_monthly_assets": result["total_monthly_assets"],
        "total_assets": result["total_assets"],
    }


def estimate_line_docs(estimate_id: str, result: dict) -> List[dict]:
    now = now_iso()
    docs = []
    for line in result["deliverable_breakdown"]:
        d = line["deliverable"]
        docs.append({
            "id": new_id(),
            "estimate_id": estimate_id,
            "platform": d["platform"],
            "creative_type": d["creative_type"],
            "size": d["size"],
            "duration": d.get("duration"),
            "monthly_count": d.get("monthly_count") or 0,
            "days_per_asset": line["days_per_asset"],
            "estimated_days": line["total_days"],
            "created_at": now,
        })
    return docs


async def _replace_lines(estimate_id: str, docs: List[dict]):
    await db.estimate_deliverables.delete_many({"estimate_id": estimate_id})
    if docs:
        await db.estimate_deliverables.insert_many(docs)
        for doc in docs:
            doc.pop("_id", None)


async def _get_estimate_or_404(estimate_id: str) -> dict:
    estimate = await db.estimates.find_one({"id": estimate_id}, {"_id": 0})
    if not estimate:
        raise HTTPException(status_code=404, detail="Estimate not found")
    return estimate


# ==================== FILE PARSING ====================

@router.post("/parse-file")
async def parse_file(file: UploadFile = File(...)):
    """Client request (.pdf, .docx, .csv, .txt) -> suggested deliverables"""
    if not file or not file.filename:
        raise HTTPException(status_code=400, detail="No file provided")

    content = await file.read()

    try:
        result = await parse_request_file(content, file.filename)
    except FileExtractionError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except LLMError as e:
        logger.error(f"[PARSE_FILE] {file.filename}: {e}")
        raise HTTPException(status_code=500, detail=str(e))

    logger.info(f"[PARSE_FILE] {file.filename}: {len(result['deliverables'])} deliverables")
    return result


# ==================== ESTIMATES ====================

@router.get("")
async def list_estimates(project_id: Optional[str] = None):
    query = {}
    if project_id:
        query["project_id"] = project_id

    estimates = await db.estimates.find(query, {"_id": 0}).sort("created_at", -1).to_list(500)
    for e in estimates:
        e["deliverable_count"] = await db.estimate_deliverables.count_documents({"estimate_id": e["id"]})

    return {"estimates": estimates, "count": len(estimates)}


@router.get("/{estimate_id}")
async def get_estimate(estimate_id: str):
    estimate = await _get_estimate_or_404(estimate_id)

    estimate["deliverables"] = await db.estimate_deliverables.find(
        {"estimate_id": estimate_id}, {"_id": 0}
    ).sort("created_at", 1).to_list(500)

    project = await db.projects.find_one(
        {"id": estimate.get("project_id")}, {"_id": 0, "id": 1, "name": 1, "job_id": 1, "client_id": 1}
    )
    estimate["project"] = project
    estimate["client"] = None
    if project:
        estimate["client"] = await db.clients.find_one(
            {"id": project.get("client_id")}, {"_id": 0, "id": 1, "name": 1}
        )

    return {"estimate": estimate}


@router.post("", status_code=201)
async def create_estimate(data: EstimateCreate):
    if not data.project_id:
        raise HTTPException(status_code=400, detail="Project ID is required")

    project = await db.projects.find_one({"id": data.project_id}, {"_id": 0, "id": 1})
    if not project:
        raise HTTPException(status_code=404, detail="Project not found")

    contract_months = data.contract_months or DEFAULT_CONTRACT_MONTHS
    result = await compute_estimate(
        data.deliverables, data.requires_lora, data.requires_custom_workflow, contract_months
    )

    now = now_iso()
    estimate = {
        "id": new_id(),
        "project_id": data.project_id,
        "name": data.name or DEFAULT_ESTIMATE_NAME,
        "requires_lora": data.requires_lora,
        "requires_custom_workflow": data.requires_custom_workflow,
        "contract_months": contract_months,
        **estimate_fields(result),
        "created_at": now,
        "updated_at": now,
    }

    await db.estimates.insert_one(estimate)
    estimate.pop("_id", None)

    lines = estimate_line_docs(estimate["id"], result)
    await _replace_lines(estimate["id"], lines)
    estimate["deliverables"] = lines

    await log_event("estimate_create", "estimate", estimate["id"],
                    details={"name": estimate["name"], "total_monthly_days": estimate["total_monthly_days"]},
                    related={"project_id": data.project_id})
    logger.info(
        f"[ESTIMATE] {estimate['name']} project={data.project_id} "
        f"{estimate['total_monthly_days']} days/month, setup {estimate['setup_days']}"
    )

    return {"success": True, "estimate": estimate}


@router.put("/{estimate_id}")
async def update_estimate(estimate_id: str, data: EstimateUpdate):
    """Recompute totals and replace the estimate's lines"""
    existing = await _get_estimate_or_404(estimate_id)

    contract_months = data.contract_months or existing.get("contract_months") or DEFAULT_CONTRACT_MONTHS
    result = await compute_estimate(
        data.deliverables, data.requires_lora, data.requires_custom_workflow, contract_months
    )

    update_data = {
        "name": data.name or existing.get("name") or DEFAULT_ESTIMATE_NAME,
        "requires_lora": data.requires_lora,
        "requires_custom_workflow": data.requires_custom_workflow,
        "contract_months": contract_months,
        **estimate_fields(result),
        "updated_at": now_iso(),
    }
    await db.estimates.update_one({"id": estimate_id}, {"$set": update_data})

    lines = estimate_line_docs(estimate_id, result)
    await _replace_lines(estimate_id, lines)

    estimate = await db.estimates.find_one({"id": estimate_id}, {"_id": 0})
    estimate["deliverables"] = lines
    return {"success": True, "estimate": estimate}


@router.delete("/{estimate_id}")
async def delete_estimate(estimate_id: str):
    estimate = await _get_estimate_or_404(estimate_id)

    await db.estimate_deliverables.delete_many({"estimate_id": estimate_id})
    await db.estimates.delete_one({"id": estimate_id})

    await log_event("estimate_delete", "estimate", estimate_id,
                    details={"name": estimate.get("name")},
                    related={"project_id": estimate.get("project_id")})
    return {"success": True}


@router.post("/{estimate_id}/apply")
async def apply_estimate(estimate_id: str):
    """Replace the project's deliverables with this estimate's lines"""
    estimate = await _get_estimate_or_404(estimate_id)
    project_id = estimate["project_id"]

    project = await db.projects.find_one({"id": project_id}, {"_id": 0, "id": 1})
    if not project:
        raise HTTPException(status_code=404, detail="Project not found")

    lines = await db.estimate_deliverables.find(
        {"estimate_id": estimate_id}, {"_id": 0}
    ).sort("created_at", 1).to_list(500)

    contract_months = estimate.get("contract_months") or DEFAULT_CONTRACT_MONTHS
    now = now_iso()
    deliverables = [
        {
            "id": new_id(),
            "project_id": project_id,
            "platform": line["platform"],
            "creative_type": line["creative_type"],
            "size": line["size"],
            "duration": line.get("duration"),
            "monthly_count": line["monthly_count"],
            "total_count": line["monthly_count"] * contract_months,
            "estimated_days": line.get("estimated_days"),
            "created_at": now,
            "updated_at": now,
        }
        for line in lines
    ]

    await db.deliverables.delete_many({"project_id": project_id})
    if deliverables:
        await db.deliverables.insert_many(deliverables)

    await db.projects.update_one(
        {"id": project_id},
        {"$set": {"type": estimate["project_type"], "updated_at": now}}
    )

    await log_event("estimate_apply", "estimate", estimate_id,
                    details={"deliverables": len(deliverables), "project_type": estimate["project_type"]},
                    related={"project_id": project_id})
    logger.info(f"[ESTIMATE] applied {estimate.get('name')} to project {project_id}")

    updated = await db.projects.find_one({"id": project_id}, {"_id": 0})
    return {
        "success": True,
        "message": f'Applied {len(deliverables)} deliverables from estimate "{estimate.get("name")}" to project',
        "project": updated,
    }
