"""
Studio Ops - Routes Settings

Estimation config (rate table + team split) used by every estimate.
"""

import logging
from fastapi import APIRouter, HTTPException
from typing import Optional

from models import EstimationConfigUpdate
from services.estimation import team_percent_total, get_rate_table, resolve_config
from services.event_logger import log_event
from services.settings import (
    get_estimation_config,
    save_estimation_config,
    reset_estimation_config,
)

logger = logging.getLogger("settings")

router = APIRouter(prefix="/settings", tags=["Settings"])

PERCENT_TOLERANCE = 0.01


@router.get("/estimation")
async def get_estimation_settings():
    """Stored config (created with defaults on first read) and its rate card"""
    config = await get_estimation_config()
    return {"config": config, "rate_table": get_rate_table(resolve_config(config))}


@router.put("/estimation")
async def update_estimation_settings(data: EstimationConfigUpdate):
    """Team percentages in the body must sum to 1.0 (missing ones count as 0)"""
    values = data.model_dump()

    total = team_percent_total(values)
    if abs(total - 1.0) > PERCENT_TOLERANCE:
        raise HTTPException(
            status_code=400,
            detail=f"Team allocation percentages must sum to 100% (currently {total * 100:.0f}%)"
        )

    config = await save_estimation_config(values)
    await log_event("estimation_config_update", "settings", "estimation_config",
                    details={k: v for k, v in values.items() if v is not None})

    return {"success": True, "config": config, "rate_table": get_rate_table(resolve_config(config))}


@router.post("/estimation")
async def estimation_settings_action(action: Optional[str] = None):
    """?action=reset restores the default config"""
    if action != "reset":
        raise HTTPException(status_code=400, detail="Invalid action")

    config = await reset_estimation_config()
    await log_event("estimation_config_reset", "settings", "estimation_config")

    return {"success": True, "config": config, "rate_table": get_rate_table(resolve_config(config))}
