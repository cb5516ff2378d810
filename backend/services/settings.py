"""
Studio Ops - Settings service

Runtime-editable business settings.
Collection: settings (one doc per key)

Settings:
- estimation_config: rate table and team split used by the estimator
"""

import logging
from typing import Optional, Dict, Any

from config import db, now_iso
from services.estimation import DEFAULT_ESTIMATION_CONFIG, resolve_config

logger = logging.getLogger("settings")

ESTIMATION_CONFIG_KEY = "estimation_config"


async def get_setting(key: str) -> Optional[Dict]:
    """Setting document by key, None if absent"""
    return await db.settings.find_one({"key": key}, {"_id": 0})


async def upsert_setting(key: str, data: Dict[str, Any], updated_by: str = "system") -> Dict:
    """Create or update a setting, returns the stored document"""
    data["key"] = key
    data["updated_at"] = now_iso()
    data["updated_by"] = updated_by

    existing = await db.settings.find_one({"key": key})
    if existing:
        await db.settings.update_one({"key": key}, {"$set": data})
    else:
        data["created_at"] = now_iso()
        await db.settings.insert_one(data)

    return await db.settings.find_one({"key": key}, {"_id": 0})


# ---- Estimation config ----

async def get_estimation_config() -> Dict:
    """Stored estimation config; the default is persisted on first read"""
    doc = await get_setting(ESTIMATION_CONFIG_KEY)
    if not doc:
        logger.info("No estimation config stored, creating default")
        doc = await upsert_setting(ESTIMATION_CONFIG_KEY, dict(DEFAULT_ESTIMATION_CONFIG))
    return doc


async def get_active_rates() -> Dict:
    """Config ready for the calculator (defaults under stored values)"""
    doc = await get_setting(ESTIMATION_CONFIG_KEY)
    return resolve_config(doc)


async def save_estimation_config(updates: Dict[str, Any], updated_by: str = "system") -> Dict:
    """Overlay non-null updates on the current config"""
    current = await get_estimation_config()
    merged = resolve_config(current)
    for field, value in updates.items():
        if value is None:
            continue
        if field == "name" and not value:
            continue
        merged[field] = value
    logger.info(f"Estimation config updated by {updated_by}")
    return await upsert_setting(ESTIMATION_CONFIG_KEY, merged, updated_by)


async def reset_estimation_config(updated_by: str = "system") -> Dict:
    logger.info(f"Estimation config reset to defaults by {updated_by}")
    return await upsert_setting(ESTIMATION_CONFIG_KEY, dict(DEFAULT_ESTIMATION_CONFIG), updated_by)
