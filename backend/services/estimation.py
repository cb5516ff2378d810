"""
╔══════════════════════════════════════════════════════════════════════════════╗
║  Studio Ops - Estimation calculator                                          ║
║                                                                              ║
║  Deliverables (platform, creative type, size, duration, monthly count)       ║
║  -> days of effort per month, setup days, team split.                        ║
║                                                                              ║
║  RULE: every estimate (API, apply, previews) goes through this module.       ║
║  Rounding is half-up at 0.1 day, per deliverable then on the total.          ║
╚══════════════════════════════════════════════════════════════════════════════╝
"""

import math
from typing import Dict, List, Optional, Any


# ==================== DEFAULT CONFIG ====================

DEFAULT_ESTIMATION_CONFIG = {
    "name": "Default",

    # Setup days (a LoRA or custom workflow replaces the base, not added to it)
    "base_setup_days": 7,
    "lora_setup_days": 21,
    "custom_workflow_days": 14,

    # Days per single asset
    "static_image_days": 0.1,    # 10 statics = 1 day
    "gif_days": 0.15,            # ~7 GIFs = 1 day
    "short_video_days": 0.2,     # 6-15s
    "medium_video_days": 0.3,    # 16-30s
    "long_video_days": 0.5,      # 31-60s

    # Team split, sums to 1.0
    "gen_team_percent": 0.4,
    "production_percent": 0.3,
    "qc_percent": 0.2,
    "client_review_percent": 0.1,

    "is_active": True,
}

CONFIG_FIELDS = [k for k in DEFAULT_ESTIMATION_CONFIG if k not in ("name", "is_active")]

TEAM_PERCENT_FIELDS = [
    "gen_team_percent",
    "production_percent",
    "qc_percent",
    "client_review_percent",
]

VIDEO_TYPES = ["Video", "UGC", "Branded", "VideoPin"]

SHORT_VIDEO_MAX = 15
MEDIUM_VIDEO_MAX = 30


# ==================== HELPERS ====================

def round_half_up(value: float, digits: int = 1) -> float:
    """Half-up rounding (2.25 -> 2.3), unlike round() which rounds half to even"""
    factor = 10 ** digits
    return math.floor(value * factor + 0.5) / factor


def resolve_config(stored: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """Stored config merged over defaults; missing or null fields fall back"""
    config = dict(DEFAULT_ESTIMATION_CONFIG)
    for key, value in (stored or {}).items():
        if value is not None:
            config[key] = value
    return config


def team_percent_total(values: Dict[str, Any]) -> float:
    """Sum of the four team percentages, missing ones count as 0"""
    return sum((values.get(f) or 0) for f in TEAM_PERCENT_FIELDS)


def is_video_type(creative_type: str) -> bool:
    return creative_type in VIDEO_TYPES


# ==================== CALCULATION ====================

def get_days_per_asset(creative_type: str, duration: Optional[int], config: Dict[str, Any]) -> float:
    """
    Days-per-asset rate for one creative.

    GIF -> gif rate.
    Video types -> short (<=15s), medium (<=30s), long otherwise.
    A video without duration is priced as long.
    Everything else -> static rate.
    """
    if creative_type == "GIF":
        return config["gif_days"]

    if is_video_type(creative_type):
        if duration and duration <= SHORT_VIDEO_MAX:
            return config["short_video_days"]
        if duration and duration <= MEDIUM_VIDEO_MAX:
            return config["medium_video_days"]
        return config["long_video_days"]

    return config["static_image_days"]


def calculate_deliverable_days(deliverable: Dict[str, Any], config: Dict[str, Any]) -> float:
    """Monthly days for a single deliverable line (unrounded)"""
    rate = get_days_per_asset(deliverable.get("creative_type", ""), deliverable.get("duration"), config)
    return (deliverable.get("monthly_count") or 0) * rate


def calculate_setup_days(requires_lora: bool, requires_custom_workflow: bool, config: Dict[str, Any]) -> float:
    if requires_lora:
        return config["lora_setup_days"]
    if requires_custom_workflow:
        return config["custom_workflow_days"]
    return config["base_setup_days"]


def get_project_type(requires_lora: bool, requires_custom_workflow: bool) -> str:
    return "ADVANCED" if (requires_lora or requires_custom_workflow) else "STANDARD"


def calculate_estimate(
    deliverables: List[Dict[str, Any]],
    requires_lora: bool,
    requires_custom_workflow: bool,
    contract_months: int,
    config: Optional[Dict[str, Any]] = None
) -> Dict[str, Any]:
    """
    Full estimate for a deliverable list.

    Each breakdown line is rounded to 0.1 day; the monthly total is the sum
    of the rounded lines, so a stored estimate and its lines always agree.
    Team splits are computed from that total and rounded independently, so
    they may not add back up to it exactly.

    Returns:
        {
            "project_type": "STANDARD" | "ADVANCED",
            "setup_days": float,
            "total_monthly_days": float,
            "monthly_gen_team_days": float,
            "monthly_production_days": float,
            "monthly_qc_days": float,
            "monthly_client_review_days": float,
            "total_monthly_assets": int,
            "total_assets": int,
            "deliverable_breakdown": [{deliverable, days_per_asset, total_days}]
        }
    """
    config = resolve_config(config)

    breakdown = []
    for deliverable in deliverables:
        rate = get_days_per_asset(deliverable.get("creative_type", ""), deliverable.get("duration"), config)
        breakdown.append({
            "deliverable": deliverable,
            "days_per_asset": rate,
            "total_days": round_half_up((deliverable.get("monthly_count") or 0) * rate),
        })

    total_monthly_days = round_half_up(sum(item["total_days"] for item in breakdown))
    total_monthly_assets = sum((d.get("monthly_count") or 0) for d in deliverables)

    return {
        "project_type": get_project_type(requires_lora, requires_custom_workflow),
        "setup_days": calculate_setup_days(requires_lora, requires_custom_workflow, config),
        "total_monthly_days": total_monthly_days,
        "monthly_gen_team_days": round_half_up(total_monthly_days * config["gen_team_percent"]),
        "monthly_production_days": round_half_up(total_monthly_days * config["production_percent"]),
        "monthly_qc_days": round_half_up(total_monthly_days * config["qc_percent"]),
        "monthly_client_review_days": round_half_up(total_monthly_days * config["client_review_percent"]),
        "total_monthly_assets": total_monthly_assets,
        "total_assets": total_monthly_assets * contract_months,
        "deliverable_breakdown": breakdown,
    }


# ==================== DISPLAY ====================

def get_asset_type_label(creative_type: str, duration: Optional[int]) -> str:
    if creative_type == "GIF":
        return "GIF"
    if is_video_type(creative_type):
        if duration and duration <= SHORT_VIDEO_MAX:
            return "Short Video (6-15s)"
        if duration and duration <= MEDIUM_VIDEO_MAX:
            return "Medium Video (16-30s)"
        return "Long Video (31-60s)"
    return "Static Image"


def format_days(days: float) -> str:
    if days == 1:
        return "1 day"
    # 2.0 -> "2 days"
    if float(days).is_integer():
        days = int(days)
    return f"{days} days"


def get_rate_description(days_per_asset: float) -> str:
    """0.1 -> '10 assets = 1 day'"""
    assets_per_day = int(round_half_up(1 / days_per_asset, 0))
    return f"{assets_per_day} assets = 1 day"


def get_rate_table(config: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
    """Rate card shown next to the settings form"""
    config = resolve_config(config)
    rows = [
        ("Static Image", "static_image_days"),
        ("GIF", "gif_days"),
        ("Short Video (6-15s)", "short_video_days"),
        ("Medium Video (16-30s)", "medium_video_days"),
        ("Long Video (31-60s)", "long_video_days"),
    ]
    return [
        {
            "label": label,
            "field": field,
            "days_per_asset": config[field],
            "description": get_rate_description(config[field]) if config[field] else "",
        }
        for label, field in rows
    ]
