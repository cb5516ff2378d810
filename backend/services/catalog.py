"""
╔══════════════════════════════════════════════════════════════════════════════╗
║  Studio Ops - Reference catalog                                              ║
║                                                                              ║
║  Static business tables: verticals, project types/statuses, red flags,       ║
║  handoff types, qualification calls, deliverable options, milestones,        ║
║  folder partitions, sales pipeline.                                          ║
║                                                                              ║
║  Pure data. No DB import so tests can load it directly.                      ║
╚══════════════════════════════════════════════════════════════════════════════╝
"""

# ==================== VERTICALS ====================

VERTICALS = [
    {"value": "Automotive", "label": "Automotive", "clients": ["Toyota/Saatchi", "Lexus/TeamOne"]},
    {"value": "CPG", "label": "CPG (Consumer Packaged Goods)", "clients": ["Newell/Rubbermaid"]},
    {"value": "Fashion", "label": "Fashion", "clients": ["Marc Jacobs"]},
    {"value": "Retail", "label": "Retail", "clients": ["PriceSmart"]},
    {"value": "Health", "label": "Health & Wellness", "clients": ["Thesis"]},
    {"value": "MediaTech", "label": "MediaTech", "clients": ["Horizon/Blu"]},
    {"value": "RealEstate", "label": "Real Estate", "clients": ["Woodmont", "AvantStay"]},
    {"value": "Entertainment", "label": "Media/Entertainment", "clients": ["Fox (Masked Singer)"]},
]

VALID_VERTICALS = [v["value"] for v in VERTICALS]

# ==================== PROJECTS ====================

PROJECT_TYPES = [
    {"value": "SPEC", "label": "Spec Work", "description": "$0 revenue, same process"},
    {"value": "STANDARD", "label": "Standard", "description": "No LoRA or Gen team needed"},
    {"value": "ADVANCED", "label": "Advanced", "description": "LoRA capture + Gen Engineering required"},
]

PROJECT_STATUSES = [
    {"value": "ON_DECK", "label": "On Deck"},
    {"value": "IN_SPEC", "label": "In Spec"},
    {"value": "IN_PRODUCTION", "label": "In Production"},
    {"value": "FINISHING", "label": "Finishing"},
    {"value": "COMPLETE", "label": "Complete"},
    {"value": "CANCELLED", "label": "Cancelled"},
]

ACTIVE_PROJECT_STATUSES = ["ON_DECK", "IN_SPEC", "IN_PRODUCTION", "FINISHING"]

# ==================== CLASSIFICATION / RED FLAGS ====================

CLASSIFICATIONS = [
    {"value": "SYSTEM", "label": "System Deal", "description": "Ongoing creative infrastructure (12-month minimum)"},
    {"value": "PROJECT", "label": "Project Deal", "description": "One-time campaign or initiative"},
    {"value": "UNDETERMINED", "label": "Undetermined", "description": "Not yet classified"},
]

RED_FLAGS = [
    {"value": "BUDGET_UNDER_600K", "label": "Budget Under $600K", "severity": "critical"},
    {"value": "ONE_OFF_ONLY", "label": "One-Off Project Only", "severity": "warning"},
    {"value": "NO_DATA_ASSETS", "label": "No Data/Assets Available", "severity": "warning"},
    {"value": "UNREALISTIC_TIMELINE", "label": "Unrealistic Timeline", "severity": "warning"},
    {"value": "NO_DECISION_MAKER", "label": "No Decision Maker Access", "severity": "critical"},
]

CRITICAL_RED_FLAGS = [f["value"] for f in RED_FLAGS if f["severity"] == "critical"]

# ==================== HANDOFFS ====================

HANDOFF_TYPES = [
    {
        "number": 1,
        "value": "SALES_TO_PRODUCTION",
        "label": "Sales → Production",
        "timing": "48 hours",
        "description": "SOW signed, all client info transferred",
    },
    {
        "number": 2,
        "value": "PRODUCTION_TO_GENERATIVE",
        "label": "Production → Generative",
        "timing": "1 week lead time",
        "description": "Brand assets, workflow specs, quality criteria",
    },
    {
        "number": 3,
        "value": "GENERATIVE_TO_PRODUCTION",
        "label": "Generative → Production",
        "timing": "After QC",
        "description": "QC-passed deliverables, technical notes",
    },
    {
        "number": 4,
        "value": "PRODUCTION_TO_SALES",
        "label": "Production → Sales",
        "timing": "Project close",
        "description": "Closing report, margin data, case study materials",
    },
]

HANDOFF_STATUSES = ["PENDING", "IN_PROGRESS", "COMPLETED"]

# ==================== QUALIFICATION ====================

QUALIFICATION_CALLS = [
    {"number": 1, "value": "INTRO", "label": "Introduction & Qualification",
     "day": "Day 0", "goal": "Qualify lead, frame scope"},
    {"number": 2, "value": "PRODUCT_SCOPE", "label": "Product Scope & Discovery",
     "day": "Day 3-7", "goal": "Confirm DM, discover needs"},
    {"number": 3, "value": "BUDGET_SCOPE", "label": "Budget Scope & Alignment",
     "day": "Day 14-21", "goal": "Capture all proposal inputs"},
    {"number": 4, "value": "PROPOSAL", "label": "Proposal Presentation",
     "day": "Day 21-30", "goal": "Present and close"},
]

# INTRO -> 1, PRODUCT_SCOPE -> 2, ...
CALL_NUMBER_BY_STAGE = {c["value"]: c["number"] for c in QUALIFICATION_CALLS}

# ==================== DELIVERABLES ====================

PLATFORMS = [
    {"value": "Meta", "label": "Meta (Facebook/Instagram)"},
    {"value": "TikTok", "label": "TikTok"},
    {"value": "Pinterest", "label": "Pinterest"},
    {"value": "YouTube", "label": "YouTube"},
    {"value": "OLV", "label": "OLV (Online Video Ad)"},
    {"value": "OTT", "label": "OTT (Over-The-Top)"},
    {"value": "CTV", "label": "CTV (Connected TV)"},
    {"value": "TV", "label": "TV/Long Form"},
    {"value": "GIF", "label": "Animated GIF"},
]

CREATIVE_TYPES = [
    {"value": "Static", "label": "Static Image"},
    {"value": "Carousel", "label": "Carousel"},
    {"value": "Video", "label": "Video"},
    {"value": "UGC", "label": "UGC-Style Video"},
    {"value": "Branded", "label": "Branded Video"},
    {"value": "GIF", "label": "Animated GIF"},
    {"value": "StaticPin", "label": "Static Pin"},
    {"value": "IdeaPin", "label": "Idea Pin"},
    {"value": "VideoPin", "label": "Video Pin"},
]

SIZES = [
    {"value": "1x1", "label": "1:1 (1080x1080)", "platforms": ["Meta", "TikTok", "Pinterest", "YouTube", "OLV"]},
    {"value": "9x16", "label": "9:16 (1080x1920)", "platforms": ["Meta", "TikTok", "Pinterest"]},
    {"value": "4x5", "label": "4:5 (Mobile)", "platforms": ["Meta"]},
    {"value": "16x9", "label": "16:9 (1920x1080)", "platforms": ["YouTube", "OLV", "CTV", "TV", "TikTok"]},
    {"value": "2x3", "label": "2:3 (Pinterest)", "platforms": ["Pinterest"]},
    {"value": "4x3", "label": "4:3", "platforms": ["OLV", "YouTube", "GIF"]},
]

DURATIONS = [
    {"value": 6, "label": "6 seconds", "category": "short"},
    {"value": 9, "label": "9 seconds", "category": "short"},
    {"value": 15, "label": "15 seconds", "category": "short"},
    {"value": 30, "label": "30 seconds", "category": "medium"},
    {"value": 45, "label": "45 seconds", "category": "long"},
    {"value": 60, "label": "60 seconds", "category": "long"},
]

VALID_PLATFORMS = [p["value"] for p in PLATFORMS]
VALID_CREATIVE_TYPES = [c["value"] for c in CREATIVE_TYPES]
VALID_SIZES = [s["value"] for s in SIZES]
VALID_DURATIONS = [d["value"] for d in DURATIONS]

# ==================== DEPARTMENTS / MILESTONES ====================

DEPARTMENTS = [
    {"value": "Sales", "label": "Sales Team"},
    {"value": "Production", "label": "Production Team"},
    {"value": "LoRA", "label": "LoRA Team"},
    {"value": "GenEngineering", "label": "Gen Engineering Team"},
    {"value": "Creative", "label": "Creative Team"},
]

_MILESTONE_NAMES = [
    ("Turnover from Sales", "Sales"),
    ("Production Setup Complete", "Production"),
    ("Creative Kickoff Complete", "Production"),
    ("SOW Signed", "Production"),
    ("First Payment Received", "Production"),
    ("Creative Brief Approved", "Production"),
    ("Project Pod Assigned", "Production"),
    ("Assets Received from Client", "LoRA"),
    ("LoRA Photo/Video Capture Complete", "LoRA"),
    ("Data Parsing Complete", "LoRA"),
    ("Workflow Created", "GenEngineering"),
    ("LoRA Training Complete", "GenEngineering"),
    ("LoRA Validation Complete", "GenEngineering"),
    ("Image/Video Library Generated", "GenEngineering"),
    ("Spec Deck Sent to Client", "Production"),
    ("Moodboard/Concept Sent", "Production"),
    ("Moodboard/Concept Approved", "Production"),
    ("Animatic/First Look Sent", "Production"),
    ("Animatic/First Look Approved", "Production"),
    ("Rough Cut/2nd Look Sent", "Production"),
    ("Rough Cut/2nd Look Approved", "Production"),
    ("Fine Cut/Last Look Sent", "Production"),
    ("Fine Cut/Last Look Approved", "Production"),
    ("Final Internal Creative Approval", "Production"),
    ("Final Client Creative Approval", "Production"),
    ("Production Finishing Complete", "Production"),
    ("Final Deliverables Sent", "Production"),
    ("Project Archived", "Production"),
    ("Project Closed", "Production"),
]

DEFAULT_MILESTONES = [
    {"name": name, "department": dept, "order": i}
    for i, (name, dept) in enumerate(_MILESTONE_NAMES, start=1)
]

FOLDER_PARTITIONS = [
    {"number": 1, "name": "Project Overview", "description": "Job ID, Client, Teams, Deliverables, Due Date"},
    {"number": 2, "name": "Milestones by Department", "description": "Sales → Production → LoRA → Gen → Production"},
    {"number": 3, "name": "Pre-Production Questions", "description": "Sales questions, Pre-prod questions, Workflow notes"},
    {"number": 4, "name": "Standard Project", "description": "Checklist for projects NOT needing LoRA/Gen team"},
    {"number": 5, "name": "Advanced Project", "description": "Checklist with LoRA + Gen Engineering stages"},
    {"number": 6, "name": "Finishing + Post Mortem", "description": "Final delivery, archiving, close, post-mortem notes"},
]

# ==================== SALES PIPELINE ====================

SALES_STAGES = [
    {"value": "DISCOVERY", "label": "Discovery"},
    {"value": "SCOPING", "label": "Scoping"},
    {"value": "SPEC_PRODUCTION", "label": "Spec Production"},
    {"value": "NEGOTIATION", "label": "Negotiation"},
    {"value": "PROPOSAL_SENT", "label": "Proposal Sent"},
    {"value": "CLOSED_WON", "label": "Closed Won"},
    {"value": "CLOSED_LOST", "label": "Closed Lost"},
]

SALES_STAGE_ORDER = [s["value"] for s in SALES_STAGES]

LEAD_STATUSES = ["LEAD", "CONNECTED", "OPEN_DEAL", "CONVERTED_TO_DEAL"]

SALES_OWNERS = ["Ben", "Luke", "Emmet", "Kevin"]

TASK_PRIORITIES = ["LOW", "NORMAL", "HIGH", "URGENT"]

TASK_STATUSES = ["OPEN", "IN_PROGRESS", "COMPLETED"]

# ==================== CONVERSATIONS ====================

MEETING_STAGES = ["Discovery", "TestEngagement", "Proposal", "Negotiation", "CheckIn", "Other"]

TRANSCRIPT_SOURCES = ["manual", "tactiq", "otter", "zoom", "teams", "other"]

URGENCY_LEVELS = ["HIGH", "MEDIUM", "LOW"]


def get_catalog() -> dict:
    """Every reference table, keyed for the frontend"""
    return {
        "verticals": VERTICALS,
        "project_types": PROJECT_TYPES,
        "project_statuses": PROJECT_STATUSES,
        "classifications": CLASSIFICATIONS,
        "red_flags": RED_FLAGS,
        "handoff_types": HANDOFF_TYPES,
        "handoff_statuses": HANDOFF_STATUSES,
        "qualification_calls": QUALIFICATION_CALLS,
        "platforms": PLATFORMS,
        "creative_types": CREATIVE_TYPES,
        "sizes": SIZES,
        "durations": DURATIONS,
        "departments": DEPARTMENTS,
        "default_milestones": DEFAULT_MILESTONES,
        "folder_partitions": FOLDER_PARTITIONS,
        "sales_stages": SALES_STAGES,
        "lead_statuses": LEAD_STATUSES,
        "sales_owners": SALES_OWNERS,
        "task_priorities": TASK_PRIORITIES,
        "task_statuses": TASK_STATUSES,
        "meeting_stages": MEETING_STAGES,
        "transcript_sources": TRANSCRIPT_SOURCES,
        "urgency_levels": URGENCY_LEVELS,
    }
