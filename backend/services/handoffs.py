"""
Studio Ops - Handoff checklists

Checklist templates per handoff type, progress, partition advance,
and the plain-text notification email the team copies out.
"""

from typing import Dict, List, Optional, Any

from services.catalog import HANDOFF_TYPES


HANDOFF_CHECKLISTS = {
    "SALES_TO_PRODUCTION": [
        {"id": "sow_signed", "label": "SOW signed and received", "required": True},
        {"id": "client_info", "label": "Client company information complete", "required": True},
        {"id": "contacts", "label": "Key contacts identified", "required": True},
        {"id": "brand_guidelines", "label": "Brand guidelines received", "required": False},
        {"id": "deliverables", "label": "Deliverables list confirmed", "required": True},
        {"id": "timeline", "label": "Project timeline agreed", "required": True},
        {"id": "budget", "label": "Budget confirmed", "required": True},
        {"id": "kickoff", "label": "Kickoff meeting scheduled", "required": False},
    ],
    "PRODUCTION_TO_GENERATIVE": [
        {"id": "brand_assets", "label": "Brand assets uploaded to shared drive", "required": True},
        {"id": "style_guide", "label": "Visual style guide created", "required": True},
        {"id": "quality_criteria", "label": "Quality criteria documented", "required": True},
        {"id": "workflow_specs", "label": "Workflow specifications defined", "required": True},
        {"id": "reference_images", "label": "Reference images provided", "required": True},
        {"id": "lora_requirements", "label": "LoRA training requirements (if applicable)", "required": False},
        {"id": "revision_process", "label": "Revision process explained", "required": True},
    ],
    "GENERATIVE_TO_PRODUCTION": [
        {"id": "deliverables_qc", "label": "All deliverables passed internal QC", "required": True},
        {"id": "file_naming", "label": "File naming convention followed", "required": True},
        {"id": "formats_correct", "label": "All formats and sizes correct", "required": True},
        {"id": "technical_notes", "label": "Technical notes documented", "required": False},
        {"id": "revisions_addressed", "label": "Previous revision feedback addressed", "required": True},
        {"id": "uploaded", "label": "Files uploaded to delivery platform", "required": True},
    ],
    "PRODUCTION_TO_SALES": [
        {"id": "final_deliverables", "label": "Final deliverables approved by client", "required": True},
        {"id": "closing_report", "label": "Project closing report complete", "required": True},
        {"id": "margin_data", "label": "Margin data calculated", "required": True},
        {"id": "case_study", "label": "Case study materials gathered", "required": False},
        {"id": "testimonial", "label": "Testimonial requested", "required": False},
        {"id": "lessons_learned", "label": "Lessons learned documented", "required": False},
        {"id": "renewal_opportunity", "label": "Renewal opportunity assessed", "required": True},
    ],
}

# Handoff number completed -> project folder partition
PARTITION_AFTER_HANDOFF = {
    1: 2,  # Sales -> Production
    2: 3,  # Production -> Generative
    3: 4,  # Generative -> Production
    4: 6,  # Production -> Sales
}


def get_handoff_type(handoff_number: int) -> Optional[Dict[str, Any]]:
    for h in HANDOFF_TYPES:
        if h["number"] == handoff_number:
            return h
    return None


def initial_checklist(handoff_type: str) -> Dict[str, bool]:
    """Every template item unchecked; unknown types get an empty checklist"""
    return {item["id"]: False for item in HANDOFF_CHECKLISTS.get(handoff_type, [])}


def checklist_progress(handoff_type: str, checklist: Dict[str, Any]) -> Dict[str, Any]:
    items = HANDOFF_CHECKLISTS.get(handoff_type, [])
    required = [i for i in items if i["required"]]
    checklist = checklist or {}

    completed_required = sum(1 for i in required if checklist.get(i["id"]))
    return {
        "total_items": len(items),
        "completed_items": sum(1 for i in items if checklist.get(i["id"])),
        "required_items": len(required),
        "completed_required": completed_required,
        "all_required_complete": completed_required == len(required),
        "missing_required": [i["id"] for i in required if not checklist.get(i["id"])],
    }


def next_partition(handoff_number: int) -> Optional[int]:
    return PARTITION_AFTER_HANDOFF.get(handoff_number)


def build_handoff_email(handoff: Dict[str, Any], project: Dict[str, Any], client: Dict[str, Any]) -> str:
    """Notification email body, ready to paste"""
    info = get_handoff_type(handoff.get("handoff_number")) or {}
    label = info.get("label", handoff.get("type", ""))
    items = HANDOFF_CHECKLISTS.get(handoff.get("type"), [])
    checklist = handoff.get("checklist") or {}

    completed = "\n".join(f"  ✓ {i['label']}" for i in items if checklist.get(i["id"]))
    pending = "\n".join(
        f"  ○ {i['label']} (REQUIRED)"
        for i in items
        if i["required"] and not checklist.get(i["id"])
    )

    client_name = client.get("name", "")
    project_name = project.get("name", "")

    lines = [
        f"Subject: [HANDOFF {handoff.get('handoff_number')}] {client_name} - {project_name}",
        "",
        "Hi Team,",
        "",
        f"This is the handoff notification for {label}.",
        "",
        f"PROJECT: {client_name} - {project_name}",
        f"JOB ID: {project.get('job_id', '')}",
        f"HANDOFF: {label}",
        f"STATUS: {handoff.get('status', '')}",
        "",
        "COMPLETED ITEMS:",
        completed or "  (none)",
        "",
    ]
    if pending:
        lines += ["PENDING REQUIRED ITEMS:", pending, ""]
    if handoff.get("notes"):
        lines += ["NOTES:", handoff["notes"], ""]
    lines += ["Please review and confirm receipt.", "", "Best,", "[Your Name]"]

    return "\n".join(lines)


def list_checklist_items(handoff_type: str) -> List[Dict[str, Any]]:
    return HANDOFF_CHECKLISTS.get(handoff_type, [])
