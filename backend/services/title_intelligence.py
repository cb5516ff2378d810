"""
Studio Ops - Title intelligence

Infer seniority, department and decision authority from a job title.
Regex tables are checked in order, first match wins.
"""

import re
from typing import Optional, Dict, Any


SENIORITY_SCORES = {
    "C_LEVEL": 10,
    "VP": 8,
    "DIRECTOR": 6,
    "MANAGER": 4,
    "INDIVIDUAL_CONTRIBUTOR": 2,
}

DECISION_AUTHORITIES = ["DECISION_MAKER", "BUDGET_HOLDER", "INFLUENCER", "END_USER", "GATEKEEPER"]

BUYING_ROLES = ["CHAMPION", "ECONOMIC_BUYER", "TECHNICAL_BUYER", "USER_BUYER", "COACH"]

ENRICHMENT_SOURCES = ["WEBSITE_ANALYSIS", "APOLLO", "CONVERSATION", "MANUAL"]


def _compile(patterns):
    return [re.compile(p, re.IGNORECASE) for p in patterns]


# More specific levels first
SENIORITY_PATTERNS = [
    ("C_LEVEL", _compile([
        r"^(ceo|cto|cmo|cfo|coo|cio|cso|cro|cpo|chief)",
        r"\bchief\b",
        r"^president",
        r"\bpresident\b.*\bceo\b",
        r"\bfounder\b",
        r"\bco-founder\b",
        r"\bowner\b",
        r"\bpartner\b",
        r"\bprincipal\b",
    ])),
    ("VP", _compile([
        r"^(vp|svp|evp|avp)\b",
        r"\bvice president\b",
        r"\bvp\b",
        r"^head of\b",
        r"\bhead of\b",
        r"\bglobal head\b",
        r"\bgroup head\b",
    ])),
    ("DIRECTOR", _compile([
        r"\bdirector\b",
        r"\bexecutive director\b",
        r"\bsenior director\b",
        r"\bmanaging director\b",
        r"\bassociate director\b",
        r"\bgm\b",
        r"\bgeneral manager\b",
    ])),
    ("MANAGER", _compile([
        r"\bmanager\b",
        r"\bsupervisor\b",
        r"\blead\b",
        r"\bteam lead\b",
        r"\bsenior\s+(specialist|analyst|engineer|designer)",
        r"\bprincipal\s+(specialist|analyst|engineer|designer)",
    ])),
]

DEPARTMENT_PATTERNS = [
    ("MARKETING", _compile([
        r"\bmarketing\b",
        r"\bbrand\b",
        r"\bdigital\s+marketing\b",
        r"\bgrowth\b",
        r"\bdemand\s+gen",
        r"\bcontent\b",
        r"\bsocial\s+media\b",
        r"\bcommunications\b",
        r"\bpr\b",
        r"\bpublic\s+relations\b",
    ])),
    ("CREATIVE", _compile([
        r"\bcreative\b",
        r"\bdesign",
        r"\bart\s+director\b",
        r"\bux\b",
        r"\bui\b",
        r"\bcopywriter\b",
        r"\bcopy\b",
        r"\bvideo\b",
        r"\bproduction\b",
        r"\bstudio\b",
        r"\bvisual\b",
    ])),
    ("EXECUTIVE", _compile([
        r"^(ceo|cto|cmo|cfo|coo|cio)",
        r"\bchief\b",
        r"\bpresident\b",
        r"\bfounder\b",
        r"\bowner\b",
        r"\bboard\b",
    ])),
    ("PROCUREMENT", _compile([
        r"\bprocurement\b",
        r"\bpurchasing\b",
        r"\bsourcing\b",
        r"\bvendor\b",
        r"\bsupplier\b",
        r"\bbuyer\b",
    ])),
    ("IT", _compile([
        r"\bit\b",
        r"\btechnology\b",
        r"\bengineering\b",
        r"\bdeveloper\b",
        r"\bsoftware\b",
        r"\binfrastructure\b",
        r"\bsecurity\b",
        r"\bdata\b",
        r"\banalytics\b",
    ])),
    ("OPERATIONS", _compile([
        r"\boperations\b",
        r"\bops\b",
        r"\bprocess\b",
        r"\bproject\s+management\b",
        r"\bprogram\b",
        r"\bstrategy\b",
        r"\bbusiness\s+development\b",
    ])),
    ("FINANCE", _compile([
        r"\bfinance\b",
        r"\bfinancial\b",
        r"\baccounting\b",
        r"\bcontroller\b",
        r"\btreasury\b",
        r"\bbudget\b",
    ])),
    ("SALES", _compile([
        r"\bsales\b",
        r"\baccount\s+executive\b",
        r"\baccount\s+manager\b",
        r"\bbusiness\s+development\b",
        r"\bbd\b",
        r"\brevenue\b",
    ])),
    ("LEGAL", _compile([
        r"\blegal\b",
        r"\bcounsel\b",
        r"\battorney\b",
        r"\blawyer\b",
        r"\bcompliance\b",
        r"\bregulatory\b",
    ])),
]

DECISION_MAKER_PATTERNS = _compile([
    r"\bhead\b",
    r"\blead\b.*\bmarketing\b",
    r"\blead\b.*\bcreative\b",
    r"\bexecutive\b",
])

DM_DIRECTOR_DEPARTMENTS = ["MARKETING", "CREATIVE", "EXECUTIVE", "OPERATIONS"]

TITLE_ACRONYMS = ["CEO", "CTO", "CMO", "CFO", "COO", "CIO", "VP", "SVP", "EVP", "IT", "UI", "UX", "PR"]


def _first_match(title: Optional[str], table, default: str) -> str:
    if not title:
        return default
    normalized = title.strip().lower()
    for value, patterns in table:
        if any(p.search(normalized) for p in patterns):
            return value
    return default


def infer_seniority(title: Optional[str]) -> str:
    return _first_match(title, SENIORITY_PATTERNS, "INDIVIDUAL_CONTRIBUTOR")


def infer_seniority_score(title: Optional[str]) -> int:
    return SENIORITY_SCORES[infer_seniority(title)]


def get_seniority_score(seniority: Optional[str]) -> int:
    """Score of a stored seniority value, 0 when unknown"""
    return SENIORITY_SCORES.get(seniority or "", 0)


def infer_department(title: Optional[str]) -> str:
    return _first_match(title, DEPARTMENT_PATTERNS, "OTHER")


def is_likely_decision_maker(title: Optional[str]) -> bool:
    if not title:
        return False

    seniority = infer_seniority(title)
    if seniority in ("C_LEVEL", "VP"):
        return True

    if seniority == "DIRECTOR" and infer_department(title) in DM_DIRECTOR_DEPARTMENTS:
        return True

    normalized = title.strip().lower()
    return any(p.search(normalized) for p in DECISION_MAKER_PATTERNS)


def suggest_decision_authority(title: Optional[str]) -> Optional[str]:
    """
    C-level -> DECISION_MAKER (BUDGET_HOLDER in finance)
    VP -> BUDGET_HOLDER (finance, procurement), DECISION_MAKER (marketing,
          creative), else INFLUENCER
    Director -> INFLUENCER
    Procurement -> GATEKEEPER, creative/marketing -> END_USER
    """
    if not title:
        return None

    seniority = infer_seniority(title)
    department = infer_department(title)

    if seniority == "C_LEVEL":
        return "BUDGET_HOLDER" if department == "FINANCE" else "DECISION_MAKER"

    if seniority == "VP":
        if department in ("FINANCE", "PROCUREMENT"):
            return "BUDGET_HOLDER"
        if department in ("MARKETING", "CREATIVE"):
            return "DECISION_MAKER"
        return "INFLUENCER"

    if seniority == "DIRECTOR":
        return "INFLUENCER"

    if department == "PROCUREMENT":
        return "GATEKEEPER"

    if department in ("CREATIVE", "MARKETING"):
        return "END_USER"

    return None


def analyze_title(title: Optional[str]) -> Optional[Dict[str, Any]]:
    if not title:
        return None

    return {
        "original_title": title,
        "seniority": infer_seniority(title),
        "seniority_score": infer_seniority_score(title),
        "department": infer_department(title),
        "is_likely_decision_maker": is_likely_decision_maker(title),
        "suggested_authority": suggest_decision_authority(title),
    }


def format_title(title: Optional[str]) -> str:
    """'vp of marketing' -> 'VP Of Marketing'"""
    if not title:
        return ""

    words = []
    for word in title.split(" "):
        upper = word.upper()
        if upper in TITLE_ACRONYMS:
            words.append(upper)
        else:
            words.append(word[:1].upper() + word[1:].lower())
    return " ".join(words)


def infer_contact_fields(title: Optional[str]) -> Dict[str, Any]:
    """Fields stored on a contact when only the job title is known"""
    if not title:
        return {}
    return {
        "seniority": infer_seniority(title),
        "seniority_score": infer_seniority_score(title),
        "department": infer_department(title),
        "decision_authority": suggest_decision_authority(title),
    }
