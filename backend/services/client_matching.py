"""
Studio Ops - Client matching for sales report import

Deal names from a report ("Saatchi (Toyota)", "Treefort Microdrama")
are matched against existing client names, strongest tier first:

    exact     100   same normalised name
    partial    85   same base name ("saatchi")
    partial 50-70   one name contains the other
    fuzzy   42-60   Levenshtein similarity >= 0.7
"""

import re
from typing import Dict, List, Optional, Any

from rapidfuzz.distance import Levenshtein

from services.estimation import round_half_up


MAX_MATCHES = 5
FUZZY_THRESHOLD = 0.7

COMPANY_SUFFIX_RE = re.compile(r"\s*(inc\.?|llc\.?|ltd\.?|corp\.?|corporation|company|co\.?)\s*$", re.IGNORECASE)
PARENS_RE = re.compile(r"^(.+?)\s*\((.+?)\)\s*$")
DASH_RE = re.compile(r"^(.+?)\s*[-–—]\s*(.+)$")


def normalize_name(name: str) -> str:
    """'Acme, Inc.' -> 'acme'"""
    name = COMPANY_SUFFIX_RE.sub("", name.lower())
    name = re.sub(r"[^\w\s]", " ", name)
    return re.sub(r"\s+", " ", name).strip()


def extract_parent_and_end_client(deal_name: str) -> Dict[str, Optional[str]]:
    """
    'Saatchi (Toyota)'    -> base 'saatchi', end client 'toyota'
    'Saatchi - Toyota'    -> base 'saatchi', end client 'toyota'
    'Treefort Microdrama' -> base 'treefort'
    """
    match = PARENS_RE.match(deal_name)
    if match:
        return {"base_name": normalize_name(match.group(1)), "end_client": normalize_name(match.group(2))}

    match = DASH_RE.match(deal_name)
    if match:
        return {"base_name": normalize_name(match.group(1)), "end_client": normalize_name(match.group(2))}

    words = deal_name.split()
    if len(words) > 1:
        return {"base_name": normalize_name(words[0]), "end_client": None}

    return {"base_name": normalize_name(deal_name), "end_client": None}


def _js_round(value: float) -> int:
    return int(round_half_up(value, 0))


def match_deal(deal_name: str, clients: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Top matches for one deal against a list of {id, name} clients"""
    normalized_deal = normalize_name(deal_name)
    base_name = extract_parent_and_end_client(deal_name)["base_name"]

    matches = []
    for client in clients:
        client_name = client.get("name") or ""
        normalized_client = normalize_name(client_name)

        def add(confidence, score, reason):
            matches.append({
                "client_id": client.get("id"),
                "client_name": client_name,
                "confidence": confidence,
                "score": score,
                "reason": reason,
            })

        if normalized_client == normalized_deal:
            add("exact", 100, "Exact name match")
            continue

        client_base = extract_parent_and_end_client(client_name)["base_name"]
        if client_base == base_name and len(base_name) > 2:
            add("partial", 85, f'Base name match: "{base_name}"')
            continue

        if normalized_deal and (normalized_deal in normalized_client or normalized_client in normalized_deal):
            shorter = min(len(normalized_client), len(normalized_deal))
            score = _js_round(shorter / len(normalized_deal) * 70)
            if score >= 50:
                add("partial", score, "Partial name match")
                continue

        longest = max(len(normalized_client), len(normalized_deal))
        if not longest:
            continue
        similarity = 1 - Levenshtein.distance(normalized_client, normalized_deal) / longest
        if similarity >= FUZZY_THRESHOLD:
            add("fuzzy", _js_round(similarity * 60), f"Similar name ({_js_round(similarity * 100)}% match)")

    # Stable sort keeps client order among equal scores
    matches.sort(key=lambda m: m["score"], reverse=True)
    return matches[:MAX_MATCHES]


def batch_match_deals(deal_names: List[str], clients: List[Dict[str, Any]]) -> Dict[str, List[Dict[str, Any]]]:
    """One pass over the client list per deal; clients are loaded once by the caller"""
    return {name: match_deal(name, clients) for name in deal_names}


def get_suggested_action(matches: List[Dict[str, Any]]) -> str:
    """create_new | use_match | review"""
    if not matches:
        return "create_new"

    best = matches[0]
    if best["confidence"] == "exact" or best["score"] >= 85:
        return "use_match"

    if len(matches) > 1 or best["score"] < 70:
        return "review"

    return "use_match"
