# core/recommendations.py

from typing import List, Optional

from .errors import ValidationFailure

RECOMMENDATION_KINDS = ("pesticide", "fertilizer", "other")

RECOMMENDATION_KIND_LABELS = {
    "pesticide": "Pesticide",
    "fertilizer": "Fertilizer",
    "other": "Other",
}

RECOMMENDATION_SUBTYPE_OPTIONS = {
    "pesticide": [
        "Fungusit",
        "İnsektisit",
        "Herbisit",
        "Akarisit",
        "Nematisit",
        "Rodentisit",
        "Bakterisit",
    ],
    "fertilizer": [
        "Azotlu Gübreler",
        "Fosforlu Gübreler",
        "Potasyumlu Gübreler",
        "Kompoze NPK Gübreler",
        "Mikro Element Gübreleri",
        "Organik Gübreler",
        "Yaprak Gübreleri",
    ],
    "other": [],
}

DEFAULT_RECOMMENDATION_KIND = RECOMMENDATION_KINDS[0]
DEFAULT_RECOMMENDATION_SUBTYPE = RECOMMENDATION_SUBTYPE_OPTIONS[DEFAULT_RECOMMENDATION_KIND][0]


def get_subtype_options(kind: str) -> List[str]:
    return RECOMMENDATION_SUBTYPE_OPTIONS.get(kind, [])


def normalize_sub_kind(kind: str, sub_kind: Optional[str]) -> Optional[str]:
    """
    Checks a (kind, sub-kind) pair and returns the sub-kind to store.
    Kinds without sub-kinds always store None.
    """
    if kind not in RECOMMENDATION_KINDS:
        raise ValidationFailure(f"Unknown recommendation kind: {kind!r}")

    options = get_subtype_options(kind)
    if not options:
        return None
    if not sub_kind:
        return None
    if sub_kind not in options:
        raise ValidationFailure(f"Sub-kind {sub_kind!r} is not valid for kind {kind!r}")
    return sub_kind
