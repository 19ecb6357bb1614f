# core/paths.py

from typing import NamedTuple, Optional

FARMERS = "farmers"
FIELDS = "fields"
VISITS = "visits"
RECOMMENDATIONS = "recommendations"

# farmers/{farmerId}/fields/{fieldId}/visits/{visitId}
VISIT_PATH_MIN_SEGMENTS = 6


class VisitParents(NamedTuple):
    farmer_id: Optional[str]
    field_id: Optional[str]


def _segment(value: str) -> str:
    if not value or "/" in value:
        raise ValueError(f"Invalid path segment: {value!r}")
    return value


def join_path(*segments: str) -> str:
    return "/".join(_segment(s) for s in segments)


def split_path(path: str) -> list:
    return [part for part in path.strip("/").split("/") if part]


def parent_path(path: str) -> str:
    """Collection path a document lives in ("farmers/F1/fields" for a field)."""
    return "/".join(split_path(path)[:-1])


def collection_id(path: str) -> str:
    """Last collection segment of a document or collection path."""
    parts = split_path(path)
    return parts[-2] if len(parts) % 2 == 0 else parts[-1]


def farmer_path(farmer_id: str) -> str:
    return join_path(FARMERS, farmer_id)


def fields_path(farmer_id: str) -> str:
    return join_path(FARMERS, farmer_id, FIELDS)


def field_path(farmer_id: str, field_id: str) -> str:
    return join_path(FARMERS, farmer_id, FIELDS, field_id)


def visits_path(farmer_id: str, field_id: str) -> str:
    return join_path(FARMERS, farmer_id, FIELDS, field_id, VISITS)


def visit_path(farmer_id: str, field_id: str, visit_id: str) -> str:
    return join_path(FARMERS, farmer_id, FIELDS, field_id, VISITS, visit_id)


def recommendation_path(recommendation_id: str) -> str:
    return join_path(RECOMMENDATIONS, recommendation_id)


def parse_visit_path(path: Optional[str]) -> VisitParents:
    """
    Recovers the owning farmer and field ids from a visit document path.
    Paths shorter than a full visit path yield no ids at all.
    """
    if not path:
        return VisitParents(None, None)
    parts = path.split("/")
    if len(parts) < VISIT_PATH_MIN_SEGMENTS:
        return VisitParents(None, None)
    return VisitParents(parts[1] or None, parts[3] or None)


def field_key(farmer_id: Optional[str], field_id: Optional[str]) -> str:
    return f"{farmer_id}::{field_id}"
