# core/visit_filters.py

import re
import unicodedata
from datetime import tzinfo
from typing import List, Optional

from pydantic import BaseModel

from .dates import day_end_millis, day_start_millis, to_millis
from .models import VisitView

_COMBINING_MARKS = re.compile("[\u0300-\u036f]")

def normalize_text(value) -> str:
    """Lowercases and strips diacritics, so "Çiğdem" and "cigdem" compare equal."""
    if not value:
        return ""
    decomposed = unicodedata.normalize("NFD", str(value))
    return _COMBINING_MARKS.sub("", decomposed).lower()

class VisitFilters(BaseModel):
    """Active criteria of the visits view. Dates are YYYY-MM-DD day bounds, both inclusive."""
    farmer_id: Optional[str] = None
    field_id: Optional[str] = None
    date_from: Optional[str] = None
    date_to: Optional[str] = None
    search: str = ""

def build_haystack(view: VisitView) -> str:
    return " ".join(normalize_text(v) for v in view.searchable_values())

def filter_visits(views: List[VisitView], filters: VisitFilters,
                  tz: Optional[tzinfo] = None) -> List[VisitView]:
    """Returns the views matching every active criterion, in input order."""
    from_ms = day_start_millis(filters.date_from, tz)
    to_ms = day_end_millis(filters.date_to, tz)
    needle = normalize_text((filters.search or "").strip())

    matched = []
    for view in views:
        visit = view.visit
        if filters.farmer_id and visit.farmer_id != filters.farmer_id:
            continue
        if filters.field_id and visit.field_id != filters.field_id:
            continue
        if from_ms is not None or to_ms is not None:
            visit_ms = to_millis(visit.date, tz)
            if from_ms is not None and visit_ms < from_ms:
                continue
            if to_ms is not None and visit_ms > to_ms:
                continue
        if needle and needle not in build_haystack(view):
            continue
        matched.append(view)
    return matched
