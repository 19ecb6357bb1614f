# core/exporter.py

import csv
import io
import os
from datetime import datetime, tzinfo
from typing import List, Optional, Sequence

from .config import settings
from .dates import format_date
from .models import VisitView

EXPORT_HEADER = ["Date", "Farmer name", "Phone", "Field type", "Address", "Note", "Recommendations"]

def export_row(view: VisitView, tz: Optional[tzinfo] = None) -> List[str]:
    return [
        format_date(view.visit.date, tz),
        view.farmer_label,
        view.phone,
        view.field_label,
        view.address,
        view.visit.note,
        ", ".join(view.recommendation_names),
    ]

def build_csv(page: Sequence[VisitView], tz: Optional[tzinfo] = None) -> Optional[str]:
    """CSV text for the visible page, or None when the page is empty."""
    if not page:
        return None
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\r\n")
    writer.writerow(EXPORT_HEADER)
    for view in page:
        writer.writerow(export_row(view, tz))
    return buffer.getvalue()

def export_filename(now: Optional[datetime] = None) -> str:
    stamp = (now or datetime.now()).strftime("%Y-%m-%dT%H-%M-%S")
    return f"visits-{stamp}.csv"

def export_page_to_file(page: Sequence[VisitView], directory: Optional[str] = None,
                        tz: Optional[tzinfo] = None) -> Optional[str]:
    """Writes the visible page to <directory>/visits-<timestamp>.csv. Empty pages write nothing."""
    content = build_csv(page, tz)
    if content is None:
        return None
    directory = directory or settings.export_dir
    os.makedirs(directory, exist_ok=True)
    path = os.path.join(directory, export_filename())
    with open(path, "w", encoding="utf-8", newline="") as f:
        f.write(content)
    print(f"---EXPORTER: Wrote {len(page)} visits to {path}---")
    return path
