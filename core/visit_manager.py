# core/visit_manager.py

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel

from .errors import ValidationFailure
from .models import DocumentSnapshot, Visit, from_snapshot, utcnow
from .paths import VISITS, parse_visit_path, visit_path, visits_path
from .store import DocumentStore

class VisitPage(BaseModel):
    """One page of a cursor-paged visit listing."""
    items: List[Visit] = []
    cursor: Optional[DocumentSnapshot] = None
    has_more: bool = False

def parse_visit_date(date_iso: str) -> datetime:
    """Parses an ISO date or datetime; naive values are taken as local time."""
    try:
        value = datetime.fromisoformat(date_iso)
    except (TypeError, ValueError) as e:
        raise ValidationFailure(f"Visit date is not valid: {date_iso!r}") from e
    if value.tzinfo is None:
        value = value.astimezone()
    return value

def visit_from_flat_snapshot(snapshot: DocumentSnapshot) -> Visit:
    """
    Reads a visit returned by a cross-hierarchy query. Parent ids stored on the
    document win; otherwise they are recovered from the document path.
    """
    from_path = parse_visit_path(snapshot.path)
    return from_snapshot(
        Visit, snapshot,
        path=snapshot.path,
        farmerId=snapshot.data.get("farmerId") or from_path.farmer_id,
        fieldId=snapshot.data.get("fieldId") or from_path.field_id,
    )

class VisitManager:
    """Handles all database operations for visits, nested under farmers/{id}/fields/{id}."""
    def __init__(self, store: DocumentStore, owner_uid: str):
        if not owner_uid:
            raise ValueError("An authenticated account is required.")
        self.store = store
        self.owner_uid = owner_uid

    async def add_visit(self, farmer_id: str, field_id: str, date_iso: str,
                        note: str = "", recommendation_ids: Optional[List[str]] = None) -> Visit:
        visit = Visit(
            farmer_id=farmer_id,
            field_id=field_id,
            date=parse_visit_date(date_iso),
            note=note,
            recommendation_ids=list(recommendation_ids or []),
            owner_uid=self.owner_uid,
            created_at=utcnow(),
        )
        document = visit.to_document()
        document.pop("updatedAt", None)
        snapshot = await self.store.add(visits_path(farmer_id, field_id), document)
        print(f"---VISIT MANAGER: Added visit {snapshot.id} to field {field_id}---")
        return from_snapshot(Visit, snapshot, path=snapshot.path)

    async def list_visits_by_field(self, farmer_id: str, field_id: str) -> List[Visit]:
        snapshots = await self.store.query(
            visits_path(farmer_id, field_id),
            {"ownerUid": self.owner_uid},
            order_by="date",
            descending=True,
        )
        return [from_snapshot(Visit, s, path=s.path) for s in snapshots]

    async def list_recent_visits(self, limit: Optional[int] = 10) -> List[Visit]:
        """Cross-hierarchy listing of the account's visits, newest first. limit=None is unbounded."""
        snapshots = await self.store.collection_group(
            VISITS,
            {"ownerUid": self.owner_uid},
            order_by="date",
            descending=True,
            limit=limit,
        )
        return [visit_from_flat_snapshot(s) for s in snapshots]

    async def list_visits_paged(self, page_size: int = 10,
                                cursor: Optional[DocumentSnapshot] = None) -> VisitPage:
        # One extra document tells whether another page exists.
        snapshots = await self.store.collection_group(
            VISITS,
            {"ownerUid": self.owner_uid},
            order_by="date",
            descending=True,
            limit=page_size + 1,
            start_after=cursor,
        )
        has_more = len(snapshots) > page_size
        visible = snapshots[:page_size] if has_more else snapshots
        return VisitPage(
            items=[visit_from_flat_snapshot(s) for s in visible],
            cursor=visible[-1] if has_more else None,
            has_more=has_more,
        )

    async def update_visit(self, farmer_id: str, field_id: str, visit_id: str,
                           date_iso: Optional[str] = None, note: Optional[str] = None,
                           recommendation_ids: Optional[List[str]] = None):
        payload: Dict[str, Any] = {}
        if date_iso:
            payload["date"] = parse_visit_date(date_iso)
        if note is not None:
            payload["note"] = note
        if recommendation_ids is not None:
            payload["recommendationIds"] = list(recommendation_ids)
        if not payload:
            return
        payload["updatedAt"] = utcnow()
        await self.store.update(visit_path(farmer_id, field_id, visit_id), payload)

    async def remove_visit(self, farmer_id: str, field_id: str, visit_id: str):
        await self.store.delete(visit_path(farmer_id, field_id, visit_id))
        print(f"---VISIT MANAGER: Removed visit {visit_id}---")
