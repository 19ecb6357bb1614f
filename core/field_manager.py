# core/field_manager.py

from typing import Any, Dict, List, Optional

from .errors import ValidationFailure
from .models import FieldPlot, GeoPoint, from_snapshot, utcnow
from .paths import field_path, fields_path
from .store import DocumentStore, ensure_owned

_UNSET = object()

class FieldManager:
    """
    Handles all database operations for farmers' fields.
    Removing a field does not remove its visits; they stay behind as orphans.
    """
    def __init__(self, store: DocumentStore, owner_uid: str):
        if not owner_uid:
            raise ValueError("An authenticated account is required.")
        self.store = store
        self.owner_uid = owner_uid

    async def add_field(self, farmer_id: str, type: str, address: str,
                        location: Optional[GeoPoint] = None, area: Optional[float] = None) -> FieldPlot:
        if not type or not type.strip():
            raise ValidationFailure("Field type is required.")
        field = FieldPlot(farmer_id=farmer_id, type=type.strip(), address=(address or "").strip(),
                          location=location, area=area, owner_uid=self.owner_uid, created_at=utcnow())
        snapshot = await self.store.add(fields_path(farmer_id), field.to_document())
        print(f"---FIELD MANAGER: Added field {snapshot.id} for farmer {farmer_id}---")
        return from_snapshot(FieldPlot, snapshot)

    async def list_fields_by_farmer(self, farmer_id: str) -> List[FieldPlot]:
        snapshots = await self.store.query(fields_path(farmer_id), {"ownerUid": self.owner_uid})
        return [from_snapshot(FieldPlot, s) for s in snapshots]

    async def get_field(self, farmer_id: str, field_id: str) -> Optional[FieldPlot]:
        snapshot = ensure_owned(await self.store.get(field_path(farmer_id, field_id)), self.owner_uid)
        return from_snapshot(FieldPlot, snapshot) if snapshot else None

    async def has_any_field(self, farmer_id: str) -> bool:
        snapshots = await self.store.query(fields_path(farmer_id), {"ownerUid": self.owner_uid}, limit=1)
        return bool(snapshots)

    async def update_field(self, farmer_id: str, field_id: str, type: Optional[str] = None,
                           address: Optional[str] = None, location: Any = _UNSET, area: Any = _UNSET):
        """Only the given attributes change. Passing location=None clears the location."""
        update: Dict[str, Any] = {}
        if type is not None:
            update["type"] = type
        if address is not None:
            update["address"] = address
        if location is not _UNSET:
            update["location"] = location.model_dump() if location is not None else None
        if area is not _UNSET:
            update["area"] = area
        if not update:
            return
        await self.store.update(field_path(farmer_id, field_id), update)

    async def remove_field(self, farmer_id: str, field_id: str):
        await self.store.delete(field_path(farmer_id, field_id))
        print(f"---FIELD MANAGER: Removed field {field_id} (visits are kept)---")
