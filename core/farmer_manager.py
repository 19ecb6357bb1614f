# core/farmer_manager.py

from typing import List, Optional

from .errors import ValidationFailure
from .models import Farmer, from_snapshot, utcnow
from .paths import FARMERS, farmer_path, fields_path
from .store import DocumentStore, ensure_owned
from .validation import is_name_valid, is_phone_valid

class FarmerManager:
    """Handles all database operations for the account's farmers."""
    def __init__(self, store: DocumentStore, owner_uid: str):
        if not owner_uid:
            raise ValueError("An authenticated account is required.")
        self.store = store
        self.owner_uid = owner_uid

    async def add_farmer(self, name: str, phone: str) -> Farmer:
        if not is_name_valid(name):
            raise ValidationFailure("Farmer name is not valid.")
        if not is_phone_valid(phone):
            raise ValidationFailure("Phone number is not valid.")

        farmer = Farmer(name=name.strip(), phone=phone.strip(),
                        owner_uid=self.owner_uid, created_at=utcnow())
        snapshot = await self.store.add(FARMERS, farmer.to_document())
        print(f"---FARMER MANAGER: Added farmer {snapshot.id}---")
        return from_snapshot(Farmer, snapshot)

    async def list_farmers(self) -> List[Farmer]:
        snapshots = await self.store.query(FARMERS, {"ownerUid": self.owner_uid})
        return [from_snapshot(Farmer, s) for s in snapshots]

    async def get_farmer(self, farmer_id: str) -> Optional[Farmer]:
        snapshot = ensure_owned(await self.store.get(farmer_path(farmer_id)), self.owner_uid)
        return from_snapshot(Farmer, snapshot) if snapshot else None

    async def update_farmer(self, farmer_id: str, name: Optional[str] = None, phone: Optional[str] = None):
        payload = {}
        if isinstance(name, str):
            if not is_name_valid(name):
                raise ValidationFailure("Farmer name is not valid.")
            payload["name"] = name.strip()
        if isinstance(phone, str):
            if not is_phone_valid(phone):
                raise ValidationFailure("Phone number is not valid.")
            payload["phone"] = phone.strip()
        if not payload:
            return
        await self.store.update(farmer_path(farmer_id), payload)

    async def remove_farmer(self, farmer_id: str):
        """Farmers can only be removed once they have no fields left."""
        fields = await self.store.query(fields_path(farmer_id), {"ownerUid": self.owner_uid}, limit=1)
        if fields:
            raise ValidationFailure("Farmer still has fields; remove them first.")
        await self.store.delete(farmer_path(farmer_id))
        print(f"---FARMER MANAGER: Removed farmer {farmer_id}---")
