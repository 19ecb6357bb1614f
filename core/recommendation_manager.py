# core/recommendation_manager.py

from typing import List, Optional

from .errors import ValidationFailure
from .models import Recommendation, from_snapshot, utcnow
from .paths import RECOMMENDATIONS, recommendation_path
from .recommendations import normalize_sub_kind
from .store import DocumentStore

_UNSET = object()

class RecommendationManager:
    """Handles the account's flat recommendation catalog (pesticides, fertilizers, ...)."""
    def __init__(self, store: DocumentStore, owner_uid: str):
        if not owner_uid:
            raise ValueError("An authenticated account is required.")
        self.store = store
        self.owner_uid = owner_uid

    async def add_recommendation(self, name: str, kind: str, sub_kind: Optional[str] = None) -> Recommendation:
        if not name or not name.strip():
            raise ValidationFailure("Recommendation name is required.")
        recommendation = Recommendation(
            name=name.strip(),
            kind=kind,
            sub_kind=normalize_sub_kind(kind, sub_kind),
            owner_uid=self.owner_uid,
            created_at=utcnow(),
        )
        document = recommendation.to_document()
        document.pop("updatedAt", None)
        snapshot = await self.store.add(RECOMMENDATIONS, document)
        print(f"---RECOMMENDATION MANAGER: Added '{recommendation.name}'---")
        return from_snapshot(Recommendation, snapshot)

    async def list_recommendations(self) -> List[Recommendation]:
        snapshots = await self.store.query(
            RECOMMENDATIONS,
            {"ownerUid": self.owner_uid},
            order_by="name",
        )
        return [from_snapshot(Recommendation, s) for s in snapshots]

    async def update_recommendation(self, recommendation_id: str, name: Optional[str] = None,
                                    kind: Optional[str] = None, sub_kind=_UNSET):
        payload = {}
        if name is not None:
            payload["name"] = name
        if kind is not None:
            payload["kind"] = kind
            payload["subKind"] = normalize_sub_kind(kind, None if sub_kind is _UNSET else sub_kind)
        elif sub_kind is not _UNSET:
            payload["subKind"] = sub_kind or None
        payload["updatedAt"] = utcnow()
        await self.store.update(recommendation_path(recommendation_id), payload)

    async def remove_recommendation(self, recommendation_id: str):
        await self.store.delete(recommendation_path(recommendation_id))
