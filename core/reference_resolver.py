# core/reference_resolver.py

import asyncio
from typing import Awaitable, Dict, Iterable, List, Optional, Tuple

from pydantic import BaseModel

from .config import settings
from .errors import FieldVisitError
from .farmer_manager import FarmerManager
from .field_manager import FieldManager
from .models import Farmer, FieldPlot, Visit, VisitView
from .paths import field_key
from .recommendation_manager import RecommendationManager

class ResolvedReferences(BaseModel):
    """
    Lookup tables for one load cycle. Ids whose lookup failed are simply absent,
    and display code falls back to the raw id.
    """
    farmers: Dict[str, Farmer] = {}
    fields: Dict[str, FieldPlot] = {}  # keyed by "farmerId::fieldId"
    recommendation_names: Dict[str, str] = {}

    def farmer_for(self, visit: Visit) -> Optional[Farmer]:
        return self.farmers.get(visit.farmer_id) if visit.farmer_id else None

    def field_for(self, visit: Visit) -> Optional[FieldPlot]:
        return self.fields.get(field_key(visit.farmer_id, visit.field_id))

    def recommendation_names_for(self, visit: Visit) -> List[str]:
        return [self.recommendation_names.get(rid, rid) for rid in visit.recommendation_ids]

    def denormalize(self, visits: Iterable[Visit]) -> List[VisitView]:
        return [
            VisitView(
                visit=visit,
                farmer=self.farmer_for(visit),
                field=self.field_for(visit),
                recommendation_names=self.recommendation_names_for(visit),
            )
            for visit in visits
        ]

class ReferenceResolver:
    """Resolves the distinct farmers, fields and recommendations a visit set refers to."""

    def __init__(self, farmers: FarmerManager, fields: FieldManager,
                 recommendations: Optional[RecommendationManager] = None,
                 concurrency: Optional[int] = None):
        self.farmers = farmers
        self.fields = fields
        self.recommendations = recommendations
        self.concurrency = concurrency or settings.resolver_concurrency

    async def _tolerant(self, semaphore: asyncio.Semaphore, label: str, lookup: Awaitable):
        async with semaphore:
            try:
                return await lookup
            except FieldVisitError as e:
                print(f"---REFERENCE RESOLVER: {label} lookup failed: {e}---")
                return None

    async def resolve_farmers(self, farmer_ids: Iterable[str], semaphore: asyncio.Semaphore) -> Dict[str, Farmer]:
        ids = list(dict.fromkeys(farmer_ids))
        results = await asyncio.gather(
            *(self._tolerant(semaphore, f"farmer {fid}", self.farmers.get_farmer(fid)) for fid in ids)
        )
        return {fid: farmer for fid, farmer in zip(ids, results) if farmer}

    async def resolve_fields(self, pairs: Iterable[Tuple[str, str]], semaphore: asyncio.Semaphore) -> Dict[str, FieldPlot]:
        pairs = list(dict.fromkeys(pairs))
        results = await asyncio.gather(
            *(self._tolerant(semaphore, f"field {fid}/{lid}", self.fields.get_field(fid, lid))
              for fid, lid in pairs)
        )
        return {field_key(fid, lid): field for (fid, lid), field in zip(pairs, results) if field}

    async def resolve_recommendation_names(self) -> Dict[str, str]:
        """One bulk fetch of the catalog; a failure leaves every id as its own label."""
        if self.recommendations is None:
            return {}
        try:
            catalog = await self.recommendations.list_recommendations()
        except FieldVisitError as e:
            print(f"---REFERENCE RESOLVER: Recommendation catalog unavailable: {e}---")
            return {}
        return {rec.id: rec.name for rec in catalog}

    async def resolve(self, visits: List[Visit], known_farmers: Optional[Dict[str, Farmer]] = None,
                      known_fields: Optional[Dict[str, FieldPlot]] = None,
                      include_recommendations: bool = True) -> ResolvedReferences:
        """
        Builds fresh lookup tables for `visits`. Farmers and fields passed in as
        already known are reused instead of being fetched again.
        """
        farmers = dict(known_farmers or {})
        fields = dict(known_fields or {})

        missing_farmers = [v.farmer_id for v in visits if v.farmer_id and v.farmer_id not in farmers]
        missing_fields = [
            (v.farmer_id, v.field_id) for v in visits
            if v.farmer_id and v.field_id and field_key(v.farmer_id, v.field_id) not in fields
        ]

        semaphore = asyncio.Semaphore(self.concurrency)
        recommendation_lookup = (self.resolve_recommendation_names() if include_recommendations
                                 else asyncio.sleep(0, result={}))
        resolved_farmers, resolved_fields, recommendation_names = await asyncio.gather(
            self.resolve_farmers(missing_farmers, semaphore),
            self.resolve_fields(missing_fields, semaphore),
            recommendation_lookup,
        )
        farmers.update(resolved_farmers)
        fields.update(resolved_fields)

        return ResolvedReferences(
            farmers=farmers,
            fields=fields,
            recommendation_names=recommendation_names,
        )
