# core/visit_aggregator.py

import asyncio
from typing import ClassVar, Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict

from .dates import to_millis
from .errors import AuthorizationDenied, FieldVisitError
from .farmer_manager import FarmerManager
from .field_manager import FieldManager
from .models import Farmer, FieldPlot, Visit
from .paths import field_key
from .visit_manager import VisitManager

FLAT = "flat"
HIERARCHICAL = "hierarchical"
SCOPED_EMPTY = "scoped-empty"

class FetchOutcome(BaseModel):
    """Tagged result of the flat-path probe: ok(visits), denied, or fatal(error)."""
    model_config = ConfigDict(arbitrary_types_allowed=True)

    OK: ClassVar[str] = "ok"
    DENIED: ClassVar[str] = "denied"
    FATAL: ClassVar[str] = "fatal"

    status: str
    visits: List[Visit] = []
    error: Optional[Exception] = None

    @classmethod
    def ok(cls, visits: List[Visit]) -> "FetchOutcome":
        return cls(status=cls.OK, visits=visits)

    @classmethod
    def denied(cls) -> "FetchOutcome":
        return cls(status=cls.DENIED)

    @classmethod
    def fatal(cls, error: Exception) -> "FetchOutcome":
        return cls(status=cls.FATAL, error=error)

class AggregationResult(BaseModel):
    """
    Visits for one load cycle, newest first, each carrying its farmer and field ids.
    Farmers and fields met while walking the hierarchy are handed on to the resolver.
    """
    visits: List[Visit] = []
    strategy: str = FLAT
    farmers: Dict[str, Farmer] = {}
    fields: Dict[str, FieldPlot] = {}
    fields_by_farmer: Dict[str, List[FieldPlot]] = {}
    # True once every farmer of the account was listed, even when there are none.
    farmers_listed: bool = False

def sort_newest_first(visits: List[Visit]) -> List[Visit]:
    # sorted() is stable, so equal dates keep the store's order.
    return sorted(visits, key=lambda v: to_millis(v.date), reverse=True)

class VisitAggregator:
    """
    Collects the account's visits from farmers/{id}/fields/{id}/visits.

    The flat cross-hierarchy query is tried first. When the store denies it, the
    aggregator walks farmers -> fields -> visits instead, which is always
    authorized because every step is scoped by the account's own ownership.
    """
    def __init__(self, farmers: FarmerManager, fields: FieldManager, visits: VisitManager):
        self.farmers = farmers
        self.fields = fields
        self.visits = visits

    async def probe_flat(self, limit: Optional[int] = None) -> FetchOutcome:
        try:
            visits = await self.visits.list_recent_visits(limit=limit)
        except AuthorizationDenied:
            return FetchOutcome.denied()
        except FieldVisitError as e:
            return FetchOutcome.fatal(e)
        return FetchOutcome.ok(visits)

    async def aggregate(self, farmer_id: Optional[str] = None, field_id: Optional[str] = None,
                        limit: Optional[int] = None) -> AggregationResult:
        """
        Returns the scoped visits, newest first. `limit` bounds the flat query and the
        final result (None = unbounded). Errors other than a denied flat query propagate.
        """
        scoped_fields: Dict[str, List[FieldPlot]] = {}
        if farmer_id:
            farmer_fields = await self.fields.list_fields_by_farmer(farmer_id)
            scoped_fields[farmer_id] = farmer_fields
            # A scoped field that no longer exists yields nothing rather than an unscoped fetch.
            if field_id and not any(f.id == field_id for f in farmer_fields):
                print(f"---VISIT AGGREGATOR: Field {field_id} not found under farmer {farmer_id}---")
                return AggregationResult(strategy=SCOPED_EMPTY, fields_by_farmer=scoped_fields)

        outcome = await self.probe_flat(limit=limit)

        if outcome.status == FetchOutcome.FATAL:
            raise outcome.error

        if outcome.status == FetchOutcome.DENIED:
            print("---VISIT AGGREGATOR: Flat query denied, walking farmers and fields instead---")
            result = await self._aggregate_hierarchical(farmer_id, field_id, scoped_fields)
        else:
            visits = [
                v for v in outcome.visits
                if (not farmer_id or v.farmer_id == farmer_id)
                and (not field_id or v.field_id == field_id)
            ]
            result = AggregationResult(
                visits=visits,
                strategy=FLAT,
                fields={field_key(fid, f.id): f for fid, fs in scoped_fields.items() for f in fs},
            )

        for key, value in scoped_fields.items():
            result.fields_by_farmer.setdefault(key, value)

        result.visits = sort_newest_first(result.visits)
        if limit is not None:
            result.visits = result.visits[:limit]
        return result

    async def _aggregate_hierarchical(self, farmer_id: Optional[str], field_id: Optional[str],
                                      known_fields: Dict[str, List[FieldPlot]]) -> AggregationResult:
        all_farmers = await self.farmers.list_farmers()
        farmer_dict = {f.id: f for f in all_farmers}
        targets = [f for f in all_farmers if not farmer_id or f.id == farmer_id]
        if not targets:
            return AggregationResult(strategy=HIERARCHICAL, farmers=farmer_dict, farmers_listed=True)

        # Every farmer's fields are known before any visit list is requested.
        field_lists = await asyncio.gather(*(self._fields_of(f.id, known_fields) for f in targets))

        fields_by_farmer: Dict[str, List[FieldPlot]] = {}
        field_dict: Dict[str, FieldPlot] = {}
        pairs: List[Tuple[str, FieldPlot]] = []
        for farmer, farmer_fields in zip(targets, field_lists):
            fields_by_farmer[farmer.id] = farmer_fields
            for field in farmer_fields:
                field_dict[field_key(farmer.id, field.id)] = field
                if not field_id or field.id == field_id:
                    pairs.append((farmer.id, field))

        if field_id and not pairs:
            return AggregationResult(strategy=SCOPED_EMPTY, farmers=farmer_dict, fields=field_dict,
                                     fields_by_farmer=fields_by_farmer, farmers_listed=True)

        visit_lists = await asyncio.gather(
            *(self.visits.list_visits_by_field(fid, field.id) for fid, field in pairs)
        )

        aggregated: List[Visit] = []
        for (fid, field), visits in zip(pairs, visit_lists):
            for visit in visits:
                aggregated.append(visit.model_copy(update={"farmer_id": fid, "field_id": field.id}))

        return AggregationResult(
            visits=aggregated,
            strategy=HIERARCHICAL,
            farmers=farmer_dict,
            fields=field_dict,
            fields_by_farmer=fields_by_farmer,
            farmers_listed=True,
        )

    async def _fields_of(self, farmer_id: str, known_fields: Dict[str, List[FieldPlot]]) -> List[FieldPlot]:
        if farmer_id in known_fields:
            return known_fields[farmer_id]
        return await self.fields.list_fields_by_farmer(farmer_id)
