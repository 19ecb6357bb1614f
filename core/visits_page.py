# core/visits_page.py

from datetime import tzinfo
from typing import Dict, List, Optional, Tuple

from pydantic import BaseModel

from .exporter import build_csv, export_page_to_file
from .latest import LatestRequestGuard
from .models import Farmer, FieldPlot, VisitView
from .pager import Pager
from .reference_resolver import ReferenceResolver, ResolvedReferences
from .visit_aggregator import VisitAggregator
from .visit_filters import VisitFilters, filter_visits

DEFAULT_LOAD_ERROR = "Visits could not be loaded."

class VisitsPageState(BaseModel):
    """What the view renders: the filtered visits, whether a load is running, and the last load error."""
    visits: List[VisitView] = []
    loading: bool = False
    error: Optional[str] = None

class VisitsPage:
    """
    The visits screen without its widgets: scope filters reload from the store,
    date and search filters re-run over what is already loaded, and every change
    sends the pager back to the first page.
    """

    def __init__(self, aggregator: VisitAggregator, resolver: ReferenceResolver,
                 page_size: Optional[int] = None, tz: Optional[tzinfo] = None):
        self.aggregator = aggregator
        self.resolver = resolver
        self.tz = tz
        self.filters = VisitFilters()
        self.state = VisitsPageState()
        self.references = ResolvedReferences()
        self.farmers: List[Farmer] = []
        self.fields_by_farmer: Dict[str, List[FieldPlot]] = {}
        self.pager: Pager[VisitView] = Pager(page_size)
        self._loaded: List[VisitView] = []
        self._guard = LatestRequestGuard()

    # --- Loading ---

    async def load(self) -> VisitsPageState:
        ticket = self._guard.begin()
        self.state.loading = True
        self.state.error = None
        try:
            return await self._load_cycle(ticket)
        except Exception as e:
            if self._guard.is_latest(ticket):
                print(f"---VISITS PAGE: Load failed: {e}---")
                self._loaded = []
                self.references = ResolvedReferences()
                self.pager.set_items([])
                self.state = VisitsPageState(error=str(e) or DEFAULT_LOAD_ERROR)
            return self.state
        finally:
            # A newer cycle owns the flag once this one is stale.
            if self._guard.is_latest(ticket):
                self.state.loading = False

    async def _load_cycle(self, ticket: int) -> VisitsPageState:
        farmer_id, field_id = self.filters.farmer_id, self.filters.field_id
        result = await self.aggregator.aggregate(farmer_id=farmer_id, field_id=field_id)
        known_farmers = result.farmers if result.farmers_listed else await self._list_farmers()
        references = await self.resolver.resolve(result.visits, known_farmers, result.fields)

        if not self._guard.is_latest(ticket):
            print("---VISITS PAGE: Discarding a stale load---")
            return self.state

        self.references = references
        self.farmers = list(known_farmers.values())
        self.fields_by_farmer = result.fields_by_farmer
        self._loaded = references.denormalize(result.visits)

        if self._drop_missing_field_scope():
            return await self.load()

        self._apply_filters()
        return self.state

    async def _list_farmers(self) -> Dict[str, Farmer]:
        # The flat path only meets farmers through their visits; the filter lists all of them.
        return {f.id: f for f in await self.aggregator.farmers.list_farmers()}

    def _drop_missing_field_scope(self) -> bool:
        """Clears a field scope whose field is gone from the scoped farmer's known fields."""
        farmer_id, field_id = self.filters.farmer_id, self.filters.field_id
        if not farmer_id or not field_id:
            return False
        known = self.fields_by_farmer.get(farmer_id)
        if known is None or any(f.id == field_id for f in known):
            return False
        print(f"---VISITS PAGE: Field {field_id} no longer exists, clearing field filter---")
        self.filters.field_id = None
        return True

    def _apply_filters(self):
        self.state.visits = filter_visits(self._loaded, self.filters, self.tz)
        self.pager.set_items(self.state.visits)

    # --- Filters ---

    async def set_farmer_filter(self, farmer_id: Optional[str]) -> VisitsPageState:
        self.filters.farmer_id = farmer_id or None
        self.filters.field_id = None
        return await self.load()

    async def set_field_filter(self, field_id: Optional[str]) -> VisitsPageState:
        self.filters.field_id = field_id or None
        return await self.load()

    def set_date_from(self, value: Optional[str]):
        self.filters.date_from = value or None
        if self.filters.date_to and value and value > self.filters.date_to:
            self.filters.date_to = value
        self._apply_filters()

    def set_date_to(self, value: Optional[str]):
        self.filters.date_to = value or None
        if self.filters.date_from and value and value < self.filters.date_from:
            self.filters.date_from = value
        self._apply_filters()

    def set_search(self, term: Optional[str]):
        self.filters.search = term or ""
        self._apply_filters()

    # --- Options for the filter widgets ---

    def farmer_options(self) -> List[Tuple[str, str]]:
        return [(farmer.id, farmer.name or farmer.id) for farmer in self.farmers]

    def field_options(self) -> List[Tuple[str, str]]:
        if not self.filters.farmer_id:
            return []
        return [(f.id, f.type or f.id) for f in self.fields_by_farmer.get(self.filters.farmer_id, [])]

    # --- Paging ---

    @property
    def page_index(self) -> int:
        return self.pager.index

    @property
    def has_next(self) -> bool:
        return self.pager.has_next

    @property
    def page_items(self) -> List[VisitView]:
        return self.pager.items

    def next(self) -> bool:
        return self.pager.next()

    def prev(self) -> bool:
        return self.pager.prev()

    # --- Export ---

    def export_csv(self) -> Optional[str]:
        return build_csv(self.page_items, self.tz)

    def export(self, directory: Optional[str] = None) -> Optional[str]:
        """Exports only the visible page; returns the written path, or None for an empty page."""
        return export_page_to_file(self.page_items, directory, self.tz)
