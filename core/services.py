# core/services.py

from contextlib import asynccontextmanager
from datetime import tzinfo
from typing import Optional

from .dashboard import Dashboard
from .farmer_manager import FarmerManager
from .field_manager import FieldManager
from .recommendation_manager import RecommendationManager
from .reference_resolver import ReferenceResolver
from .store import DocumentStore
from .visit_aggregator import VisitAggregator
from .visit_manager import VisitManager
from .visits_page import VisitsPage

class FieldVisitServices:
    """Every manager and read-path component for one signed-in account, sharing one store."""

    def __init__(self, store: DocumentStore, owner_uid: str):
        self.store = store
        self.owner_uid = owner_uid
        self.farmers = FarmerManager(store, owner_uid)
        self.fields = FieldManager(store, owner_uid)
        self.visits = VisitManager(store, owner_uid)
        self.recommendations = RecommendationManager(store, owner_uid)
        self.aggregator = VisitAggregator(self.farmers, self.fields, self.visits)
        self.resolver = ReferenceResolver(self.farmers, self.fields, self.recommendations)

    def visits_page(self, page_size: Optional[int] = None, tz: Optional[tzinfo] = None) -> VisitsPage:
        return VisitsPage(self.aggregator, self.resolver, page_size=page_size, tz=tz)

    def dashboard(self, limit: Optional[int] = None) -> Dashboard:
        return Dashboard(self.aggregator, self.resolver, limit=limit)

@asynccontextmanager
async def open_services(owner_uid: str, uri: Optional[str] = None):
    """The async Mongo client is bound to the running event loop, so open one per loop."""
    store = DocumentStore(uri)
    try:
        yield FieldVisitServices(store, owner_uid)
    finally:
        await store.close()
