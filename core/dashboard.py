# core/dashboard.py

from typing import List, Optional

from pydantic import BaseModel

from .config import settings
from .reference_resolver import ReferenceResolver
from .visit_aggregator import VisitAggregator
from .models import VisitView

class DashboardState(BaseModel):
    recent: List[VisitView] = []
    loading: bool = False
    error: Optional[str] = None

class Dashboard:
    """The home screen's "recent visits" summary."""

    def __init__(self, aggregator: VisitAggregator, resolver: ReferenceResolver,
                 limit: Optional[int] = None):
        self.aggregator = aggregator
        self.resolver = resolver
        self.limit = limit or settings.recent_visits_limit
        self.state = DashboardState()

    async def load_recent(self) -> DashboardState:
        self.state = DashboardState(loading=True)
        try:
            result = await self.aggregator.aggregate(limit=self.limit * 2)
            references = await self.resolver.resolve(
                result.visits, result.farmers, result.fields, include_recommendations=False
            )
            recent = references.denormalize(result.visits[:self.limit])
        except Exception as e:
            print(f"---DASHBOARD: loadRecent failed: {e}---")
            self.state = DashboardState(error=str(e) or "Visits could not be loaded.")
            return self.state

        self.state = DashboardState(recent=recent)
        return self.state
