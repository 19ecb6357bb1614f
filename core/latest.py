# core/latest.py

from typing import Any, Awaitable, Tuple

class LatestRequestGuard:
    """
    Latest-request-wins: every request takes a ticket from a monotonic counter,
    and only the holder of the newest ticket may apply its result.
    """
    def __init__(self):
        self._sequence = 0

    @property
    def current(self) -> int:
        return self._sequence

    def begin(self) -> int:
        self._sequence += 1
        return self._sequence

    def is_latest(self, ticket: int) -> bool:
        return ticket == self._sequence

    async def run(self, awaitable: Awaitable[Any]) -> Tuple[bool, Any]:
        """Awaits `awaitable` under a fresh ticket; returns (still_latest, result)."""
        ticket = self.begin()
        result = await awaitable
        return self.is_latest(ticket), result
