"""Cooperative cancellation for analysis requests."""

import asyncio

from meal_analyzer.core.exceptions import AnalysisCancelledError


class CancellationToken:
    """
    A one-shot cancellation flag shared by every step of one analysis.

    Once cancelled it stays cancelled. Providers and the analysis service
    check it between network calls; nothing is interrupted mid-flight.
    """

    def __init__(self) -> None:
        self._event = asyncio.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def is_cancelled(self) -> bool:
        return self._event.is_set()

    async def wait(self) -> None:
        """Block until the token is cancelled."""
        await self._event.wait()

    def raise_if_cancelled(self, analysis_kind: str | None = None) -> None:
        """Raise AnalysisCancelledError if the token has been cancelled."""
        if self._event.is_set():
            raise AnalysisCancelledError(analysis_kind)


def raise_if_cancelled(token: CancellationToken | None, analysis_kind: str | None = None) -> None:
    """Same as CancellationToken.raise_if_cancelled, tolerating a missing token."""
    if token is not None:
        token.raise_if_cancelled(analysis_kind)
