from __future__ import annotations

import abc
from typing import Optional, Sequence


class ElementHandle(abc.ABC):
    @abc.abstractmethod
    async def click(self) -> None:
        pass


class RendererSession(abc.ABC):
    """One controllable browser page."""

    @abc.abstractmethod
    async def navigate(self, url: str, timeout_ms: int = 30000) -> None:
        pass

    @abc.abstractmethod
    async def content(self) -> str:
        pass

    @abc.abstractmethod
    async def query_selector_first(self, patterns: Sequence[str]) -> Optional[ElementHandle]:
        """Returns the element matched by the first pattern that matches anything.
        A pattern whose query raises is skipped.
        """
        pass

    @abc.abstractmethod
    async def wait_for_any(self, patterns: Sequence[str], timeout_ms: int) -> bool:
        """Waits until any pattern matches. Returns False on timeout instead of raising."""
        pass

    @abc.abstractmethod
    async def close(self) -> None:
        pass


class SessionFactory(abc.ABC):
    @abc.abstractmethod
    async def acquire(self) -> RendererSession:
        pass

    @abc.abstractmethod
    async def close(self) -> None:
        """Releases every browser resource the factory still holds."""
        pass
