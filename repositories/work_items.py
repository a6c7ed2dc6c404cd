from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any, Callable, Iterable, Optional

from fulfillment.models import ApprovalStatus, OrderStatus, WorkItem

logger = logging.getLogger(__name__)

WorkItemPredicate = Callable[[WorkItem], bool]


class WorkItemStore(ABC):
    @abstractmethod
    async def get(self, item_id: str) -> Optional[WorkItem]:
        pass

    @abstractmethod
    async def list_by_predicate(self, predicate: WorkItemPredicate) -> list[WorkItem]:
        pass

    @abstractmethod
    async def update(self, item_id: str, **fields: Any) -> Optional[WorkItem]:
        """Merge fields into the stored item.
        Returns the updated item, or None when the id is unknown.
        """
        pass

    @abstractmethod
    async def all(self) -> list[WorkItem]:
        pass

    @abstractmethod
    async def replace_all(self, items: Iterable[WorkItem]) -> list[WorkItem]:
        pass

    @abstractmethod
    async def clear(self) -> None:
        pass


class InMemoryWorkItemStore(WorkItemStore):
    """Process-lifetime store. Insertion order is the batch order."""

    def __init__(self, items: Optional[Iterable[WorkItem]] = None) -> None:
        self._items: dict[str, WorkItem] = {}
        for item in items or []:
            self._items[item.id] = item

    async def get(self, item_id: str) -> Optional[WorkItem]:
        return self._items.get(item_id)

    async def list_by_predicate(self, predicate: WorkItemPredicate) -> list[WorkItem]:
        return [item for item in self._items.values() if predicate(item)]

    async def update(self, item_id: str, **fields: Any) -> Optional[WorkItem]:
        current = self._items.get(item_id)
        if current is None:
            return None
        fields.pop("id", None)
        merged = current.model_dump()
        merged.update(fields)
        updated = WorkItem.model_validate(merged)
        self._items[item_id] = updated
        return updated

    async def all(self) -> list[WorkItem]:
        return list(self._items.values())

    async def replace_all(self, items: Iterable[WorkItem]) -> list[WorkItem]:
        self._items = {item.id: item for item in items}
        logger.info("Work item store replaced with %s items", len(self._items))
        return list(self._items.values())

    async def clear(self) -> None:
        self._items.clear()


def is_pending(item: WorkItem) -> bool:
    return item.awaiting_decision


def is_approved_for_order(item: WorkItem) -> bool:
    return item.approval_status == ApprovalStatus.APPROVED and item.order_status in (
        None,
        OrderStatus.NOT_STARTED,
    )
