import pytest
from pydantic import ValidationError

from fulfillment.models import ApprovalStatus, OrderStatus, ProductReference, WorkItem
from repositories.work_items import InMemoryWorkItemStore, is_approved_for_order, is_pending


def _item(name: str, **fields) -> WorkItem:
    return WorkItem(name=name, gift_idea="Mug", budget=25, **fields)


@pytest.mark.asyncio
async def test_update_merges_fields_and_keeps_id():
    item = _item("Alice")
    store = InMemoryWorkItemStore([item])

    updated = await store.update(
        item.id,
        id="gift_other",
        product=ProductReference(url="https://shop/mug"),
        approval_status=ApprovalStatus.PENDING,
    )

    assert updated.id == item.id
    assert updated.product.url == "https://shop/mug"
    assert updated.name == "Alice"
    assert (await store.get(item.id)).approval_status == ApprovalStatus.PENDING


@pytest.mark.asyncio
async def test_update_unknown_id_returns_none():
    store = InMemoryWorkItemStore()
    assert await store.update("gift_missing", riddle="x") is None


@pytest.mark.asyncio
async def test_update_rejects_invalid_values():
    item = _item("Alice")
    store = InMemoryWorkItemStore([item])

    with pytest.raises(ValidationError):
        await store.update(item.id, budget=-5)

    assert (await store.get(item.id)).budget == 25


@pytest.mark.asyncio
async def test_predicates_and_insertion_order():
    fresh = _item("Fresh")
    pending = _item("Pending", approval_status=ApprovalStatus.PENDING)
    approved = _item("Approved", approval_status=ApprovalStatus.APPROVED)
    ordered = _item("Ordered", approval_status=ApprovalStatus.APPROVED, order_status=OrderStatus.ORDERED)
    denied = _item("Denied", approval_status=ApprovalStatus.DENIED)
    store = InMemoryWorkItemStore([fresh, pending, approved, ordered, denied])

    assert [i.name for i in await store.list_by_predicate(is_pending)] == ["Fresh", "Pending"]
    assert [i.name for i in await store.list_by_predicate(is_approved_for_order)] == ["Approved"]


@pytest.mark.asyncio
async def test_replace_all_and_clear():
    store = InMemoryWorkItemStore([_item("Old")])

    await store.replace_all([_item("A"), _item("B")])
    assert [i.name for i in await store.all()] == ["A", "B"]

    await store.clear()
    assert await store.all() == []
