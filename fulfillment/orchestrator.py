from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Optional, Protocol

from app.utils.errors import NotFoundError, ValidationFailure
from integrations.browser.session import SessionFactory
from repositories.work_items import WorkItemPredicate, WorkItemStore, is_approved_for_order, is_pending

from .alternatives import AlternativeCache
from .checkout import CheckoutAutomaton
from .discovery import ProductDiscoveryEngine
from .models import (
    ApprovalStatus,
    BatchReport,
    CheckoutResult,
    DenialOutcome,
    DiscoveryResult,
    ItemOutcome,
    OrchestrationMode,
    OutcomeStatus,
    ProductReference,
    StepFlags,
    WorkItem,
)

logger = logging.getLogger(__name__)

NO_MATCH_MESSAGE = "No products found within budget"
NO_ALTERNATIVES_MESSAGE = "No more alternatives available within budget"


class RiddleWriter(Protocol):
    async def generate(self, recipient_name: str, gift_idea: str) -> str: ...


class CardMaker(Protocol):
    async def generate(self, recipient_name: str, riddle: str) -> str: ...


@dataclass
class StageReport:
    results: list[bool] = field(default_factory=list)
    error: Optional[str] = None


# A stage worker fills the step flags in place and reports every step it invoked
StageWorker = Callable[[WorkItem, StepFlags], Awaitable[StageReport]]


def classify(results: list[bool]) -> OutcomeStatus:
    if results and all(results):
        return OutcomeStatus.SUCCESS
    if any(results):
        return OutcomeStatus.PARTIAL
    return OutcomeStatus.FAILED


def discovery_error(result: DiscoveryResult) -> str:
    if result.degraded:
        return f"Product search failed: {result.error}"
    return NO_MATCH_MESSAGE


class OrchestrationEngine:
    """
    Drives work items through discovery, checkout, riddle and card stages.
    Items are processed one at a time; a failing item never stops the batch.
    """

    def __init__(
        self,
        store: WorkItemStore,
        sessions: SessionFactory,
        riddles: RiddleWriter,
        cards: CardMaker,
        alternatives: Optional[AlternativeCache] = None,
        discovery: Optional[ProductDiscoveryEngine] = None,
        checkout: Optional[CheckoutAutomaton] = None,
    ) -> None:
        self.store = store
        self.sessions = sessions
        self.riddles = riddles
        self.cards = cards
        self.alternatives = alternatives or AlternativeCache()
        self.discovery = discovery or ProductDiscoveryEngine(sessions)
        self.checkout = checkout or CheckoutAutomaton(sessions)

    # ------------------------------------------------------------------ batch

    async def run(self, mode: OrchestrationMode) -> BatchReport:
        mode = OrchestrationMode(mode)
        report = BatchReport(mode=mode)
        logger.info(f"[Orchestrate] Starting in mode: {mode.value}")

        try:
            if mode in (OrchestrationMode.DISCOVERY, OrchestrationMode.FULL):
                await self._run_pass(report, is_pending, self._discovery_worker, self._skip_discovery)

            if mode in (OrchestrationMode.ORDERS, OrchestrationMode.FULL):
                await self._run_pass(report, is_approved_for_order, self._orders_worker)

            if mode == OrchestrationMode.RIDDLES:
                await self._run_pass(
                    report, is_approved_for_order, self._riddles_worker, lambda item: bool(item.riddle)
                )

            if mode == OrchestrationMode.CARDS:
                await self._run_pass(
                    report, is_approved_for_order, self._cards_worker, lambda item: not item.ready_for_card
                )
        finally:
            await self._release_sessions()

        report.processed = len(report.results)
        logger.info(f"[Orchestrate] Finished {mode.value}: {report.processed} items processed")
        return report

    async def _run_pass(
        self,
        report: BatchReport,
        predicate: WorkItemPredicate,
        worker: StageWorker,
        skip: Optional[Callable[[WorkItem], bool]] = None,
    ) -> None:
        items = await self.store.list_by_predicate(predicate)
        logger.info(f"[Orchestrate] Found {len(items)} eligible items")

        for item in items:
            if skip is not None and skip(item):
                logger.info(f"[Orchestrate] Skipping {item.name}")
                continue
            report.results.append(await self._process_item(item, worker))

    async def _process_item(self, item: WorkItem, worker: StageWorker) -> ItemOutcome:
        steps = StepFlags()
        try:
            stage = await worker(item, steps)
        except Exception as e:
            logger.error(f"[Orchestrate] {item.name} ({item.id}) failed: {e}")
            return ItemOutcome(
                row_id=item.id,
                name=item.name,
                status=OutcomeStatus.FAILED,
                steps=steps,
                error=str(e) or e.__class__.__name__,
            )

        return ItemOutcome(
            row_id=item.id,
            name=item.name,
            status=classify(stage.results),
            steps=steps,
            error=stage.error,
        )

    async def _release_sessions(self) -> None:
        try:
            await self.sessions.close()
        except Exception as e:
            logger.warning(f"[Orchestrate] Failed to release browser sessions: {e}")

    @staticmethod
    def _skip_discovery(item: WorkItem) -> bool:
        return item.product is not None and item.approval_status == ApprovalStatus.PENDING

    # ----------------------------------------------------------------- workers

    async def _discovery_worker(self, item: WorkItem, steps: StepFlags) -> StageReport:
        result = await self._discover_stage(item, steps)
        if result.selected is None:
            return StageReport([False], discovery_error(result))
        return StageReport([True])

    async def _orders_worker(self, item: WorkItem, steps: StepFlags) -> StageReport:
        steps.approval = True
        steps.discovery = item.product is not None
        if item.product is None:
            raise ValidationFailure("No product link")

        checkout = await self._checkout_stage(item, steps)
        results = [checkout.success]

        # Manual-required carts still get their riddle and card
        riddle_ok = await self._riddle_stage(item, steps)
        results.append(riddle_ok)
        if riddle_ok:
            results.append(await self._card_stage(item, steps))

        error = None if checkout.success else checkout.message
        return StageReport(results, error)

    async def _riddles_worker(self, item: WorkItem, steps: StepFlags) -> StageReport:
        steps.discovery = steps.approval = True
        return StageReport([await self._riddle_stage(item, steps)])

    async def _cards_worker(self, item: WorkItem, steps: StepFlags) -> StageReport:
        steps.discovery = steps.approval = steps.riddle = True
        return StageReport([await self._card_stage(item, steps)])

    # ------------------------------------------------------------------ stages

    async def _fresh(self, item_id: str) -> WorkItem:
        item = await self.store.get(item_id)
        if item is None:
            raise NotFoundError()
        return item

    async def _update(self, item_id: str, **fields) -> WorkItem:
        updated = await self.store.update(item_id, **fields)
        if updated is None:
            raise NotFoundError()
        return updated

    async def _discover_stage(self, item: WorkItem, steps: StepFlags) -> DiscoveryResult:
        result = await self.discovery.discover(item.gift_idea, item.budget)
        if result.selected is None:
            return result

        await self._update(
            item.id,
            product=ProductReference.from_candidate(result.selected),
            approval_status=ApprovalStatus.PENDING,
        )
        self.alternatives.mark_offered(item.id, result.selected.url)
        self.alternatives.store(item.id, result.alternatives)
        steps.discovery = True
        return result

    async def _checkout_stage(self, item: WorkItem, steps: StepFlags) -> CheckoutResult:
        result = await self.checkout.attempt_checkout(item.product.url)
        await self._update(item.id, order_status=result.to_order_status())
        steps.order = result.success
        logger.info(f"[Orchestrate] Checkout for {item.name}: {result.status.value}")
        return result

    async def _riddle_stage(self, item: WorkItem, steps: StepFlags) -> bool:
        current = await self._fresh(item.id)
        if not current.riddle:
            riddle = await self.riddles.generate(current.name, current.gift_idea)
            await self._update(item.id, riddle=riddle)
        steps.riddle = True
        return True

    async def _card_stage(self, item: WorkItem, steps: StepFlags) -> bool:
        current = await self._fresh(item.id)
        if not current.riddle:
            raise ValidationFailure("No riddle found")
        if not current.card_link:
            card_url = await self.cards.generate(current.name, current.riddle)
            await self._update(item.id, card_link=card_url)
        steps.card = True
        return True

    # ------------------------------------------------------------- single item

    async def discover_item(self, item_id: str) -> DiscoveryResult:
        item = await self._fresh(item_id)
        logger.info(f"[Discover] Processing: {item.name} - {item.gift_idea} ({item.budget})")
        try:
            return await self._discover_stage(item, StepFlags())
        finally:
            await self._release_sessions()

    async def order_item(self, item_id: str) -> CheckoutResult:
        item = await self._fresh(item_id)
        if item.product is None:
            raise ValidationFailure("No product link found for this gift")
        if item.approval_status != ApprovalStatus.APPROVED:
            raise ValidationFailure("Gift is not approved for ordering")

        logger.info(f"[Order] Attempting checkout for: {item.name} - {item.product.url}")
        try:
            return await self._checkout_stage(item, StepFlags())
        finally:
            await self._release_sessions()

    async def riddle_item(self, item_id: str) -> str:
        item = await self._fresh(item_id)
        await self._riddle_stage(item, StepFlags())
        return (await self._fresh(item_id)).riddle

    async def card_item(self, item_id: str) -> str:
        item = await self._fresh(item_id)
        if not item.riddle:
            raise ValidationFailure("No riddle found. Generate riddle first.")
        await self._card_stage(item, StepFlags())
        return (await self._fresh(item_id)).card_link

    async def handle_denial(self, item_id: str, action: Optional[str] = None) -> DenialOutcome:
        item = await self._fresh(item_id)
        if action != "denied" and item.approval_status != ApprovalStatus.DENIED:
            return DenialOutcome(success=True, message="No action needed")

        logger.info(f"[Webhook] Processing denial for: {item.name}")
        rejected_url = item.product.url if item.product else ""
        if rejected_url:
            self.alternatives.mark_offered(item.id, rejected_url)

        result: Optional[DiscoveryResult] = None
        try:
            if self.alternatives.is_empty(item.id):
                result = await self.discovery.discover(item.gift_idea, item.budget)
                pool = ([result.selected] if result.selected else []) + result.alternatives
                self.alternatives.store(item.id, pool)
        finally:
            await self._release_sessions()

        chosen = self.alternatives.take_next(item.id, rejected_url)
        if chosen is None:
            message = discovery_error(result) if result is not None and result.degraded else NO_ALTERNATIVES_MESSAGE
            return DenialOutcome(success=False, message=message)

        await self._update(
            item.id,
            product=ProductReference.from_candidate(chosen),
            approval_status=ApprovalStatus.PENDING,
        )
        return DenialOutcome(
            success=True,
            product=chosen,
            remaining_alternatives=len(self.alternatives.pool(item.id)),
        )
