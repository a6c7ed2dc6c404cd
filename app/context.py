from __future__ import annotations

from dataclasses import dataclass

from fastapi import Request

from app.config import get_settings
from app.services.riddles import RiddleGenerator
from fulfillment.orchestrator import OrchestrationEngine
from integrations.browser.playwright_session import PlaywrightSessionFactory
from integrations.gamma.client import GammaClient
from repositories.work_items import InMemoryWorkItemStore, WorkItemStore


@dataclass
class FulfillmentContext:
    store: WorkItemStore
    engine: OrchestrationEngine


def init_context() -> FulfillmentContext:
    store = InMemoryWorkItemStore()
    engine = OrchestrationEngine(
        store=store,
        sessions=PlaywrightSessionFactory(get_settings()),
        riddles=RiddleGenerator(),
        cards=GammaClient(),
    )
    return FulfillmentContext(store=store, engine=engine)


async def get_store(request: Request) -> WorkItemStore:
    return request.app.state.fulfillment.store


async def get_engine(request: Request) -> OrchestrationEngine:
    return request.app.state.fulfillment.engine
