from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from starlette import status

from app.context import get_engine
from fulfillment.models import (
    CheckoutStatus,
    ItemOutcome,
    OrchestrationMode,
    ProductCandidate,
)
from fulfillment.orchestrator import OrchestrationEngine, discovery_error

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1", tags=["fulfillment"])


class OrchestrateRequest(BaseModel):
    mode: OrchestrationMode = OrchestrationMode.DISCOVERY


class OrchestrateResponse(BaseModel):
    success: bool = True
    mode: OrchestrationMode
    processed: int
    results: list[ItemOutcome]


class GiftRequest(BaseModel):
    gift_id: str


class WebhookRequest(GiftRequest):
    action: Optional[str] = None


class DiscoverResponse(BaseModel):
    success: bool
    gift_id: str
    product: Optional[ProductCandidate] = None
    alternative_count: int = 0
    message: Optional[str] = None


class OrderResponse(BaseModel):
    success: bool
    gift_id: str
    status: CheckoutStatus
    message: str


class RiddleResponse(BaseModel):
    success: bool = True
    gift_id: str
    riddle: str


class CardResponse(BaseModel):
    success: bool = True
    gift_id: str
    card_url: str


class WebhookResponse(BaseModel):
    success: bool
    action: Optional[str] = None
    product: Optional[ProductCandidate] = None
    remaining_alternatives: Optional[int] = None
    message: Optional[str] = None


@router.post(
    "/orchestrate",
    response_model=OrchestrateResponse,
    status_code=status.HTTP_200_OK,
    summary="Run one orchestration batch",
)
async def orchestrate(
    payload: OrchestrateRequest,
    engine: OrchestrationEngine = Depends(get_engine),
) -> OrchestrateResponse:
    report = await engine.run(payload.mode)
    return OrchestrateResponse(mode=report.mode, processed=report.processed, results=report.results)


@router.post("/discover", response_model=DiscoverResponse)
async def discover(payload: GiftRequest, engine: OrchestrationEngine = Depends(get_engine)) -> DiscoverResponse:
    result = await engine.discover_item(payload.gift_id)
    if result.selected is None:
        return DiscoverResponse(success=False, gift_id=payload.gift_id, message=discovery_error(result))
    return DiscoverResponse(
        success=True,
        gift_id=payload.gift_id,
        product=result.selected,
        alternative_count=len(result.alternatives),
    )


@router.post("/order", response_model=OrderResponse)
async def order(payload: GiftRequest, engine: OrchestrationEngine = Depends(get_engine)) -> OrderResponse:
    result = await engine.order_item(payload.gift_id)
    return OrderResponse(
        success=result.success,
        gift_id=payload.gift_id,
        status=result.status,
        message=result.message,
    )


@router.post("/riddle", response_model=RiddleResponse)
async def riddle(payload: GiftRequest, engine: OrchestrationEngine = Depends(get_engine)) -> RiddleResponse:
    text = await engine.riddle_item(payload.gift_id)
    return RiddleResponse(gift_id=payload.gift_id, riddle=text)


@router.post("/card", response_model=CardResponse)
async def card(payload: GiftRequest, engine: OrchestrationEngine = Depends(get_engine)) -> CardResponse:
    card_url = await engine.card_item(payload.gift_id)
    return CardResponse(gift_id=payload.gift_id, card_url=card_url)


@router.post("/webhook", response_model=WebhookResponse)
async def webhook(payload: WebhookRequest, engine: OrchestrationEngine = Depends(get_engine)) -> WebhookResponse:
    outcome = await engine.handle_denial(payload.gift_id, payload.action)
    if outcome.product is None:
        return WebhookResponse(success=outcome.success, message=outcome.message)
    return WebhookResponse(
        success=True,
        action="suggested_alternative",
        product=outcome.product,
        remaining_alternatives=outcome.remaining_alternatives,
    )
