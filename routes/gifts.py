from __future__ import annotations

import logging
from typing import Any, Optional

from fastapi import APIRouter, Depends, File, UploadFile
from fastapi.responses import PlainTextResponse
from pydantic import BaseModel, ValidationError
from starlette import status

from app.context import get_engine, get_store
from app.utils.errors import AppError, NotFoundError
from fulfillment.csv_io import CSVImportError, export_csv, parse_csv
from fulfillment.models import ApprovalStatus, OrderStatus, ProductReference, WorkItem
from fulfillment.orchestrator import OrchestrationEngine
from repositories.work_items import WorkItemStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/gifts", tags=["gifts"])


class GiftListResponse(BaseModel):
    gifts: list[WorkItem]
    count: int


class GiftImportResponse(BaseModel):
    success: bool = True
    imported: int
    gifts: list[WorkItem]


class GiftUpdateRequest(BaseModel):
    name: Optional[str] = None
    gift_idea: Optional[str] = None
    budget: Optional[float] = None
    product: Optional[ProductReference] = None
    approval_status: Optional[ApprovalStatus] = None
    order_status: Optional[OrderStatus] = None
    riddle: Optional[str] = None
    card_link: Optional[str] = None


@router.get("", response_model=GiftListResponse)
async def list_gifts(store: WorkItemStore = Depends(get_store)) -> GiftListResponse:
    gifts = await store.all()
    return GiftListResponse(gifts=gifts, count=len(gifts))


@router.post("/import", response_model=GiftImportResponse)
async def import_gifts(
    file: UploadFile = File(...),
    store: WorkItemStore = Depends(get_store),
    engine: OrchestrationEngine = Depends(get_engine),
) -> GiftImportResponse:
    raw = await file.read()
    try:
        items = parse_csv(raw.decode("utf-8-sig"))
    except (CSVImportError, UnicodeDecodeError) as e:
        logger.warning(f"CSV import error: {e}")
        raise AppError("csv_import_error", str(e), status.HTTP_400_BAD_REQUEST)

    gifts = await store.replace_all(items)
    engine.alternatives.reset()
    return GiftImportResponse(imported=len(gifts), gifts=gifts)


@router.delete("")
async def clear_gifts(
    store: WorkItemStore = Depends(get_store),
    engine: OrchestrationEngine = Depends(get_engine),
) -> dict:
    await store.clear()
    engine.alternatives.reset()
    return {"success": True}


@router.get("/export", response_class=PlainTextResponse)
async def export_gifts(store: WorkItemStore = Depends(get_store)) -> PlainTextResponse:
    return PlainTextResponse(
        export_csv(await store.all()),
        media_type="text/csv",
        headers={"Content-Disposition": 'attachment; filename="gifts-export.csv"'},
    )


@router.get("/{gift_id}", response_model=WorkItem)
async def get_gift(gift_id: str, store: WorkItemStore = Depends(get_store)) -> WorkItem:
    gift = await store.get(gift_id)
    if gift is None:
        raise NotFoundError()
    return gift


@router.patch("/{gift_id}", response_model=WorkItem)
async def update_gift(
    gift_id: str,
    payload: GiftUpdateRequest,
    store: WorkItemStore = Depends(get_store),
) -> WorkItem:
    updates: dict[str, Any] = payload.model_dump(exclude_unset=True)
    try:
        gift = await store.update(gift_id, **updates)
    except ValidationError as e:
        raise AppError(
            "validation_error",
            "Invalid gift update",
            status.HTTP_422_UNPROCESSABLE_ENTITY,
            {"details": [{"loc": list(err["loc"]), "msg": err["msg"]} for err in e.errors()]},
        )
    if gift is None:
        raise NotFoundError()
    return gift
