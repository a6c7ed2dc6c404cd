from __future__ import annotations

import csv
import io
import logging
from typing import Iterable, Optional

from .models import WorkItem

logger = logging.getLogger(__name__)

NAME_HEADERS = {"name"}
GIFT_IDEA_HEADERS = {"gift idea", "giftidea", "gift"}
BUDGET_HEADERS = {"budget", "max budget", "price"}

EXPORT_HEADERS = [
    "Name",
    "Gift Idea",
    "Budget",
    "Product Link",
    "Product Image",
    "Approval Status",
    "Order Status",
    "Riddle",
    "Card Link",
]


class CSVImportError(ValueError):
    pass


def _column(header: list[str], accepted: set[str]) -> Optional[int]:
    for index, value in enumerate(header):
        if value in accepted:
            return index
    return None


def _parse_budget(value: str) -> float:
    cleaned = value.strip().replace("$", "").replace(",", "")
    try:
        return float(cleaned) if cleaned else 0.0
    except ValueError:
        return 0.0


def parse_csv(content: str) -> list[WorkItem]:
    """Turns a `Name, Gift Idea, Budget` sheet into fresh work items.
    Rows missing a field or with a non-positive budget are skipped.
    """
    rows = [row for row in csv.reader(io.StringIO(content.strip())) if any(cell.strip() for cell in row)]
    if len(rows) < 2:
        raise CSVImportError("CSV must have a header row and at least one data row")

    header = [h.strip().lower() for h in rows[0]]
    name_idx = _column(header, NAME_HEADERS)
    idea_idx = _column(header, GIFT_IDEA_HEADERS)
    budget_idx = _column(header, BUDGET_HEADERS)

    if name_idx is None or idea_idx is None or budget_idx is None:
        raise CSVImportError(
            "CSV must have columns: Name, Gift Idea, Budget. Found: " + ", ".join(header)
        )

    items: list[WorkItem] = []
    for line_no, row in enumerate(rows[1:], start=2):
        def cell(index: int) -> str:
            return row[index].strip() if index < len(row) else ""

        name = cell(name_idx)
        gift_idea = cell(idea_idx)
        budget = _parse_budget(cell(budget_idx))

        if not name or not gift_idea or budget <= 0:
            logger.warning(f"Skipping row {line_no}: missing required fields")
            continue

        items.append(WorkItem(name=name, gift_idea=gift_idea, budget=budget))

    return items


def _format_budget(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else str(value)


def export_csv(items: Iterable[WorkItem]) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(EXPORT_HEADERS)
    for item in items:
        writer.writerow(
            [
                item.name,
                item.gift_idea,
                _format_budget(item.budget),
                item.product.url if item.product else "",
                (item.product.image_url or "") if item.product else "",
                item.approval_status.value if item.approval_status else "",
                item.order_status.value if item.order_status else "",
                item.riddle or "",
                item.card_link or "",
            ]
        )
    return buffer.getvalue()
