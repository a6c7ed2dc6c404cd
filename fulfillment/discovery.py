from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Optional
from urllib.parse import quote_plus, unquote, urljoin

from bs4 import BeautifulSoup, Tag

from app.core.logic_config import DiscoveryProbes, logic_config
from integrations.browser.session import RendererSession, SessionFactory

from .models import DiscoveryResult, ProductCandidate

logger = logging.getLogger(__name__)

_REDIRECT_RE = re.compile(r"[?&]url=([^&]+)")
_NUMBER_RE = re.compile(r"\d*\.?\d+")


@dataclass
class RawProduct:
    title: str
    price: str
    url: str
    image_url: str


def parse_price(value: str) -> Optional[float]:
    """'$1,299.99' -> 1299.99. Returns None when nothing numeric is left."""
    if not isinstance(value, str):
        return None
    cleaned = re.sub(r"[^0-9.,]", "", value).replace(",", "")
    match = _NUMBER_RE.match(cleaned)
    if not match:
        return None
    try:
        return float(match.group(0))
    except ValueError:
        return None


def _first_match(card: Tag, probes: list[str]) -> Optional[Tag]:
    for probe in probes:
        try:
            found = card.select_one(probe)
        except Exception as e:
            logger.debug(f"Probe {probe!r} is not usable: {e}")
            continue
        if found is not None:
            return found
    return None


def _unwrap_link(href: str, base_url: str) -> str:
    match = _REDIRECT_RE.search(href)
    if match:
        return unquote(match.group(1))
    return urljoin(base_url, href)


def _find_cards(soup: BeautifulSoup, probes: list[str]) -> list[Tag]:
    cards: list[Tag] = []
    seen: set[int] = set()
    for probe in probes:
        try:
            matches = soup.select(probe)
        except Exception as e:
            logger.debug(f"Card probe {probe!r} is not usable: {e}")
            continue
        for card in matches:
            if id(card) in seen:
                continue
            seen.add(id(card))
            cards.append(card)
    return cards


def extract_raw_products(html: str, probes: DiscoveryProbes, base_url: str = "") -> list[RawProduct]:
    soup = BeautifulSoup(html or "", "html.parser")
    results: list[RawProduct] = []

    for card in _find_cards(soup, probes.card):
        title_el = _first_match(card, probes.title)
        price_el = _first_match(card, probes.price)
        link_el = _first_match(card, probes.link)
        image_el = _first_match(card, probes.image)

        title = title_el.get_text(strip=True) if title_el else ""
        price = ""
        if price_el is not None:
            price = price_el.get_text(strip=True) or str(price_el.get("data-price") or "")
        href = str(link_el.get("href") or "") if link_el is not None else ""
        image_url = ""
        if image_el is not None:
            image_url = str(image_el.get("src") or image_el.get("data-src") or "")

        if not (title and price and href):
            continue

        results.append(
            RawProduct(
                title=title,
                price=price,
                url=_unwrap_link(href, base_url),
                image_url=image_url,
            )
        )

    return results


def to_candidates(raw_products: list[RawProduct], probes: DiscoveryProbes) -> list[ProductCandidate]:
    candidates: list[ProductCandidate] = []
    seen_urls: set[str] = set()
    for raw in raw_products:
        price = parse_price(raw.price)
        if price is None or price <= 0:
            continue
        if raw.url in seen_urls:
            continue
        seen_urls.add(raw.url)
        candidates.append(
            ProductCandidate(
                title=raw.title,
                price=price,
                url=raw.url,
                image_url=raw.image_url or probes.placeholder_image_url,
                source=probes.source_tag,
            )
        )
    return candidates


def rank_within_budget(
    candidates: list[ProductCandidate], budget: float
) -> tuple[Optional[ProductCandidate], list[ProductCandidate]]:
    """Highest price that still fits the budget wins; the rest stay in price-descending order."""
    within_budget = [c for c in candidates if c.price <= budget]
    within_budget.sort(key=lambda c: c.price, reverse=True)
    if not within_budget:
        return None, []
    return within_budget[0], within_budget[1:]


class ProductDiscoveryEngine:
    def __init__(self, sessions: SessionFactory, probes: Optional[DiscoveryProbes] = None) -> None:
        self.sessions = sessions
        self.probes = probes or logic_config.discovery

    def search_url(self, query: str) -> str:
        return self.probes.search_url_template.format(query=quote_plus(query))

    async def _scrape(self, session: RendererSession, query: str) -> list[ProductCandidate]:
        url = self.search_url(query)
        await session.navigate(url, timeout_ms=self.probes.navigation_timeout_ms)
        # Result grids render late; a miss here just means fewer cards
        await session.wait_for_any(self.probes.card, timeout_ms=self.probes.results_wait_timeout_ms)
        html = await session.content()
        raw_products = extract_raw_products(html, self.probes, base_url=url)
        return to_candidates(raw_products, self.probes)

    async def discover(self, query: str, budget: float) -> DiscoveryResult:
        logger.info(f"[Search] Searching for: {query!r} with budget: {budget}")
        session: Optional[RendererSession] = None
        try:
            session = await self.sessions.acquire()
            candidates = await self._scrape(session, query)
        except Exception as e:
            logger.error(f"[Search] Error during product search: {e}")
            return DiscoveryResult(query=query, budget=budget, degraded=True, error=str(e))
        finally:
            if session is not None:
                try:
                    await session.close()
                except Exception as e:
                    logger.warning(f"[Search] Failed to close session: {e}")

        logger.info(f"[Search] Found {len(candidates)} total products")
        selected, alternatives = rank_within_budget(candidates, budget)
        logger.info(f"[Search] {len(alternatives) + (1 if selected else 0)} products within budget")
        return DiscoveryResult(query=query, budget=budget, selected=selected, alternatives=alternatives)
