"""
Checkout state machine.

Navigate -> WallCheck -> AddToCart -> CartSettle -> ProceedToCheckout -> AuthCheck.
Every path ends before payment: the best outcome is a cart that a human finishes.
"""

from __future__ import annotations

import asyncio
import logging
from enum import Enum
from typing import Optional, Sequence

from app.core.logic_config import CheckoutProbes, logic_config
from integrations.browser.session import RendererSession, SessionFactory

from .models import CheckoutResult, CheckoutStatus

logger = logging.getLogger(__name__)


class CheckoutState(str, Enum):
    NAVIGATE = "navigate"
    WALL_CHECK = "wall_check"
    ADD_TO_CART = "add_to_cart"
    CART_SETTLE = "cart_settle"
    PROCEED_TO_CHECKOUT = "proceed_to_checkout"
    AUTH_CHECK = "auth_check"


def _contains_any(text: str, markers: Sequence[str]) -> bool:
    return any(marker in text for marker in markers)


def _manual(message: str) -> CheckoutResult:
    return CheckoutResult(success=False, status=CheckoutStatus.MANUAL_REQUIRED, message=message)


class CheckoutAutomaton:
    def __init__(self, sessions: SessionFactory, probes: Optional[CheckoutProbes] = None) -> None:
        self.sessions = sessions
        self.probes = probes or logic_config.checkout

    async def attempt_checkout(self, product_url: str) -> CheckoutResult:
        session: Optional[RendererSession] = None
        state = CheckoutState.NAVIGATE
        try:
            session = await self.sessions.acquire()
            logger.info(f"[Checkout] Navigating to: {product_url}")
            await session.navigate(product_url, timeout_ms=self.probes.navigation_timeout_ms)

            state = CheckoutState.WALL_CHECK
            if _contains_any(await session.content(), self.probes.wall_markers):
                logger.info("[Checkout] Login wall or CAPTCHA detected")
                return _manual("Login or verification required. Please complete purchase manually.")

            state = CheckoutState.ADD_TO_CART
            button = await session.query_selector_first(self.probes.add_to_cart)
            if button is None:
                logger.info("[Checkout] Could not find Add to Cart button")
                return _manual(f"Could not automate purchase. Please buy manually: {product_url}")
            await button.click()

            state = CheckoutState.CART_SETTLE
            await asyncio.sleep(self.probes.cart_settle_seconds)

            state = CheckoutState.PROCEED_TO_CHECKOUT
            button = await session.query_selector_first(self.probes.proceed_to_checkout)
            if button is None:
                return _manual("Added to cart but could not proceed to checkout automatically.")
            await button.click()

            state = CheckoutState.AUTH_CHECK
            await asyncio.sleep(self.probes.auth_settle_seconds)
            if _contains_any(await session.content(), self.probes.auth_markers):
                return _manual("Checkout requires authentication or payment details. Please complete manually.")

            # Placing the order needs stored payment details, which are out of reach here
            return _manual("Cart ready for checkout. Please complete payment manually.")
        except Exception as e:
            logger.error(f"[Checkout] Error during checkout at {state.value}: {e}")
            return CheckoutResult(
                success=False,
                status=CheckoutStatus.FAILED,
                message=f"Checkout failed: {e}",
            )
        finally:
            if session is not None:
                try:
                    await session.close()
                except Exception as e:
                    logger.warning(f"[Checkout] Failed to close session: {e}")
