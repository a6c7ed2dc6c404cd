import pytest

from conftest import FakeSession, FakeSessionFactory
from fulfillment.checkout import CheckoutAutomaton
from fulfillment.models import CheckoutStatus, OrderStatus

PRODUCT_URL = "https://shop.example/slippers"
ADD_TO_CART = 'button[id*="add-to-cart"]'
PROCEED = 'a[href*="checkout"]'


async def _attempt(page: FakeSession, probes):
    automaton = CheckoutAutomaton(FakeSessionFactory(page), probes)
    return await automaton.attempt_checkout(PRODUCT_URL)


@pytest.mark.asyncio
async def test_login_wall_requires_manual_purchase(checkout_probes):
    page = FakeSession(html="<p>Please Sign In to continue</p>", present=[ADD_TO_CART])

    result = await _attempt(page, checkout_probes)

    assert result.status == CheckoutStatus.MANUAL_REQUIRED
    assert not result.success
    assert result.message == "Login or verification required. Please complete purchase manually."
    assert page.clicked == []
    assert page.close_count == 1


@pytest.mark.asyncio
async def test_missing_add_to_cart_mentions_product_url(checkout_probes):
    page = FakeSession(html="<p>A product</p>")

    result = await _attempt(page, checkout_probes)

    assert result.status == CheckoutStatus.MANUAL_REQUIRED
    assert PRODUCT_URL in result.message
    assert page.close_count == 1


@pytest.mark.asyncio
async def test_added_to_cart_without_checkout_button(checkout_probes):
    page = FakeSession(html="<p>A product</p>", present=[ADD_TO_CART])

    result = await _attempt(page, checkout_probes)

    assert result.status == CheckoutStatus.MANUAL_REQUIRED
    assert result.message == "Added to cart but could not proceed to checkout automatically."
    assert page.clicked == [ADD_TO_CART]
    assert page.close_count == 1


@pytest.mark.asyncio
async def test_checkout_page_asking_for_payment(checkout_probes):
    page = FakeSession(
        html="<p>A product</p>",
        present=[ADD_TO_CART, PROCEED],
        content_after_click={PROCEED: "<h1>Payment</h1>"},
    )

    result = await _attempt(page, checkout_probes)

    assert result.status == CheckoutStatus.MANUAL_REQUIRED
    assert "authentication or payment" in result.message
    assert page.clicked == [ADD_TO_CART, PROCEED]
    assert page.close_count == 1


@pytest.mark.asyncio
async def test_cart_ready_is_best_outcome(checkout_probes):
    page = FakeSession(html="<p>A product</p>", present=[ADD_TO_CART, PROCEED])

    result = await _attempt(page, checkout_probes)

    assert result.status == CheckoutStatus.MANUAL_REQUIRED
    assert result.message == "Cart ready for checkout. Please complete payment manually."
    assert result.acceptable
    assert result.to_order_status() == OrderStatus.MANUAL_REQUIRED
    assert page.close_count == 1


@pytest.mark.asyncio
async def test_navigation_error_fails(checkout_probes):
    page = FakeSession(fail_on_navigate=True)

    result = await _attempt(page, checkout_probes)

    assert result.status == CheckoutStatus.FAILED
    assert result.message.startswith("Checkout failed:")
    assert not result.acceptable
    assert result.to_order_status() == OrderStatus.FAILED
    assert page.close_count == 1


@pytest.mark.asyncio
async def test_click_error_fails(checkout_probes):
    page = FakeSession(html="<p>A product</p>", present=[ADD_TO_CART], fail_on_click=True)

    result = await _attempt(page, checkout_probes)

    assert result.status == CheckoutStatus.FAILED
    assert "element detached" in result.message
    assert page.close_count == 1


@pytest.mark.asyncio
async def test_launch_error_fails(checkout_probes):
    automaton = CheckoutAutomaton(FakeSessionFactory(fail_on_acquire=True), checkout_probes)

    result = await automaton.attempt_checkout(PRODUCT_URL)

    assert result.status == CheckoutStatus.FAILED
    assert not result.success


@pytest.mark.parametrize("page_text", ["<p>solve the captcha below</p>", "<p>Please log in first</p>"])
@pytest.mark.asyncio
async def test_lowercase_wall_markers_require_manual_purchase(checkout_probes, page_text):
    page = FakeSession(html=page_text, present=[ADD_TO_CART])

    result = await _attempt(page, checkout_probes)

    assert result.status == CheckoutStatus.MANUAL_REQUIRED
    assert result.message.startswith("Login or verification required")
    assert page.clicked == []
    assert page.close_count == 1


@pytest.mark.parametrize("failing_call", [1, 2])
@pytest.mark.asyncio
async def test_page_read_error_fails_and_closes_once(checkout_probes, failing_call):
    # call 1 is the wall check, call 2 the auth check after proceeding
    page = FakeSession(
        html="<p>A product</p>",
        present=[ADD_TO_CART, PROCEED],
        fail_on_content_call=failing_call,
    )

    result = await _attempt(page, checkout_probes)

    assert result.status == CheckoutStatus.FAILED
    assert "browser has been closed" in result.message
    assert page.close_count == 1
