import sys
from pathlib import Path
from typing import Optional, Sequence

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.append(str(ROOT))

from app.core.logic_config import CheckoutProbes, DiscoveryProbes
from integrations.browser.session import ElementHandle, RendererSession, SessionFactory
from repositories.work_items import InMemoryWorkItemStore


def pytest_configure(config):
    config.addinivalue_line("markers", "slow: slow running tests")


# --- Fake renderer ---


class FakeElement(ElementHandle):
    def __init__(self, pattern: str, page: "FakeSession"):
        self.pattern = pattern
        self.page = page

    async def click(self) -> None:
        self.page.clicked.append(self.pattern)
        if self.page.fail_on_click:
            raise RuntimeError("element detached")
        if self.pattern in self.page.content_after_click:
            self.page.html = self.page.content_after_click[self.pattern]


class FakeSession(RendererSession):
    """
    Scripted page. `present` lists the selector patterns that match,
    `html` is what content() returns.
    """

    def __init__(
        self,
        html: str = "",
        present: Optional[Sequence[str]] = None,
        fail_on_navigate: bool = False,
        fail_on_click: bool = False,
        content_after_click: Optional[dict] = None,
        fail_on_content_call: Optional[int] = None,
    ):
        self.html = html
        self.present = set(present or [])
        self.fail_on_navigate = fail_on_navigate
        self.fail_on_click = fail_on_click
        self.content_after_click = content_after_click or {}
        self.fail_on_content_call = fail_on_content_call
        self.content_calls = 0
        self.visited: list[str] = []
        self.clicked: list[str] = []
        self.close_count = 0

    async def navigate(self, url: str, timeout_ms: int = 30000) -> None:
        self.visited.append(url)
        if self.fail_on_navigate:
            raise TimeoutError(f"Navigation timeout of {timeout_ms} ms exceeded")

    async def content(self) -> str:
        self.content_calls += 1
        if self.content_calls == self.fail_on_content_call:
            raise RuntimeError("Target page, context or browser has been closed")
        return self.html

    async def query_selector_first(self, patterns: Sequence[str]) -> Optional[ElementHandle]:
        for pattern in patterns:
            if pattern in self.present:
                return FakeElement(pattern, self)
        return None

    async def wait_for_any(self, patterns: Sequence[str], timeout_ms: int) -> bool:
        return any(p in self.present for p in patterns)

    async def close(self) -> None:
        self.close_count += 1


class FakeSessionFactory(SessionFactory):
    """Hands out scripted sessions in order; the last one is reused."""

    def __init__(self, *sessions: FakeSession, fail_on_acquire: bool = False):
        self.sessions = list(sessions) or [FakeSession()]
        self.fail_on_acquire = fail_on_acquire
        self.acquired: list[FakeSession] = []
        self.close_count = 0

    async def acquire(self) -> RendererSession:
        if self.fail_on_acquire:
            raise RuntimeError("browser failed to launch")
        index = min(len(self.acquired), len(self.sessions) - 1)
        session = self.sessions[index]
        self.acquired.append(session)
        return session

    async def close(self) -> None:
        self.close_count += 1


# --- Fake content generators ---


class StubRiddles:
    def __init__(self, text: str = "Soft and warm, it hugs your feet", error: Optional[Exception] = None):
        self.text = text
        self.error = error
        self.calls: list[tuple[str, str]] = []

    async def generate(self, recipient_name: str, gift_idea: str) -> str:
        self.calls.append((recipient_name, gift_idea))
        if self.error is not None:
            raise self.error
        return self.text


class StubCards:
    def __init__(self, url: str = "https://gamma.app/docs/card-123", error: Optional[Exception] = None):
        self.url = url
        self.error = error
        self.calls: list[tuple[str, str]] = []

    async def generate(self, recipient_name: str, riddle: str) -> str:
        self.calls.append((recipient_name, riddle))
        if self.error is not None:
            raise self.error
        return self.url


def product_card(title: str, price: str, url: str, image: str = "") -> str:
    img = f'<img src="{image}">' if image else ""
    return (
        '<div class="sh-dgr__gr-auto">'
        f"<h3>{title}</h3>"
        f'<span class="a8Pemb">{price}</span>'
        f'<a href="/url?url={url}&sa=U">View</a>'
        f"{img}"
        "</div>"
    )


def results_page(*cards: str) -> str:
    return "<html><body>" + "".join(cards) + "</body></html>"


@pytest.fixture
def discovery_probes():
    return DiscoveryProbes()


@pytest.fixture
def checkout_probes():
    return CheckoutProbes(cart_settle_seconds=0, auth_settle_seconds=0)


@pytest.fixture
def store():
    return InMemoryWorkItemStore()


@pytest.fixture
def riddles():
    return StubRiddles()


@pytest.fixture
def cards():
    return StubCards()
