import os
import yaml
import logging
from typing import List
from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

class DiscoveryProbes(BaseModel):
    """
    Ordered DOM probes for shopping result pages.
    For every field the first selector that matches inside a card wins.
    """
    search_url_template: str = "https://www.google.com/search?q={query}&tbm=shop"
    navigation_timeout_ms: int = 30000
    results_wait_timeout_ms: int = 10000
    source_tag: str = "google_shopping"
    placeholder_image_url: str = "https://via.placeholder.com/200"
    card: List[str] = [".sh-dgr__gr-auto", ".sh-dgr__content", "[data-docid]"]
    title: List[str] = ["h3", ".tAxDx", "[data-name]", ".Xjkr3b"]
    price: List[str] = [".a8Pemb", ".kHxwFf", "[data-price]", ".XrAfOe"]
    link: List[str] = ["a[href*='url=']"]
    image: List[str] = ["img"]

class CheckoutProbes(BaseModel):
    navigation_timeout_ms: int = 30000
    cart_settle_seconds: float = 2.0
    auth_settle_seconds: float = 3.0
    wall_markers: List[str] = ["sign in", "Sign In", "log in", "Log In", "captcha", "CAPTCHA"]
    auth_markers: List[str] = ["sign in", "Sign In", "password", "Payment"]
    add_to_cart: List[str] = [
        'button[id*="add-to-cart"]',
        'button[name*="add-to-cart"]',
        'button:has-text("Add to Cart")',
        'button:has-text("Add to Bag")',
        'input[value*="Add to Cart"]',
        '[data-action="add-to-cart"]',
        ".add-to-cart-button",
        "#add-to-cart-button",
    ]
    proceed_to_checkout: List[str] = [
        'a[href*="checkout"]',
        'button:has-text("Checkout")',
        'button:has-text("Proceed to Checkout")',
        "#proceed-to-checkout",
        ".checkout-button",
    ]

class LLMSettings(BaseModel):
    default_provider: str = "anthropic"
    riddle_model: str = "claude-3-5-sonnet-20240620"
    riddle_max_tokens: int = 150
    riddle_temperature: float = 0.8

class CardSettings(BaseModel):
    style: str = "festive holiday theme with warm colors"
    num_cards: int = 1
    image_model: str = "nano-banana-pro"

class LogicConfig(BaseModel):
    """
    Centralized Business Logic Configuration.
    Loads from configs/logic.yaml with hierarchy:
    1. Static Defaults (in code)
    2. YAML file (configs/logic.yaml)
    """
    discovery: DiscoveryProbes = Field(default_factory=DiscoveryProbes)
    checkout: CheckoutProbes = Field(default_factory=CheckoutProbes)
    llm: LLMSettings = Field(default_factory=LLMSettings)
    card: CardSettings = Field(default_factory=CardSettings)

    @classmethod
    def load(cls) -> "LogicConfig":
        config_path = os.environ.get("LOGIC_CONFIG_PATH", "configs/logic.yaml")

        if os.path.exists(config_path):
            try:
                with open(config_path, "r") as f:
                    config_dict = yaml.safe_load(f) or {}
                return cls.model_validate(config_dict)
            except Exception as e:
                logger.error(f"Failed to load logic config from {config_path}: {e}")

        logger.info(f"Using default logic configuration (file not found: {config_path})")
        return cls()

# Global instance
logic_config = LogicConfig.load()
