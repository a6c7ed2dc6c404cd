"""Headless browser integration package."""

from .session import ElementHandle, RendererSession, SessionFactory

__all__ = ["ElementHandle", "RendererSession", "SessionFactory"]
