"""
External service connectors for BizTrackr.

Main Components:
    TextGenerator: Prompt-to-text capability used by insights and chat
    AnthropicTextGenerator: Anthropic Messages API implementation

Usage:
    >>> from biztrackr.connectors import build_text_generator
    >>> generator = build_text_generator(get_settings())
    >>> if generator is not None:
    ...     text = generator.generate("Summarize my week", system="Be brief.")
"""

from fastapi import Request

from biztrackr.connectors.text_generator import (
    AnthropicTextGenerator,
    TextGenerator,
    build_text_generator,
)


def get_text_generator(request: Request):
    """FastAPI dependency returning the app's generator, or None when AI is off."""
    return getattr(request.app.state, "text_generator", None)


__all__ = [
    "TextGenerator",
    "AnthropicTextGenerator",
    "build_text_generator",
    "get_text_generator",
]
