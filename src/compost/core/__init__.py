"""Core business logic components.

This module exports the main business logic classes:
- CommentHandler: Reconciles the tagged status comment
- PlatformHandlerRegistry: Maps platform and target type to handler factories
- DetectorRegistry: Ordered chain of CI environment detectors
"""

from compost.core.comment_handler import CommentHandler
from compost.core.detect import DetectorRegistry
from compost.core.markdown import DEFAULT_TAG, add_markdown_tag, markdown_tag
from compost.core.registry import PlatformHandlerFactory, PlatformHandlerRegistry

__all__ = [
    "DEFAULT_TAG",
    "CommentHandler",
    "DetectorRegistry",
    "PlatformHandlerFactory",
    "PlatformHandlerRegistry",
    "add_markdown_tag",
    "markdown_tag",
]
