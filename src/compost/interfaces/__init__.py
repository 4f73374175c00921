"""Protocol definitions for pluggable platforms and detectors."""

from .comment import Comment, PlatformHandler
from .detector import Detector

__all__ = ["Comment", "Detector", "PlatformHandler"]
