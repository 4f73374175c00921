"""compost: post, update, hide or delete a tagged status comment from CI."""

from compost._version import __version__

__all__ = ["__version__"]
