"""Tag marker embedded in comments posted by compost.

The marker is a Markdown link reference definition, ``[//]: <> (tag)``, which
GitHub and GitLab parse but never render. It is appended after a blank line
so that re-rendering the same body and tag always yields the same string.
"""

DEFAULT_TAG = "compost-comment"


def markdown_tag(tag: str) -> str:
    """Return the invisible marker for ``tag``."""
    return f"[//]: <> ({tag})"


def add_markdown_tag(body: str, tag: str) -> str:
    """Append the invisible marker for ``tag`` to ``body``."""
    return f"{body}\n\n{markdown_tag(tag)}"


def has_markdown_tag(body: str, tag: str) -> bool:
    """Return True if ``body`` carries the marker for ``tag``."""
    return markdown_tag(tag) in (body or "")
