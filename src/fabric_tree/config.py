"""Configuration constants for fabric-tree."""

import os

from loguru import logger

# Rows per page for nodes that carry list settings.
DEFAULT_PAGE_SIZE: int = 10

# Top-level parent URL for health evaluations without a parent.
DEFAULT_BASE_URL: str = ""

PAGE_SIZE_ENV = "FABRIC_TREE_PAGE_SIZE"
BASE_URL_ENV = "FABRIC_TREE_BASE_URL"


def resolve_page_size() -> int:
    """Return the page size from the environment, falling back to the default."""
    raw = os.environ.get(PAGE_SIZE_ENV)
    if not raw:
        return DEFAULT_PAGE_SIZE
    try:
        size = int(raw)
    except ValueError:
        logger.warning("Ignoring non-numeric {}={!r}", PAGE_SIZE_ENV, raw)
        return DEFAULT_PAGE_SIZE
    if size < 1:
        logger.warning("Ignoring non-positive {}={!r}", PAGE_SIZE_ENV, raw)
        return DEFAULT_PAGE_SIZE
    return size


def resolve_base_url() -> str:
    """Return the base URL used as the parent path of top-level evaluations."""
    return os.environ.get(BASE_URL_ENV, DEFAULT_BASE_URL)
