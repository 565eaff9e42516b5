"""
Pagination

Shared page attribute validation for paged list endpoints.
"""

import math
from typing import Optional, Tuple

from fastapi import Depends, Query

from dochub.api.config import Settings
from dochub.api.dependencies import get_app_settings
from dochub.api.errors import PaginationError


def validate_page(
    page: Optional[int], size: Optional[int], settings: Settings
) -> Tuple[int, int]:
    """
    Apply defaults and bounds to page attributes.

    Raises:
        PaginationError: If page < 1 or size is outside 1..MAX_PAGE_SIZE
    """
    page = 1 if page is None else page
    size = settings.DEFAULT_PAGE_SIZE if size is None else size

    if page < 1:
        raise PaginationError("Invalid page number", reason=f"page={page}, must be >= 1")
    if size < 1 or size > settings.MAX_PAGE_SIZE:
        raise PaginationError(
            "Invalid page size",
            reason=f"size={size}, must be between 1 and {settings.MAX_PAGE_SIZE}",
        )
    return page, size


def page_params(
    page: Optional[int] = Query(None, description="Page number, starting at 1"),
    size: Optional[int] = Query(None, description="Page size"),
    settings: Settings = Depends(get_app_settings),
) -> Tuple[int, int]:
    """Dependency returning validated ``(page, size)``."""
    return validate_page(page, size, settings)


def total_pages(total: int, size: int) -> int:
    """Number of pages, at least 1."""
    return math.ceil(total / size) if total > 0 else 1
