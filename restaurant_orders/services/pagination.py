"""
Page arithmetic shared by the menu and customer listings.
"""

import math
from dataclasses import dataclass
from typing import Optional

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 10


@dataclass(frozen=True)
class PageRequest:
    page: int
    limit: int

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit

    def total_pages(self, count: int) -> int:
        return math.ceil(count / self.limit)


def resolve_page(
    page: Optional[int],
    limit: Optional[int],
    default_limit: int = DEFAULT_LIMIT,
) -> PageRequest:
    """
    Normalize raw page/limit inputs.

    Missing or non-positive values fall back to page 1 and the default limit.
    """
    if not page or page < 1:
        page = DEFAULT_PAGE
    if not limit or limit < 1:
        limit = default_limit
    return PageRequest(page=page, limit=limit)
