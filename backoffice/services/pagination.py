import math
from dataclasses import dataclass

from backoffice.exceptions import InvalidArgument

DEFAULT_LIMIT = 10
MAX_LIMIT = 100


@dataclass
class Page:
    items: list
    current_page: int
    items_per_page: int
    total_items: int

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total_items / self.items_per_page) if self.total_items else 0

    def meta(self) -> dict:
        return {
            'currentPage': self.current_page,
            'totalPages': self.total_pages,
            'totalItems': self.total_items,
            'itemsPerPage': self.items_per_page,
        }


def paginate(qs, page=1, limit=DEFAULT_LIMIT) -> Page:
    """Slice an ordered queryset into one page.

    ``page`` starts at 1 and ``limit`` must lie in 1..100; anything else is
    rejected rather than clamped so callers learn about bad input.
    """
    page = 1 if page is None else int(page)
    limit = DEFAULT_LIMIT if limit is None else int(limit)
    if page < 1:
        raise InvalidArgument('page must be >= 1')
    if not 1 <= limit <= MAX_LIMIT:
        raise InvalidArgument(f'limit must be between 1 and {MAX_LIMIT}')
    total = qs.count()
    start = (page - 1) * limit
    return Page(items=list(qs[start:start + limit]), current_page=page, items_per_page=limit, total_items=total)
