import math
from dataclasses import dataclass
from typing import Optional, Sequence

from library_api.core.config import DEFAULT_PAGE_SIZE
from library_api.core.errors import InvalidDataError


@dataclass(frozen=True)
class PagingPlan:
    """Window of one page over an ordered collection of ``total_count`` records."""
    page_number: int
    page_max_size: int
    total_count: int
    page_count: int

    # Both stay within total_count so a page past the end is an empty window.
    @property
    def offset(self) -> int:
        return min((self.page_number - 1) * self.page_max_size, self.total_count)

    @property
    def limit(self) -> int:
        return min(self.page_max_size, self.total_count - self.offset)

    def slice(self, items: Sequence) -> list:
        return list(items[self.offset:self.offset + self.limit])

    def paging(self, page_size: int) -> dict:
        return {
            "page_number": self.page_number,
            "page_size": page_size,
            "page_max_size": self.page_max_size,
            "page_count": self.page_count,
            "total_number_of_items": self.total_count,
        }


def paginate(total_count: int, page_number: int, page_max_size: Optional[int] = None) -> PagingPlan:
    """Resolve a page request against a collection size.

    A page past the last one is a valid, empty page.
    """
    if page_number < 1:
        raise InvalidDataError("pageNumber must be 1 or greater")
    if page_max_size is None:
        page_max_size = DEFAULT_PAGE_SIZE
    elif page_max_size <= 0:
        raise InvalidDataError("pageMaxSize must be greater than 0")
    page_count = math.ceil(total_count / page_max_size) if total_count else 0
    return PagingPlan(page_number=page_number, page_max_size=page_max_size,
                      total_count=total_count, page_count=page_count)
