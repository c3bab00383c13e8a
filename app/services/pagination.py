import math
from typing import List

from app.models.catalog import ELLIPSIS, PAGE_SIZE, PageMarker, PaginationView

PAGE_RADIUS = 2


def total_pages(total_count: int, page_size: int = PAGE_SIZE) -> int:
    return math.ceil(total_count / page_size)


def page_offset(page: int, page_size: int = PAGE_SIZE) -> int:
    return (page - 1) * page_size


def clamp_page(page: int, pages: int) -> int:
    return max(1, min(page, max(pages, 1)))


def page_markers(current_page: int, pages: int, radius: int = PAGE_RADIUS) -> List[PageMarker]:
    """Page-number strip with ellipsis compression.

    Page 1, the last page and every page within ``radius`` of the current one
    are shown. A gap of a single page is filled in; any wider gap collapses to
    one ``"..."`` marker. ``current_page`` is not validated.
    """
    shown = [
        i for i in range(1, pages + 1)
        if i == 1 or i == pages or current_page - radius <= i <= current_page + radius
    ]

    markers: List[PageMarker] = []
    previous = None
    for page in shown:
        if previous is not None:
            if page - previous == 2:
                markers.append(previous + 1)
            elif page - previous > 2:
                markers.append(ELLIPSIS)
        markers.append(page)
        previous = page
    return markers


def build_pagination(page: int, pages: int) -> PaginationView:
    return PaginationView(
        page=page,
        total_pages=pages,
        markers=page_markers(page, pages),
        prev_page=clamp_page(page - 1, pages) if page > 1 else None,
        next_page=page + 1 if page < pages else None,
    )
