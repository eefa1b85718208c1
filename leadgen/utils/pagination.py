# leadgen/utils/pagination.py - Pagination helpers

from pydantic import BaseModel

COMPANY_PAGE_SIZE = 10
CONTACT_PAGE_SIZE = 20
CONTACT_MAX_PAGES = 50


class PaginationParams(BaseModel):
    page: int = 1
    per_page: int = COMPANY_PAGE_SIZE
    max_pages: int | None = None

    def total_pages(self, total: int) -> int:
        pages = (max(total, 0) + self.per_page - 1) // self.per_page
        if self.max_pages is not None:
            pages = min(pages, self.max_pages)
        return pages

    def clamp(self, page: int, total_pages: int | None = None) -> int:
        """Clamp ``page`` into ``1..total_pages`` (and ``max_pages`` when set)."""
        upper = total_pages if total_pages is not None else self.max_pages
        if self.max_pages is not None and upper is not None:
            upper = min(upper, self.max_pages)
        page = max(page, 1)
        if upper is not None and upper >= 1:
            page = min(page, upper)
        return page

    def is_last_page(self, page: int, total_pages: int, returned: int) -> bool:
        return page >= total_pages or returned < self.per_page


COMPANY_PAGINATION = PaginationParams(per_page=COMPANY_PAGE_SIZE)
CONTACT_PAGINATION = PaginationParams(per_page=CONTACT_PAGE_SIZE, max_pages=CONTACT_MAX_PAGES)
