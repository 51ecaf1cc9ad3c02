from __future__ import annotations

from dataclasses import dataclass

from movie_rental.core.config import DEFAULT_PAGE_NUMBER, DEFAULT_PAGE_SIZE


@dataclass(frozen=True)
class PageWindow:
    page_size: int
    page_number: int

    @property
    def offset(self) -> int:
        return (self.page_number - 1) * self.page_size


def normalize_page(page_size: int | None = None, page_number: int | None = None) -> PageWindow:
    """Valores ausentes ou não positivos voltam silenciosamente ao padrão."""
    if page_size is None or page_size <= 0:
        page_size = DEFAULT_PAGE_SIZE
    if page_number is None or page_number <= 0:
        page_number = DEFAULT_PAGE_NUMBER
    return PageWindow(page_size=page_size, page_number=page_number)
