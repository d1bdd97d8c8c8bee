"""Pagination and sorting inputs for list endpoints."""
from __future__ import annotations

import math
from dataclasses import dataclass, field

from ..validation import Validator

MAX_PAGE = 10_000_000
MAX_PAGE_SIZE = 100


@dataclass
class Filters:
    page: int = 1
    page_size: int = 20
    sort: str = "id"
    sort_safelist: tuple[str, ...] = field(default_factory=tuple)

    def sort_column(self) -> str:
        # validate() guarantees membership; this guards direct callers.
        if self.sort not in self.sort_safelist:
            raise ValueError(f"unsafe sort parameter: {self.sort}")
        return self.sort.lstrip("-")

    def sort_descending(self) -> bool:
        return self.sort.startswith("-")

    def limit(self) -> int:
        return self.page_size

    def offset(self) -> int:
        return (self.page - 1) * self.page_size

    def validate(self, v: Validator) -> None:
        v.check(self.page > 0, "page", "must be greater than zero")
        v.check(self.page <= MAX_PAGE, "page", f"must be a maximum of {MAX_PAGE}")
        v.check(self.page_size > 0, "page_size", "must be greater than zero")
        v.check(
            self.page_size <= MAX_PAGE_SIZE,
            "page_size",
            f"must be a maximum of {MAX_PAGE_SIZE}",
        )
        v.check(self.sort in self.sort_safelist, "sort", "invalid sort value")


@dataclass
class Metadata:
    current_page: int = 0
    page_size: int = 0
    first_page: int = 0
    last_page: int = 0
    total_records: int = 0


def calculate_metadata(total_records: int, page: int, page_size: int) -> Metadata:
    if total_records == 0:
        return Metadata()

    return Metadata(
        current_page=page,
        page_size=page_size,
        first_page=1,
        last_page=math.ceil(total_records / page_size),
        total_records=total_records,
    )
