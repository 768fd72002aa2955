from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class SearchStatus(str, Enum):
    idle = "idle"
    debouncing = "debouncing"
    fetching = "fetching"
    fetching_more = "fetching_more"


@dataclass
class SearchItem:
    id: str
    label: str
    data: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class PageResult:
    items: list[SearchItem]
    has_more: bool


@dataclass
class SearchSession:
    query: str = ""
    page: int = 1
    page_size: int = 10
    results: list[SearchItem] = field(default_factory=list)
    has_more: bool = False
    status: SearchStatus = SearchStatus.idle
    error: str | None = None

    def reset(self, query: str) -> None:
        self.query = query
        self.page = 1
        self.results = []
        self.has_more = False
        self.error = None
