"""
In-memory problem catalog: filtering and pagination.

Works entirely on the list fetched at load time; nothing here
touches the network.
"""

import math
from dataclasses import dataclass
from typing import Optional, Sequence

from studysprint.common.schemas import ProblemData

ALL = "All"
PAGE_SIZE = 50
DIFFICULTIES = [ALL, "Easy", "Medium", "Hard"]
COMMON_TAGS = [
    ALL,
    "Array",
    "String",
    "Hash Table",
    "Dynamic Programming",
    "Tree",
    "Graph",
    "Sorting",
    "Binary Search",
]
QUICK_START_DIFFICULTIES = ("Easy", "Medium")
QUICK_START_SIZE = 12


@dataclass(frozen=True)
class CatalogFilter:
    """Active filters; ``All`` disables a predicate."""

    search: str = ""
    difficulty: str = ALL
    tag: str = ALL

    def matches(self, problem: ProblemData) -> bool:
        matches_search = (
            not self.search
            or self.search.lower() in problem.title.lower()
        )
        matches_difficulty = (
            self.difficulty == ALL or problem.difficulty == self.difficulty
        )
        matches_tag = self.tag == ALL or self.tag in problem.tags
        return matches_search and matches_difficulty and matches_tag


def page_count(item_count: int, page_size: int = PAGE_SIZE) -> int:
    return math.ceil(item_count / page_size)


def paginate(
    items: Sequence[ProblemData],
    page: int,
    page_size: int = PAGE_SIZE
) -> list[ProblemData]:
    """Slice out a 1-based page; pages past the end are empty."""
    if page < 1:
        raise ValueError("page must be 1 or greater")
    start = (page - 1) * page_size
    return list(items[start:start + page_size])


class ProblemCatalog:
    """Immutable list of problems in ordinal order."""

    def __init__(self, problems: Sequence[ProblemData], page_size: int = PAGE_SIZE):
        self.problems = sorted(problems, key=lambda p: p.question_no)
        self.page_size = page_size

    def __len__(self) -> int:
        return len(self.problems)

    def filter(self, catalog_filter: CatalogFilter) -> list[ProblemData]:
        return [p for p in self.problems if catalog_filter.matches(p)]

    def page(
        self,
        catalog_filter: CatalogFilter,
        page: int = 1
    ) -> tuple[list[ProblemData], int, int]:
        """Return (page items, page count, filtered count)."""
        filtered = self.filter(catalog_filter)
        return (
            paginate(filtered, page, self.page_size),
            page_count(len(filtered), self.page_size),
            len(filtered),
        )

    def quick_start(self, size: int = QUICK_START_SIZE) -> list[ProblemData]:
        """First Easy/Medium problems by ordinal, for a fast sprint pick."""
        picks = [
            p for p in self.problems
            if p.difficulty in QUICK_START_DIFFICULTIES
        ]
        return picks[:size]


class CatalogBrowser:
    """Filter and page state of one catalog view."""

    def __init__(self, catalog: ProblemCatalog):
        self.catalog = catalog
        self.filter = CatalogFilter()
        self.current_page = 1
        self._filtered = catalog.filter(self.filter)

    def set_filters(
        self,
        search: Optional[str] = None,
        difficulty: Optional[str] = None,
        tag: Optional[str] = None
    ) -> None:
        """Change any subset of filters; always returns to page 1."""
        self.filter = CatalogFilter(
            search=self.filter.search if search is None else search,
            difficulty=self.filter.difficulty if difficulty is None else difficulty,
            tag=self.filter.tag if tag is None else tag,
        )
        self._filtered = self.catalog.filter(self.filter)
        self.current_page = 1

    @property
    def filtered(self) -> list[ProblemData]:
        return list(self._filtered)

    @property
    def page_count(self) -> int:
        return page_count(len(self._filtered), self.catalog.page_size)

    def go_to(self, page: int) -> list[ProblemData]:
        items = paginate(self._filtered, page, self.catalog.page_size)
        self.current_page = page
        return items

    def items(self) -> list[ProblemData]:
        return paginate(self._filtered, self.current_page, self.catalog.page_size)
