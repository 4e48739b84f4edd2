import itertools

import pytest

from studysprint.modules.catalog import (
    ALL,
    CatalogBrowser,
    CatalogFilter,
    ProblemCatalog,
    page_count,
    paginate,
)
from tests.fakes import make_problem


@pytest.fixture
def sample_catalog():
    """Twelve problems, four of them Easy with the Array tag."""
    problems = [
        make_problem(1, title="Two Sum", difficulty="Easy", tags=["Array", "Hash Table"]),
        make_problem(2, title="Add Two Numbers", difficulty="Medium", tags=["Linked List"]),
        make_problem(3, title="Longest Substring", difficulty="Medium", tags=["String"]),
        make_problem(4, title="Median of Two Sorted Arrays", difficulty="Hard", tags=["Array"]),
        make_problem(5, title="Remove Duplicates", difficulty="Easy", tags=["Array"]),
        make_problem(6, title="Valid Parentheses", difficulty="Easy", tags=["String"]),
        make_problem(7, title="Merge Intervals", difficulty="Medium", tags=["Array", "Sorting"]),
        make_problem(8, title="Plus One", difficulty="Easy", tags=["Array"]),
        make_problem(9, title="Climbing Stairs", difficulty="Easy", tags=["Dynamic Programming"]),
        make_problem(10, title="Binary Tree Inorder", difficulty="Easy", tags=["Tree"]),
        make_problem(11, title="Move Zeroes", difficulty="Easy", tags=["Array"]),
        make_problem(12, title="Word Ladder", difficulty="Hard", tags=["Graph"]),
    ]
    # Deliberately unordered to check ordinal sorting
    return ProblemCatalog(list(reversed(problems)))


def test_catalog_sorted_by_ordinal(sample_catalog):
    numbers = [p.question_no for p in sample_catalog.problems]

    assert numbers == sorted(numbers)
    assert len(sample_catalog) == 12


def test_difficulty_and_tag_filter(sample_catalog):
    # Execute
    items, pages, filtered = sample_catalog.page(
        CatalogFilter(difficulty="Easy", tag="Array")
    )

    # Verify
    assert [p.id for p in items] == [1, 5, 8, 11]
    assert pages == 1
    assert filtered == 4


def test_search_is_case_insensitive_substring(sample_catalog):
    matches = sample_catalog.filter(CatalogFilter(search="TWO"))

    assert [p.id for p in matches] == [1, 2, 4]


def test_empty_filters_return_everything(sample_catalog):
    assert sample_catalog.filter(CatalogFilter()) == sample_catalog.problems


def test_no_match_gives_no_pages(sample_catalog):
    items, pages, filtered = sample_catalog.page(CatalogFilter(search="zzz"))

    assert items == []
    assert pages == 0
    assert filtered == 0


def test_filtered_list_is_ordered_subsequence():
    difficulties = ["Easy", "Medium", "Hard"]
    tags = ["Array", "String", "Tree"]
    problems = [
        make_problem(
            i,
            title=f"{'Sum' if i % 3 == 0 else 'Path'} Problem {i}",
            difficulty=difficulties[i % 3],
            tags=[tags[i % 3], tags[(i + 1) % 3]] if i % 4 else [],
        )
        for i in range(1, 121)
    ]
    catalog = ProblemCatalog(problems)

    combinations = itertools.product(
        ["", "sum", "PATH", "Problem 1"],
        [ALL] + difficulties,
        [ALL] + tags,
    )
    for search, difficulty, tag in combinations:
        catalog_filter = CatalogFilter(search=search, difficulty=difficulty, tag=tag)
        filtered = catalog.filter(catalog_filter)

        expected = [p for p in catalog.problems if catalog_filter.matches(p)]
        assert filtered == expected
        for problem in filtered:
            assert search.lower() in problem.title.lower()
            assert difficulty == ALL or problem.difficulty == difficulty
            assert tag == ALL or tag in problem.tags


def test_pages_cover_filtered_set_exactly_once():
    # Setup
    problems = [make_problem(i) for i in range(1, 121)]
    catalog = ProblemCatalog(problems)
    browser = CatalogBrowser(catalog)

    # Execute
    pages = [browser.go_to(page) for page in range(1, browser.page_count + 1)]

    # Verify
    assert browser.page_count == 3
    assert [len(page) for page in pages] == [50, 50, 20]
    assert list(itertools.chain.from_iterable(pages)) == catalog.problems


@pytest.mark.parametrize(
    "count, expected",
    [(0, 0), (1, 1), (50, 1), (51, 2), (3573, 72)],
)
def test_page_count(count, expected):
    assert page_count(count) == expected


def test_paginate_past_end_is_empty():
    problems = [make_problem(i) for i in range(1, 11)]

    assert paginate(problems, 2, page_size=5) == problems[5:]
    assert paginate(problems, 3, page_size=5) == []


def test_paginate_rejects_page_zero():
    with pytest.raises(ValueError):
        paginate([], 0)


def test_changing_filters_returns_to_first_page():
    # Setup
    problems = [
        make_problem(i, difficulty="Easy" if i % 2 else "Hard")
        for i in range(1, 201)
    ]
    browser = CatalogBrowser(ProblemCatalog(problems))
    browser.go_to(3)

    # Execute
    browser.set_filters(difficulty="Easy")

    # Verify
    assert browser.current_page == 1
    assert browser.page_count == 2
    assert all(p.difficulty == "Easy" for p in browser.items())

    browser.go_to(2)
    browser.set_filters(search="Problem 1")
    assert browser.current_page == 1
    assert browser.filter.difficulty == "Easy"


def test_quick_start_picks_first_easy_and_medium(sample_catalog):
    picks = sample_catalog.quick_start()

    assert all(p.difficulty in ("Easy", "Medium") for p in picks)
    assert [p.id for p in picks] == [1, 2, 3, 5, 6, 7, 8, 9, 10, 11]
    assert len(sample_catalog.quick_start(size=3)) == 3
