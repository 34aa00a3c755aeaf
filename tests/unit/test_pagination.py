"""Tests for pagination metadata."""

from safevault.pagination import build_pagination


class TestBuildPagination:
    def test_partial_last_page(self):
        page = build_pagination(2, 10, 25)
        assert page.current_page == 2
        assert page.total_pages == 3
        assert page.total_items == 25
        assert page.items_per_page == 10

    def test_exact_multiple(self):
        assert build_pagination(1, 10, 30).total_pages == 3

    def test_empty(self):
        assert build_pagination(1, 20, 0).total_pages == 0
