import pytest

from restaurant_orders.services.pagination import PageRequest, resolve_page


@pytest.mark.parametrize(
    "page, limit, expected",
    [
        (None, None, (1, 10)),
        (0, 0, (1, 10)),
        (-2, -1, (1, 10)),
        (3, 25, (3, 25)),
    ],
)
def test_resolve_page_defaults(page, limit, expected):
    request = resolve_page(page, limit)
    assert (request.page, request.limit) == expected


def test_resolve_page_uses_configured_default_limit():
    assert resolve_page(None, None, default_limit=20).limit == 20


def test_offset():
    assert PageRequest(page=1, limit=10).offset == 0
    assert PageRequest(page=2, limit=10).offset == 10
    assert PageRequest(page=4, limit=7).offset == 21


@pytest.mark.parametrize(
    "count, limit, pages",
    [(0, 10, 0), (1, 10, 1), (10, 10, 1), (11, 10, 2), (15, 10, 2), (30, 7, 5)],
)
def test_total_pages_rounds_up(count, limit, pages):
    assert PageRequest(page=1, limit=limit).total_pages(count) == pages
