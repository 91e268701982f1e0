from types import SimpleNamespace

import pytest

from deltashare.core.errors import PaginationLimitExceeded, TransportError
from deltashare.core.pagination import fetch_all_pages


class _PagedSource:
    def __init__(self, pages: list[tuple[list[str], str | None]]):
        self.pages = pages
        self.tokens_seen: list[str | None] = []

    def __call__(self, token: str | None):
        self.tokens_seen.append(token)
        items, next_token = self.pages[len(self.tokens_seen) - 1]
        return SimpleNamespace(items=items, next_page_token=next_token)


def test_fetch_all_pages_concatenates_in_page_order():
    source = _PagedSource([(["a", "b"], "t1"), (["c"], "t2"), (["d", "e"], None)])

    assert fetch_all_pages(source) == ["a", "b", "c", "d", "e"]
    assert source.tokens_seen == [None, "t1", "t2"]


def test_fetch_all_pages_single_request_when_no_token():
    source = _PagedSource([(["a"], None)])

    assert fetch_all_pages(source) == ["a"]
    assert len(source.tokens_seen) == 1


def test_fetch_all_pages_empty_listing_is_valid():
    assert fetch_all_pages(_PagedSource([([], None)])) == []


def test_fetch_all_pages_empty_pages_in_the_middle():
    source = _PagedSource([([], "t1"), ([], "t2"), (["x"], None)])

    assert fetch_all_pages(source) == ["x"]
    assert len(source.tokens_seen) == 3


def test_fetch_all_pages_treats_empty_token_as_end():
    source = _PagedSource([(["a"], "")])

    assert fetch_all_pages(source) == ["a"]


def test_fetch_all_pages_respects_max_pages():
    source = _PagedSource([(["a"], "t1"), (["b"], "t2"), (["c"], "t3")])

    with pytest.raises(PaginationLimitExceeded) as excinfo:
        fetch_all_pages(source, max_pages=2)

    assert excinfo.value.max_pages == 2
    assert source.tokens_seen == [None, "t1"]


def test_fetch_all_pages_max_pages_reached_exactly_is_fine():
    source = _PagedSource([(["a"], "t1"), (["b"], None)])

    assert fetch_all_pages(source, max_pages=2) == ["a", "b"]


def test_fetch_all_pages_rejects_non_positive_max_pages():
    with pytest.raises(ValueError, match="max_pages"):
        fetch_all_pages(_PagedSource([]), max_pages=0)


def test_fetch_all_pages_propagates_errors_without_partial_results():
    calls = []

    def fetch(token):
        calls.append(token)
        if token == "t1":
            raise TransportError("connection reset")
        return SimpleNamespace(items=["a"], next_page_token="t1")

    with pytest.raises(TransportError):
        fetch_all_pages(fetch)

    assert calls == [None, "t1"]
