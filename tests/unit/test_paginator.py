from __future__ import annotations

import asyncio
from typing import Any, Dict, List

import pytest

from fakes import CONNECTION_REFUSED, FakeGateway
from sakila_admin.data.query import OrderBy
from sakila_admin.domain.models import PageResult
from sakila_admin.pagination import LoadState, Paginator

PAGE_SIZE = 25
CATEGORY_COUNT = 30
SMALL_PAGE = 10


def _categories() -> List[Dict[str, Any]]:
    return [{"category_id": i, "name": f"Category {i:02d}"} for i in range(1, CATEGORY_COUNT + 1)]


def _paginator(gateway: FakeGateway, page_size: int = PAGE_SIZE) -> Paginator:
    return Paginator(
        gateway.fetch_page,
        "category",
        page_size=page_size,
        order_by=OrderBy("name", True, "category_id"),
        search_columns=("name",),
    )


class _GatedFetch:
    """fetch_page stand-in whose responses are released by the test, per page."""

    def __init__(self) -> None:
        self.gates: Dict[int, asyncio.Event] = {}

    async def __call__(self, table: str, page: int = 1, page_size: int = PAGE_SIZE, **kwargs: Any) -> PageResult:
        gate = self.gates.setdefault(page, asyncio.Event())
        await gate.wait()
        rows = [{"category_id": (page - 1) * page_size + i + 1} for i in range(page_size)]
        return PageResult(rows=rows, total_count=page_size * 5, page=page, page_size=page_size, has_more=True)

    def release(self, page: int) -> None:
        self.gates.setdefault(page, asyncio.Event()).set()


@pytest.mark.asyncio
async def test_initial_load_and_pages():
    paginator = _paginator(FakeGateway({"category": _categories()}))
    assert paginator.state is LoadState.IDLE

    first = await paginator.load()
    assert first.state is LoadState.LOADED
    assert len(first.data) == PAGE_SIZE
    assert first.has_more is True
    assert first.total_pages == 2

    second = await paginator.next_page()
    assert second.page == 2
    assert len(second.data) == CATEGORY_COUNT - PAGE_SIZE
    assert second.has_more is False


@pytest.mark.asyncio
async def test_prev_on_first_page_and_next_on_last_page_are_noops():
    gateway = FakeGateway({"category": _categories()})
    paginator = _paginator(gateway)
    await paginator.load()
    calls = len(gateway.calls)

    before = paginator.snapshot
    after = await paginator.prev_page()
    assert after == before
    assert len(gateway.calls) == calls

    await paginator.next_page()
    calls = len(gateway.calls)
    last = await paginator.next_page()
    assert last.page == 2
    assert len(gateway.calls) == calls


@pytest.mark.asyncio
async def test_out_of_order_responses_keep_latest_page():
    fetch = _GatedFetch()
    paginator = Paginator(fetch, "category", page_size=SMALL_PAGE)

    async def go(page: int):
        paginator.page = page
        return await paginator.load()

    tasks = [asyncio.ensure_future(go(page)) for page in (1, 2, 3)]
    await asyncio.sleep(0)

    fetch.release(3)
    await asyncio.sleep(0)
    fetch.release(1)
    fetch.release(2)
    await asyncio.gather(*tasks)

    final = paginator.snapshot
    assert final.state is LoadState.LOADED
    assert final.page == 3
    assert final.data[0]["category_id"] == 2 * SMALL_PAGE + 1


@pytest.mark.asyncio
async def test_failed_load_keeps_previous_rows_visible():
    gateway = FakeGateway({"category": _categories()})
    paginator = _paginator(gateway)
    loaded = await paginator.load()

    gateway.failures["category"] = CONNECTION_REFUSED
    failed = await paginator.refresh()

    assert failed.state is LoadState.FAILED
    assert failed.error == CONNECTION_REFUSED
    assert failed.stale is True
    assert failed.data == loaded.data
    assert failed.count == CATEGORY_COUNT

    del gateway.failures["category"]
    recovered = await paginator.refresh()
    assert recovered.state is LoadState.LOADED
    assert recovered.error is None
    assert recovered.stale is False


@pytest.mark.asyncio
async def test_failed_page_change_stays_on_the_page_of_the_visible_rows():
    gateway = FakeGateway({"category": _categories()})
    paginator = _paginator(gateway, page_size=SMALL_PAGE)
    loaded = await paginator.load()

    gateway.failures["category"] = CONNECTION_REFUSED
    failed = await paginator.next_page()

    assert failed.state is LoadState.FAILED
    assert failed.stale is True
    assert failed.page == 1
    assert failed.data == loaded.data
    assert failed.has_more is True
    assert failed.total_pages == 3

    del gateway.failures["category"]
    retried = await paginator.next_page()
    assert retried.state is LoadState.LOADED
    assert retried.page == 2
    assert retried.data[0]["category_id"] == SMALL_PAGE + 1


@pytest.mark.asyncio
async def test_failed_first_load_keeps_the_requested_page():
    gateway = FakeGateway({"category": _categories()})
    gateway.failures["category"] = CONNECTION_REFUSED
    paginator = _paginator(gateway)

    failed = await paginator.set_page(2)

    assert failed.state is LoadState.FAILED
    assert failed.page == 2
    assert failed.stale is False


@pytest.mark.asyncio
async def test_set_filter_resets_to_first_page_and_trims():
    paginator = _paginator(FakeGateway({"category": _categories()}), page_size=SMALL_PAGE)
    await paginator.set_page(3)

    snapshot = await paginator.set_filter("  Category 1  ")

    assert snapshot.page == 1
    assert snapshot.filter_value == "Category 1"
    assert [row["name"] for row in snapshot.data] == [f"Category {i}" for i in range(10, 20)]


@pytest.mark.asyncio
async def test_search_filters_returning_none_short_circuit():
    gateway = FakeGateway({"payment": [{"payment_id": 1, "amount": 4}]})
    paginator = Paginator(gateway.fetch_page, "payment", search_filters=lambda term: None)

    snapshot = await paginator.set_filter("abc")

    assert snapshot.state is LoadState.LOADED
    assert snapshot.data == []
    assert gateway.calls_for("fetch_page") == []


@pytest.mark.asyncio
async def test_identical_requests_give_identical_results():
    paginator = _paginator(FakeGateway({"category": _categories()}), page_size=SMALL_PAGE)
    first = await paginator.set_page(2)
    again = await paginator.refresh()
    assert first == again


@pytest.mark.asyncio
async def test_set_table_drops_previous_state():
    gateway = FakeGateway({"category": _categories(), "language": [{"language_id": 1, "name": "English"}]})
    paginator = _paginator(gateway)
    await paginator.set_filter("Category")

    snapshot = await paginator.set_table("language", OrderBy("name"))

    assert snapshot.table == "language"
    assert snapshot.filter_value is None
    assert snapshot.count == 1


@pytest.mark.asyncio
async def test_invalid_page_rejected():
    paginator = _paginator(FakeGateway({"category": _categories()}))
    with pytest.raises(ValueError):
        await paginator.set_page(0)
    with pytest.raises(ValueError):
        Paginator(FakeGateway().fetch_page, "category", page_size=0)
