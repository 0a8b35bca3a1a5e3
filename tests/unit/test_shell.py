from __future__ import annotations

from typing import List, Optional, Tuple

import pytest

from fakes import FakeGateway
from sakila_admin.shell import NAVIGATION, AdminShell, startup_check
from sakila_admin.views.specs import VIEWS


def test_every_list_view_is_reachable_from_navigation():
    shell = AdminShell()
    for view_id in VIEWS:
        assert shell.knows(view_id), view_id
    for view_id in ("dashboard", "statistics", "analytics", "sales-by-category", "explorer"):
        assert shell.knows(view_id)


def test_request_view_notifies_listeners():
    shell = AdminShell()
    changes: List[Tuple[str, Optional[str]]] = []
    shell.on_change(lambda new, old: changes.append((new, old)))

    assert shell.request_view("films") == "films"
    assert shell.request_view("explorer") == "explorer"

    assert changes == [("films", "dashboard"), ("explorer", "films")]
    assert shell.active_view == "explorer"


def test_same_view_does_not_notify():
    shell = AdminShell(initial="films")
    changes: List[str] = []
    shell.on_change(lambda new, old: changes.append(new))

    shell.request_view("films")

    assert changes == []


def test_unsubscribe_stops_notifications():
    shell = AdminShell()
    changes: List[str] = []
    unsubscribe = shell.on_change(lambda new, old: changes.append(new))

    unsubscribe()
    shell.select("actors")

    assert changes == []


def test_grouped_item_opens_first_tab():
    shell = AdminShell()

    assert shell.request_view("locations") == "countries"
    assert shell.active_item.id == "locations"
    assert shell.tabs() == ("countries", "cities", "addresses")

    shell.request_view("cities")
    assert shell.active_view == "cities"


def test_unknown_views_are_rejected():
    shell = AdminShell()
    with pytest.raises(ValueError):
        shell.request_view("reports")
    with pytest.raises(ValueError):
        AdminShell(initial="nowhere")


def test_describe_is_serialisable_navigation():
    descriptor = AdminShell().describe()
    assert descriptor["active_view"] == "dashboard"
    assert [item["id"] for item in descriptor["navigation"]] == [item.id for item in NAVIGATION]


@pytest.mark.asyncio
async def test_startup_check_reports_both_outcomes():
    gateway = FakeGateway()
    ok = await startup_check(gateway)
    assert ok.ok is True
    assert ok.latency_ms is not None

    gateway.unreachable = True
    failed = await startup_check(gateway)
    assert failed.ok is False
    assert failed.message == "Database unreachable: connection refused"
    assert failed.error is not None
