"""Tests de l'agrégation des statistiques (fenêtres jour/semaine/mois, arrondis)."""

import datetime as dt
from decimal import Decimal

import pytest

from clocwise.domain.entities import ClientDraft, Identity, Plan, ProjectDraft, TimeEntryDraft
from clocwise.domain.stats import StatsAggregator, format_earnings, format_hours, week_start_for
from clocwise.infra.repo.db import get_engine
from clocwise.infra.repo.memory_store import InMemoryLedgerStore
from clocwise.infra.repo.sql_store import SqlLedgerStore
from clocwise.infra.repositories import StoreRouter, TimeEntryRepository

WEDNESDAY = dt.date(2026, 10, 21)


@pytest.fixture(params=["memory", "sql"])
def store(request):
    """Les fenêtres sont vérifiées sur les deux stores."""
    if request.param == "memory":
        return InMemoryLedgerStore()
    return SqlLedgerStore(get_engine("sqlite+pysqlite:///:memory:"))


def test_week_start_for():
    assert week_start_for(WEDNESDAY, "sunday") == dt.date(2026, 10, 18)
    assert week_start_for(WEDNESDAY, "monday") == dt.date(2026, 10, 19)
    assert week_start_for(dt.date(2026, 10, 18), "sunday") == dt.date(2026, 10, 18)
    assert week_start_for(dt.date(2026, 10, 18), "monday") == dt.date(2026, 10, 12)


@pytest.mark.parametrize(
    "seconds,expected",
    [(0, "0.0"), (5400, "1.5"), (6300, "1.8"), (180, "0.1"), (179, "0.0"), (36000, "10.0")],
)
def test_format_hours(seconds, expected):
    assert format_hours(seconds) == expected


@pytest.mark.parametrize(
    "earnings,expected",
    [(Decimal("0"), "0"), (Decimal("14.5"), "15"), (Decimal("14.49"), "14"), (Decimal("37.5"), "38")],
)
def test_format_earnings(earnings, expected):
    assert format_earnings(earnings) == expected


def _setup(store):
    user = store.create_user("Alice", "alice@example.com", "hash", Plan.STARTER)
    client = store.create_client_with_project(
        user.id, ClientDraft(name="Acme", hourly_rate=Decimal("10")), ProjectDraft(name="Web")
    )
    pid = client.projects[0].id
    for date, seconds in [
        (WEDNESDAY, 3600),
        (WEDNESDAY, 1800),
        (dt.date(2026, 10, 18), 900),
        (dt.date(2026, 10, 2), 7200),
        (dt.date(2026, 9, 30), 3600),
    ]:
        store.create_time_entry(
            user.id,
            TimeEntryDraft(
                project_id=pid, date=date, start_time=dt.time(9, 0), duration_seconds=seconds
            ),
        )
    return user


def _aggregator(store, week_start):
    repo = TimeEntryRepository(StoreRouter(None, store))
    return StatsAggregator(repo, week_start=week_start, today=lambda: WEDNESDAY)


def test_compute_windows_sunday_start(store):
    """Jour, semaine (depuis dimanche) et mois, gains sur le mois."""
    user = _setup(store)
    summary = _aggregator(store, "sunday").compute(user.id)
    assert summary.today_hours == "1.5"
    assert summary.week_hours == "1.8"
    assert summary.month_hours == "3.8"
    assert summary.total_earnings == "38"


def test_compute_windows_monday_start(store):
    user = _setup(store)
    summary = _aggregator(store, "monday").compute(user.id)
    assert summary.week_hours == "1.5"


def test_compute_without_entries_is_zero(store):
    user = store.create_user("Bob", "bob@example.com", "hash", Plan.STARTER)
    summary = _aggregator(store, "sunday").compute(user.id)
    assert (summary.today_hours, summary.week_hours, summary.month_hours) == ("0.0",) * 3
    assert summary.total_earnings == "0"


def test_earnings_identical_on_both_backends(memory_container, sql_container):
    """Taux à plus de deux décimales: les deux backends stockent et totalisent pareil."""
    totals = []
    for c in (memory_container, sql_container):
        user = c.user_repo.create_user("Alice", "alice@example.com", "hash")
        identity = Identity(user_id=user.id, email=user.email)
        for rate, seconds in [("0.004", 3_600_000), ("12.345", 5400)]:
            client = c.client_service.create(identity, "Acme", None, rate, "Web")
            c.time_entry_service.create(
                identity, client.projects[0].id, WEDNESDAY.isoformat(), "09:00", seconds
            )
        totals.append(c.time_entry_repo.window_totals(user.id, WEDNESDAY, WEDNESDAY))
    memory, sql = totals
    assert memory.total_seconds == sql.total_seconds == 3_605_400
    assert memory.earnings == sql.earnings == Decimal("18.525")
    assert format_earnings(memory.earnings) == format_earnings(sql.earnings) == "19"
