"""Contrat commun des stores: SQL (SQLite en mémoire) et mémoire doivent se comporter pareil."""

import datetime as dt
from decimal import Decimal

import pytest

from clocwise.domain.entities import ClientDraft, Plan, ProjectDraft, TimeEntryDraft, TimeEntryQuery
from clocwise.domain.errors import ConflictFailure, NotFoundFailure
from clocwise.infra.repo.db import get_engine
from clocwise.infra.repo.memory_store import InMemoryLedgerStore
from clocwise.infra.repo.sql_store import SqlLedgerStore

DAY = dt.date(2026, 10, 21)


@pytest.fixture(params=["memory", "sql"])
def store(request):
    """Store neuf de chaque type."""
    if request.param == "memory":
        return InMemoryLedgerStore()
    return SqlLedgerStore(get_engine("sqlite+pysqlite:///:memory:"))


def _user(store, email="alice@example.com"):
    return store.create_user("Alice", email, "hash", Plan.STARTER)


def _client(store, owner_id, name="Acme", rate="10", project="Website"):
    return store.create_client_with_project(
        owner_id,
        ClientDraft(name=name, hourly_rate=Decimal(rate)),
        ProjectDraft(name=project),
    )


def _entry(store, owner_id, project_id, date=DAY, seconds=3600):
    return store.create_time_entry(
        owner_id,
        TimeEntryDraft(
            project_id=project_id,
            date=date,
            start_time=dt.time(9, 0),
            duration_seconds=seconds,
        ),
    )


def test_create_and_find_user_case_insensitive(store):
    """L'email est stocké en minuscules et retrouvé quelle que soit la casse."""
    user = store.create_user("Alice", "Alice@Example.com", "hash", Plan.STARTER)
    assert user.email == "alice@example.com"
    assert user.plan == Plan.STARTER
    found = store.find_user_by_email("ALICE@example.COM")
    assert found is not None and found.id == user.id
    assert store.find_user_by_email("bob@example.com") is None


def test_duplicate_email_conflicts(store):
    """Un second compte avec le même email (casse différente) est refusé."""
    _user(store)
    with pytest.raises(ConflictFailure):
        store.create_user("Other", "ALICE@example.com", "hash", Plan.STARTER)


def test_client_created_with_its_project(store):
    """Client et projet initial sont créés ensemble et relus ensemble."""
    user = _user(store)
    client = _client(store, user.id)
    assert client.owner_user_id == user.id
    assert Decimal(client.hourly_rate) == Decimal("10")
    assert [p.name for p in client.projects] == ["Website"]
    assert client.projects[0].client_id == client.id
    listed = store.list_clients_with_projects(user.id)
    assert [c.id for c in listed] == [client.id]
    assert [p.id for p in listed[0].projects] == [client.projects[0].id]


def test_clients_are_listed_newest_first_and_scoped(store):
    """Les clients sont triés du plus récent au plus ancien, par propriétaire."""
    alice = _user(store)
    bob = _user(store, "bob@example.com")
    first = _client(store, alice.id, name="First")
    second = _client(store, alice.id, name="Second")
    _client(store, bob.id, name="Bob's")
    assert [c.id for c in store.list_clients_with_projects(alice.id)] == [second.id, first.id]
    assert [c.name for c in store.list_clients_with_projects(bob.id)] == ["Bob's"]


def test_project_ownership_goes_through_client(store):
    """Un projet n'est visible que par le propriétaire de son client."""
    alice = _user(store)
    bob = _user(store, "bob@example.com")
    project = _client(store, alice.id).projects[0]
    assert store.find_project_owned_by(alice.id, project.id).id == project.id
    assert store.find_project_owned_by(bob.id, project.id) is None
    with pytest.raises(NotFoundFailure):
        _entry(store, bob.id, project.id)


def test_delete_client_cascades(store):
    """Supprimer un client retire ses projets et ses saisies."""
    user = _user(store)
    client = _client(store, user.id)
    project_id = client.projects[0].id
    _entry(store, user.id, project_id)
    store.delete_client_cascade(user.id, client.id)
    assert store.list_clients_with_projects(user.id) == []
    assert store.find_project_owned_by(user.id, project_id) is None
    assert store.list_time_entries(user.id, TimeEntryQuery()) == []
    assert store.window_totals(user.id, DAY, DAY).total_seconds == 0


def test_delete_client_of_someone_else_is_not_found(store):
    """Un client d'un autre utilisateur est indiscernable d'un client absent."""
    alice = _user(store)
    bob = _user(store, "bob@example.com")
    client = _client(store, alice.id)
    with pytest.raises(NotFoundFailure):
        store.delete_client_cascade(bob.id, client.id)
    with pytest.raises(NotFoundFailure):
        store.delete_client_cascade(alice.id, 987654)
    assert len(store.list_clients_with_projects(alice.id)) == 1


def test_list_time_entries_order_filters_and_pagination(store):
    """Tri date desc puis création desc; filtres inclusifs; limit/offset."""
    user = _user(store)
    client = _client(store, user.id)
    pid = client.projects[0].id
    other_pid = _client(store, user.id, name="Globex", project="Audit").projects[0].id
    old = _entry(store, user.id, pid, date=DAY - dt.timedelta(days=2))
    first_today = _entry(store, user.id, pid)
    second_today = _entry(store, user.id, other_pid)
    ids = [e.id for e in store.list_time_entries(user.id, TimeEntryQuery())]
    assert ids == [second_today.id, first_today.id, old.id]

    rows = store.list_time_entries(user.id, TimeEntryQuery(start_date=DAY, end_date=DAY))
    assert {e.id for e in rows} == {first_today.id, second_today.id}
    rows = store.list_time_entries(user.id, TimeEntryQuery(project_id=other_pid))
    assert [e.id for e in rows] == [second_today.id]
    assert rows[0].project_name == "Audit"
    assert rows[0].client_name == "Globex"
    assert Decimal(rows[0].hourly_rate) == Decimal("10")

    page = store.list_time_entries(user.id, TimeEntryQuery(limit=1, offset=1))
    assert [e.id for e in page] == [first_today.id]


def test_time_entries_are_scoped_to_owner(store):
    """Les saisies d'un autre utilisateur ne sont ni listées ni supprimables."""
    alice = _user(store)
    bob = _user(store, "bob@example.com")
    pid = _client(store, alice.id).projects[0].id
    entry = _entry(store, alice.id, pid)
    assert store.list_time_entries(bob.id, TimeEntryQuery()) == []
    with pytest.raises(NotFoundFailure):
        store.delete_time_entry(bob.id, entry.id)
    store.delete_time_entry(alice.id, entry.id)
    assert store.list_time_entries(alice.id, TimeEntryQuery()) == []
    with pytest.raises(NotFoundFailure):
        store.delete_time_entry(alice.id, entry.id)


def test_window_totals_sums_seconds_and_earnings(store):
    """Durées cumulées et gains au taux de chaque client, bornes incluses."""
    user = _user(store)
    pid = _client(store, user.id, rate="10").projects[0].id
    other_pid = _client(store, user.id, name="Globex", rate="30").projects[0].id
    _entry(store, user.id, pid, seconds=3600)
    _entry(store, user.id, pid, seconds=1800)
    _entry(store, user.id, other_pid, date=DAY - dt.timedelta(days=1), seconds=1200)
    _entry(store, user.id, other_pid, date=DAY - dt.timedelta(days=5), seconds=3600)

    totals = store.window_totals(user.id, DAY - dt.timedelta(days=1), DAY)
    assert totals.total_seconds == 6600
    assert totals.earnings == Decimal("25")


def test_window_totals_empty_is_zero(store):
    """Sans saisie, les totaux sont nuls."""
    user = _user(store)
    totals = store.window_totals(user.id, DAY, DAY)
    assert totals.total_seconds == 0
    assert totals.earnings == 0
