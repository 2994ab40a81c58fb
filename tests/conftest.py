"""Configuration de test pour pytest avec gestion des chemins.

Ce module ajoute la racine du projet au sys.path et fournit des conteneurs isolés (stockage mémoire
seul, SQLite en mémoire comme primaire, primaire injoignable) ainsi qu'un client HTTP branché sur
le conteneur choisi.
"""

import os
import sys

import pytest
from fastapi.testclient import TestClient

# Ensure project root is on sys.path so that
# imports like `from clocwise...` resolve.
CURRENT_DIR = os.path.dirname(__file__)
PROJECT_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, ".."))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from clocwise.api.deps import get_container  # noqa: E402
from clocwise.app.main import app  # noqa: E402
from clocwise.core.container import Container  # noqa: E402
from clocwise.core.settings import Settings  # noqa: E402
from clocwise.infra.repo.db import get_engine  # noqa: E402
from clocwise.infra.repo.sql_store import SqlLedgerStore  # noqa: E402

UNREACHABLE_DB_URL = "sqlite:////nonexistent-clocwise-dir/ledger.db"


def make_settings(**overrides) -> Settings:
    """Paramètres de test: pas de base configurée, secret fixe."""
    values = {"DATABASE_URL": None, "JWT_SECRET": "test-secret"}
    values.update(overrides)
    return Settings(**values)


@pytest.fixture
def memory_container():
    """Conteneur sans primaire: tout passe par le stockage mémoire."""
    return Container(settings=make_settings())


@pytest.fixture
def sql_container():
    """Conteneur avec SQLite en mémoire comme store primaire."""
    primary = SqlLedgerStore(get_engine("sqlite+pysqlite:///:memory:"))
    return Container(settings=make_settings(), primary=primary)


@pytest.fixture
def unreachable_container():
    """Conteneur dont le primaire est injoignable (fichier SQLite impossible à ouvrir)."""
    primary = SqlLedgerStore(get_engine(UNREACHABLE_DB_URL))
    return Container(settings=make_settings(), primary=primary)


@pytest.fixture(params=["memory", "sql"])
def container(request):
    """Conteneur paramétré: les mêmes tests tournent sur les deux backends."""
    return request.getfixturevalue(f"{request.param}_container")


def _client_for(c: Container):
    app.dependency_overrides[get_container] = lambda: c
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.pop(get_container, None)


@pytest.fixture
def client(container):
    """Client HTTP branché sur le conteneur paramétré."""
    yield from _client_for(container)


@pytest.fixture
def degraded_client(unreachable_container):
    """Client HTTP dont le store primaire est injoignable."""
    yield from _client_for(unreachable_container)
