"""Tests du service d'authentification (inscription, connexion, jetons)."""

import datetime as dt
import threading

import pytest

from clocwise.domain.auth import JwtTokenIssuer, hash_password, verify_password
from clocwise.domain.entities import Plan
from clocwise.domain.errors import (
    AuthFailure,
    ConflictFailure,
    InvalidTokenFailure,
    ValidationFailure,
)


@pytest.fixture
def auth(memory_container):
    return memory_container.auth_service


def test_password_hash_roundtrip():
    """Le hash vérifie le bon mot de passe et rejette les autres."""
    h = hash_password("secret123")
    assert h != "secret123"
    assert verify_password("secret123", h)
    assert not verify_password("wrong", h)
    assert not verify_password("secret123", "not-a-hash")


def test_register_returns_token_and_starter_user(auth):
    """L'inscription crée un compte `starter` avec email en minuscules."""
    result = auth.register("Alice", "Alice@Example.com", "secret123")
    assert result.user.email == "alice@example.com"
    assert result.user.plan == Plan.STARTER
    assert result.user.password_hash != "secret123"
    identity = auth.authenticate(result.token)
    assert identity.user_id == result.user.id
    assert identity.email == "alice@example.com"


@pytest.mark.parametrize(
    "full_name,email,password",
    [(None, "a@example.com", "secret123"), ("A", "", "secret123"), ("A", "a@example.com", None)],
)
def test_register_requires_all_fields(auth, full_name, email, password):
    with pytest.raises(ValidationFailure) as exc:
        auth.register(full_name, email, password)
    assert exc.value.message == "All fields are required"


def test_register_rejects_short_password(auth):
    with pytest.raises(ValidationFailure) as exc:
        auth.register("Alice", "alice@example.com", "12345")
    assert exc.value.message == "Password must be at least 6 characters"


def test_register_duplicate_email_any_case(auth):
    """Le même email, quelle que soit la casse, ne peut être inscrit deux fois."""
    auth.register("Alice", "alice@example.com", "secret123")
    with pytest.raises(ConflictFailure) as exc:
        auth.register("Alice Bis", "ALICE@example.com", "secret456")
    assert exc.value.message == "User already exists"


def test_concurrent_registrations_single_winner(auth):
    """Inscriptions simultanées du même email: une seule réussit."""
    outcomes = []
    lock = threading.Lock()

    def attempt():
        try:
            auth.register("Alice", "race@example.com", "secret123")
            result = "ok"
        except ConflictFailure:
            result = "conflict"
        with lock:
            outcomes.append(result)

    threads = [threading.Thread(target=attempt) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    assert outcomes.count("ok") == 1
    assert outcomes.count("conflict") == 7


def test_login_success(auth):
    registered = auth.register("Alice", "alice@example.com", "secret123")
    result = auth.login("ALICE@example.com", "secret123")
    assert result.user.id == registered.user.id
    assert auth.authenticate(result.token).user_id == registered.user.id


def test_login_failures_share_one_message(auth):
    """Utilisateur inconnu et mauvais mot de passe sont indiscernables."""
    auth.register("Alice", "alice@example.com", "secret123")
    with pytest.raises(AuthFailure) as unknown:
        auth.login("nobody@example.com", "secret123")
    with pytest.raises(AuthFailure) as wrong:
        auth.login("alice@example.com", "wrong-password")
    assert unknown.value.message == wrong.value.message == "Invalid credentials"


def test_login_requires_fields(auth):
    with pytest.raises(ValidationFailure) as exc:
        auth.login("alice@example.com", "")
    assert exc.value.message == "Email and password are required"


def test_authenticate_missing_and_invalid_tokens(auth):
    with pytest.raises(AuthFailure) as missing:
        auth.authenticate(None)
    assert not isinstance(missing.value, InvalidTokenFailure)
    assert missing.value.message == "Access token required"
    with pytest.raises(InvalidTokenFailure):
        auth.authenticate("not-a-jwt")


def test_token_signed_with_other_secret_or_expired_is_rejected():
    issuer = JwtTokenIssuer("secret-a")
    other = JwtTokenIssuer("secret-b")
    token = issuer.issue(42, "a@example.com", dt.timedelta(days=1))
    assert issuer.verify(token).user_id == 42
    assert other.verify(token) is None
    expired = issuer.issue(42, "a@example.com", dt.timedelta(seconds=-5))
    assert issuer.verify(expired) is None
