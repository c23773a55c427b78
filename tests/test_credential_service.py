"""Unit tests for auth/service.py -- registration and login orchestration.

Covers:
- register -> login round trip yields a token for the created id/role
- The stored hash is not the plaintext
- Unknown role fails with InvalidRole before anything is hashed or stored
- Duplicate email (any case, any password/role) fails with DuplicateEmail,
  including two registrations racing on a file-backed store
- Wrong password and unknown email fail identically with InvalidCredentials,
  and both run a bcrypt verification
- StoreUnavailable passes through untouched
"""

import threading
from pathlib import Path
from unittest.mock import MagicMock

import pytest
from sqlalchemy import func, select

from auth.models import Role
from auth.passwords import PasswordHasher
from auth.service import CredentialService
from auth.store import UserStore, _users
from auth.tokens import TokenService
from core.errors import DuplicateEmail, InvalidCredentials, InvalidRole, StoreUnavailable


@pytest.fixture
def service(user_store: UserStore, hasher: PasswordHasher, tokens: TokenService) -> CredentialService:
    return CredentialService(user_store, hasher, tokens)


# ---------------------------------------------------------------------------
# Registration
# ---------------------------------------------------------------------------


@pytest.mark.parametrize("role", ["admin", "shipper", "carrier"])
def test_register_then_login_round_trip(service: CredentialService, role: str) -> None:
    user = service.register("a@x.com", "secret1", role)
    logged_in, token = service.login("a@x.com", "secret1")
    identity = service.tokens.verify(token)
    assert logged_in.id == user.id
    assert identity.user_id == user.id
    assert identity.role is Role(role)


def test_register_stores_hash_not_plaintext(service: CredentialService, user_store: UserStore) -> None:
    service.register("a@x.com", "secret1", "admin")
    stored = user_store.find_by_email("a@x.com")
    assert stored.password_hash != "secret1"
    assert "secret1" not in stored.password_hash
    assert service.hasher.verify("secret1", stored.password_hash)


def test_register_normalizes_email(service: CredentialService) -> None:
    user = service.register("  Someone@Example.COM ", "secret1", "shipper")
    assert user.email == "someone@example.com"
    logged_in, _ = service.login("SOMEONE@example.com", "secret1")
    assert logged_in.id == user.id


@pytest.mark.parametrize("role", ["superuser", "", "Admin", "ADMIN "])
def test_register_invalid_role(role: str) -> None:
    store = MagicMock()
    hasher = MagicMock()
    service = CredentialService(store, hasher, MagicMock())
    with pytest.raises(InvalidRole):
        service.register("a@x.com", "secret1", role)
    hasher.hash.assert_not_called()
    store.insert.assert_not_called()


def test_register_duplicate_email(service: CredentialService) -> None:
    service.register("dup@x.com", "secret1", "admin")
    with pytest.raises(DuplicateEmail):
        service.register("DUP@x.com", "different-pass", "carrier")


def test_concurrent_registration_creates_one_user(
    tmp_path: Path, hasher: PasswordHasher, tokens: TokenService
) -> None:
    store = UserStore(f"sqlite:///{tmp_path / 'race.db'}")
    service = CredentialService(store, hasher, tokens)
    barrier = threading.Barrier(2)
    outcomes: list[str] = []
    lock = threading.Lock()

    def attempt(password: str) -> None:
        barrier.wait()
        try:
            service.register("race@x.com", password, "shipper")
            result = "created"
        except DuplicateEmail:
            result = "duplicate"
        with lock:
            outcomes.append(result)

    threads = [threading.Thread(target=attempt, args=(p,)) for p in ("secret-one", "secret-two")]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=30)

    try:
        assert sorted(outcomes) == ["created", "duplicate"]
        with store.engine.connect() as conn:
            count = conn.execute(select(func.count()).select_from(_users)).scalar_one()
        assert count == 1
    finally:
        store.close()


def test_register_store_fault_propagates(hasher: PasswordHasher, tokens: TokenService) -> None:
    store = MagicMock()
    store.insert.side_effect = StoreUnavailable()
    service = CredentialService(store, hasher, tokens)
    with pytest.raises(StoreUnavailable):
        service.register("a@x.com", "secret1", "admin")


# ---------------------------------------------------------------------------
# Login
# ---------------------------------------------------------------------------


def test_login_failures_are_indistinguishable(service: CredentialService) -> None:
    service.register("a@x.com", "secret1", "admin")

    with pytest.raises(InvalidCredentials) as wrong_password:
        service.login("a@x.com", "wrong-password")
    with pytest.raises(InvalidCredentials) as unknown_email:
        service.login("nobody@x.com", "secret1")

    assert type(wrong_password.value) is type(unknown_email.value)
    assert wrong_password.value.code == unknown_email.value.code
    assert wrong_password.value.message == unknown_email.value.message


def test_unknown_email_still_runs_bcrypt(service: CredentialService, monkeypatch: pytest.MonkeyPatch) -> None:
    calls = []
    original = service.hasher.verify

    def spy(plaintext: str, hashed: str) -> bool:
        calls.append(hashed)
        return original(plaintext, hashed)

    monkeypatch.setattr(service.hasher, "verify", spy)
    with pytest.raises(InvalidCredentials):
        service.login("nobody@x.com", "secret1")
    assert len(calls) == 1, "Unknown email must cost one bcrypt verification"


def test_login_store_fault_propagates(hasher: PasswordHasher, tokens: TokenService) -> None:
    store = MagicMock()
    store.find_by_email.side_effect = StoreUnavailable()
    service = CredentialService(store, hasher, tokens)
    with pytest.raises(StoreUnavailable):
        service.login("a@x.com", "secret1")
