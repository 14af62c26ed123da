from __future__ import annotations

import pytest

from custody.application import Ledger, SessionAuthenticator, StatefulTokenStrategy
from custody.domain.ledger import Account
from custody.domain.users import (
    AccountLockedError,
    InvalidCredentialsError,
    InvalidInputError,
    UnauthorizedError,
    UserAlreadyExistsError,
)
from custody.infrastructure.repositories.memory import (
    InMemoryAccountRepository,
    InMemorySessionTokenRepository,
    InMemoryStore,
    InMemoryUserRepository,
)
from custody.shared.errors import StorageUnavailableError

from conftest import DeterministicHasher, FakeClock


def test_register_login_validate_round_trip(
    authenticator: SessionAuthenticator, store: InMemoryStore
) -> None:
    user = authenticator.register("alice", "s3cret")
    token = authenticator.login("alice", "s3cret")

    assert user.id == "alice"
    assert user.password_hash == "hashed:s3cret"
    assert authenticator.validate(token.value) == "alice"
    assert (token.expires_at - token.issued_at).total_seconds() == 24 * 60 * 60


def test_register_creates_zero_balance_account(
    authenticator: SessionAuthenticator, store: InMemoryStore
) -> None:
    authenticator.register("alice", "s3cret")
    ledger = Ledger(accounts=InMemoryAccountRepository(store))

    account = ledger.account_for_owner("alice")
    assert account.balance == 0
    assert account.id != "alice"


def test_register_strips_user_id(authenticator: SessionAuthenticator) -> None:
    assert authenticator.register("  alice ", "s3cret").id == "alice"
    assert authenticator.validate(authenticator.login("alice", "s3cret").value) == "alice"


def test_register_duplicate(authenticator: SessionAuthenticator) -> None:
    authenticator.register("alice", "s3cret")

    with pytest.raises(UserAlreadyExistsError):
        authenticator.register("alice", "other")

    # original secret still works
    authenticator.login("alice", "s3cret")


@pytest.mark.parametrize(
    ("user_id", "secret", "field"),
    [
        ("", "s3cret", "user_id"),
        ("   ", "s3cret", "user_id"),
        ("x" * 65, "s3cret", "user_id"),
        (None, "s3cret", "user_id"),
        ("alice", "", "secret"),
        ("alice", "x" * 129, "secret"),
    ],
)
def test_register_invalid_input(
    authenticator: SessionAuthenticator, user_id, secret, field: str
) -> None:
    with pytest.raises(InvalidInputError) as excinfo:
        authenticator.register(user_id, secret)

    assert excinfo.value.context == {"field": field}


def test_invalid_credentials_identical_for_unknown_and_wrong(
    authenticator: SessionAuthenticator, hasher: DeterministicHasher
) -> None:
    authenticator.register("alice", "s3cret")

    with pytest.raises(InvalidCredentialsError) as wrong:
        authenticator.login("alice", "nope")
    calls_after_wrong = hasher.verify_calls
    with pytest.raises(InvalidCredentialsError) as unknown:
        authenticator.login("bob", "nope")

    assert wrong.value.to_dict() == unknown.value.to_dict()
    assert wrong.value.status == unknown.value.status
    # the unknown id still paid for one verification
    assert hasher.verify_calls == calls_after_wrong + 1


@pytest.mark.parametrize("secret", ["", "x" * 129])
def test_unusable_secret_costs_one_verify_for_known_and_unknown(
    authenticator: SessionAuthenticator, hasher: DeterministicHasher, secret: str
) -> None:
    authenticator.register("alice", "s3cret")

    before = hasher.verify_calls
    with pytest.raises(InvalidCredentialsError) as known:
        authenticator.login("alice", secret)
    known_calls = hasher.verify_calls - before

    before = hasher.verify_calls
    with pytest.raises(InvalidCredentialsError) as unknown:
        authenticator.login("bob", secret)
    unknown_calls = hasher.verify_calls - before

    assert known_calls == unknown_calls == 1
    assert known.value.to_dict() == unknown.value.to_dict()


def test_expired_token_rejected_without_sweep(
    authenticator: SessionAuthenticator, clock: FakeClock
) -> None:
    authenticator.register("alice", "s3cret")
    token = authenticator.login("alice", "s3cret")

    clock.advance(hours=23, minutes=59)
    assert authenticator.validate(token.value) == "alice"

    clock.advance(minutes=1)
    with pytest.raises(UnauthorizedError):
        authenticator.validate(token.value)


def test_expired_token_collected_on_validate(
    authenticator: SessionAuthenticator, clock: FakeClock, store: InMemoryStore
) -> None:
    authenticator.register("alice", "s3cret")
    token = authenticator.login("alice", "s3cret")
    clock.advance(hours=25)

    with pytest.raises(UnauthorizedError):
        authenticator.validate(token.value)

    assert token.value not in store.tokens


@pytest.mark.parametrize("token", [None, "", "unknown-token", "x" * 5000, 42])
def test_validate_rejects_bad_tokens(authenticator: SessionAuthenticator, token) -> None:
    with pytest.raises(UnauthorizedError):
        authenticator.validate(token)


def test_revoke_is_idempotent(authenticator: SessionAuthenticator, clock: FakeClock) -> None:
    authenticator.register("alice", "s3cret")
    token = authenticator.login("alice", "s3cret")

    authenticator.revoke(token.value)
    authenticator.revoke(token.value)
    authenticator.revoke("never-issued")
    authenticator.revoke(None)

    with pytest.raises(UnauthorizedError):
        authenticator.validate(token.value)


def test_multiple_live_tokens_per_user(authenticator: SessionAuthenticator) -> None:
    authenticator.register("alice", "s3cret")
    first = authenticator.login("alice", "s3cret")
    second = authenticator.login("alice", "s3cret")

    assert first.value != second.value
    authenticator.revoke(first.value)
    assert authenticator.validate(second.value) == "alice"


def test_sweep_expired_removes_only_expired(
    authenticator: SessionAuthenticator, clock: FakeClock, store: InMemoryStore
) -> None:
    authenticator.register("alice", "s3cret")
    old = authenticator.login("alice", "s3cret")
    clock.advance(hours=12)
    fresh = authenticator.login("alice", "s3cret")
    clock.advance(hours=13)

    assert authenticator.sweep_expired() == 1
    assert old.value not in store.tokens
    assert authenticator.validate(fresh.value) == "alice"
    assert authenticator.sweep_expired() == 0


def test_lockout_after_repeated_failures(authenticator: SessionAuthenticator) -> None:
    authenticator.register("alice", "s3cret")
    for _ in range(5):
        with pytest.raises(InvalidCredentialsError):
            authenticator.login("alice", "wrong")

    with pytest.raises(AccountLockedError):
        authenticator.login("alice", "s3cret")


def test_lockout_applies_to_unknown_ids(authenticator: SessionAuthenticator) -> None:
    for _ in range(5):
        with pytest.raises(InvalidCredentialsError):
            authenticator.login("ghost", "wrong")

    with pytest.raises(AccountLockedError):
        authenticator.login("ghost", "wrong")


class _FailingAccountInsert(InMemoryUserRepository):
    def _insert_account(self, account: Account) -> None:
        raise StorageUnavailableError(context={"operation": "accounts.insert"})


def test_registration_is_atomic_under_storage_fault(
    store: InMemoryStore, hasher: DeterministicHasher, clock: FakeClock
) -> None:
    tokens = StatefulTokenStrategy(InMemorySessionTokenRepository(store))
    failing = SessionAuthenticator(
        users=_FailingAccountInsert(store), tokens=tokens, password_hasher=hasher, clock=clock
    )

    with pytest.raises(StorageUnavailableError):
        failing.register("alice", "s3cret")

    assert store.users == {}
    assert store.accounts == {}

    healthy = SessionAuthenticator(
        users=InMemoryUserRepository(store), tokens=tokens, password_hasher=hasher, clock=clock
    )
    healthy.register("alice", "s3cret")
    assert healthy.validate(healthy.login("alice", "s3cret").value) == "alice"
