# backend/tests/test_store.py
import pytest
from sqlalchemy.exc import OperationalError

from papertrade.errors import DuplicateUser, UnhandledStorageError, UserNotFound
from papertrade.models import Position, User
from papertrade.store import AccountStore, UserLocks


def test_create_and_find(db_session):
    store = AccountStore(db_session)
    user = store.create_user("Ada", "ada@example.com", "hash")
    assert user.id is not None
    assert user.balance == 10000.0
    assert user.portfolio == []
    assert store.find_by_email("ada@example.com").id == user.id
    assert store.find_by_email("nobody@example.com") is None


def test_starting_balance_is_configurable(db_session):
    user = AccountStore(db_session, starting_balance=500.0).create_user("B", "b@example.com", "h")
    assert user.balance == 500.0


def test_duplicate_email(db_session):
    store = AccountStore(db_session)
    store.create_user("Ada", "ada@example.com", "hash")
    with pytest.raises(DuplicateUser):
        store.create_user("Other", "ada@example.com", "hash2")


def test_get_by_email_missing(db_session):
    with pytest.raises(UserNotFound):
        AccountStore(db_session).get_by_email("ghost@example.com")


def test_save_persists_portfolio_changes(db_session):
    store = AccountStore(db_session)
    user = store.create_user("Ada", "ada@example.com", "hash")
    user.portfolio.append(Position(ticker="TSLA", units=3, avg_cost=200.0))
    user.portfolio.append(Position(ticker="GOOG", units=1, avg_cost=150.0))
    user.balance -= 750.0
    store.save(user)

    db_session.expire_all()
    again = store.get_by_email("ada@example.com")
    assert [(p.ticker, p.units) for p in again.portfolio] == [("TSLA", 3), ("GOOG", 1)]
    assert again.balance == 9250.0

    again.portfolio.remove(again.position("TSLA"))
    store.save(again)
    assert db_session.query(Position).count() == 1


def test_save_wraps_storage_errors(db_session, monkeypatch):
    store = AccountStore(db_session)
    user = store.create_user("Ada", "ada@example.com", "hash")

    def _fail():
        raise OperationalError("COMMIT", {}, Exception("disk I/O error"))

    monkeypatch.setattr(db_session, "commit", _fail)
    with pytest.raises(UnhandledStorageError) as ei:
        store.save(user)
    assert "disk I/O error" in str(ei.value)


def test_user_locks_reuse_one_lock_per_email():
    locks = UserLocks(enabled=True)
    assert locks._lock_for("a@x") is locks._lock_for("a@x")
    assert locks._lock_for("a@x") is not locks._lock_for("b@x")
    with locks.hold("a@x"):
        assert locks._lock_for("a@x").locked()
    assert not locks._lock_for("a@x").locked()


def test_user_locks_disabled_is_a_no_op():
    locks = UserLocks()
    with locks.hold("a@x"):
        pass
    assert locks._locks == {}
