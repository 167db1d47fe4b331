from __future__ import annotations

import logging
import threading
from contextlib import contextmanager, nullcontext
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from .errors import DuplicateUser, UserNotFound, UnhandledStorageError
from .models import User

log = logging.getLogger("papertrade")

class AccountStore:
    """User records: create, look up by email, persist after mutation.

    Each request re-reads the user and writes it back; there is no
    compare-and-swap, so two trades for the same user can lose an update.
    """

    def __init__(self, db: Session, starting_balance: float = 10000.0):
        self.db = db
        self.starting_balance = starting_balance

    def find_by_email(self, email: str) -> Optional[User]:
        return self.db.execute(select(User).where(User.email == email)).scalar_one_or_none()

    def get_by_email(self, email: str) -> User:
        user = self.find_by_email(email)
        if user is None:
            raise UserNotFound()
        return user

    def create_user(self, name: str, email: str, password_hash: str) -> User:
        if self.find_by_email(email) is not None:
            raise DuplicateUser()
        user = User(name=name, email=email, password=password_hash, balance=self.starting_balance)
        self.db.add(user)
        try:
            self.db.commit()
        except IntegrityError:
            # lost the race against a concurrent register for the same email
            self.db.rollback()
            raise DuplicateUser() from None
        except SQLAlchemyError as e:
            self.db.rollback()
            raise UnhandledStorageError(str(e)) from e
        self.db.refresh(user)
        return user

    def save(self, user: User) -> User:
        try:
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            log.error("save failed for %s: %s", user.email, e)
            raise UnhandledStorageError(str(e)) from e
        self.db.refresh(user)
        return user

class UserLocks:
    """Per-email mutexes for serializing trades inside one process.

    One lock is kept per email that has ever traded while enabled; entries are
    never evicted, so memory grows with the number of distinct traders.
    """

    def __init__(self, enabled: bool = False):
        self.enabled = enabled
        self._locks: dict[str, threading.Lock] = {}
        self._guard = threading.Lock()

    def _lock_for(self, email: str) -> threading.Lock:
        with self._guard:
            lk = self._locks.get(email)
            if lk is None:
                lk = self._locks[email] = threading.Lock()
            return lk

    @contextmanager
    def hold(self, email: str):
        cm = self._lock_for(email) if self.enabled else nullcontext()
        with cm:
            yield
