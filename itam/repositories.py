"""
Storage boundary for the transaction processor.

The processor only talks to the three small interfaces below, so the
same lifecycle rules run against the database in the web app and
against plain dictionaries in tests and scripts.

``AssetRepository.atomic(asset_id)`` is the concurrency contract: the
status check, the asset update and the transaction insert for one asset
all happen inside it, and nothing inside it is visible to another
caller working on the same asset until it exits.
"""

import logging
import threading
import uuid
from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from typing import Protocol

from sqlalchemy import select

from itam.extensions import db
from itam.models.asset import Asset
from itam.models.transaction import Transaction
from itam.models.user import User
from itam.state_machine import INITIAL_STATUS

logger = logging.getLogger(__name__)


# =========================================================================
# Interfaces
# =========================================================================


class AssetRepository(Protocol):
    def find_by_id(self, asset_id: str, for_update: bool = False) -> Asset | None: ...

    def save(self, asset: Asset) -> Asset: ...

    def atomic(self, asset_id: str): ...


class UserRepository(Protocol):
    def find_by_id(self, user_id: str) -> User | None: ...


class TransactionRepository(Protocol):
    def create(self, transaction: Transaction) -> Transaction: ...

    def list_for_asset(self, asset_id: int) -> list[Transaction]: ...


# =========================================================================
# SQLAlchemy implementations
# =========================================================================


class SqlAlchemyAssetRepository:
    """
    Assets stored through the Flask-SQLAlchemy session.

    ``atomic`` commits once on success and rolls back on any exception,
    so the status update and the transaction row land together or not
    at all.  ``find_by_id(for_update=True)`` takes a row lock on
    databases that support it; the ``version`` column catches the rest.
    """

    def __init__(self, session=None):
        self._session = session

    @property
    def session(self):
        return self._session if self._session is not None else db.session

    def find_by_id(self, asset_id: str, for_update: bool = False) -> Asset | None:
        stmt = select(Asset).where(Asset.uuid == asset_id)
        if for_update:
            stmt = stmt.with_for_update()
        return self.session.execute(stmt).scalar_one_or_none()

    def save(self, asset: Asset) -> Asset:
        self.session.add(asset)
        self.session.flush()
        return asset

    @contextmanager
    def atomic(self, asset_id: str) -> Iterator[None]:
        try:
            yield
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise


class SqlAlchemyUserRepository:
    """Read-only user lookup by external identifier."""

    def __init__(self, session=None):
        self._session = session

    @property
    def session(self):
        return self._session if self._session is not None else db.session

    def find_by_id(self, user_id: str) -> User | None:
        stmt = select(User).where(User.uuid == user_id)
        return self.session.execute(stmt).scalar_one_or_none()


class SqlAlchemyTransactionRepository:
    """Append-only transaction log table."""

    def __init__(self, session=None):
        self._session = session

    @property
    def session(self):
        return self._session if self._session is not None else db.session

    def create(self, transaction: Transaction) -> Transaction:
        self.session.add(transaction)
        self.session.flush()
        return transaction

    def list_for_asset(self, asset_id: int) -> list[Transaction]:
        stmt = (
            select(Transaction)
            .where(Transaction.asset_id == asset_id)
            .order_by(Transaction.transaction_date, Transaction.id)
        )
        return list(self.session.execute(stmt).scalars())


# =========================================================================
# In-memory implementations
# =========================================================================


class AssetLockRegistry:
    """
    One re-entrant lock per registered asset.

    Locks are created when an asset is registered, so looking up an
    unknown identifier never adds an entry.
    """

    def __init__(self):
        self._guard = threading.Lock()
        self._locks = {}

    def register(self, asset_id: str):
        with self._guard:
            return self._locks.setdefault(asset_id, threading.RLock())

    def lock_for(self, asset_id: str):
        """The asset's lock, or ``None`` if it was never registered."""
        with self._guard:
            return self._locks.get(asset_id)

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)


def _detached_copy(asset: Asset) -> Asset:
    """Column-for-column copy that shares no state with ``asset``."""
    values = {
        column.key: getattr(asset, column.key) for column in Asset.__table__.columns
    }
    if isinstance(values.get("specifications"), dict):
        values["specifications"] = dict(values["specifications"])
    return Asset(**values)


class InMemoryAssetRepository:
    """
    Assets held in a dict keyed by ``uuid``.

    ``atomic`` serializes callers per asset and puts status and holder
    back if anything inside the block raises.

    ``find_by_id(for_update=True)`` hands out the stored object and must
    be called inside ``atomic``.  A plain ``find_by_id`` waits for any
    running ``atomic`` block on that asset and returns a copy, so readers
    never see a status whose transaction is not logged yet.
    """

    def __init__(self, assets: Iterable[Asset] = ()):
        self._assets: dict[str, Asset] = {}
        self._locks = AssetLockRegistry()
        self._next_id = 1
        for asset in assets:
            self.add(asset)

    def add(self, asset: Asset) -> Asset:
        """Register a new asset, filling identity and initial status."""
        if asset.id is None:
            asset.id = self._next_id
        self._next_id = max(self._next_id, asset.id) + 1
        if asset.uuid is None:
            asset.uuid = str(uuid.uuid4())
        if asset.status is None:
            asset.status = INITIAL_STATUS.value
        self._locks.register(asset.uuid)
        self._assets[asset.uuid] = asset
        return asset

    def find_by_id(self, asset_id: str, for_update: bool = False) -> Asset | None:
        if for_update:
            return self._assets.get(asset_id)
        lock = self._locks.lock_for(asset_id)
        if lock is None:
            return None
        with lock:
            asset = self._assets.get(asset_id)
            return _detached_copy(asset) if asset is not None else None

    def save(self, asset: Asset) -> Asset:
        self._assets[asset.uuid] = asset
        return asset

    @contextmanager
    def atomic(self, asset_id: str) -> Iterator[None]:
        # Unknown ids get a private lock; the caller's lookup will miss.
        lock = self._locks.lock_for(asset_id) or threading.RLock()
        with lock:
            asset = self._assets.get(asset_id)
            snapshot = (
                (asset.status, asset.current_holder_id) if asset is not None else None
            )
            try:
                yield
            except Exception:
                if snapshot is not None:
                    asset.status, asset.current_holder_id = snapshot
                raise

    def __len__(self) -> int:
        return len(self._assets)


class InMemoryUserRepository:
    """Users held in a dict keyed by ``uuid``."""

    def __init__(self, users: Iterable[User] = ()):
        self._users: dict[str, User] = {}
        for index, user in enumerate(users, start=1):
            if user.id is None:
                user.id = index
            if user.uuid is None:
                user.uuid = str(uuid.uuid4())
            self._users[user.uuid] = user

    def find_by_id(self, user_id: str) -> User | None:
        return self._users.get(user_id)


class InMemoryTransactionRepository:
    """Append-only list of transactions.  There is no update or delete."""

    def __init__(self):
        self._lock = threading.Lock()
        self._entries: list[Transaction] = []

    def create(self, transaction: Transaction) -> Transaction:
        with self._lock:
            transaction.id = len(self._entries) + 1
            if transaction.uuid is None:
                transaction.uuid = str(uuid.uuid4())
            self._entries.append(transaction)
        return transaction

    def list_for_asset(self, asset_id: int) -> list[Transaction]:
        with self._lock:
            entries = [t for t in self._entries if t.asset_id == asset_id]
        return sorted(entries, key=lambda t: (t.transaction_date, t.id))

    def all(self) -> tuple[Transaction, ...]:
        """Snapshot of every entry in append order."""
        with self._lock:
            return tuple(self._entries)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
