"""Cart snapshot persistence adapters.

The cart engine does not care where a cart lives. Adapters give it a unified
save/load/clear interface over a database table or a process-local store.
"""

import logging
from abc import ABC, abstractmethod
from contextlib import AbstractAsyncContextManager
from typing import Callable

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from db import get_db_session, session_commit, session_rollback
from exceptions.persistence import CartPersistenceException
from models.cart import CartSnapshotDTO
from repositories.cart import CartRepository

logger = logging.getLogger(__name__)


class CartPersistenceAdapter(ABC):
    """Abstract base class for cart snapshot storage.

    save() must either store the complete snapshot or raise
    CartPersistenceException, CartService rolls the cart back on that exception.
    """

    @abstractmethod
    async def save(self, snapshot: CartSnapshotDTO) -> None:
        pass

    @abstractmethod
    async def load(self, cart_key: str) -> CartSnapshotDTO | None:
        pass

    @abstractmethod
    async def clear(self, cart_key: str) -> None:
        pass


class InMemoryCartPersistenceAdapter(CartPersistenceAdapter):
    """Process-local storage, snapshots are kept as JSON so callers never share objects."""

    def __init__(self):
        self._store: dict[str, str] = {}

    async def save(self, snapshot: CartSnapshotDTO) -> None:
        self._store[snapshot.cart_key] = snapshot.model_dump_json()

    async def load(self, cart_key: str) -> CartSnapshotDTO | None:
        raw = self._store.get(cart_key)
        if raw is None:
            return None
        return CartSnapshotDTO.model_validate_json(raw)

    async def clear(self, cart_key: str) -> None:
        self._store.pop(cart_key, None)


class DatabaseCartPersistenceAdapter(CartPersistenceAdapter):
    """Stores snapshots in the carts table through CartRepository."""

    def __init__(self, session_factory: Callable[[], AbstractAsyncContextManager[AsyncSession]] = get_db_session):
        self.session_factory = session_factory

    async def save(self, snapshot: CartSnapshotDTO) -> None:
        async with self.session_factory() as session:
            try:
                await CartRepository.save_snapshot(snapshot, session)
                await session_commit(session)
                logger.debug(f"[CartPersistence] Saved cart {snapshot.cart_key} ({len(snapshot.items)} lines)")
            except SQLAlchemyError as e:
                await session_rollback(session)
                logger.error(f"[CartPersistence] Failed to save cart {snapshot.cart_key}: {e}", exc_info=True)
                raise CartPersistenceException(snapshot.cart_key, str(e)) from e

    async def load(self, cart_key: str) -> CartSnapshotDTO | None:
        async with self.session_factory() as session:
            try:
                return await CartRepository.get_snapshot(cart_key, session)
            except SQLAlchemyError as e:
                logger.error(f"[CartPersistence] Failed to load cart {cart_key}: {e}", exc_info=True)
                raise CartPersistenceException(cart_key, str(e)) from e

    async def clear(self, cart_key: str) -> None:
        async with self.session_factory() as session:
            try:
                await CartRepository.delete(cart_key, session)
                await session_commit(session)
            except SQLAlchemyError as e:
                await session_rollback(session)
                raise CartPersistenceException(cart_key, str(e)) from e
