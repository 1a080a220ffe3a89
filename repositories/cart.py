import json
import logging

from pydantic import TypeAdapter, ValidationError
from sqlalchemy import select, update, delete
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Session

from db import session_execute, session_flush
from models.cart import Cart, CartDTO, CartSnapshotDTO
from models.cartItem import CartItemDTO, SavedItemDTO

logger = logging.getLogger(__name__)

_cart_items_adapter = TypeAdapter(list[CartItemDTO])
_saved_items_adapter = TypeAdapter(list[SavedItemDTO])


class CartRepository:
    @staticmethod
    async def get_by_key(cart_key: str, session: AsyncSession | Session) -> CartDTO | None:
        stmt = select(Cart).where(Cart.cart_key == cart_key)
        cart = await session_execute(stmt, session)
        cart = cart.scalar()
        if cart is None:
            return None
        return CartDTO.model_validate(cart, from_attributes=True)

    @staticmethod
    async def save_snapshot(snapshot: CartSnapshotDTO, session: AsyncSession | Session) -> CartDTO:
        items_json = json.dumps([item.model_dump(mode="json") for item in snapshot.items])
        saved_items_json = json.dumps([item.model_dump(mode="json") for item in snapshot.saved_items])
        promo_json = snapshot.applied_promo.model_dump_json() if snapshot.applied_promo is not None else None

        existing = await CartRepository.get_by_key(snapshot.cart_key, session)
        if existing is None:
            cart = Cart(
                cart_key=snapshot.cart_key,
                items=items_json,
                saved_items=saved_items_json,
                applied_promo=promo_json
            )
            session.add(cart)
        else:
            stmt = update(Cart).where(Cart.cart_key == snapshot.cart_key).values(
                items=items_json,
                saved_items=saved_items_json,
                applied_promo=promo_json
            )
            await session_execute(stmt, session)
        await session_flush(session)
        return await CartRepository.get_by_key(snapshot.cart_key, session)

    @staticmethod
    async def get_snapshot(cart_key: str, session: AsyncSession | Session) -> CartSnapshotDTO | None:
        """
        Load a stored cart.

        A stored promo that no longer parses, or that is corrupted (missing code,
        non-positive discount), is dropped and the cart loads without promo.
        """
        # Import here to avoid circular dependency
        from services.promo import PromoService

        cart = await CartRepository.get_by_key(cart_key, session)
        if cart is None:
            return None
        try:
            items = _cart_items_adapter.validate_json(cart.items or "[]")
            saved_items = _saved_items_adapter.validate_json(cart.saved_items or "[]")
        except ValidationError as e:
            logger.error(f"[CartRepository] Stored lines of cart {cart_key} are unreadable: {e}")
            raise
        return CartSnapshotDTO(
            cart_key=cart_key,
            items=items,
            saved_items=saved_items,
            applied_promo=PromoService.restore_applied_promo(cart.applied_promo)
        )

    @staticmethod
    async def delete(cart_key: str, session: AsyncSession | Session) -> None:
        stmt = delete(Cart).where(Cart.cart_key == cart_key)
        await session_execute(stmt, session)
