from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Session

from db import session_execute, session_flush
from models.promo_code import PromoCode, PromoCodeDTO


class PromoCodeRepository:
    """Repository for merchant promo codes."""

    @staticmethod
    async def get_by_code(code: str, session: Session | AsyncSession) -> PromoCodeDTO | None:
        """
        Find a promo code case-insensitively.

        Args:
            code: Code as typed by the shopper
            session: Database session

        Returns:
            PromoCodeDTO or None if no such code exists
        """
        stmt = select(PromoCode).where(func.upper(PromoCode.code) == code.strip().upper())
        result = await session_execute(stmt, session)
        promo_code = result.scalar()
        if promo_code is None:
            return None
        return PromoCodeDTO.model_validate(promo_code, from_attributes=True)

    @staticmethod
    async def create(promo_code: PromoCodeDTO, session: Session | AsyncSession) -> int:
        data = promo_code.model_dump(exclude={"id"})
        data["code"] = data["code"].strip().upper()
        record = PromoCode(**data)
        session.add(record)
        await session_flush(session)
        return record.id
