"""Company repository — user-scoped CRUD plus the industry pick list."""
import logging
from typing import Optional
from uuid import UUID

from sqlalchemy import delete, select, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.ext.asyncio import AsyncSession

from db.models import Company, Industry

logger = logging.getLogger(__name__)


async def list_companies(session: AsyncSession, user_id: UUID) -> list[Company]:
    """Return the user's companies ordered by name."""
    result = await session.execute(
        select(Company).where(Company.user_id == user_id).order_by(Company.name)
    )
    return list(result.scalars().all())


async def get_company(
    session: AsyncSession, user_id: UUID, company_id: UUID
) -> Optional[Company]:
    """Return the Company if it exists and belongs to user_id, or None."""
    result = await session.execute(
        select(Company).where(Company.id == company_id, Company.user_id == user_id)
    )
    return result.scalar_one_or_none()


async def create_company(
    session: AsyncSession, user_id: UUID, name: str, industry: str
) -> Company:
    company = Company(name=name.strip(), industry=industry, user_id=user_id)
    session.add(company)
    await session.flush()
    return company


async def update_company(
    session: AsyncSession, user_id: UUID, company_id: UUID, data: dict
) -> Optional[Company]:
    """Update name and/or industry. Returns None when not found."""
    if not data:
        return await get_company(session, user_id, company_id)
    result = await session.execute(
        update(Company)
        .where(Company.id == company_id, Company.user_id == user_id)
        .values(**data)
        .returning(Company)
    )
    await session.flush()
    return result.scalar_one_or_none()


async def delete_company(session: AsyncSession, user_id: UUID, company_id: UUID) -> bool:
    """Delete a company and (by cascade) its contacts and meetings."""
    result = await session.execute(
        delete(Company)
        .where(Company.id == company_id, Company.user_id == user_id)
        .returning(Company.id)
    )
    await session.flush()
    return result.scalar_one_or_none() is not None


# ---------------------------------------------------------------------------
# Industries
# ---------------------------------------------------------------------------


async def list_industries(session: AsyncSession, user_id: UUID) -> list[Industry]:
    result = await session.execute(
        select(Industry).where(Industry.user_id == user_id).order_by(Industry.name)
    )
    return list(result.scalars().all())


async def create_industry(
    session: AsyncSession, user_id: UUID, name: str
) -> Optional[Industry]:
    """Add an industry to the user's pick list.

    Returns None (and logs a warning) when the user already has one with
    this name.
    """
    name = name.strip()
    stmt = (
        pg_insert(Industry)
        .values(name=name, user_id=user_id)
        .on_conflict_do_nothing(index_elements=["name", "user_id"])
        .returning(Industry)
    )
    result = await session.execute(stmt)
    await session.flush()
    industry = result.scalar_one_or_none()
    if industry is None:
        logger.warning("Industry %r already exists for user %s", name, user_id)
    return industry
