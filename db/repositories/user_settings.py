"""User settings repository — per-user OpenAI key and default pick lists."""
import logging
from typing import Optional
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.ext.asyncio import AsyncSession

from db.models import Industry, Role, UserSettings
from errors import MissingApiKeyError

logger = logging.getLogger(__name__)

DEFAULT_INDUSTRIES = [
    "Software", "Technology", "SaaS", "Finance", "Healthcare", "Education",
    "Retail", "E-commerce", "Manufacturing", "Logistics", "Real Estate",
    "Media", "Entertainment", "Hospitality", "Telecommunications", "Marketing",
    "Consulting", "Nonprofit", "Government", "Automotive", "Energy",
    "Agriculture", "Biotechnology", "Fashion", "Sports", "Travel",
    "Food & Beverage", "Other",
]

DEFAULT_ROLES = [
    "CEO", "CTO", "COO", "CIO", "Product Manager", "Engineering Manager",
    "Software Engineer", "Data Scientist", "DevOps Engineer", "QA Engineer",
    "Project Manager", "Marketing Manager", "Sales Manager", "Business Analyst",
    "Financial Analyst", "HR Manager", "Operations Manager",
    "Customer Support Specialist", "Account Manager", "Content Strategist",
    "Graphic Designer", "UX/UI Designer", "Data Engineer",
    "Network Administrator", "IT Support Specialist", "Research Analyst",
    "Executive Assistant", "Other",
]


async def get_settings(session: AsyncSession, user_id: UUID) -> Optional[UserSettings]:
    result = await session.execute(
        select(UserSettings).where(UserSettings.user_id == user_id)
    )
    return result.scalar_one_or_none()


async def get_openai_api_key(session: AsyncSession, user_id: UUID) -> str:
    """Return the user's OpenAI key.

    Raises MissingApiKeyError when there is no settings row or the key is blank.
    """
    result = await session.execute(
        select(UserSettings.openai_api_key).where(UserSettings.user_id == user_id)
    )
    api_key = result.scalar_one_or_none()
    if not api_key:
        raise MissingApiKeyError(
            "No OpenAI API key found in user settings. Please add your API key in settings."
        )
    return api_key


async def upsert_api_key(
    session: AsyncSession, user_id: UUID, api_key: Optional[str]
) -> UserSettings:
    """Insert or update the user's settings row (dedup key: user_id)."""
    api_key = api_key.strip() if api_key else None
    stmt = (
        pg_insert(UserSettings)
        .values(user_id=user_id, openai_api_key=api_key)
        .on_conflict_do_update(
            index_elements=["user_id"],
            set_={"openai_api_key": api_key, "updated_at": func.now()},
        )
        .returning(UserSettings)
    )
    result = await session.execute(stmt, execution_options={"populate_existing": True})
    await session.flush()
    return result.scalar_one()


async def seed_defaults(session: AsyncSession, user_id: UUID) -> dict[str, int]:
    """Give a new user the default industry and role lists.

    Idempotent: names the user already has are skipped. Returns how many
    rows were inserted per table.
    """
    inserted = {}
    for model, names in ((Industry, DEFAULT_INDUSTRIES), (Role, DEFAULT_ROLES)):
        stmt = (
            pg_insert(model)
            .values([{"name": name, "user_id": user_id} for name in names])
            .on_conflict_do_nothing(index_elements=["name", "user_id"])
            .returning(model.id)
        )
        result = await session.execute(stmt)
        inserted[model.__tablename__] = len(result.all())
    await session.flush()
    logger.info(
        "Seeded defaults for user %s: %d industries, %d roles",
        user_id,
        inserted["industries"],
        inserted["roles"],
    )
    return inserted
