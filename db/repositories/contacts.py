"""Contact repository — user-scoped CRUD, search, and the role pick list."""
import logging
from typing import Optional
from uuid import UUID

from sqlalchemy import delete, or_, select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from db.models import Contact, Role

logger = logging.getLogger(__name__)


async def list_contacts(
    session: AsyncSession, user_id: UUID, company_id: Optional[UUID] = None
) -> list[Contact]:
    """Return the user's contacts ordered by name, optionally for one company."""
    stmt = (
        select(Contact)
        .options(selectinload(Contact.company))
        .where(Contact.user_id == user_id)
        .order_by(Contact.name)
    )
    if company_id is not None:
        stmt = stmt.where(Contact.company_id == company_id)
    result = await session.execute(stmt)
    return list(result.scalars().all())


async def get_contact(
    session: AsyncSession, user_id: UUID, contact_id: UUID
) -> Optional[Contact]:
    result = await session.execute(
        select(Contact)
        .options(selectinload(Contact.company))
        .where(Contact.id == contact_id, Contact.user_id == user_id)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def create_contact(session: AsyncSession, user_id: UUID, data: dict) -> Contact:
    """Insert a contact.

    data dict keys: name, email, phone, role, company_id, notes
    """
    data = {**data, "email": data["email"].lower().strip()}
    contact = Contact(**data, user_id=user_id)
    session.add(contact)
    await session.flush()
    return contact


async def update_contact(
    session: AsyncSession, user_id: UUID, contact_id: UUID, data: dict
) -> Optional[Contact]:
    contact = await get_contact(session, user_id, contact_id)
    if contact is None:
        return None
    if data.get("email"):
        data = {**data, "email": data["email"].lower().strip()}
    for key, value in data.items():
        setattr(contact, key, value)
    await session.flush()
    return await get_contact(session, user_id, contact_id)


async def update_notes(
    session: AsyncSession, user_id: UUID, contact_id: UUID, notes: Optional[str]
) -> Optional[Contact]:
    return await update_contact(session, user_id, contact_id, {"notes": notes})


async def delete_contact(session: AsyncSession, user_id: UUID, contact_id: UUID) -> bool:
    result = await session.execute(
        delete(Contact)
        .where(Contact.id == contact_id, Contact.user_id == user_id)
        .returning(Contact.id)
    )
    await session.flush()
    return result.scalar_one_or_none() is not None


async def search_contacts(
    session: AsyncSession, user_id: UUID, query: str
) -> list[Contact]:
    """Case-insensitive substring match on name or email."""
    pattern = f"%{query.strip()}%"
    result = await session.execute(
        select(Contact)
        .options(selectinload(Contact.company))
        .where(
            Contact.user_id == user_id,
            or_(Contact.name.ilike(pattern), Contact.email.ilike(pattern)),
        )
        .order_by(Contact.name)
    )
    return list(result.scalars().all())


# ---------------------------------------------------------------------------
# Roles
# ---------------------------------------------------------------------------


async def list_roles(session: AsyncSession, user_id: UUID) -> list[Role]:
    result = await session.execute(
        select(Role).where(Role.user_id == user_id).order_by(Role.name)
    )
    return list(result.scalars().all())


async def create_role(session: AsyncSession, user_id: UUID, name: str) -> Optional[Role]:
    """Add a role to the user's pick list. Duplicate name → None."""
    name = name.strip()
    stmt = (
        pg_insert(Role)
        .values(name=name, user_id=user_id)
        .on_conflict_do_nothing(index_elements=["name", "user_id"])
        .returning(Role)
    )
    result = await session.execute(stmt)
    await session.flush()
    role = result.scalar_one_or_none()
    if role is None:
        logger.warning("Role %r already exists for user %s", name, user_id)
    return role
