"""Global search across contacts, companies, meetings and pain points.

Each result is {id, title, description, type, link}. A sub-search that fails
is logged and contributes nothing. Each sub-search runs in a savepoint so a
failure leaves the transaction usable for the rest.
"""
import logging
from typing import Any, Awaitable, Callable
from uuid import UUID

from sqlalchemy import or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from db.models import Company, Contact, Meeting, PainPoint

logger = logging.getLogger(__name__)

MIN_QUERY_LENGTH = 2

UNKNOWN_COMPANY = "Unknown Company"
UNKNOWN_CONTACT = "Unknown Contact"


def contact_result(contact: Contact) -> dict[str, Any]:
    company = contact.company.name if contact.company else UNKNOWN_COMPANY
    return {
        "id": str(contact.id),
        "title": contact.name,
        "description": f"{contact.email} • {contact.role} at {company}",
        "type": "contact",
        "link": f"/contacts/{contact.id}",
    }


def company_result(company: Company) -> dict[str, Any]:
    return {
        "id": str(company.id),
        "title": company.name,
        "description": f"Industry: {company.industry}",
        "type": "company",
        "link": f"/contacts?company={company.id}",
    }


def meeting_result(meeting: Meeting) -> dict[str, Any]:
    contact = meeting.contact.name if meeting.contact else UNKNOWN_CONTACT
    company = meeting.company.name if meeting.company else UNKNOWN_COMPANY
    return {
        "id": str(meeting.id),
        "title": f"Meeting with {contact}",
        "description": f"{meeting.date.isoformat()} • {company} • Status: {meeting.status}",
        "type": "meeting",
        "link": f"/meetings/{meeting.id}",
    }


def pain_point_result(pain_point: PainPoint) -> dict[str, Any]:
    meeting = pain_point.meeting
    contact = meeting.contact.name if meeting and meeting.contact else UNKNOWN_CONTACT
    company = meeting.company.name if meeting and meeting.company else UNKNOWN_COMPANY
    return {
        "id": str(pain_point.id),
        "title": pain_point.title,
        "description": f"Impact: {pain_point.impact} • {company} • {contact}",
        "type": "pain-point",
        "link": f"/meetings/{pain_point.meeting_id}?tab=pain-points",
    }


async def _search_contacts(session, user_id, pattern):
    result = await session.execute(
        select(Contact)
        .options(selectinload(Contact.company))
        .where(
            Contact.user_id == user_id,
            or_(
                Contact.name.ilike(pattern),
                Contact.email.ilike(pattern),
                Contact.role.ilike(pattern),
            ),
        )
    )
    return [contact_result(c) for c in result.scalars().all()]


async def _search_companies(session, user_id, pattern):
    result = await session.execute(
        select(Company).where(
            Company.user_id == user_id,
            or_(Company.name.ilike(pattern), Company.industry.ilike(pattern)),
        )
    )
    return [company_result(c) for c in result.scalars().all()]


async def _search_meetings(session, user_id, pattern):
    result = await session.execute(
        select(Meeting)
        .options(selectinload(Meeting.contact), selectinload(Meeting.company))
        .where(Meeting.user_id == user_id, Meeting.notes.ilike(pattern))
    )
    return [meeting_result(m) for m in result.scalars().all()]


async def _search_pain_points(session, user_id, pattern):
    result = await session.execute(
        select(PainPoint)
        .options(
            selectinload(PainPoint.meeting).selectinload(Meeting.contact),
            selectinload(PainPoint.meeting).selectinload(Meeting.company),
        )
        .where(
            PainPoint.user_id == user_id,
            or_(
                PainPoint.title.ilike(pattern),
                PainPoint.description.ilike(pattern),
                PainPoint.root_cause.ilike(pattern),
            ),
        )
    )
    return [pain_point_result(p) for p in result.scalars().all()]


_SEARCHES: list[tuple[str, Callable[..., Awaitable[list[dict[str, Any]]]]]] = [
    ("contacts", _search_contacts),
    ("companies", _search_companies),
    ("meetings", _search_meetings),
    ("pain points", _search_pain_points),
]


async def search_all(session: AsyncSession, user_id: UUID, query: str) -> list[dict[str, Any]]:
    """Search every entity type; queries shorter than 2 characters return []."""
    query = (query or "").strip()
    if len(query) < MIN_QUERY_LENGTH:
        return []
    pattern = f"%{query}%"

    results: list[dict[str, Any]] = []
    for label, search in _SEARCHES:
        try:
            async with session.begin_nested():
                found = await search(session, user_id, pattern)
        except SQLAlchemyError as e:
            logger.warning("Error searching %s: %s", label, e, exc_info=True)
            continue
        results.extend(found)
    return results
