"""Contacts and the role pick list."""
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

import db.repositories.companies as company_repo
import db.repositories.contacts as contact_repo
import db.repositories.meetings as meeting_repo
from api.deps import get_session, get_user_id, not_found
from schemas.crm import (
    ContactCreate,
    ContactOut,
    ContactUpdate,
    MeetingOut,
    NameCreate,
    NamedOut,
    NotesUpdate,
)

router = APIRouter(tags=["contacts"])


async def _require_company(session: AsyncSession, user_id: UUID, company_id: UUID) -> None:
    if await company_repo.get_company(session, user_id, company_id) is None:
        raise not_found("Company")


@router.get("/contacts", response_model=list[ContactOut])
async def list_contacts(
    company: Optional[UUID] = None,
    q: Optional[str] = None,
    user_id: UUID = Depends(get_user_id),
    session: AsyncSession = Depends(get_session),
):
    if q:
        return await contact_repo.search_contacts(session, user_id, q)
    return await contact_repo.list_contacts(session, user_id, company_id=company)


@router.post("/contacts", response_model=ContactOut, status_code=status.HTTP_201_CREATED)
async def create_contact(
    body: ContactCreate,
    user_id: UUID = Depends(get_user_id),
    session: AsyncSession = Depends(get_session),
):
    await _require_company(session, user_id, body.company_id)
    contact = await contact_repo.create_contact(session, user_id, body.model_dump())
    return await contact_repo.get_contact(session, user_id, contact.id)


@router.get("/contacts/{contact_id}", response_model=ContactOut)
async def get_contact(
    contact_id: UUID,
    user_id: UUID = Depends(get_user_id),
    session: AsyncSession = Depends(get_session),
):
    contact = await contact_repo.get_contact(session, user_id, contact_id)
    if contact is None:
        raise not_found("Contact")
    return contact


@router.patch("/contacts/{contact_id}", response_model=ContactOut)
async def update_contact(
    contact_id: UUID,
    body: ContactUpdate,
    user_id: UUID = Depends(get_user_id),
    session: AsyncSession = Depends(get_session),
):
    data = body.model_dump(exclude_unset=True)
    if data.get("company_id"):
        await _require_company(session, user_id, data["company_id"])
    contact = await contact_repo.update_contact(session, user_id, contact_id, data)
    if contact is None:
        raise not_found("Contact")
    return contact


@router.put("/contacts/{contact_id}/notes", response_model=ContactOut)
async def update_contact_notes(
    contact_id: UUID,
    body: NotesUpdate,
    user_id: UUID = Depends(get_user_id),
    session: AsyncSession = Depends(get_session),
):
    contact = await contact_repo.update_notes(session, user_id, contact_id, body.notes)
    if contact is None:
        raise not_found("Contact")
    return contact


@router.delete("/contacts/{contact_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_contact(
    contact_id: UUID,
    user_id: UUID = Depends(get_user_id),
    session: AsyncSession = Depends(get_session),
):
    if not await contact_repo.delete_contact(session, user_id, contact_id):
        raise not_found("Contact")
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/contacts/{contact_id}/meetings", response_model=list[MeetingOut])
async def list_contact_meetings(
    contact_id: UUID,
    user_id: UUID = Depends(get_user_id),
    session: AsyncSession = Depends(get_session),
):
    return await meeting_repo.get_meetings_by_contact(session, user_id, contact_id)


@router.get("/roles", response_model=list[NamedOut])
async def list_roles(
    user_id: UUID = Depends(get_user_id),
    session: AsyncSession = Depends(get_session),
):
    return await contact_repo.list_roles(session, user_id)


@router.post("/roles", response_model=NamedOut, status_code=status.HTTP_201_CREATED)
async def create_role(
    body: NameCreate,
    user_id: UUID = Depends(get_user_id),
    session: AsyncSession = Depends(get_session),
):
    role = await contact_repo.create_role(session, user_id, body.name)
    if role is None:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Role already exists")
    return role
