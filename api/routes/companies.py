"""Companies and the industry pick list."""
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

import db.repositories.companies as company_repo
from api.deps import get_session, get_user_id, not_found
from schemas.crm import CompanyCreate, CompanyOut, CompanyUpdate, NameCreate, NamedOut

router = APIRouter(tags=["companies"])


@router.get("/companies", response_model=list[CompanyOut])
async def list_companies(
    user_id: UUID = Depends(get_user_id),
    session: AsyncSession = Depends(get_session),
):
    return await company_repo.list_companies(session, user_id)


@router.post("/companies", response_model=CompanyOut, status_code=status.HTTP_201_CREATED)
async def create_company(
    body: CompanyCreate,
    user_id: UUID = Depends(get_user_id),
    session: AsyncSession = Depends(get_session),
):
    return await company_repo.create_company(session, user_id, body.name, body.industry)


@router.get("/companies/{company_id}", response_model=CompanyOut)
async def get_company(
    company_id: UUID,
    user_id: UUID = Depends(get_user_id),
    session: AsyncSession = Depends(get_session),
):
    company = await company_repo.get_company(session, user_id, company_id)
    if company is None:
        raise not_found("Company")
    return company


@router.patch("/companies/{company_id}", response_model=CompanyOut)
async def update_company(
    company_id: UUID,
    body: CompanyUpdate,
    user_id: UUID = Depends(get_user_id),
    session: AsyncSession = Depends(get_session),
):
    company = await company_repo.update_company(
        session, user_id, company_id, body.model_dump(exclude_unset=True)
    )
    if company is None:
        raise not_found("Company")
    return company


@router.delete("/companies/{company_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_company(
    company_id: UUID,
    user_id: UUID = Depends(get_user_id),
    session: AsyncSession = Depends(get_session),
):
    if not await company_repo.delete_company(session, user_id, company_id):
        raise not_found("Company")
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/industries", response_model=list[NamedOut])
async def list_industries(
    user_id: UUID = Depends(get_user_id),
    session: AsyncSession = Depends(get_session),
):
    return await company_repo.list_industries(session, user_id)


@router.post("/industries", response_model=NamedOut, status_code=status.HTTP_201_CREATED)
async def create_industry(
    body: NameCreate,
    user_id: UUID = Depends(get_user_id),
    session: AsyncSession = Depends(get_session),
):
    industry = await company_repo.create_industry(session, user_id, body.name)
    if industry is None:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Industry already exists")
    return industry
