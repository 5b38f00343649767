"""Per-user settings: the OpenAI API key and default pick lists."""
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

import db.repositories.user_settings as settings_repo
from api.deps import get_session, get_user_id
from schemas.crm import SettingsOut, SettingsUpdate

router = APIRouter(prefix="/settings", tags=["settings"])


def mask_api_key(api_key: Optional[str]) -> Optional[str]:
    """Show only the last four characters of a key."""
    if not api_key:
        return None
    if len(api_key) <= 8:
        return "*" * len(api_key)
    return f"{api_key[:3]}...{api_key[-4:]}"


def _settings_out(api_key: Optional[str]) -> SettingsOut:
    return SettingsOut(has_openai_api_key=bool(api_key), openai_api_key_preview=mask_api_key(api_key))


@router.get("", response_model=SettingsOut)
async def get_settings(
    user_id: UUID = Depends(get_user_id),
    session: AsyncSession = Depends(get_session),
):
    settings = await settings_repo.get_settings(session, user_id)
    return _settings_out(settings.openai_api_key if settings else None)


@router.put("", response_model=SettingsOut)
async def update_settings(
    body: SettingsUpdate,
    user_id: UUID = Depends(get_user_id),
    session: AsyncSession = Depends(get_session),
):
    settings = await settings_repo.upsert_api_key(session, user_id, body.openai_api_key)
    return _settings_out(settings.openai_api_key)


@router.post("/seed-defaults")
async def seed_defaults(
    user_id: UUID = Depends(get_user_id),
    session: AsyncSession = Depends(get_session),
) -> dict[str, int]:
    return await settings_repo.seed_defaults(session, user_id)
