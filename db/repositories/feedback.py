"""Feedback repository."""
import logging
from typing import Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from db.models import Feedback

logger = logging.getLogger(__name__)


async def create_feedback(
    session: AsyncSession,
    user_id: UUID,
    *,
    improvements: Optional[str] = None,
    positives: Optional[str] = None,
    features: Optional[str] = None,
    anonymous=False,
) -> Feedback:
    """Store feedback. At least one of the three text fields must be non-empty."""
    texts = [t.strip() if t else None for t in (improvements, positives, features)]
    if not any(texts):
        raise ValueError("At least one feedback field is required")
    feedback = Feedback(
        user_id=user_id,
        improvements=texts[0] or None,
        positives=texts[1] or None,
        features=texts[2] or None,
        anonymous=bool(anonymous),
    )
    session.add(feedback)
    await session.flush()
    return feedback
