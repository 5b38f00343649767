"""Pain point cluster repository — cached clustering output and its timestamp."""
import logging
from datetime import datetime, timezone
from typing import Optional
from uuid import UUID

from dateutil import parser as date_parser
from sqlalchemy import delete, select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from db.models import MetaData, PainPointCluster
from db.repositories import pain_points

logger = logging.getLogger(__name__)

LAST_ANALYSIS_KEY = "last_pain_point_analysis"

_CLUSTER_FIELDS = (
    "cluster_name",
    "description",
    "count",
    "pain_point_ids",
    "impact_summary",
    "industries",
    "companies",
    "examples",
)


def _meta_key(user_id: UUID) -> str:
    return f"{LAST_ANALYSIS_KEY}:{user_id}"


async def list_clusters(session: AsyncSession, user_id: UUID) -> list[PainPointCluster]:
    """Return cached clusters, largest first."""
    result = await session.execute(
        select(PainPointCluster)
        .where(PainPointCluster.user_id == user_id)
        .order_by(PainPointCluster.count.desc(), PainPointCluster.cluster_name)
    )
    return list(result.scalars().all())


async def replace_clusters(
    session: AsyncSession, user_id: UUID, clusters: list[dict]
) -> int:
    """Delete the user's clusters and insert the new ones.

    Each insert runs in a savepoint; a failing cluster is logged and skipped.
    Returns the number stored.
    """
    await session.execute(
        delete(PainPointCluster).where(PainPointCluster.user_id == user_id)
    )
    stored = 0
    for cluster in clusters:
        values = {k: cluster.get(k) for k in _CLUSTER_FIELDS}
        values["pain_point_ids"] = values["pain_point_ids"] or []
        values["industries"] = values["industries"] or []
        values["companies"] = values["companies"] or []
        values["count"] = values["count"] or 0
        try:
            async with session.begin_nested():
                session.add(PainPointCluster(**values, user_id=user_id))
        except SQLAlchemyError as e:
            logger.warning("Could not store cluster %r: %s", values["cluster_name"], e, exc_info=True)
            continue
        stored += 1
        logger.info("Saved cluster: %s", values["cluster_name"])
    logger.info("Stored %d of %d clusters", stored, len(clusters))
    return stored


async def get_last_analysis_at(session: AsyncSession, user_id: UUID) -> Optional[datetime]:
    """Parse the stored last_pain_point_analysis timestamp, or None."""
    result = await session.execute(
        select(MetaData.value).where(MetaData.key == _meta_key(user_id))
    )
    value = result.scalar_one_or_none()
    if not value:
        return None
    parsed = date_parser.isoparse(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


async def set_last_analysis_at(
    session: AsyncSession, user_id: UUID, when: Optional[datetime] = None
) -> str:
    """Upsert last_pain_point_analysis (ISO 8601, UTC). Returns the stored value."""
    value = (when or datetime.now(timezone.utc)).isoformat()
    stmt = (
        pg_insert(MetaData)
        .values(key=_meta_key(user_id), value=value)
        .on_conflict_do_update(index_elements=["key"], set_={"value": value})
    )
    await session.execute(stmt)
    await session.flush()
    return value


def needs_refresh(
    latest_pain_point_at: Optional[datetime], last_analysis_at: Optional[datetime]
) -> bool:
    """True when there is no analysis timestamp or a pain point is newer than it."""
    if last_analysis_at is None:
        return True
    if latest_pain_point_at is None:
        return False
    return latest_pain_point_at > last_analysis_at


async def should_refresh(session: AsyncSession, user_id: UUID) -> bool:
    """Check whether cached clusters are stale. Any lookup failure → True."""
    try:
        async with session.begin_nested():
            latest = await pain_points.latest_created_at(session, user_id)
            last = await get_last_analysis_at(session, user_id)
    except (SQLAlchemyError, ValueError) as e:
        logger.warning("Could not check cluster freshness: %s", e, exc_info=True)
        return True
    return needs_refresh(latest, last)
