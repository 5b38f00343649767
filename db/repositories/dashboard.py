"""Dashboard repository — counts, recent analysis and pain point rollups."""
import logging
from datetime import datetime, timezone
from typing import Any, Iterable, Optional
from uuid import UUID

from dateutil.relativedelta import relativedelta
from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from db.models import Company, Contact, Meeting, PainPoint, Transcript

logger = logging.getLogger(__name__)

_METRIC_MODELS = {
    "contacts": Contact,
    "meetings": Meeting,
    "transcripts": Transcript,
    "painPoints": PainPoint,
}


def empty_metrics() -> dict[str, dict[str, int]]:
    return {name: {"total": 0, "weeklyChange": 0} for name in _METRIC_MODELS}


async def get_dashboard_metrics(
    session: AsyncSession, user_id: UUID, now: Optional[datetime] = None
) -> dict[str, dict[str, int]]:
    """Totals and rows created in the last 7 days per entity. Zeros on error."""
    week_ago = (now or datetime.now(timezone.utc)) - relativedelta(days=7)
    metrics = empty_metrics()
    try:
        async with session.begin_nested():
            for name, model in _METRIC_MODELS.items():
                result = await session.execute(
                    select(
                        func.count(model.id),
                        func.count(model.id).filter(model.created_at >= week_ago),
                    ).where(model.user_id == user_id)
                )
                total, weekly = result.one()
                metrics[name] = {"total": total or 0, "weeklyChange": weekly or 0}
    except SQLAlchemyError as e:
        logger.warning("Error fetching dashboard metrics: %s", e, exc_info=True)
        return empty_metrics()
    return metrics


async def get_recent_analysis(
    session: AsyncSession, user_id: UUID, limit: int = 3
) -> list[dict[str, Any]]:
    """Most recently dated analyzed meetings with their pain point counts."""
    result = await session.execute(
        select(Meeting)
        .options(
            selectinload(Meeting.contact),
            selectinload(Meeting.company),
            selectinload(Meeting.pain_points),
        )
        .where(Meeting.user_id == user_id, Meeting.has_analysis.is_(True))
        .order_by(Meeting.date.desc())
        .limit(limit)
    )
    return [
        {
            "id": str(m.id),
            "date": m.date.isoformat(),
            "contactName": m.contact.name if m.contact else "",
            "company": m.company.name if m.company else "",
            "painPoints": len(m.pain_points),
        }
        for m in result.scalars().all()
    ]


def aggregate_common_pain_points(
    rows: Iterable[tuple[str, Optional[str]]], limit: int = 3
) -> list[dict[str, Any]]:
    """Group (title, company_name) pairs by exact title, most frequent first."""
    grouped: dict[str, dict[str, Any]] = {}
    for title, company in rows:
        entry = grouped.setdefault(title, {"title": title, "count": 0, "companies": []})
        entry["count"] += 1
        if company and company not in entry["companies"]:
            entry["companies"].append(company)
    ranked = sorted(grouped.values(), key=lambda e: e["count"], reverse=True)
    return ranked[:limit]


def aggregate_most_common_pain_points(
    rows: Iterable[tuple[str, str, Optional[str]]], limit: int = 10
) -> list[dict[str, Any]]:
    """Group (title, impact, industry) triples by lowercased title.

    The first title seen for a group is the one displayed.
    """
    grouped: dict[str, dict[str, Any]] = {}
    for title, impact, industry in rows:
        entry = grouped.setdefault(
            title.lower(),
            {
                "title": title,
                "count": 0,
                "impact": {"High": 0, "Medium": 0, "Low": 0},
                "industries": [],
            },
        )
        entry["count"] += 1
        if impact in entry["impact"]:
            entry["impact"][impact] += 1
        if industry and industry not in entry["industries"]:
            entry["industries"].append(industry)
    ranked = sorted(grouped.values(), key=lambda e: e["count"], reverse=True)
    return ranked[:limit]


async def get_common_pain_points(
    session: AsyncSession, user_id: UUID, limit: int = 3
) -> list[dict[str, Any]]:
    result = await session.execute(
        select(PainPoint.title, Company.name)
        .join(Meeting, PainPoint.meeting_id == Meeting.id)
        .outerjoin(Company, Meeting.company_id == Company.id)
        .where(PainPoint.user_id == user_id)
        .order_by(PainPoint.created_at.desc())
    )
    return aggregate_common_pain_points(result.all(), limit)


async def get_most_common_pain_points(
    session: AsyncSession, user_id: UUID, limit: int = 10
) -> list[dict[str, Any]]:
    result = await session.execute(
        select(PainPoint.title, PainPoint.impact, Company.industry)
        .join(Meeting, PainPoint.meeting_id == Meeting.id)
        .outerjoin(Company, Meeting.company_id == Company.id)
        .where(PainPoint.user_id == user_id)
        .order_by(PainPoint.created_at.desc())
    )
    return aggregate_most_common_pain_points(result.all(), limit)


async def get_company_insights(
    session: AsyncSession, user_id: UUID, company_id: UUID, top: int = 5
) -> Optional[dict[str, Any]]:
    """Pain points across a company's meetings with impact counts and top titles."""
    company = await session.get(Company, company_id)
    if company is None or company.user_id != user_id:
        return None
    result = await session.execute(
        select(PainPoint)
        .join(Meeting, PainPoint.meeting_id == Meeting.id)
        .where(Meeting.company_id == company_id, PainPoint.user_id == user_id)
        .order_by(PainPoint.created_at.desc())
    )
    points = list(result.scalars().all())
    impact_counts = {"High": 0, "Medium": 0, "Low": 0, "Not explicitly mentioned": 0}
    for pp in points:
        impact_counts[pp.impact] = impact_counts.get(pp.impact, 0) + 1
    top_titles = aggregate_most_common_pain_points(
        ((pp.title, pp.impact, company.industry) for pp in points), limit=top
    )
    return {
        "company": company,
        "pain_points": points,
        "impact_counts": impact_counts,
        "top_titles": [{"title": t["title"], "count": t["count"]} for t in top_titles],
    }
