"""Cross-meeting insights: clusters, the cluster graph and company rollups."""
from typing import Any, Dict, List
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

import db.repositories.clusters as cluster_repo
import db.repositories.dashboard as dashboard_repo
from api.deps import get_session, get_user_id, not_found
from schemas.crm import ClusterOut, CompanyInsightsOut, GraphOut
from tools.graph import build_cluster_graph

router = APIRouter(tags=["insights"])


@router.get("/insights/clusters", response_model=list[ClusterOut])
async def list_clusters(
    user_id: UUID = Depends(get_user_id),
    session: AsyncSession = Depends(get_session),
):
    return await cluster_repo.list_clusters(session, user_id)


@router.get("/insights/graph", response_model=GraphOut)
async def cluster_graph(
    width: float = Query(default=800, gt=0),
    height: float = Query(default=600, gt=0),
    user_id: UUID = Depends(get_user_id),
    session: AsyncSession = Depends(get_session),
):
    clusters = await cluster_repo.list_clusters(session, user_id)
    return build_cluster_graph(clusters, width=width, height=height)


@router.get("/insights/most-common", response_model=List[Dict[str, Any]])
async def most_common_pain_points(
    limit: int = Query(default=10, ge=1, le=100),
    user_id: UUID = Depends(get_user_id),
    session: AsyncSession = Depends(get_session),
):
    return await dashboard_repo.get_most_common_pain_points(session, user_id, limit)


@router.get("/companies/{company_id}/insights", response_model=CompanyInsightsOut)
async def company_insights(
    company_id: UUID,
    user_id: UUID = Depends(get_user_id),
    session: AsyncSession = Depends(get_session),
):
    insights = await dashboard_repo.get_company_insights(session, user_id, company_id)
    if insights is None:
        raise not_found("Company")
    return insights
