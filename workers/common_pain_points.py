"""Worker for the analyze-common-pain-points queue.

Clusters every pain point a user has across meetings and caches the clusters
with the time of the run.
"""
import logging
from typing import Any

import db.repositories.clusters as cluster_repo
import db.repositories.pain_points as pain_point_repo
import db.repositories.user_settings as settings_repo
from db.connection import get_db
from model_config import get_cluster_model
from tools.analysis import analyze_common_pain_points, attach_examples, build_cluster_context
from workers._payload import require_uuids

logger = logging.getLogger(__name__)


async def handle_analyze_common_pain_points(payload: dict[str, Any]) -> dict[str, Any]:
    """Refresh a user's clusters. Payload keys: userId, forceRefresh."""
    (user_id,) = require_uuids(payload, "userId")
    force_refresh = bool(payload.get("forceRefresh", False))

    async with get_db() as session:
        if not force_refresh and not await cluster_repo.should_refresh(session, user_id):
            logger.info("No refresh needed for user %s, using existing clusters", user_id)
            return {"skipped": True}
        api_key = await settings_repo.get_openai_api_key(session, user_id)
        points = await pain_point_repo.list_all_with_context(session, user_id)
        context = build_cluster_context(points)

    if not context:
        logger.info("No pain points found for user %s", user_id)
        return {"clusters": 0}

    logger.info("Clustering %d pain points for user %s", len(context), user_id)
    clusters = attach_examples(await analyze_common_pain_points(context, api_key), context)

    async with get_db() as session:
        stored = await cluster_repo.replace_clusters(session, user_id, clusters)
        await cluster_repo.set_last_analysis_at(session, user_id)

    logger.info("Stored %d of %d clusters for user %s", stored, len(clusters), user_id)
    return {"clusters": stored, "model": get_cluster_model()}
