"""Initialize the LLM backend from environment variables.

API keys are per user (crm.user_settings) and passed on every call, so there
is no global provider init. This only wires litellm tracing when Langfuse
credentials are present.

Call init_llm() once from each entry point.
"""
import logging
import os

import litellm

from model_config import active_provider, get_analysis_model, get_structuring_model

logger = logging.getLogger(__name__)


def init_llm() -> None:
    """Configure litellm for the running process."""
    logger.info(
        "LLM provider: %s (analysis=%s, structuring=%s)",
        active_provider(),
        get_analysis_model(),
        get_structuring_model(),
    )
    litellm.drop_params = True

    if os.environ.get("LANGFUSE_PUBLIC_KEY"):
        litellm.success_callback = ["langfuse"]
        litellm.failure_callback = ["langfuse"]
        logger.info("Langfuse tracing enabled")
