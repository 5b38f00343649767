"""Repository layer for PainPoint.

Every function takes an AsyncSession first; user-owned tables also take the
caller's user_id and filter on it.

- companies: list/get/create/update/delete, list_industries, create_industry
- contacts: list/get/create/update/delete, update_notes, search_contacts,
            list_roles, create_role
- meetings: list/get/create/update/delete, update_notes, upcoming/recent/
            analyzed/by-contact lists, set_flags, set_analysis_status
- recordings, transcripts, pain_points: per-meeting rows that keep the
            meeting's has_* flags in step
- clusters: cached cross-meeting clusters and their freshness check
- user_settings: OpenAI key, seed_defaults
- feedback: create_feedback
- jobs: enqueue, claim_next, mark_done, mark_failed, get_job
- observability: log_worker_run
- dashboard, search: read-only rollups for the UI
"""
