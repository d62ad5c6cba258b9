# app/database.py

from functools import lru_cache

from supabase import create_client, Client

from app.config import get_settings
from app.models import ComparisonResult, ProcessingStats, ReconciliationSession

settings = get_settings()

SESSIONS_TABLE = "reconciliation_sessions"


class DatabaseNotConfigured(RuntimeError):
    """Supabase credentials are missing."""


@lru_cache()
def get_supabase_admin() -> Client:
    """Admin client (bypasses RLS - use carefully)."""
    if not settings.supabase_url or not settings.supabase_service_role_key:
        raise DatabaseNotConfigured("SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY must be set")
    return create_client(settings.supabase_url, settings.supabase_service_role_key)


# ============================================
# Session history
# ============================================

async def save_session(
    user_id: str,
    reference_file_name: str,
    candidate_file_name: str,
    stats: ProcessingStats,
    results: list[ComparisonResult],
) -> dict | None:
    """Save a reconciliation run to history."""
    data = {
        "user_id": user_id,
        "reference_file_name": reference_file_name,
        "candidate_file_name": candidate_file_name,
        "stats": stats.model_dump(),
        "results": [r.model_dump(mode="json") for r in results],
    }

    response = get_supabase_admin().table(SESSIONS_TABLE).insert(data).execute()
    return response.data[0] if response.data else None


async def get_history(user_id: str, limit: int | None = None) -> list[ReconciliationSession]:
    """Get a user's reconciliation sessions, newest first."""
    if limit is None:
        limit = settings.history_limit

    response = (
        get_supabase_admin().table(SESSIONS_TABLE)
        .select("*")
        .eq("user_id", user_id)
        .order("created_at", desc=True)
        .limit(limit)
        .execute()
    )
    return [ReconciliationSession.model_validate(row) for row in response.data]


async def delete_session(session_id: str, user_id: str) -> bool:
    """Delete one session."""
    response = (
        get_supabase_admin().table(SESSIONS_TABLE)
        .delete()
        .eq("id", session_id)
        .eq("user_id", user_id)
        .execute()
    )
    return len(response.data) > 0 if response.data else False


async def clear_history(user_id: str) -> int:
    """Delete every session of a user. Returns the number removed."""
    response = get_supabase_admin().table(SESSIONS_TABLE).delete().eq("user_id", user_id).execute()
    return len(response.data) if response.data else 0
