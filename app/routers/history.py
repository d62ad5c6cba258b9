# app/routers/history.py

"""
Reconciliation session history.
"""

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel

from app.database import DatabaseNotConfigured, clear_history, delete_session, get_history
from app.dependencies import get_current_user
from app.models import ReconciliationSession
from app.config import get_settings

settings = get_settings()
router = APIRouter()


class HistoryResponse(BaseModel):
    user_id: str
    sessions: list[ReconciliationSession]
    count: int


@router.get("", response_model=HistoryResponse)
async def list_history(
    user_id: str = Depends(get_current_user),
    limit: int = Query(settings.history_limit, ge=1, le=100),
):
    """List past reconciliation sessions, newest first."""
    try:
        sessions = await get_history(user_id, limit)
    except DatabaseNotConfigured as e:
        raise HTTPException(status_code=503, detail=str(e))

    return HistoryResponse(user_id=user_id, sessions=sessions, count=len(sessions))


@router.delete("/{session_id}")
async def remove_session(session_id: str, user_id: str = Depends(get_current_user)):
    """Delete one session."""
    try:
        deleted = await delete_session(session_id, user_id)
    except DatabaseNotConfigured as e:
        raise HTTPException(status_code=503, detail=str(e))

    if not deleted:
        raise HTTPException(status_code=404, detail="Session not found")

    return {"success": True, "deleted": session_id}


@router.delete("")
async def remove_all_sessions(user_id: str = Depends(get_current_user)):
    """Delete every session of the current user."""
    try:
        removed = await clear_history(user_id)
    except DatabaseNotConfigured as e:
        raise HTTPException(status_code=503, detail=str(e))

    return {"success": True, "deleted_count": removed}
