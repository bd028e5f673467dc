from fastapi import APIRouter, Depends, HTTPException, Header
from remitbot.settings import settings
from remitbot.store.session_repo import load_session
from remitbot.queue.rq_conn import pending_reply_jobs
from remitbot.observability.logging import log
import remitbot.observability.metrics as metrics

router = APIRouter(prefix="/admin", tags=["admin"])

def require_admin(x_admin_key: str = Header(default="", alias="x-admin-key")):
    if not settings.ADMIN_RBAC_ENABLED:
        return
    # Secure default: if enabled but no key configured, reject all.
    if not settings.ADMIN_API_KEY:
        raise HTTPException(status_code=403, detail="Admin access disabled (no key configured)")
    if x_admin_key != settings.ADMIN_API_KEY:
        raise HTTPException(status_code=403, detail="Invalid admin key")

@router.get("/session/{chat_id}")
def get_session_snapshot(chat_id: str, _=Depends(require_admin)):
    """Redacted session snapshot: flow position only, never the credential or emails."""
    s = load_session(chat_id)
    return {
        "chatId": s.chatId,
        "isAuthenticated": bool(s.isAuthenticated),
        "awaitingState": s.awaitingState,
        "hasEmail": bool(s.email),
        "otpPending": bool(s.otpSessionId),
        "transientFields": sorted(k for k, v in s.flow.transient().items() if v is not None),
        "lastUpdatedAtEpoch": s.lastUpdatedAtEpoch,
    }

@router.get("/metrics")
def get_metrics(_=Depends(require_admin)):
    snap = metrics.snapshot()
    try:
        snap["pendingReplyJobs"] = pending_reply_jobs()
    except Exception as e:
        log(event="admin_queue_depth_failed", error=str(e)[:200])
        snap["pendingReplyJobs"] = None
    return snap
