# backend/routes/session_api.py
from fastapi import APIRouter, HTTPException, Query, Request, Response

from services.event_bus import bus
from services.function_dispatcher import dispatcher
from services.session_service import SESSION_ID_KEY, create_session, get_or_create_session, get_or_create_session_id, get_session
from utils.storage import MappingStore

router = APIRouter(prefix="/api")

COOKIE_MAX_AGE = 60 * 60 * 24 * 365


@router.post("/session/new")
def new_session():
    """
    Create a fresh session id and return it.
    """
    sess = create_session()
    return {"ok": True, "session_id": sess.get("id")}


@router.get("/session")
def current_session(request: Request, response: Response):
    """
    Return the browser's session id, creating it (and its cookie) on first visit.
    """
    store = MappingStore(request.cookies)
    sid = get_or_create_session_id(store)
    if store.changed:
        response.set_cookie(SESSION_ID_KEY, sid, max_age=COOKIE_MAX_AGE, httponly=True, samesite="lax")
    sess = get_or_create_session(sid)
    return {"ok": True, "session_id": sid, "state": sess.get("state")}


@router.get("/sessions/{session_id}")
def get_session_route(session_id: str):
    s = get_session(session_id)
    if not s:
        raise HTTPException(status_code=404, detail="Session not found")
    return {"ok": True, "session": s, "dispatcher": dispatcher.status(session_id)}


@router.get("/sessions/{session_id}/events")
def session_events(session_id: str, after: int = Query(0, ge=0)):
    events = bus.events_since(session_id, after)
    last = events[-1]["seq"] if events else after
    return {"ok": True, "session_id": session_id, "events": events, "last_seq": last}
