# backend/routes/agent_api.py
import logging
from typing import Any, Optional

from fastapi import APIRouter
from pydantic import BaseModel

from services.agent_tools import TOOLS
from services.function_dispatcher import dispatcher
from services.session_service import create_session
from utils.function_call import parse_function_call

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/agent")


class FunctionCallRequest(BaseModel):
    session_id: Optional[str] = None
    function_name: str
    arguments: Optional[Any] = None


class LLMOutputRequest(BaseModel):
    session_id: Optional[str] = None
    text: str


def _session_id(requested: Optional[str]) -> str:
    # honour the client's id so its symptoms and bookings stay together
    return create_session(preferred_id=requested)["id"]


@router.get("/tools")
def list_tools():
    return {"ok": True, "tools": TOOLS}


@router.post("/function-call")
def function_call(req: FunctionCallRequest):
    sid = _session_id(req.session_id)
    result = dispatcher.dispatch(sid, req.function_name, req.arguments)
    return {"ok": True, "session_id": sid, "result": result}


@router.post("/llm-output")
def llm_output(req: LLMOutputRequest):
    """
    Accepts a raw agent reply. If it is a `<function=...>{...}</function>` call
    it is dispatched; otherwise it's plain dialogue and nothing happens.
    """
    sid = _session_id(req.session_id)
    try:
        parsed = parse_function_call(req.text)
    except ValueError as e:
        logger.warning("Could not decode function call arguments: %s", e)
        return {
            "ok": True,
            "session_id": sid,
            "handled": True,
            "result": {"success": False, "error": str(e), "message": "The request details were not understood."},
        }
    if parsed is None:
        return {"ok": True, "session_id": sid, "handled": False, "result": None}
    name, arguments = parsed
    result = dispatcher.dispatch(sid, name, arguments)
    return {"ok": True, "session_id": sid, "handled": True, "function_name": name, "result": result}
