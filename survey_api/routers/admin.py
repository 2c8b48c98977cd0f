from __future__ import annotations

import html
import logging

from fastapi import APIRouter, Depends, Form, Query
from fastapi.responses import HTMLResponse, PlainTextResponse
from sqlalchemy.orm import Session

from survey_api.config import Settings, get_settings
from survey_api.database import get_db
from survey_api.errors import SurveyAPIError
from survey_api.schemas.access import AccessRequestIn
from survey_api.services import access_workflow
from survey_api.services.authz import require_admin
from survey_api.services.ttl_store import TTLStore, get_store

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/admin", tags=["admin"])


@router.post("/verify", dependencies=[Depends(require_admin)])
def verify_admin():
    return {"success": True, "message": "Authorized"}


@router.post("/request-access")
async def request_access(
    payload: AccessRequestIn,
    db: Session = Depends(get_db),
    store: TTLStore = Depends(get_store),
    settings: Settings = Depends(get_settings),
):
    await access_workflow.submit_request(db, store, settings, payload.name, payload.email, payload.reason)
    return {"success": True, "message": "Access request sent"}


async def _decide_as_text(db: Session, settings: Settings, token: str, action: str | None) -> PlainTextResponse:
    try:
        message = await access_workflow.decide(db, settings, token, action)
    except SurveyAPIError as e:
        return PlainTextResponse(e.message, status_code=e.status_code)
    return PlainTextResponse(message)


def _confirmation_page(token: str, action: str) -> HTMLResponse:
    verb = "Approve" if action.lower() == "approve" else "Disapprove"
    page = f"""
    <html><body style="font-family:Arial,sans-serif;max-width:480px;margin:40px auto">
      <h2>{verb} dashboard access?</h2>
      <form method="post" action="/api/admin/decision/{html.escape(token)}">
        <input type="hidden" name="action" value="{html.escape(action)}">
        <button type="submit">{verb}</button>
      </form>
    </body></html>
    """
    return HTMLResponse(page)


@router.get("/decision/{token}")
async def decision_link(
    token: str,
    action: str | None = Query(None),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    # mail scanners prefetch GET links; optionally make GET a confirmation step only
    if settings.decision_requires_confirmation and action:
        req = access_workflow.get_request_by_token(db, token)
        if req is None:
            return PlainTextResponse("Request not found", status_code=404)
        if not req.is_pending():
            return PlainTextResponse(f"Request already {req.status}.")
        return _confirmation_page(token, action)

    return await _decide_as_text(db, settings, token, action)


@router.post("/decision/{token}")
async def decision_submit(
    token: str,
    action: str | None = Form(None),
    action_query: str | None = Query(None, alias="action"),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    return await _decide_as_text(db, settings, token, action or action_query)
