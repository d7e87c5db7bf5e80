"""Mandatory report router: contact details a minor submits after disclosing abuse."""
from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Request

from guidance.api.dependencies import build_request_context, get_dispatcher
from guidance.api.schemas.guidance import MandatoryReportRequest, MandatoryReportResponse

logger = logging.getLogger(__name__)
router = APIRouter(tags=["guidance"])

_SUCCESS_MESSAGE = (
    "Thank you for sharing this. A pastor has been notified and someone will reach out to help. "
    "If you are in danger right now, call 911."
)


@router.post("/mandatory-report", response_model=MandatoryReportResponse)
async def submit_mandatory_report(
    request: Request,
    body: MandatoryReportRequest,
    dispatcher=Depends(get_dispatcher),
):
    context = build_request_context(request, session_id=body.session_id)
    logger.warning("Mandatory report submitted (session=%s)", body.session_id)
    # Email failure is logged inside the dispatcher; the minor still gets the confirmation.
    await dispatcher.send_mandatory_contact_report(
        session_id=body.session_id,
        full_name=body.full_name,
        age=body.age,
        phone=body.phone,
        address=body.address,
        google_email=body.google_email,
        context=context,
    )
    return MandatoryReportResponse(success=True, message=_SUCCESS_MESSAGE)
