"""
Email Dispatch Endpoint
"""
from fastapi import APIRouter, Depends, Request, Response, status
from fastapi.responses import ORJSONResponse
import logging

from travelle.errors import EmailDispatchFailure
from travelle.schemas.email import SendEmailRequest
from travelle.services.notification_service import NotificationService, get_notification_service

router = APIRouter()
logger = logging.getLogger(__name__)

ALL_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]


def _failure(status_code: int, error: str) -> ORJSONResponse:
    return ORJSONResponse(status_code=status_code, content={"success": False, "error": error})


@router.api_route("/send-email", methods=ALL_METHODS)
async def send_email(
    request: Request,
    notifications: NotificationService = Depends(get_notification_service),
):
    """
    Send one HTML email: POST {to, subject, html}.
    OPTIONS answers the pre-flight probe; every other method is refused.
    """
    if request.method == "OPTIONS":
        return Response(status_code=status.HTTP_200_OK)
    if request.method != "POST":
        return _failure(status.HTTP_405_METHOD_NOT_ALLOWED, "Method not allowed")

    try:
        body = SendEmailRequest.model_validate(await request.json())
    except ValueError:
        body = SendEmailRequest()

    if not (body.to and body.subject and body.html):
        return _failure(status.HTTP_400_BAD_REQUEST, "Missing required fields")

    try:
        result = await notifications.deliver(body.to, body.subject, body.html)
    except EmailDispatchFailure as e:
        logger.error(f"Email dispatch to {body.to} failed: {e.message}")
        return _failure(status.HTTP_500_INTERNAL_SERVER_ERROR, e.message)

    logger.info(f"Email sent to {body.to}: {result.message_id}")
    return {"success": True, "messageId": result.message_id}
