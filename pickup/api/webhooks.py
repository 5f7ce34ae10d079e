"""Inbound provider webhooks and the scheduled sweep trigger."""

from fastapi import APIRouter, Depends, Form, Header, HTTPException, Response, status
from pydantic import BaseModel, ConfigDict, Field

from pickup.api.dependencies import get_services
from pickup.config import get_settings
from pickup.models.communication import NotificationMethod
from pickup.services import OrderServices
from pickup.services.sweeper import SweepResult
from pickup.utils.logging import get_logger

logger = get_logger(__name__)

router = APIRouter()

EMPTY_TWIML = '<?xml version="1.0" encoding="UTF-8"?><Response></Response>'


class InboundEmail(BaseModel):
    """Parsed inbound email as forwarded by the mail provider."""

    model_config = ConfigDict(populate_by_name=True)

    from_address: str = Field(alias="from")
    text: str = ""
    message_id: str | None = None


class InboundReplyResponse(BaseModel):
    """What the service did with an inbound message."""

    intent: str
    order_number: str | None = None
    applied: bool = False
    ambiguous: bool = False


@router.post("/webhooks/sms")
async def receive_sms(
    from_number: str = Form(..., alias="From"),
    body: str = Form("", alias="Body"),
    message_sid: str | None = Form(None, alias="MessageSid"),
    services: OrderServices = Depends(get_services),
) -> Response:
    """
    Twilio inbound SMS webhook.

    The reply is logged on the sender's open order and, when it answers a
    pending substitution, applied. The customer's acknowledgement goes out
    through the SMS gateway so it is logged on the order; the response is
    an empty TwiML document so Twilio sends nothing back on its own.
    """
    outcome = await services.substitutions.handle_reply(
        from_number,
        body,
        method=NotificationMethod.SMS,
        provider_reference=message_sid,
    )

    logger.info(
        "sms_webhook_processed",
        order_number=outcome.order.order_number if outcome.order else None,
        intent=outcome.intent.value,
        applied=outcome.applied,
    )
    return Response(content=EMPTY_TWIML, media_type="text/xml")


@router.post("/webhooks/email", response_model=InboundReplyResponse)
async def receive_email(
    email: InboundEmail,
    services: OrderServices = Depends(get_services),
) -> InboundReplyResponse:
    """Inbound email webhook; handled like an SMS reply."""
    outcome = await services.substitutions.handle_reply(
        email.from_address,
        email.text,
        method=NotificationMethod.EMAIL,
        provider_reference=email.message_id,
    )
    return InboundReplyResponse(
        intent=outcome.intent.value,
        order_number=outcome.order.order_number if outcome.order else None,
        applied=outcome.applied,
        ambiguous=outcome.ambiguous,
    )


def verify_cron_secret(authorization: str | None = Header(None)) -> None:
    """Require ``Bearer <cron_secret>`` when a secret is configured."""
    secret = get_settings().cron_secret
    if secret and authorization != f"Bearer {secret}":
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")


@router.api_route(
    "/cron/expire-orders",
    methods=["GET", "POST"],
    response_model=SweepResult,
    dependencies=[Depends(verify_cron_secret)],
)
async def expire_orders(
    services: OrderServices = Depends(get_services),
) -> SweepResult:
    """Run one expiry sweep on demand, for deployments without the in-process scheduler."""
    return await services.sweeper.sweep()
