"""
Webhooks Router

Hypay payment notifications. The signature covers the raw body, so the body
is read as bytes before parsing.
"""

import json

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from storefront import config
from storefront.errors import ERROR_INTERNAL, ERROR_INVALID_SIGNATURE
from storefront.logging import get_logger
from storefront.payments import PaymentWebhookService
from storefront.routers.deps import get_webhook_service

logger = get_logger(__name__)

router = APIRouter(tags=["webhooks"])


@router.post("/api/webhook/hypay")
@router.post("/webhook/hypay")
async def hypay_webhook(
    request: Request,
    service: PaymentWebhookService = Depends(get_webhook_service),
):
    """
    Handle Hypay payment webhook.

    401 on a bad signature, 400 on an unreadable body, 500 when the database
    update fails (Hypay retries on non-2xx).
    """
    raw_body = await request.body()
    signature = request.headers.get(config.HYPAY_SIGNATURE_HEADER)

    if not service.verify_signature(raw_body, signature):
        logger.warning("Hypay webhook: invalid signature")
        return JSONResponse({"error": ERROR_INVALID_SIGNATURE}, status_code=401)

    try:
        payload = json.loads(raw_body.decode("utf-8"))
    except (json.JSONDecodeError, UnicodeDecodeError):
        logger.warning("Hypay webhook: could not parse request body")
        return JSONResponse({"status": "error", "message": "Could not parse webhook data"}, status_code=400)
    if not isinstance(payload, dict):
        return JSONResponse({"status": "error", "message": "Could not parse webhook data"}, status_code=400)

    try:
        await service.handle(payload)
    except Exception as e:
        logger.error(f"Hypay webhook processing error: {e}", exc_info=True)
        return JSONResponse({"status": "error", "message": ERROR_INTERNAL}, status_code=500)

    return {"status": "success", "message": "Webhook processed successfully"}
