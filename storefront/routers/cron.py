"""
Cron job endpoints for scheduled tasks.

Called by Vercel Cron with CRON_SECRET authentication.
"""
from fastapi import APIRouter, Depends, Header, HTTPException

from storefront import config
from storefront.payments import PaymentWebhookService
from storefront.routers.deps import get_webhook_service

router = APIRouter(prefix="/api/cron", tags=["cron"])


def verify_cron_secret(authorization: str = Header(None)) -> None:
    """Verify cron job authentication."""
    if not config.CRON_SECRET:
        raise HTTPException(status_code=500, detail="CRON_SECRET not configured")
    if authorization != f"Bearer {config.CRON_SECRET}":
        raise HTTPException(status_code=401, detail="Invalid cron secret")


@router.get("/cleanup-payment-sessions", dependencies=[Depends(verify_cron_secret)])
async def cron_cleanup_payment_sessions(
    service: PaymentWebhookService = Depends(get_webhook_service),
):
    """Expire payment sessions the gateway never resolved."""
    cleaned = await service.cleanup_expired_sessions()
    return {"cleaned": cleaned}
