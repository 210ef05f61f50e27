"""
Webhooks for payment provider (Dodo Payments).
Register https://<backend>/api/webhooks/dodo in the Dodo dashboard.
"""
import json
import logging

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from authormity.db.session import get_db
from authormity.services.billing import apply_plan_update, handle_webhook_event, verify_webhook_signature

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/dodo")
async def dodo_webhook(request: Request, db: Session = Depends(get_db)):
    payload = await request.body()
    if not verify_webhook_signature(
        payload,
        request.headers.get("webhook-signature"),
        request.headers.get("webhook-id"),
        request.headers.get("webhook-timestamp"),
    ):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid webhook signature")

    try:
        event = json.loads(payload)
    except json.JSONDecodeError:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid JSON")
    if not isinstance(event, dict):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid JSON")

    logger.info("Dodo webhook type=%s", event.get("type"))
    update = handle_webhook_event(event)
    if update is not None:
        apply_plan_update(db, update)

    return {"received": True}
