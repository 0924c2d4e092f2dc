# GitHub webhook routes
from fastapi import APIRouter, BackgroundTasks, Depends, Header, Request
from fastapi.responses import PlainTextResponse
from typing import Optional
from services.dependencies import get_webhook_service
from services.webhook_service import WebhookService

router = APIRouter(prefix='/webhook', tags=['Webhook'])

@router.post('/github')
async def github_webhook(
    request: Request,
    background_tasks: BackgroundTasks,
    x_hub_signature_256: Optional[str] = Header(None),
    x_github_event: Optional[str] = Header(None),
    webhook: WebhookService = Depends(get_webhook_service)
):
    """
    GitHub App webhook; the signature is checked against the raw body.
    Returns immediately - PR scans run in the background.
    """
    body = await request.body()
    status_code, message = await webhook.handle_delivery(
        body, x_hub_signature_256, x_github_event, background_tasks
    )
    return PlainTextResponse(message, status_code=status_code)
