from fastapi import APIRouter, BackgroundTasks, Depends, Request

from server.dependencies.auth import verify_api_key
from server.models.requests import WebhookRequest
from server.models.responses import EventResponse

router = APIRouter(prefix="/webhook", tags=["webhook"])


@router.post("/event")
async def webhook_event(
    request: Request,
    body: WebhookRequest,
    background_tasks: BackgroundTasks,
    _: None = Depends(verify_api_key),
) -> EventResponse:
    """Accept a host lifecycle event and handle it after the response is sent.

    Args:
        request (Request): FastAPI request (provides app.state.event_handler).
        body (WebhookRequest): JSON body wrapping one typed host event.
        background_tasks (BackgroundTasks): FastAPI background task queue.
        _ (None): Auth dependency result (unused).

    Returns:
        EventResponse: "accepted", or "ignored" when indexing is not configured.
    """
    event_handler = request.app.state.event_handler
    if not event_handler.is_enabled():
        return EventResponse(status="ignored", kind=body.event.kind)
    background_tasks.add_task(event_handler.do_handle, body.event)
    return EventResponse(status="accepted", kind=body.event.kind)
