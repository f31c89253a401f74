from fastapi import APIRouter, Depends, HTTPException, Request

from server.dependencies.auth import verify_api_key
from server.models.requests import PushRequest, RebuildRequest
from server.models.responses import PushResponse, RebuildResponse
from services.search_sync.SyncService import SyncService

router = APIRouter(prefix="/admin", tags=["admin"])


def _get_sync_service(request: Request) -> SyncService:
    sync_service = request.app.state.sync_service
    if sync_service is None:
        raise HTTPException(status_code=503, detail="Indexing is not configured")
    return sync_service


@router.post("/rebuild")
async def rebuild_index(
    request: Request,
    body: RebuildRequest,
    _: None = Depends(verify_api_key),
) -> RebuildResponse:
    """Rebuild the search index, or preview the rebuild.

    Args:
        request (Request): FastAPI request (provides app.state.sync_service).
        body (RebuildRequest): Optional context scope; apply=false previews only.
        _ (None): Auth dependency result (unused).

    Returns:
        RebuildResponse: Per-context counts and the progress log.
    """
    result = await _get_sync_service(request).do_rebuild(context_id=body.context_id, dry_run=not body.apply)
    return RebuildResponse(**result.model_dump())


@router.post("/push")
async def push_changes(
    request: Request,
    body: PushRequest,
    _: None = Depends(verify_api_key),
) -> PushResponse:
    """Push the pending dirty publications now.

    With a context_id the push first clears every entry of that context and
    re-adds only the dirty batch, so clean records of the context leave the
    index. Use /admin/rebuild with a context_id to refresh a whole journal.
    """
    result = await _get_sync_service(request).do_push_changed(batch_size=body.batch_size, context_id=body.context_id)
    return PushResponse(**result.model_dump())
