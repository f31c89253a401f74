"""Dispatches host lifecycle events to the sync service."""

from typing import Awaitable, Callable

from services.search_sync.SyncService import HOST_ERRORS, SyncService
from services.search_sync.models.SyncResult import PushResult, RebuildResult
from shared.models.events import (
    AllChangesFlushedEvent,
    ContentDeletedEvent,
    ContentMetadataChangedEvent,
    HostEvent,
    HostEventKind,
    ParentDocumentFileDeletedEvent,
    PublicationStatusChangedEvent,
    RebuildRequestedEvent,
)
from shared.helper.HelperConfig import HelperConfig


class EventHandler:
    """One handler per event kind, wired once at construction.

    With no sync service (indexing not configured) every event is ignored.
    """

    def __init__(self, helper_config: HelperConfig, sync_service: SyncService | None) -> None:
        self.logging = helper_config.get_logger()
        self._sync_service = sync_service
        self._handlers: dict[HostEventKind, Callable[[HostEvent], Awaitable[PushResult | RebuildResult | None]]] = {
            HostEventKind.CONTENT_METADATA_CHANGED: self._on_content_metadata_changed,
            HostEventKind.PUBLICATION_STATUS_CHANGED: self._on_publication_status_changed,
            HostEventKind.ALL_CHANGES_FLUSHED: self._on_all_changes_flushed,
            HostEventKind.CONTENT_DELETED: self._on_content_deleted,
            HostEventKind.PARENT_DOCUMENT_FILE_DELETED: self._on_content_deleted,
            HostEventKind.REBUILD_REQUESTED: self._on_rebuild_requested,
        }

    def is_enabled(self) -> bool:
        return self._sync_service is not None

    async def do_handle(self, event: HostEvent) -> PushResult | RebuildResult | None:
        """Run the handler registered for the event's kind.

        Returns:
            PushResult | RebuildResult | None: The handler's result, None when ignored.
        """
        kind = HostEventKind(event.kind)
        if self._sync_service is None:
            self.logging.debug("Indexing disabled, ignoring event '%s'.", kind.value)
            return None
        self.logging.debug("Handling event '%s'.", kind.value)
        return await self._handlers[kind](event)

    ##########################################
    ############### HANDLERS #################
    ##########################################

    async def _on_content_metadata_changed(self, event: ContentMetadataChangedEvent) -> PushResult | None:
        try:
            marked = await self._sync_service.do_mark_current_publication_changed(event.context_id, event.submission_id)
        except HOST_ERRORS as exc:
            self.logging.error("Could not mark submission %d changed: %s", event.submission_id, exc)
            return None
        if not marked:
            return None
        return await self._sync_service.do_push_changed(self._sync_service.online_batch_size)

    async def _on_publication_status_changed(self, event: PublicationStatusChangedEvent) -> None:
        # the host follows up with allChangesFlushed, which pushes
        try:
            count = await self._sync_service.do_mark_submission_changed(event.context_id, event.submission_id)
            self.logging.debug("Marked %d publications of submission %d changed.", count, event.submission_id)
        except HOST_ERRORS as exc:
            self.logging.error("Could not mark publications of submission %d changed: %s", event.submission_id, exc)
        return None

    async def _on_all_changes_flushed(self, event: AllChangesFlushedEvent) -> PushResult:
        return await self._sync_service.do_push_changed(self._sync_service.online_batch_size)

    async def _on_content_deleted(self, event: ContentDeletedEvent | ParentDocumentFileDeletedEvent) -> PushResult:
        return await self._sync_service.do_delete_submission(event.context_id, event.submission_id, event.publication_ids)

    async def _on_rebuild_requested(self, event: RebuildRequestedEvent) -> RebuildResult:
        return await self._sync_service.do_rebuild(context_id=event.context_id, dry_run=event.dry_run)
