"""Synchronisation service.

Moves changed publications from the host into the search index. Changes are
signalled by the dirty flag the ChangeTracker owns; the ContentFormatter turns
each publication into index entries and the search client applies them.

Delivery is at-most-once: a record's flag is cleared before its payload is
built, and failed remote calls are reported, never retried.
"""

from enum import Enum

from services.search_sync.ChangeTracker import HOST_ERRORS, ChangeTracker
from services.search_sync.ContentFormatter import ContentFormatter
from services.search_sync.models.SyncResult import PushResult, RebuildResult
from shared.clients.host.HostClientInterface import HostClientInterface
from shared.clients.host.models.Context import ContextDetails
from shared.clients.host.models.Publication import PublicationDetails
from shared.clients.search.SearchClientInterface import SearchClientInterface
from shared.clients.search.models.BatchOperation import AddOperation, BatchOperation, DeleteOperation
from shared.exceptions import AdapterError
from shared.helper.HelperConfig import HelperConfig

ONLINE_BATCH_SIZE = 5   # records per push triggered by a host event
MAX_BATCH_SIZE = 2000   # records per push during a rebuild


class DeleteMode(Enum):
    PER_RECORD = "per_record"
    CLEAR_SCOPE = "clear_scope"
    NONE = "none"


class SyncService:
    """Orchestrates pushes, rebuilds and deletions between host and search index."""

    def __init__(
        self,
        helper_config: HelperConfig,
        host_client: HostClientInterface,
        search_client: SearchClientInterface,
        tracker: ChangeTracker | None = None,
        formatter: ContentFormatter | None = None,
    ) -> None:
        self.logging = helper_config.get_logger()
        self._host_client = host_client
        self._search_client = search_client
        self._tracker = tracker or ChangeTracker(helper_config=helper_config, host_client=host_client)
        self._formatter = formatter or ContentFormatter(
            wrap_width=int(helper_config.get_number_val("SEARCH_SYNC_WRAP_WIDTH", default=250)),
            tz_name=helper_config.get_string_val("SEARCH_SYNC_TIMEZONE", default="UTC"),
        )
        self.online_batch_size = int(helper_config.get_number_val("SEARCH_SYNC_ONLINE_BATCH_SIZE", default=ONLINE_BATCH_SIZE))
        self.max_batch_size = int(helper_config.get_number_val("SEARCH_SYNC_MAX_BATCH_SIZE", default=MAX_BATCH_SIZE))

    def get_tracker(self) -> ChangeTracker:
        return self._tracker

    ##########################################
    ################# PUSH ###################
    ##########################################

    async def do_push_changed(self, batch_size: int | None = None, context_id: int | None = None) -> PushResult:
        """Push up to batch_size dirty publications to the search index.

        Without a context every processed record is deleted by its distinct id
        before the adds are applied. With a context the per-record deletes are
        replaced by one clear of that context's entries.

        Args:
            batch_size (int | None): Maximum records to process. Defaults to the online batch size.
            context_id (int | None): Restrict to one context.

        Returns:
            PushResult: Counts and errors of this push.
        """
        delete_mode = DeleteMode.CLEAR_SCOPE if context_id is not None else DeleteMode.PER_RECORD
        return await self._push(batch_size or self.online_batch_size, context_id, delete_mode)

    async def _push(self, batch_size: int, context_id: int | None, delete_mode: DeleteMode) -> PushResult:
        result = PushResult(batch_size=batch_size, context_id=context_id)

        try:
            dirty = [publication async for publication in self._tracker.find_dirty(context_id=context_id, count=batch_size)]
        except HOST_ERRORS as exc:
            self._report_error(result, "Could not read dirty publications: %s" % exc)
            return result

        if not dirty:
            self.logging.debug("No dirty publications%s.", f" in context {context_id}" if context_id is not None else "")
            return result

        operations: list[BatchOperation] = []
        for publication in dirty:
            result.processed += 1
            # clear first: a failure below leaves the record clean
            try:
                await self._tracker.mark_clean(publication)
            except HOST_ERRORS as exc:
                self._report_error(result, "Could not mark publication %d clean: %s" % (publication.id, exc))
                continue
            result.cleaned += 1

            if delete_mode == DeleteMode.PER_RECORD:
                operations.append(DeleteOperation(distinctId=str(publication.id)))

            try:
                operations.extend(await self._build_add_operations(publication))
            except HOST_ERRORS as exc:
                self._report_error(result, "Could not build index entries for publication %d: %s" % (publication.id, exc))

        if delete_mode == DeleteMode.CLEAR_SCOPE:
            try:
                await self._search_client.do_clear_scope(context_id)
                result.cleared = True
            except AdapterError as exc:
                self._report_error(result, "Clearing context %d failed, adds skipped: %s" % (context_id, exc))
                return result

        if operations:
            try:
                await self._search_client.do_submit_batch(operations)
                result.deleted = sum(1 for op in operations if isinstance(op, DeleteOperation))
                result.added = sum(1 for op in operations if isinstance(op, AddOperation))
            except AdapterError as exc:
                self._report_error(result, "Submitting %d operations failed: %s" % (len(operations), exc))

        self.logging.info(
            "Pushed %d publications: %d cleaned, %d deleted, %d entries added, %d errors.",
            result.processed, result.cleaned, result.deleted, result.added, len(result.errors),
        )
        return result

    async def _build_add_operations(self, publication: PublicationDetails) -> list[AddOperation]:
        """Only the published current version of a submission is added."""
        if not publication.is_published():
            self.logging.debug("Publication %d is not published, delete only.", publication.id)
            return []
        details = await self._host_client.do_fetch_publication_high_details(publication)
        if not details.is_published() or not details.is_current:
            self.logging.debug("Publication %d is not the published current version, delete only.", publication.id)
            return []
        entries = self._formatter.format(details)
        if not entries:
            self.logging.debug("Publication %d has no indexable text.", publication.id)
        return [AddOperation(body=entry) for entry in entries]

    ##########################################
    ################ REBUILD #################
    ##########################################

    async def do_rebuild(self, context_id: int | None = None, dry_run: bool = False) -> RebuildResult:
        """Rebuild the index, or one context's share of it.

        The index (or the context's entries) is cleared once, then each context's
        published current publications are marked dirty and pushed in batches of
        max_batch_size. A dry run only counts what would be marked and changes
        nothing, neither flags nor index.

        Args:
            context_id (int | None): Restrict to one context.
            dry_run (bool): Count only.

        Returns:
            RebuildResult: Per-context counts and the progress log.
        """
        result = RebuildResult(dry_run=dry_run, context_id=context_id)

        try:
            contexts = await self._get_rebuild_contexts(context_id)
        except HOST_ERRORS as exc:
            self._report_error(result, "Could not load contexts: %s" % exc)
            return result

        if not dry_run:
            try:
                if context_id is None:
                    await self._search_client.do_clear_index()
                    self._report(result, "Index cleared.")
                else:
                    await self._search_client.do_clear_scope(context_id)
                    self._report(result, "Entries of context %d cleared." % context_id)
                result.cleared = True
            except AdapterError as exc:
                self._report_error(result, "Clearing the index failed, rebuild aborted: %s" % exc)
                return result

        for context in contexts:
            name = context.get_localized_name()
            mark_errors: list[str] = []
            try:
                marked = await self._tracker.mark_collection_dirty(context.id, dry_run=dry_run, errors=mark_errors)
            except HOST_ERRORS as exc:
                self._report_error(result, "%s: marking failed: %s" % (name, exc))
                if dry_run:
                    continue
                # the index is already cleared; still push whatever is flagged
                marked = 0
            for message in mark_errors:
                result.errors.append("%s: %s" % (name, message))
                result.messages.append("%s: %s" % (name, message))
            result.marked[name] = marked

            if dry_run:
                self._report(result, "%s: %d publications would be indexed." % (name, marked))
                continue

            pushed = await self._push_context(context)
            result.pushed[name] = pushed.processed
            result.errors.extend(pushed.errors)
            result.messages.extend(pushed.errors)
            self._report(result, "%s: %d publications marked, %d pushed, %d entries added." % (name, marked, pushed.processed, pushed.added))

        self.logging.info("Rebuild %s.", "finished" if result.success else "finished with errors", color="green" if result.success else "yellow")
        return result

    async def _get_rebuild_contexts(self, context_id: int | None) -> list[ContextDetails]:
        """Reload reference data so journals and sections added since start-up are seen."""
        contexts = await self._host_client.fill_cache(force_refresh=True)
        if context_id is not None:
            return [await self._host_client.do_fetch_context(context_id)]
        return contexts

    async def _push_context(self, context: ContextDetails) -> PushResult:
        """Push a context's dirty set in bounded batches until a batch comes back short."""
        total = PushResult(batch_size=self.max_batch_size, context_id=context.id)
        while True:
            batch = await self._push(self.max_batch_size, context.id, DeleteMode.NONE)
            total.merge(batch)
            if batch.processed < self.max_batch_size or batch.cleaned == 0:
                return total

    ##########################################
    ################ DELETE ##################
    ##########################################

    async def do_delete_submission(self, context_id: int, submission_id: int, publication_ids: list[int] | None = None) -> PushResult:
        """Remove every published version of a submission from the index right away.

        Args:
            context_id (int): Context of the submission.
            submission_id (int): The submission.
            publication_ids (list[int] | None): Published version ids known to the caller.
                Looked up on the host when omitted.

        Returns:
            PushResult: Number of delete operations submitted and errors.
        """
        result = PushResult(context_id=context_id)
        if publication_ids is None:
            try:
                submission = await self._host_client.do_fetch_submission(context_id, submission_id)
            except HOST_ERRORS as exc:
                self._report_error(result, "Could not resolve publications of submission %d: %s" % (submission_id, exc))
                return result
            publication_ids = submission.get_published_publication_ids()

        operations = [DeleteOperation(distinctId=str(publication_id)) for publication_id in publication_ids]
        if not operations:
            self.logging.debug("Submission %d has no published versions to delete.", submission_id)
            return result

        try:
            await self._search_client.do_submit_batch(operations)
            result.deleted = len(operations)
            self.logging.info("Deleted %d versions of submission %d from the index.", len(operations), submission_id)
        except AdapterError as exc:
            self._report_error(result, "Deleting submission %d failed: %s" % (submission_id, exc))
        return result

    ##########################################
    ################# MARKS ##################
    ##########################################

    async def do_mark_current_publication_changed(self, context_id: int, submission_id: int) -> bool:
        """Mark the submission's current publication dirty. Returns whether one was marked."""
        return await self._tracker.mark_current_publication_dirty(context_id, submission_id) is not None

    async def do_mark_submission_changed(self, context_id: int, submission_id: int) -> int:
        """Mark every publication version of the submission dirty."""
        return await self._tracker.mark_submission_dirty(context_id, submission_id)

    ##########################################
    ################ REPORTING ###############
    ##########################################

    def _report(self, result: RebuildResult, message: str) -> None:
        self.logging.info(message)
        result.messages.append(message)

    def _report_error(self, result: PushResult | RebuildResult, message: str) -> None:
        self.logging.error(message)
        result.errors.append(message)
        if isinstance(result, RebuildResult):
            result.messages.append(message)
