"""Change tracker.

Owns the persisted dirty flag of every publication. The flag lives on the host
record itself and is written through the host client's edit request.
"""

from typing import AsyncIterator

import httpx

from shared.clients.host.HostClientInterface import HostClientInterface
from shared.clients.host.models.Publication import PublicationBase, PublicationDetails, PublicationFilter, PublicationStatus
from shared.exceptions import ClientRequestError, InvalidRecord
from shared.helper.HelperConfig import HelperConfig

# failures of a single host record; they never abort a whole batch
HOST_ERRORS = (InvalidRecord, ClientRequestError, httpx.HTTPError)


class ChangeTracker:
    """Reads and writes the indexing dirty flag of host publications."""

    def __init__(self, helper_config: HelperConfig, host_client: HostClientInterface) -> None:
        self.logging = helper_config.get_logger()
        self._host_client = host_client

    ##########################################
    ################# FLAGS ##################
    ##########################################

    async def mark_dirty(self, publication: PublicationBase) -> PublicationDetails:
        """Flag a publication as needing re-sync. Idempotent.

        Raises:
            InvalidRecord: If the reference is malformed or the record does not exist.
        """
        return await self._set_flag(publication, True)

    async def mark_clean(self, publication: PublicationBase) -> PublicationDetails:
        """Clear the re-sync flag of a publication. Idempotent.

        Raises:
            InvalidRecord: If the reference is malformed or the record does not exist.
        """
        return await self._set_flag(publication, False)

    async def _set_flag(self, publication: PublicationBase, dirty: bool) -> PublicationDetails:
        self._validate(publication)
        updated = await self._host_client.do_edit_publication(publication, {"indexing_dirty": dirty})
        self.logging.debug("Marked publication %d %s.", publication.id, "dirty" if dirty else "clean")
        return updated

    def _validate(self, publication: PublicationBase) -> None:
        if publication is None:
            raise InvalidRecord("Publication reference is missing.")
        for attr in ("id", "submission_id", "context_id"):
            if not isinstance(getattr(publication, attr, None), int):
                raise InvalidRecord(f"Publication reference has no valid {attr}: {publication!r}")

    ##########################################
    ################ QUERIES #################
    ##########################################

    def find_dirty(self, context_id: int | None = None, count: int | None = None) -> AsyncIterator[PublicationDetails]:
        """Lazily yield publications currently flagged dirty.

        Each call starts a fresh query, so the sequence is restartable.
        Order is the host's context and submission order.

        Args:
            context_id (int | None): Restrict to one context.
            count (int | None): Stop after this many records.
        """
        return self._host_client.do_query_publications(
            PublicationFilter(context_id=context_id, indexing_dirty=True, count=count)
        )

    async def mark_collection_dirty(self, context_id: int, dry_run: bool = False, errors: list[str] | None = None) -> int:
        """Flag the current publication of every published submission in a context.

        Unpublished versions are never indexed and therefore never marked. A
        record that cannot be flagged is skipped; the others are still marked.

        Args:
            context_id (int): The context to mark.
            dry_run (bool): Only count, do not write any flag.
            errors (list[str] | None): Receives one message per skipped record.

        Returns:
            int: Number of publications marked (or that would be marked).

        Raises:
            InvalidRecord, ClientRequestError, httpx.HTTPError: If the listing itself fails.
        """
        published = PublicationFilter(context_id=context_id, status=PublicationStatus.PUBLISHED, current_only=True)

        # collect first: editing while paging may shift the host's listing
        candidates = [publication async for publication in self._host_client.do_query_publications(published)]
        if dry_run:
            self.logging.debug("Would mark %d publications of context %d.", len(candidates), context_id)
            return len(candidates)

        marked = 0
        for publication in candidates:
            try:
                await self.mark_dirty(publication)
            except HOST_ERRORS as exc:
                message = "Could not mark publication %d dirty: %s" % (publication.id, exc)
                self.logging.error(message)
                if errors is not None:
                    errors.append(message)
                continue
            marked += 1
        self.logging.debug("Marked %d of %d publications of context %d.", marked, len(candidates), context_id)
        return marked

    async def mark_submission_dirty(self, context_id: int, submission_id: int) -> int:
        """Flag every publication version of a submission.

        Used when a version changes status: the previously current version may
        have to leave the index and the new one enter it.

        Returns:
            int: Number of publications marked.
        """
        publications = await self._host_client.do_fetch_publications_by_submission(context_id, submission_id)
        for publication in publications:
            await self.mark_dirty(publication)
        return len(publications)

    async def mark_current_publication_dirty(self, context_id: int, submission_id: int) -> PublicationDetails | None:
        """Flag the current publication of a submission.

        Returns:
            PublicationDetails | None: The updated publication, None if the submission has none.
        """
        submission = await self._host_client.do_fetch_submission(context_id, submission_id)
        current = submission.get_current_publication()
        if current is None:
            self.logging.warning("Submission %d has no current publication, nothing to mark.", submission_id)
            return None
        return await self.mark_dirty(current)
