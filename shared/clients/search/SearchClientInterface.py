from abc import abstractmethod

import httpx

from shared.clients.ClientInterface import ClientInterface
from shared.clients.search.models.BatchOperation import AddOperation, BatchOperation, DeleteOperation
from shared.exceptions import AdapterError, ClientRequestError
from shared.helper.HelperConfig import HelperConfig


class SearchClientInterface(ClientInterface):
    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)

    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ GENERAL ##################
    def _get_client_type(self) -> str:
        """
        Returns the type of the client. E.g. "search"
        """
        return "search"

    @abstractmethod
    def get_index_name(self) -> str:
        """
        Returns the name of the index this client writes to.
        """
        pass

    @abstractmethod
    def get_max_batch_size(self) -> int:
        """
        Returns the maximum number of operations the backend accepts in one request.
        """
        pass

    ################ ENDPOINTS ##################
    @abstractmethod
    def _get_endpoint_batch(self) -> str:
        """
        Returns the endpoint path for batch write requests.

        Returns:
            str: The endpoint path (e.g. "/1/indexes/*/batch")
        """
        pass

    @abstractmethod
    def _get_endpoint_clear_index(self) -> str:
        """
        Returns the endpoint path that removes every entry of the index.

        Returns:
            str: The endpoint path (e.g. "/1/indexes/articles/clear")
        """
        pass

    @abstractmethod
    def _get_endpoint_delete_by_filter(self) -> str:
        """
        Returns the endpoint path for filter-based deletes.

        Returns:
            str: The endpoint path (e.g. "/1/indexes/articles/deleteByQuery")
        """
        pass

    @abstractmethod
    def _get_endpoint_list_indexes(self) -> str:
        """
        Returns the endpoint path listing all indexes of the account.

        Returns:
            str: The endpoint path (e.g. "/1/indexes")
        """
        pass

    ################ PAYLOAD BUILDER ##################
    @abstractmethod
    def get_batch_payload(self, operations: list[AddOperation]) -> dict:
        """
        Builds the backend-specific request payload for one batch of add operations.

        Args:
            operations (list[AddOperation]): Operations in submission order.

        Returns:
            dict: The payload for the batch request.
        """
        pass

    @abstractmethod
    def get_delete_by_filter_payload(self, field: str, value: str | int) -> dict:
        """
        Builds the backend-specific payload deleting every entry whose field equals value.

        Args:
            field (str): The index attribute to filter on (e.g. "distinctId").
            value (str | int): The value to match.

        Returns:
            dict: The payload for the delete request.
        """
        pass

    ##########################################
    ########### RESPONSE PARSER ##############
    ##########################################

    @abstractmethod
    def extract_index_names(self, raw_response: dict) -> list[str]:
        """
        Extracts the index names from a raw list-indexes response.
        """
        pass

    ##########################################
    ############### REQUESTS #################
    ##########################################

    async def _do_adapter_request(self, action: str, **kwargs) -> httpx.Response:
        """Send a request and report any failure as AdapterError.

        Raises:
            AdapterError: On transport errors and non-2xx responses.
        """
        try:
            return await self.do_request(raise_on_error=True, **kwargs)
        except (httpx.HTTPError, ClientRequestError) as exc:
            raise AdapterError(f"{self.get_engine_name()} failed to {action} on index '{self.get_index_name()}': {exc}") from exc

    async def do_submit_batch(self, operations: list[BatchOperation]) -> int:
        """Submit operations to the index. Deletes are fully applied before any add.

        A delete removes every chunk sharing the distinct id, so it is issued as a
        filter-based delete. Adds are split into requests of at most
        get_max_batch_size() entries, so one call may issue several requests.

        Args:
            operations (list[BatchOperation]): The operations to apply.

        Returns:
            int: Number of operations submitted.

        Raises:
            AdapterError: If any request fails. Earlier requests may already be applied.
        """
        deletes = [op for op in operations if isinstance(op, DeleteOperation)]
        adds = [op for op in operations if isinstance(op, AddOperation)]

        for op in deletes:
            await self.do_delete_by_distinct_id(op.distinctId)

        size = max(1, int(self.get_max_batch_size()))
        for start in range(0, len(adds), size):
            chunk = adds[start:start + size]
            await self._do_adapter_request(
                "submit batch",
                method="POST",
                json=self.get_batch_payload(chunk),
                endpoint=self._get_endpoint_batch(),
            )
            self.logging.debug("Submitted %d entries to %s index '%s'.", len(chunk), self.get_engine_name(), self.get_index_name())
        return len(deletes) + len(adds)

    async def do_clear_index(self) -> None:
        """Remove every entry of the index.

        Raises:
            AdapterError: If the request fails.
        """
        await self._do_adapter_request("clear index", method="POST", endpoint=self._get_endpoint_clear_index())
        self.logging.info("Cleared %s index '%s'.", self.get_engine_name(), self.get_index_name())

    async def do_clear_scope(self, context_id: int) -> None:
        """Remove every entry belonging to one context.

        Raises:
            AdapterError: If the request fails.
        """
        await self._do_adapter_request(
            "clear context %d" % context_id,
            method="POST",
            json=self.get_delete_by_filter_payload("contextId", context_id),
            endpoint=self._get_endpoint_delete_by_filter(),
        )
        self.logging.info("Cleared context %d from %s index '%s'.", context_id, self.get_engine_name(), self.get_index_name())

    async def do_delete_by_distinct_id(self, distinct_id: str) -> None:
        """Remove every chunk of one publication.

        Raises:
            AdapterError: If the request fails.
        """
        await self._do_adapter_request(
            "delete '%s'" % distinct_id,
            method="POST",
            json=self.get_delete_by_filter_payload("distinctId", distinct_id),
            endpoint=self._get_endpoint_delete_by_filter(),
        )

    async def do_list_indexes(self) -> list[str]:
        """List the names of all indexes of the account.

        Raises:
            AdapterError: If the request fails.
        """
        resp = await self._do_adapter_request("list indexes", method="GET", endpoint=self._get_endpoint_list_indexes())
        return self.extract_index_names(resp.json())

    async def do_existence_check(self) -> bool:
        """Check whether the configured index exists.

        Returns:
            bool: True if the index is listed by the backend.
        """
        return self.get_index_name() in await self.do_list_indexes()
