from abc import ABC, abstractmethod
from typing import Any

import httpx
from httpx._types import QueryParamTypes

from shared.exceptions import BridgeError, ClientRequestError, ConfigurationError
from shared.helper.HelperConfig import HelperConfig
from shared.models.config import EnvConfig


class ClientInterface(ABC):
    """Common base of the host and search clients.

    A client is identified by its type ("host", "search") and its engine
    ("ojs", "algolia"). Both together form the prefix of every environment
    key the client reads, e.g. ``SEARCH_ALGOLIA_API_KEY``. All required keys
    are checked on construction so a misconfigured client never boots.
    """

    def __init__(self, helper_config: HelperConfig):
        self.logging = helper_config.get_logger()
        self._helper_config = helper_config
        self.timeout = helper_config.get_number_val(f"{self.get_client_type().upper()}_TIMEOUT", default=30.0)

        self._client: httpx.AsyncClient | None = None
        self.validate_full_configuration()

    ##########################################
    ############### CHECKER ##################
    ##########################################

    def validate_full_configuration(self) -> None:
        """
        Reads every key of _get_required_config() once.

        Raises:
            ConfigurationError: On the first key that is missing and has no default.
        """
        for config in self._get_required_config():
            self.get_config_val(raw_key=config.env_key, default=config.default, val_type=config.val_type)

    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ GENERAL ##################
    def get_client_type(self) -> str:
        return self._get_client_type().lower()

    @abstractmethod
    def _get_client_type(self) -> str:
        """
        Returns the type of the client, "host" or "search".
        """
        pass

    def get_engine_name(self) -> str:
        return self._get_engine_name().lower()

    @abstractmethod
    def _get_engine_name(self) -> str:
        """
        Returns the backend the client talks to, e.g. "ojs" or "algolia".
        """
        pass

    ################ CONFIG ##################
    @abstractmethod
    def _get_required_config(self) -> list[EnvConfig]:
        """
        Returns the keys the client reads, without the type and engine prefix.
        """
        pass

    def _get_config_key_name(self, raw_key: str) -> str:
        return f"{self.get_client_type()}_{self.get_engine_name()}_{raw_key}".upper()

    def get_config_val(self, raw_key: str, default: Any = None, val_type: str = "string") -> Any:
        """
        Reads a prefixed configuration value of this client.

        Args:
            raw_key (str): Key without prefix, e.g. "API_KEY".
            default (Any): Value used when the key is unset.
            val_type (str): One of "string", "number", "bool", "list".

        Raises:
            ConfigurationError: If the key is unset without default or val_type is unknown.
        """
        readers = {
            "string": self._helper_config.get_string_val,
            "number": self._helper_config.get_number_val,
            "bool": self._helper_config.get_bool_val,
            "list": self._helper_config.get_list_val,
        }
        reader = readers.get(val_type)
        if reader is None:
            raise ConfigurationError(f"{self.get_client_type()} client '{self.get_engine_name()}' cannot read '{raw_key}' as '{val_type}'.")
        return reader(self._get_config_key_name(raw_key), default=default)

    ################ AUTH ##################
    @abstractmethod
    def _get_auth_header(self) -> dict:
        """
        Returns the headers authenticating every request against the backend.
        """
        pass

    ################ ENDPOINTS ##################
    @abstractmethod
    def _get_base_url(self) -> str:
        """
        Returns the URL all endpoint paths are appended to, e.g. "https://journals.example.org/index.php".
        """
        pass

    @abstractmethod
    def _get_endpoint_healthcheck(self) -> str:
        """
        Returns a cheap path answering 2xx while the backend is up, e.g. "/1/isalive".
        """
        pass

    def _build_url(self, endpoint: str) -> str:
        path = endpoint.strip().lstrip("/")
        base_url = self._get_base_url().rstrip("/")
        return f"{base_url}/{path}" if path else base_url

    def _build_headers(self, additional_headers: dict | None) -> dict:
        headers = dict(self._get_auth_header())
        headers.update(additional_headers or {})
        return headers

    ##########################################
    ############### REQUESTS #################
    ##########################################

    async def do_healthcheck(self) -> httpx.Response:
        return await self.do_request(method="GET", endpoint=self._get_endpoint_healthcheck())

    async def boot(self, transport: httpx.AsyncBaseTransport | None = None) -> None:
        """Open the HTTP connection pool.

        Args:
            transport (httpx.AsyncBaseTransport | None): Replaces the network transport,
                tests pass an ``httpx.MockTransport`` here.
        """
        self._client = httpx.AsyncClient(timeout=self.timeout, transport=transport)

    async def close(self) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    async def do_request(
        self,
        method: str = "GET",
        endpoint: str = "",
        json: dict | None = None,
        params: QueryParamTypes | None = None,
        additional_headers: dict | None = None,
        raise_on_error: bool = False,
    ) -> httpx.Response:
        """Send one authenticated request to the backend.

        Args:
            method: HTTP verb.
            endpoint: Path below the base URL.
            json: Request body, sent as JSON.
            params: Query parameters.
            additional_headers: Headers overriding the auth headers.
            raise_on_error: Turn a status of 300 or above into ClientRequestError.

        Raises:
            BridgeError: If boot() was not called.
            ClientRequestError: On a failed status, only when raise_on_error is set.
            httpx.HTTPError: On transport failures.
        """
        if self._client is None:
            raise BridgeError(f"{self.get_client_type()} client '{self.get_engine_name()}' is not booted.")

        url = self._build_url(endpoint)
        response = await self._client.request(
            method,
            url,
            json=json,
            params=params,
            headers=self._build_headers(additional_headers),
            timeout=self.timeout,
        )

        if raise_on_error and response.status_code >= 300:
            self.logging.error("%s %s answered %d: %s", method, url, response.status_code, response.text)
            raise ClientRequestError(url, response.status_code, response.text)

        return response
