from urllib.parse import urlencode

from shared.clients.search.SearchClientInterface import SearchClientInterface
from shared.clients.search.models.BatchOperation import AddOperation
from shared.helper.HelperConfig import HelperConfig
from shared.models.config import EnvConfig


class SearchClientAlgolia(SearchClientInterface):
    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)
        self._app_id = self.get_config_val("APP_ID", default=None, val_type="string")
        self._api_key = self.get_config_val("API_KEY", default=None, val_type="string")
        self._index_name = self.get_config_val("INDEX", default=None, val_type="string")
        self._base_url = self.get_config_val("BASE_URL", default=f"https://{self._app_id}.algolia.net", val_type="string")
        self._max_batch_size = int(self.get_config_val("MAX_BATCH_SIZE", default=1000, val_type="number"))

    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ GENERAL ##################
    def _get_engine_name(self) -> str:
        return "Algolia"

    def get_index_name(self) -> str:
        return self._index_name

    def get_max_batch_size(self) -> int:
        return self._max_batch_size

    ################ CONFIG ##################
    def _get_required_config(self) -> list[EnvConfig]:
        return [
            EnvConfig(env_key="APP_ID", val_type="string", default=None),
            EnvConfig(env_key="API_KEY", val_type="string", default=None),
            EnvConfig(env_key="INDEX", val_type="string", default=None),
            EnvConfig(env_key="MAX_BATCH_SIZE", val_type="number", default=1000),
        ]

    ################ AUTH ##################
    def _get_auth_header(self) -> dict:
        return {
            "X-Algolia-Application-Id": self._app_id,
            "X-Algolia-API-Key": self._api_key,
        }

    ################ ENDPOINTS ##################
    def _get_base_url(self) -> str:
        return self._base_url

    def _get_endpoint_healthcheck(self) -> str:
        return "/1/isalive"

    def _get_endpoint_batch(self) -> str:
        return "/1/indexes/*/batch"

    def _get_endpoint_clear_index(self) -> str:
        return f"/1/indexes/{self._index_name}/clear"

    def _get_endpoint_delete_by_filter(self) -> str:
        return f"/1/indexes/{self._index_name}/deleteByQuery"

    def _get_endpoint_list_indexes(self) -> str:
        return "/1/indexes"

    ##########################################
    ########### PAYLOAD BUILDER ##############
    ##########################################

    def get_batch_payload(self, operations: list[AddOperation]) -> dict:
        return {
            "requests": [
                {"action": op.action, "indexName": self._index_name, "body": op.body.model_dump()}
                for op in operations
            ]
        }

    def get_delete_by_filter_payload(self, field: str, value: str | int) -> dict:
        if isinstance(value, str):
            filters = f'{field}:"{value}"'
        else:
            filters = f"{field}={value}"
        return {"params": urlencode({"filters": filters})}

    ##########################################
    ########### RESPONSE PARSER ##############
    ##########################################

    def extract_index_names(self, raw_response: dict) -> list[str]:
        return [item.get("name") for item in raw_response.get("items", []) if item.get("name")]
