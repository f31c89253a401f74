from shared.clients.ClientManager import ClientManager
from shared.clients.search.SearchClientInterface import SearchClientInterface


class SearchClientManager(ClientManager):
    """Instantiates the search index client named by SEARCH_ENGINE."""

    client_type = "search"

    def get_client(self) -> SearchClientInterface:
        return self.client
