from shared.clients.ClientManager import ClientManager
from shared.clients.host.HostClientInterface import HostClientInterface


class HostClientManager(ClientManager):
    """Instantiates the publishing host client named by HOST_ENGINE."""

    client_type = "host"

    def get_client(self) -> HostClientInterface:
        return self.client
