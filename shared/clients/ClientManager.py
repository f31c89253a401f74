from shared.clients.ClientInterface import ClientInterface
from shared.exceptions import ConfigurationError
from shared.helper.HelperConfig import HelperConfig


class ClientManager:
    """Resolves ``{TYPE}_ENGINE`` to a client class and instantiates it.

    Engine "algolia" of type "search" lives in
    ``shared/clients/search/algolia/SearchClientAlgolia.py``.
    """

    client_type: str = ""

    def __init__(self, helper_config: HelperConfig):
        self.helper_config = helper_config
        self.logging = helper_config.get_logger()
        self.client = self._initialize_client()

    def _get_engine_from_env(self) -> str:
        env_key = f"{self.client_type.upper()}_ENGINE"
        engine = self.helper_config.get_string_val(env_key, default="")
        if not engine:
            raise ConfigurationError(f"No {self.client_type} engine specified in configuration ({env_key}).")
        return engine.strip().lower().capitalize()

    def _initialize_client(self) -> ClientInterface:
        """
        Raises:
            ConfigurationError: If the engine is unknown or the client misses configuration.
        """
        engine = self._get_engine_from_env()
        class_name = f"{self.client_type.capitalize()}Client{engine}"
        try:
            module = __import__(
                f"shared.clients.{self.client_type}.{engine.lower()}.{class_name}",
                fromlist=[class_name],
            )
            client_class = getattr(module, class_name)
        except (ImportError, AttributeError) as e:
            raise ConfigurationError("Unsupported %s engine '%s'. Error: %s" % (self.client_type, engine, e))
        client = client_class(helper_config=self.helper_config)
        self.logging.debug("Instantiated %s client for engine: %s", self.client_type, engine)
        return client

    def get_client(self) -> ClientInterface:
        return self.client
