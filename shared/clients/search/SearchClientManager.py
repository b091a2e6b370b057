from shared.helper.HelperConfig import HelperConfig
from shared.clients.search.SearchClientInterface import SearchClientInterface


class SearchClientManager:
    """Builds the search client of the engine named in SEARCH_ENGINE.

    The engine "foo" is looked up as class SearchClientFoo in
    shared/clients/search/foo/SearchClientFoo.py.
    """

    def __init__(self, helper_config: HelperConfig):
        self.helper_config = helper_config
        self.logging = helper_config.get_logger()
        self.engine = helper_config.get_string_val("SEARCH_ENGINE").lower()
        self.client = self._initialize_client()

    def _initialize_client(self) -> SearchClientInterface:
        class_name = f"SearchClient{self.engine.capitalize()}"
        try:
            module = __import__(f"shared.clients.search.{self.engine}.{class_name}", fromlist=[class_name])
            client_class = getattr(module, class_name)
        except (ImportError, AttributeError) as e:
            raise ValueError(f"Unsupported search engine '{self.engine}': {e}")
        self.logging.debug("Instantiated search client %s", class_name)
        return client_class(helper_config=self.helper_config)

    def get_client(self) -> SearchClientInterface:
        return self.client
