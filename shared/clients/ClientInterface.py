from abc import ABC, abstractmethod

import httpx
from httpx._types import QueryParamTypes, RequestContent
from typing import Any

from shared.helper.HelperConfig import HelperConfig
from shared.models.config import EnvConfig
from shared.models.errors import BackendError, BackendUnavailable


class ClientInterface(ABC):
    """Base class of every HTTP backend client.

    Owns one long-lived httpx.AsyncClient, resolves namespaced settings
    ({CLIENT_TYPE}_{ENGINE}_{KEY}) and turns transport failures into BackendError.
    """

    def __init__(self, helper_config: HelperConfig):
        self.logging = helper_config.get_logger()
        self._helper_config = helper_config
        self.timeout = helper_config.get_number_val(f"{self.get_client_type().upper()}_TIMEOUT", default=30.0)

        self._client: httpx.AsyncClient | None = None
        self._transport: httpx.AsyncBaseTransport | None = None
        self.validate_full_configuration()

    ##########################################
    ############### CHECKER ##################
    ##########################################

    def validate_full_configuration(self) -> None:
        """Resolve every required setting once so a misconfigured client fails at construction.

        Raises:
            ValueError: If a required setting is missing or has the wrong type.
        """
        for config in self._get_required_config():
            self.get_config_val(raw_key=config.env_key, default=config.default, val_type=config.val_type)

    def is_booted(self) -> bool:
        return self._client is not None

    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ GENERAL ##################
    def get_client_type(self) -> str:
        return self._get_client_type().lower()

    @abstractmethod
    def _get_client_type(self) -> str:
        """Kind of backend this client talks to, used as settings prefix (e.g. "search")."""
        pass

    def get_engine_name(self) -> str:
        return self._get_engine_name().lower()

    @abstractmethod
    def _get_engine_name(self) -> str:
        """Human readable engine name (e.g. "Elasticsearch")."""
        pass

    ################ CONFIG ##################
    @abstractmethod
    def _get_required_config(self) -> list[EnvConfig]:
        """Settings the engine needs, with their types and defaults."""
        pass

    def _get_config_key_name(self, raw_key: str) -> str:
        # e.g. SEARCH_ELASTICSEARCH_BASE_URL
        return f"{self.get_client_type().upper()}_{self.get_engine_name().upper()}_{raw_key.upper()}"

    def get_config_val(self, raw_key: str, default: Any = None, val_type: str = "string") -> Any:
        """Read one namespaced setting of this client.

        Args:
            raw_key (str): Key without prefix (e.g. "BASE_URL").
            default (Any): Value used when the variable is unset. None makes it required.
            val_type (str): "string" or "number".
        """
        key = self._get_config_key_name(raw_key)
        if val_type == "string":
            return self._helper_config.get_string_val(key, default=default)
        if val_type == "number":
            return self._helper_config.get_number_val(key, default=default)
        raise ValueError(f"Unsupported config value type '{val_type}' for '{key}'.")

    ################ AUTH ##################
    @abstractmethod
    def _get_auth_header(self) -> dict:
        """Headers authenticating against the backend. Empty when no credentials are configured."""
        pass

    ################ ENDPOINTS ##################
    @abstractmethod
    def _get_base_url(self) -> str:
        pass

    @abstractmethod
    def _get_endpoint_healthcheck(self) -> str:
        pass

    ##########################################
    ############### LIFECYCLE ################
    ##########################################

    def set_transport(self, transport: httpx.AsyncBaseTransport) -> None:
        """Route requests through a custom transport (e.g. httpx.MockTransport). Takes effect on boot()."""
        self._transport = transport

    async def boot(self) -> None:
        self._client = httpx.AsyncClient(timeout=self.timeout, transport=self._transport)

    async def close(self) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    async def do_healthcheck(self) -> httpx.Response:
        return await self.do_request(method="GET", endpoint=self._get_endpoint_healthcheck())

    ##########################################
    ############ CORE REQUESTS ###############
    ##########################################

    async def do_request(
        self,
        method: str = "GET",
        endpoint: str = "",
        json: dict | None = None,
        content: RequestContent | None = None,
        params: QueryParamTypes | None = None,
        additional_headers: dict | None = None,
        raise_on_error: bool = False,
    ) -> httpx.Response:
        """Send one request to the backend.

        Args:
            method: HTTP verb.
            endpoint: Path below the base URL.
            json: JSON body. Mutually exclusive with content.
            content: Raw body (NDJSON, pre-serialised JSON). Pass its Content-Type in additional_headers.
            params: Query string parameters.
            additional_headers: Headers merged over the auth header.
            raise_on_error: Raise BackendError for any status >= 300 instead of returning the response.

        Raises:
            BackendUnavailable: Client not booted, backend unreachable or request timed out.
            BackendError: Non-2xx status with raise_on_error=True.
        """
        if self._client is None:
            raise BackendUnavailable("HTTP client not initialised. Call boot() before making requests.")

        url = self._get_base_url().rstrip("/")
        if endpoint.strip():
            url += "/" + endpoint.strip().lstrip("/")
        headers = {**self._get_auth_header(), **(additional_headers or {})}

        try:
            if content is not None:
                response = await self._client.request(method, url, headers=headers, params=params, content=content)
            else:
                response = await self._client.request(method, url, headers=headers, params=params, json=json)
        except httpx.TimeoutException as exc:
            self.logging.error("%s %s timed out after %ss", method, url, self.timeout)
            raise BackendUnavailable(f"{method} {url} timed out", detail=str(exc)) from exc
        except httpx.TransportError as exc:
            self.logging.error("%s %s failed: %s", method, url, exc)
            raise BackendUnavailable(f"{method} {url} failed", detail=str(exc)) from exc

        if raise_on_error and response.status_code >= 300:
            self.logging.error("%s %s returned %d: %s", method, url, response.status_code, response.text)
            raise BackendError(
                f"{method} {url} failed with status {response.status_code}",
                status_code=response.status_code,
                detail=response.text,
            )
        return response
