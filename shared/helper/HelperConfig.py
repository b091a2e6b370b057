"""Environment-backed settings for the PDF search service."""

import logging
import os

DEFAULT_CHUNK_THRESHOLD = 30000
DEFAULT_RESULT_CAP = 1000
DEFAULT_PROXIMITY = 10
DEFAULT_REINDEX_TIMEOUT = 3600


class HelperConfig:
    """Reads all settings from environment variables and hands out the shared logger."""

    def __init__(self, logger: logging.Logger) -> None:
        self._logger = logger

    ##########################################
    ############### RAW VALUES ###############
    ##########################################

    def get_string_val(self, key: str, default: str | None = None) -> str:
        """Read a string environment variable.

        Args:
            key (str): Environment variable name (case-insensitive).
            default (str | None): Fallback value if the variable is not set or empty.

        Returns:
            str: The stripped value.

        Raises:
            ValueError: If the variable is not set and no default is provided.
        """
        key = key.upper()
        raw = (os.getenv(key) or "").strip()
        if raw:
            return raw
        if default is None:
            raise ValueError(f"Environment variable '{key}' is not set.")
        return default

    def get_number_val(self, key: str, default: float | int | None = None) -> float | int:
        """Read a numeric environment variable. Values with a dot are floats, the rest ints.

        Raises:
            ValueError: If the variable is missing without default or is not a number.
        """
        key = key.upper()
        raw = (os.getenv(key) or "").strip()
        if not raw:
            if default is None:
                raise ValueError(f"Environment variable '{key}' is not set.")
            return default
        try:
            return float(raw) if "." in raw else int(raw)
        except ValueError:
            raise ValueError(f"Environment variable '{key}' is not a valid number: '{raw}'.")

    def get_positive_int_val(self, key: str, default: int | None = None) -> int:
        """Read an integer environment variable that must be greater than zero.

        Raises:
            ValueError: If the variable is missing without default, not a number, or not positive.
        """
        val = self.get_number_val(key, default=default)
        if int(val) != val or val <= 0:
            raise ValueError(f"Environment variable '{key.upper()}' must be a positive integer. Got: '{val}'.")
        return int(val)

    ##########################################
    ############ SERVICE SETTINGS ############
    ##########################################

    def get_root_dir(self) -> str:
        return os.getenv("ROOT_DIR") or os.getcwd()

    def get_upload_directory(self) -> str:
        return self.get_string_val("UPLOAD_DIRECTORY", default=os.path.join(self.get_root_dir(), "uploads"))

    def get_chunk_threshold(self) -> int:
        """Maximum characters per stored record before a document is split."""
        return self.get_positive_int_val("INDEX_CHUNK_THRESHOLD", default=DEFAULT_CHUNK_THRESHOLD)

    def get_result_cap(self) -> int:
        """Maximum raw hits requested from the backend per query."""
        return self.get_positive_int_val("SEARCH_RESULT_CAP", default=DEFAULT_RESULT_CAP)

    def get_default_proximity(self) -> int:
        val = self.get_number_val("SEARCH_DEFAULT_PROXIMITY", default=DEFAULT_PROXIMITY)
        if int(val) != val or val < 0:
            raise ValueError(f"Environment variable 'SEARCH_DEFAULT_PROXIMITY' must be a non-negative integer. Got: '{val}'.")
        return int(val)

    def get_reindex_timeout(self) -> int:
        return self.get_positive_int_val("REINDEX_TIMEOUT", default=DEFAULT_REINDEX_TIMEOUT)

    def get_api_key(self) -> str:
        return self.get_string_val("APP_API_KEY")

    def get_logger(self) -> logging.Logger:
        return self._logger
