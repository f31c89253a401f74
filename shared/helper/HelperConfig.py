"""Environment-backed settings of the search bridge."""

import logging
import os

from shared.exceptions import ConfigurationError

_TRUE_VALUES = ("true", "1", "yes")


class HelperConfig:
    """Typed access to environment variables.

    Keys are case-insensitive. An empty variable counts as unset. Every getter
    treats ``default=None`` as "required" and raises ConfigurationError when
    the variable is missing.
    """

    def __init__(self, logger: logging.Logger) -> None:
        self._logger = logger

    def _read(self, key: str, default) -> tuple[str, str | None]:
        key = key.upper()
        raw = os.getenv(key) or None
        if raw is None and default is None:
            raise ConfigurationError(f"Environment variable '{key}' is not set.")
        return key, raw.strip() if raw is not None else None

    def get_string_val(self, key: str, default: str | None = None) -> str:
        _, raw = self._read(key, default)
        return raw if raw is not None else default

    def get_number_val(self, key: str, default: float | int | None = None) -> float | int:
        """Read an int, or a float when the value contains a dot.

        Raises:
            ConfigurationError: If the variable is unset without default or not numeric.
        """
        key, raw = self._read(key, default)
        if raw is None:
            return default
        try:
            return float(raw) if "." in raw else int(raw)
        except ValueError:
            raise ConfigurationError(f"Environment variable '{key}' is not a valid number: '{raw}'.")

    def get_bool_val(self, key: str, default: bool | None = None) -> bool:
        _, raw = self._read(key, default)
        if raw is None:
            return default
        return raw.lower() in _TRUE_VALUES

    def get_list_val(self, key: str, default: list | None = None, separator: str = ",", element_type: type = str) -> list:
        """Read a bracketed list such as ``[1,2,3]``.

        Args:
            key (str): Environment variable name.
            default (list | None): Value used when the variable is unset.
            separator (str): Element delimiter inside the brackets.
            element_type (type): Callable applied to every element.

        Raises:
            ConfigurationError: If the variable is unset without default, lacks the
                brackets, or an element cannot be converted.
        """
        key, raw = self._read(key, default)
        if raw is None:
            return default
        if not (raw.startswith("[") and raw.endswith("]")):
            raise ConfigurationError(f"Environment variable '{key}' must look like '[a{separator}b]', got '{raw}'.")

        elements = [part.strip() for part in raw[1:-1].split(separator) if part.strip()]
        try:
            return [element_type(element) for element in elements]
        except ValueError as exc:
            raise ConfigurationError(f"Environment variable '{key}' has an element that is not {element_type.__name__}: {exc}")

    def get_logger(self) -> logging.Logger:
        return self._logger
