"""Helpers for the locale-keyed values the host returns (e.g. {"en_US": "Title"})."""

from typing import TypeVar

T = TypeVar("T")


def pick_localized(values: dict[str, T] | None, locale: str | None = None, default: T | None = None) -> T | None:
    """Return the value for the given locale, falling back to the first non-empty one.

    Args:
        values (dict[str, T] | None): Locale-keyed values.
        locale (str | None): Preferred locale, e.g. "en_US".
        default (T | None): Returned when no locale carries a value.

    Returns:
        T | None: The localized value.
    """
    if not values:
        return default
    if locale and values.get(locale):
        return values[locale]
    for value in values.values():
        if value:
            return value
    return default
