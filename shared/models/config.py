from pydantic import BaseModel


class EnvConfig(BaseModel):
    """
    One environment setting a client needs before it can be constructed.

    Attributes:
        env_key (str): Key relative to the client prefix, e.g. "APP_ID" for SEARCH_ALGOLIA_APP_ID.
        val_type (str): "string", "number", "bool" or "list".
        default (str | int | float | bool | list | None): Value used when the variable is unset. None marks the setting as required.
    """

    env_key: str
    val_type: str = "string"
    default: str | int | float | bool | list | None = None
