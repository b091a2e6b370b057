from pydantic import BaseModel


class EnvConfig(BaseModel):
    """
    Describes one environment setting a client needs before it can boot.

    Attributes:
        env_key (str): Raw key without the client prefix, e.g. "BASE_URL" for "SEARCH_ELASTICSEARCH_BASE_URL".
        val_type (str): Expected value type, "string" or "number".
        default (str | int | float | None): Value used when the variable is unset. None marks the setting as required.
    """

    env_key: str
    val_type: str
    default: str | int | float | None = None
