from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator

# ---------------------------------------------------------------------------
# Defaults
# ---------------------------------------------------------------------------

DEFAULT_HOST = "127.0.0.1"
DEFAULT_TCP_PORT = 2003
DEFAULT_TLS_PORT = 2002
DEFAULT_READ_SIZE = 4096


class ClientConfig(BaseModel):
    """Where and how to reach the server. Has no effect on decoding."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    host: str = DEFAULT_HOST
    port: int = Field(default=DEFAULT_TCP_PORT, ge=1, le=65535)
    username: str | None = None
    password: str | None = Field(default=None, repr=False)
    timeout: float | None = Field(default=None, gt=0, description="Connect timeout in seconds.")
    read_size: int = Field(default=DEFAULT_READ_SIZE, ge=1, description="Bytes requested per transport read.")

    @field_validator("host")
    @classmethod
    def _validate_host(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("host must not be empty.")
        return value

    @classmethod
    def new_default(cls, username: str, password: str) -> ClientConfig:
        return cls(username=username, password=password)


__all__ = [
    "DEFAULT_HOST",
    "DEFAULT_TCP_PORT",
    "DEFAULT_TLS_PORT",
    "DEFAULT_READ_SIZE",
    "ClientConfig",
]
