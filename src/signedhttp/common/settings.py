"""Configuration management using pydantic-settings."""

from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Signature settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="SIGNEDHTTP_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Signature scheme
    algorithms: list[str] = Field(
        default_factory=lambda: ["hmac-sha256"],
        description="Supported signature algorithms (JSON list); the first is the signing default",
    )
    clock_skew: int = Field(
        default=300,
        ge=0,
        description="Maximum age (seconds) between the Date header and verification time",
    )
    required_headers: dict[str, list[str]] = Field(
        default_factory=lambda: {"default": ["(request-target)", "date"]},
        description="Headers that must be signed, per lower-case method or 'default' (JSON)",
    )
    nonce_seed: int | None = Field(
        default=None,
        ge=0,
        le=0xFFFF,
        description="Seed for the nonce counter; no nonce is sent when unset",
    )

    # Client
    key_id: str | None = Field(
        default=None,
        description="Key id used to sign outgoing requests",
    )
    client_id: str | None = Field(
        default=None,
        description="Client id embedded next to the nonce in outgoing signatures",
    )

    # Server
    require_signature: bool = Field(
        default=False,
        description="Reject unsigned requests instead of passing them through",
    )
    auth_exempt_paths: tuple[str, ...] = Field(
        default=("/health", "/metrics"),
        description="Paths exempt from signature verification",
    )

    host: str = Field(
        default="0.0.0.0",
        description="Verification service bind address",
    )
    port: int = Field(
        default=8080,
        description="Verification service port",
    )

    # Keys
    hmac_secrets: dict[str, str] = Field(
        default_factory=dict,
        description="Mapping of key id to HMAC shared secret (JSON)",
    )
    ed25519_public_keys: dict[str, str] = Field(
        default_factory=dict,
        description="Mapping of key id to PEM-encoded Ed25519 public key (JSON)",
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Log level",
    )
    log_json: bool = Field(
        default=False,
        description="Emit JSON log lines",
    )

    @field_validator("algorithms")
    @classmethod
    def _algorithms_not_empty(cls, value: list[str]) -> list[str]:
        if not value:
            raise ValueError("At least one algorithm must be configured")
        return value

    @field_validator("required_headers")
    @classmethod
    def _lowercase_required_headers(cls, value: dict[str, list[str]]) -> dict[str, list[str]]:
        return {
            method.lower(): [header.lower() for header in headers]
            for method, headers in value.items()
        }


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings."""
    return Settings()
