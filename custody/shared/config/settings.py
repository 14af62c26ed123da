# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

import sys
from functools import lru_cache
from typing import Annotated, Literal

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

_SECTION_CONFIG = SettingsConfigDict(
    env_file=".env",
    env_file_encoding="utf-8",
    extra="ignore",
    validate_by_name=True,
)


def _parse_bool(value: str | bool) -> bool:
    if isinstance(value, str):
        return value.lower() in ("1", "true", "yes")
    return bool(value)


class DatabaseConfig(BaseSettings):
    url: str = Field("sqlite:///custody.db", alias="DATABASE_URL")
    pool_size: int = Field(10, ge=1, alias="DATABASE_POOL_SIZE")
    max_overflow: int = Field(5, ge=0, alias="DATABASE_MAX_OVERFLOW")
    pool_timeout: float = Field(30.0, ge=0.1, alias="DATABASE_POOL_TIMEOUT")

    model_config = _SECTION_CONFIG


class AuthConfig(BaseSettings):
    token_strategy: Literal["stateful", "stateless"] = Field(
        "stateful", alias="AUTH_TOKEN_STRATEGY"
    )
    token_ttl_seconds: int = Field(24 * 60 * 60, ge=1, alias="AUTH_TOKEN_TTL_SECONDS")
    sweep_interval_seconds: float = Field(300.0, ge=0, alias="AUTH_SWEEP_INTERVAL_SECONDS")
    jwt_issuer: str = Field("custody", alias="JWT_ISSUER")
    password_hash_method: str = Field("scrypt", alias="PASSWORD_HASH_METHOD")

    # Login throttling
    login_max_attempts: int = Field(5, ge=1, alias="LOGIN_MAX_ATTEMPTS")
    login_lockout_seconds: float = Field(15 * 60, ge=0, alias="LOGIN_LOCKOUT_SECONDS")
    login_attempt_window_seconds: float = Field(
        60 * 60, ge=1, alias="LOGIN_ATTEMPT_WINDOW_SECONDS"
    )

    model_config = _SECTION_CONFIG


class LedgerConfig(BaseSettings):
    max_cas_retries: int = Field(5, ge=0, alias="LEDGER_MAX_CAS_RETRIES")
    seed_accounts: Annotated[dict[str, int], NoDecode] = Field(
        default_factory=dict, alias="LEDGER_SEED_ACCOUNTS"
    )

    model_config = _SECTION_CONFIG

    @field_validator("seed_accounts", mode="before")
    @classmethod
    def _parse_seed(cls, value: str | dict[str, int] | None) -> dict[str, int]:
        # "1:1000,2:2000"
        if value is None:
            return {}
        if isinstance(value, str):
            seeds: dict[str, int] = {}
            for item in value.split(","):
                item = item.strip()
                if not item:
                    continue
                account_id, _, balance = item.partition(":")
                seeds[account_id.strip()] = int(balance or 0)
            return seeds
        return value

    @field_validator("seed_accounts", mode="after")
    @classmethod
    def _check_seed(cls, value: dict[str, int]) -> dict[str, int]:
        for account_id, balance in value.items():
            if not account_id or balance < 0:
                raise ValueError(f"invalid seed account {account_id!r}={balance}")
        return value


class SecurityConfig(BaseSettings):
    # Cookie security
    cookie_secure: bool = Field(False, alias="COOKIE_SECURE")
    cookie_samesite: str = Field("Strict", alias="COOKIE_SAMESITE")

    # CORS
    allowed_origins: Annotated[list[str], NoDecode] = Field(["*"], alias="ALLOWED_ORIGINS")

    # Rate limiting
    enable_rate_limit: bool = Field(True, alias="ENABLE_RATE_LIMIT")
    rate_limit_requests: int = Field(10, ge=1, alias="RL_LIMIT")
    rate_limit_window: float = Field(60.0, gt=0, alias="RL_WINDOW")

    # HSTS
    enable_hsts: bool = Field(False, alias="ENABLE_HSTS")

    model_config = _SECTION_CONFIG

    @field_validator("allowed_origins", mode="before")
    @classmethod
    def _parse_origins(cls, value: str | list[str]) -> list[str]:
        if isinstance(value, str):
            return [origin.strip() for origin in value.split(",") if origin.strip()]
        return value

    @field_validator("cookie_secure", "enable_rate_limit", "enable_hsts", mode="before")
    @classmethod
    def _parse_flags(cls, value: str | bool) -> bool:
        return _parse_bool(value)


class ServerConfig(BaseSettings):
    host: str = Field("0.0.0.0", alias="SERVER_HOST")
    port: int = Field(8080, ge=1, le=65535, alias="SERVER_PORT")
    shutdown_timeout: float = Field(10.0, ge=0, alias="SERVER_SHUTDOWN_TIMEOUT")

    model_config = _SECTION_CONFIG


def _database_config_factory() -> DatabaseConfig:
    return DatabaseConfig()  # type: ignore[call-arg]


def _auth_config_factory() -> AuthConfig:
    return AuthConfig()  # type: ignore[call-arg]


def _ledger_config_factory() -> LedgerConfig:
    return LedgerConfig()  # type: ignore[call-arg]


def _security_config_factory() -> SecurityConfig:
    return SecurityConfig()  # type: ignore[call-arg]


def _server_config_factory() -> ServerConfig:
    return ServerConfig()  # type: ignore[call-arg]


class AppConfig(BaseSettings):
    app_env: str = Field("development", alias="APP_ENV")
    secret_key: str = Field("dev", alias="SECRET_KEY")
    debug_logging: bool = Field(False, alias="DEBUG_LOGGING")
    log_level: str = Field("INFO", alias="LOG_LEVEL")
    log_file: str | None = Field(None, alias="LOG_FILE")
    storage_backend: Literal["sqlalchemy", "memory"] = Field(
        "sqlalchemy", alias="STORAGE_BACKEND"
    )

    database: DatabaseConfig = Field(default_factory=_database_config_factory)
    auth: AuthConfig = Field(default_factory=_auth_config_factory)
    ledger: LedgerConfig = Field(default_factory=_ledger_config_factory)
    security: SecurityConfig = Field(default_factory=_security_config_factory)
    server: ServerConfig = Field(default_factory=_server_config_factory)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        validate_by_name=True,
        validate_assignment=True,
    )

    @field_validator("debug_logging", mode="before")
    @classmethod
    def _parse_debug_logging(cls, value: str | bool) -> bool:
        return _parse_bool(value)

    @model_validator(mode="after")
    def _validate_production_settings(self) -> "AppConfig":
        if not self.is_production():
            return self

        if self.secret_key in ("dev", "development", "test", ""):
            print(
                "\n❌ CRITICAL SECURITY ERROR: Insecure SECRET_KEY detected in production!\n"
                "   SECRET_KEY signs stateless session tokens and must be a strong random value.\n"
                "   Generate one with: python -c \"import secrets; print(secrets.token_urlsafe(32))\"\n",
                file=sys.stderr,
            )
            sys.exit(1)

        warnings = []
        if not self.security.cookie_secure:
            warnings.append("⚠️  Cookie Secure flag is DISABLED (use HTTPS!)")
        if "*" in self.security.allowed_origins:
            warnings.append("⚠️  CORS allows wildcard (*) origins")
        if not self.security.enable_hsts:
            warnings.append("⚠️  HSTS is DISABLED (recommended for HTTPS)")
        if self.storage_backend == "memory":
            warnings.append("⚠️  In-memory storage: balances and sessions are lost on restart")

        if warnings:
            print("\n⚠️  PRODUCTION SECURITY WARNINGS:", file=sys.stderr)
            for warning in warnings:
                print(f"   {warning}", file=sys.stderr)
            print(
                "   Consider enabling these security features in production.\n",
                file=sys.stderr,
            )

        return self

    def is_production(self) -> bool:
        return self.app_env.lower() in ("production", "prod")


@lru_cache(maxsize=1)
def load_config() -> AppConfig:
    return AppConfig()  # type: ignore[call-arg]


__all__ = [
    "AppConfig",
    "AuthConfig",
    "DatabaseConfig",
    "LedgerConfig",
    "SecurityConfig",
    "ServerConfig",
    "load_config",
]
