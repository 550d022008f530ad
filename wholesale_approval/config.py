"""Pydantic-based configuration helpers for the wholesale approval bot."""

from __future__ import annotations

import os
from functools import lru_cache
from typing import Iterable, List

from dotenv import load_dotenv
from pydantic import BaseModel, Field, ValidationError, ValidationInfo, field_validator, model_validator

DEFAULT_SHOPIFY_API_VERSION = "2025-10"


class AppSettings(BaseModel):
    """Settings required to initialise the Slack bot and the Shopify client."""

    bot_token: str = Field(..., alias="SLACK_BOT_TOKEN")
    signing_secret: str = Field("", alias="SLACK_SIGNING_SECRET")
    app_token: str = Field("", alias="SLACK_APP_TOKEN")
    watch_channel_id: str = Field("", alias="WHOLESALE_APPROVAL_CHANNEL_ID")
    shopify_domain: str = Field(..., alias="SHOPIFY_DOMAIN")
    shopify_admin_token: str = Field(..., alias="SHOPIFY_ADMIN_TOKEN")
    shopify_api_version: str = Field(DEFAULT_SHOPIFY_API_VERSION, alias="SHOPIFY_API_VERSION")
    shopify_timeout_seconds: float = Field(30.0, alias="SHOPIFY_TIMEOUT_SECONDS")
    port: int = Field(3000, alias="PORT")

    @field_validator("watch_channel_id", "signing_secret", "app_token", "shopify_api_version", mode="before")
    @classmethod
    def _strip(cls, value: str | None) -> str:
        return (value or "").strip()

    @field_validator("bot_token", "shopify_admin_token", mode="before")
    @classmethod
    def _require_value(cls, value: str | None, info: ValidationInfo) -> str:
        value = (value or "").strip()
        if not value:
            raise ValueError(f"{cls.model_fields[info.field_name].alias} must not be empty")
        return value

    @field_validator("shopify_domain", mode="before")
    @classmethod
    def _normalise_domain(cls, value: str) -> str:
        # Accept "https://shop.myshopify.com/" as well as the bare host.
        domain = (value or "").strip()
        for prefix in ("https://", "http://"):
            if domain.startswith(prefix):
                domain = domain[len(prefix):]
        domain = domain.rstrip("/")
        if not domain:
            raise ValueError("SHOPIFY_DOMAIN must not be empty")
        return domain

    @field_validator("shopify_timeout_seconds")
    @classmethod
    def _ensure_positive(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("Shopify timeout must be greater than zero")
        return value

    @model_validator(mode="after")
    def _ensure_transport(self):
        if not self.signing_secret and not self.app_token:
            raise ValueError("Either SLACK_SIGNING_SECRET or SLACK_APP_TOKEN must be set")
        if not self.shopify_api_version:
            self.shopify_api_version = DEFAULT_SHOPIFY_API_VERSION
        return self

    @property
    def socket_mode(self) -> bool:
        return bool(self.app_token)


def _format_missing(fields: Iterable[str]) -> str:
    """Return a human-friendly comma-separated list of missing env vars."""

    unique: List[str] = []
    for field in fields:
        if field not in unique:
            unique.append(field)
    return ", ".join(unique)


@lru_cache()
def get_settings() -> AppSettings:
    """Fetch and cache settings from environment variables (and ``.env``)."""

    load_dotenv()
    try:
        return AppSettings.model_validate(os.environ)
    except ValidationError as exc:
        missing = [str(error["loc"][0]) for error in exc.errors() if error["type"] == "missing"]
        if missing:
            message = (
                "Missing required environment variables: "
                f"{_format_missing(missing)}"
            )
        else:
            message = "; ".join(error["msg"] for error in exc.errors())
        raise RuntimeError(message) from exc
