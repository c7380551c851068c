"""Configuration loading for textcal.

Reads settings from environment variables (with ``.env`` support via
python-dotenv).  Nothing here is required: with no API keys configured the
pipeline runs on the deterministic extractor alone.

:class:`StrategyConfig` is the process-wide, read-only description of which
generative providers are enabled and in what order.  Build it once at
startup with :func:`build_strategy_config` and hand it to
:func:`textcal.pipeline.build_pipeline`.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from dotenv import load_dotenv

KNOWN_PROVIDERS: tuple[str, ...] = ("gemini", "openai")
"""Generative providers textcal knows how to call, in default priority."""

_DEFAULT_GEMINI_MODEL = "gemini-2.0-flash"
_DEFAULT_OPENAI_MODEL = "gpt-3.5-turbo"


class ConfigError(Exception):
    """Raised when configuration values are present but invalid."""


@dataclass(frozen=True)
class Settings:
    """Application settings loaded from environment variables.

    Attributes:
        gemini_api_key: API key for Google Gemini, or ``None``.
        openai_api_key: API key for OpenAI, or ``None``.
        gemini_model: Gemini model identifier.
        openai_model: OpenAI chat model identifier.
        providers: Generative provider names in priority order.
        timezone: Default IANA timezone for requests without one.
        log_level: Logging level name.
        calendar_id: Google Calendar identifier for reads and writes.
        credentials_path: OAuth client secrets file.
        token_path: Cached OAuth token file.
    """

    gemini_api_key: str | None = None
    openai_api_key: str | None = None
    gemini_model: str = _DEFAULT_GEMINI_MODEL
    openai_model: str = _DEFAULT_OPENAI_MODEL
    providers: tuple[str, ...] = KNOWN_PROVIDERS
    timezone: str = "UTC"
    log_level: str = "INFO"
    calendar_id: str = "primary"
    credentials_path: str = "credentials.json"
    token_path: str = "token.json"

    def __repr__(self) -> str:
        return (
            f"Settings(gemini_api_key={_mask(self.gemini_api_key)}, "
            f"openai_api_key={_mask(self.openai_api_key)}, "
            f"gemini_model={self.gemini_model!r}, "
            f"openai_model={self.openai_model!r}, "
            f"providers={self.providers!r}, "
            f"timezone={self.timezone!r}, "
            f"log_level={self.log_level!r}, "
            f"calendar_id={self.calendar_id!r})"
        )


@dataclass(frozen=True)
class ProviderConfig:
    """One enabled generative provider.

    Attributes:
        name: Provider name (one of :data:`KNOWN_PROVIDERS`).
        api_key: Credential for the provider SDK.
        model: Model identifier passed to the SDK.
    """

    name: str
    api_key: str
    model: str

    def __repr__(self) -> str:
        return f"ProviderConfig(name={self.name!r}, api_key='***', model={self.model!r})"


@dataclass(frozen=True)
class StrategyConfig:
    """Immutable, ordered list of enabled generative providers.

    Attributes:
        providers: Enabled providers, highest priority first.  Providers
            listed in settings but lacking an API key are left out.
    """

    providers: tuple[ProviderConfig, ...] = ()

    @property
    def provider_names(self) -> tuple[str, ...]:
        """Names of the enabled providers in priority order."""
        return tuple(p.name for p in self.providers)


def _mask(secret: str | None) -> str:
    return "None" if secret is None else "'***'"


def _read(env_var: str) -> str:
    return os.environ.get(env_var, "").strip()


def load_settings() -> Settings:
    """Load and validate settings from environment variables.

    Calls :func:`dotenv.load_dotenv` so a ``.env`` file in the working
    directory is picked up automatically.

    Returns:
        A validated :class:`Settings` instance.

    Raises:
        ConfigError: If ``EXTRACTION_PROVIDERS`` names an unknown provider,
            ``TIMEZONE`` is not a known IANA zone or ``LOG_LEVEL`` is not a
            logging level.  The message names **all** offending values.
    """
    load_dotenv()

    values: dict[str, object] = {}
    problems: list[str] = []

    for env_var, field_name in (
        ("GEMINI_API_KEY", "gemini_api_key"),
        ("OPENAI_API_KEY", "openai_api_key"),
        ("GEMINI_MODEL", "gemini_model"),
        ("OPENAI_MODEL", "openai_model"),
        ("LOG_LEVEL", "log_level"),
        ("CALENDAR_ID", "calendar_id"),
        ("GOOGLE_CREDENTIALS_PATH", "credentials_path"),
        ("GOOGLE_TOKEN_PATH", "token_path"),
    ):
        raw = _read(env_var)
        if raw:
            values[field_name] = raw

    providers_raw = _read("EXTRACTION_PROVIDERS")
    if providers_raw:
        names = tuple(
            name.strip().lower() for name in providers_raw.split(",") if name.strip()
        )
        unknown = [name for name in names if name not in KNOWN_PROVIDERS]
        if unknown:
            problems.append(
                f"EXTRACTION_PROVIDERS has unknown provider(s): {', '.join(unknown)}"
            )
        values["providers"] = tuple(dict.fromkeys(names))

    timezone = _read("TIMEZONE")
    if timezone:
        try:
            ZoneInfo(timezone)
        except (ZoneInfoNotFoundError, ValueError, OSError):
            problems.append(f"TIMEZONE is not a known IANA timezone: {timezone}")
        values["timezone"] = timezone

    log_level = str(values.get("log_level", "INFO")).upper()
    if not isinstance(logging.getLevelName(log_level), int):
        problems.append(f"LOG_LEVEL is not a valid logging level: {log_level}")
    values["log_level"] = log_level

    if problems:
        raise ConfigError("; ".join(problems))

    return Settings(**values)  # type: ignore[arg-type]


def build_strategy_config(settings: Settings) -> StrategyConfig:
    """Derive the process-wide :class:`StrategyConfig` from *settings*.

    Args:
        settings: Loaded application settings.

    Returns:
        A frozen config listing only providers that have an API key, in
        the order given by ``settings.providers``.
    """
    credentials = {
        "gemini": (settings.gemini_api_key, settings.gemini_model),
        "openai": (settings.openai_api_key, settings.openai_model),
    }
    enabled: list[ProviderConfig] = []
    for name in settings.providers:
        api_key, model = credentials[name]
        if api_key:
            enabled.append(ProviderConfig(name=name, api_key=api_key, model=model))
    return StrategyConfig(providers=tuple(enabled))


def provider_status(config: StrategyConfig) -> dict[str, bool]:
    """Report which extraction methods are available.

    Args:
        config: The process-wide strategy configuration.

    Returns:
        A mapping of every known provider to whether it is enabled, plus
        ``"fallback"`` which is always ``True``.
    """
    enabled = set(config.provider_names)
    status = {name: name in enabled for name in KNOWN_PROVIDERS}
    status["fallback"] = True
    return status
