"""
Settings and bootstrap helpers.

Reads the engine configuration from environment variables (optionally
seeded from a .env file) and builds the vendor registry from it.

Environment Variables:
    PATTERNFLOW_DEFAULT_VENDOR: Vendor used when a request names none
    PATTERNFLOW_DEFAULT_MODEL: Model used when a request names none
    OPENAI_API_KEY / OPENAI_BASE_URL / OPENAI_MODEL
    ANTHROPIC_API_KEY / ANTHROPIC_MODEL / ANTHROPIC_ENABLE_THINKING
    OLLAMA_URL / OLLAMA_MODEL
    PATTERNFLOW_MODEL_LIST_TIMEOUT: Seconds to wait for one vendor's model list
    PATTERNFLOW_REQUEST_TIMEOUT: Per-request timeout for vendor SDK clients
    PATTERNFLOW_MAX_RETRIES: Retry attempts inside vendor SDK clients
    PATTERNFLOW_DRY_RUN: Register only the dry-run vendor
    PATTERNFLOW_LOG_LEVEL: Logging level name (default INFO)
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Mapping, Optional

from dotenv import load_dotenv

from ..domain.exceptions import ConfigurationError
from ..vendors.anthropic import AnthropicVendor
from ..vendors.base import VendorConfig
from ..vendors.dryrun import DryRunVendor
from ..vendors.ollama import OllamaVendor
from ..vendors.openai import OpenAIVendor
from ..vendors.registry import VendorRegistry

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

_TRUE_VALUES = {"true", "1", "yes", "on"}
_FALSE_VALUES = {"false", "0", "no", "off", ""}


def _get_bool(environ: Mapping[str, str], key: str, default: bool) -> bool:
    raw = environ.get(key)
    if raw is None:
        return default
    value = raw.strip().lower()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    raise ConfigurationError(f"{key} must be a boolean, got '{raw}'", key=key)


def _get_float(environ: Mapping[str, str], key: str, default: float) -> float:
    raw = environ.get(key)
    if raw is None or not raw.strip():
        return default
    try:
        value = float(raw)
    except ValueError as e:
        raise ConfigurationError(f"{key} must be a number, got '{raw}'", key=key) from e
    if value <= 0:
        raise ConfigurationError(f"{key} must be positive, got '{raw}'", key=key)
    return value


def _get_int(environ: Mapping[str, str], key: str, default: int) -> int:
    raw = environ.get(key)
    if raw is None or not raw.strip():
        return default
    try:
        value = int(raw)
    except ValueError as e:
        raise ConfigurationError(f"{key} must be an integer, got '{raw}'", key=key) from e
    if value < 0:
        raise ConfigurationError(f"{key} must not be negative, got '{raw}'", key=key)
    return value


def _get_str(environ: Mapping[str, str], key: str) -> Optional[str]:
    value = environ.get(key)
    if value is None:
        return None
    return value.strip() or None


@dataclass
class Settings:
    """Engine configuration.

    Attributes:
        default_vendor: Vendor used when a request names none
        default_model: Model used when a request names none
        openai_api_key: OpenAI API key (None = vendor not configured)
        openai_base_url: Custom OpenAI-compatible endpoint
        openai_model: Default OpenAI model
        anthropic_api_key: Anthropic API key (None = vendor not configured)
        anthropic_model: Default Anthropic model
        anthropic_enable_thinking: Request extended thinking output
        ollama_url: Ollama server URL (None = vendor not configured)
        ollama_model: Default Ollama model
        ollama_enable_thinking: Ask Ollama for its separate thinking output
        model_list_timeout: Seconds to wait for one vendor's model list
        request_timeout: Per-request timeout for vendor SDK clients
        max_retries: Retry attempts inside vendor SDK clients
        dry_run: Register only the dry-run vendor
        log_level: Logging level name
    """

    default_vendor: Optional[str] = None
    default_model: Optional[str] = None
    openai_api_key: Optional[str] = None
    openai_base_url: Optional[str] = None
    openai_model: Optional[str] = None
    anthropic_api_key: Optional[str] = None
    anthropic_model: Optional[str] = None
    anthropic_enable_thinking: bool = False
    ollama_url: Optional[str] = None
    ollama_model: Optional[str] = None
    ollama_enable_thinking: bool = False
    model_list_timeout: float = 10.0
    request_timeout: float = 60.0
    max_retries: int = 3
    dry_run: bool = False
    log_level: str = "INFO"

    @classmethod
    def from_env(
        cls,
        environ: Optional[Mapping[str, str]] = None,
        dotenv: bool = True,
    ) -> Settings:
        """Build settings from environment variables.

        Args:
            environ: Mapping to read instead of os.environ
            dotenv: Load a .env file into os.environ first

        Raises:
            ConfigurationError: If a numeric or boolean value is invalid
        """
        if environ is None:
            if dotenv:
                load_dotenv()
            environ = os.environ

        log_level = (environ.get("PATTERNFLOW_LOG_LEVEL") or "INFO").strip().upper()
        if not isinstance(logging.getLevelName(log_level), int):
            raise ConfigurationError(
                f"PATTERNFLOW_LOG_LEVEL must be a logging level name, got '{log_level}'",
                key="PATTERNFLOW_LOG_LEVEL",
            )

        return cls(
            default_vendor=_get_str(environ, "PATTERNFLOW_DEFAULT_VENDOR"),
            default_model=_get_str(environ, "PATTERNFLOW_DEFAULT_MODEL"),
            openai_api_key=_get_str(environ, "OPENAI_API_KEY"),
            openai_base_url=_get_str(environ, "OPENAI_BASE_URL"),
            openai_model=_get_str(environ, "OPENAI_MODEL"),
            anthropic_api_key=_get_str(environ, "ANTHROPIC_API_KEY"),
            anthropic_model=_get_str(environ, "ANTHROPIC_MODEL"),
            anthropic_enable_thinking=_get_bool(environ, "ANTHROPIC_ENABLE_THINKING", False),
            ollama_url=_get_str(environ, "OLLAMA_URL"),
            ollama_model=_get_str(environ, "OLLAMA_MODEL"),
            ollama_enable_thinking=_get_bool(environ, "OLLAMA_ENABLE_THINKING", False),
            model_list_timeout=_get_float(environ, "PATTERNFLOW_MODEL_LIST_TIMEOUT", 10.0),
            request_timeout=_get_float(environ, "PATTERNFLOW_REQUEST_TIMEOUT", 60.0),
            max_retries=_get_int(environ, "PATTERNFLOW_MAX_RETRIES", 3),
            dry_run=_get_bool(environ, "PATTERNFLOW_DRY_RUN", False),
            log_level=log_level,
        )


def configure_logging(level: str | int = "INFO") -> None:
    """Configure root logging in the engine's standard format."""
    if isinstance(level, str):
        level = level.upper()
    logging.basicConfig(level=level, format=LOG_FORMAT)


def build_registry(settings: Settings) -> VendorRegistry:
    """Construct and register every vendor variant.

    Vendors without credentials are still registered; the registry skips
    them during selection because is_configured() is False.

    Args:
        settings: Engine settings

    Returns:
        Populated vendor registry
    """
    registry = VendorRegistry(model_list_timeout=settings.model_list_timeout)

    if settings.dry_run:
        registry.register(DryRunVendor(VendorConfig(model=settings.default_model)))
        registry.set_default(DryRunVendor.VENDOR_NAME, settings.default_model)
        logger.info("Dry run enabled, only the dry-run vendor is registered")
        return registry

    registry.register(OpenAIVendor(VendorConfig(
        api_key=settings.openai_api_key,
        base_url=settings.openai_base_url,
        model=settings.openai_model,
        timeout=settings.request_timeout,
        max_retries=settings.max_retries,
    )))
    registry.register(AnthropicVendor(VendorConfig(
        api_key=settings.anthropic_api_key,
        model=settings.anthropic_model,
        timeout=settings.request_timeout,
        max_retries=settings.max_retries,
        enable_thinking=settings.anthropic_enable_thinking,
    )))
    registry.register(OllamaVendor(VendorConfig(
        base_url=settings.ollama_url,
        model=settings.ollama_model,
        timeout=settings.request_timeout,
        max_retries=settings.max_retries,
        enable_thinking=settings.ollama_enable_thinking,
    )))

    if settings.default_vendor:
        client = registry.get(settings.default_vendor)
        if client is None:
            raise ConfigurationError(
                f"Unknown default vendor '{settings.default_vendor}'",
                key="PATTERNFLOW_DEFAULT_VENDOR",
            )
        registry.set_default(
            client.name, settings.default_model or client.descriptor.default_model
        )
    elif settings.default_model:
        logger.warning(
            "PATTERNFLOW_DEFAULT_MODEL is ignored without PATTERNFLOW_DEFAULT_VENDOR"
        )

    configured = [client.name for client in registry.configured_vendors()]
    if configured:
        logger.info(f"Configured vendors: {', '.join(configured)}")
    else:
        logger.warning("No vendors configured (set OPENAI_API_KEY, ANTHROPIC_API_KEY or OLLAMA_URL)")

    return registry
