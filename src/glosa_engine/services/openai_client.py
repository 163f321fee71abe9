"""
OpenAI client factory for the glosa predictor.

Credentials are resolved from the environment; Azure OpenAI wins when both
providers are configured.

Environment variables:
    AZURE_OPENAI_API_KEY      - Azure OpenAI API key
    AZURE_OPENAI_ENDPOINT     - Azure endpoint (AZURE_OPENAI_BASE_URL also accepted)
    AZURE_OPENAI_API_VERSION  - API version (default: 2024-02-15-preview)
    AZURE_OPENAI_DEPLOYMENT   - Deployment used as model (default: gpt-4o)

    OPENAI_API_KEY            - OpenAI API key
    OPENAI_MODEL              - Model name (default: gpt-4o-mini)
"""

import logging
import os
from dataclasses import dataclass
from typing import Any, Optional, Tuple

logger = logging.getLogger(__name__)

DEFAULT_API_VERSION = "2024-02-15-preview"
DEFAULT_DEPLOYMENT = "gpt-4o"
DEFAULT_MODEL = "gpt-4o-mini"

_ENDPOINT_SUFFIXES = ("/openai/v1", "/openai")


@dataclass(frozen=True)
class OpenAICredentials:
    """Resolved provider credentials."""

    api_key: str
    default_model: str
    azure_endpoint: Optional[str] = None
    api_version: str = DEFAULT_API_VERSION

    @property
    def is_azure(self) -> bool:
        return self.azure_endpoint is not None

    @classmethod
    def from_env(cls, api_key: Optional[str] = None) -> Optional["OpenAICredentials"]:
        """Credentials from the environment, or None when nothing is set.

        Args:
            api_key: Explicit OpenAI key, used when Azure is not configured
        """
        azure_key = os.getenv("AZURE_OPENAI_API_KEY")
        endpoint = _azure_endpoint()
        if azure_key and endpoint:
            return cls(
                api_key=azure_key,
                default_model=os.getenv("AZURE_OPENAI_DEPLOYMENT", DEFAULT_DEPLOYMENT),
                azure_endpoint=endpoint,
                api_version=os.getenv("AZURE_OPENAI_API_VERSION", DEFAULT_API_VERSION),
            )

        key = api_key or os.getenv("OPENAI_API_KEY")
        if key:
            return cls(api_key=key, default_model=os.getenv("OPENAI_MODEL", DEFAULT_MODEL))
        return None


def _azure_endpoint() -> Optional[str]:
    endpoint = os.getenv("AZURE_OPENAI_ENDPOINT") or os.getenv("AZURE_OPENAI_BASE_URL")
    if not endpoint:
        return None
    # The SDK appends the /openai path itself
    endpoint = endpoint.rstrip("/")
    for suffix in _ENDPOINT_SUFFIXES:
        if endpoint.endswith(suffix):
            return endpoint[: -len(suffix)]
    return endpoint


def is_openai_configured() -> bool:
    """True when Azure OpenAI or OpenAI credentials are available."""
    return OpenAICredentials.from_env() is not None


def get_openai_client(api_key: Optional[str] = None, timeout: Optional[float] = None) -> Any:
    """
    Create an OpenAI or AzureOpenAI client.

    Args:
        api_key: Optional OpenAI key override.
        timeout: Optional request timeout in seconds.

    Raises:
        ValueError: If no credentials are configured.
    """
    credentials = OpenAICredentials.from_env(api_key)
    if credentials is None:
        raise ValueError(
            "No OpenAI credentials found. Set AZURE_OPENAI_API_KEY + "
            "AZURE_OPENAI_ENDPOINT, or OPENAI_API_KEY"
        )

    options = {"timeout": timeout} if timeout is not None else {}
    if credentials.is_azure:
        from openai import AzureOpenAI

        logger.debug(f"Using Azure OpenAI at {credentials.azure_endpoint[:30]}...")
        return AzureOpenAI(
            api_key=credentials.api_key,
            api_version=credentials.api_version,
            azure_endpoint=credentials.azure_endpoint,
            **options,
        )

    from openai import OpenAI

    logger.debug("Using OpenAI API")
    return OpenAI(api_key=credentials.api_key, **options)


def get_default_model() -> str:
    """Azure deployment name or OpenAI model name for the active provider."""
    credentials = OpenAICredentials.from_env()
    if credentials is None:
        return os.getenv("OPENAI_MODEL", DEFAULT_MODEL)
    return credentials.default_model


def get_client_and_model(
    api_key: Optional[str] = None,
    model: Optional[str] = None,
    timeout: Optional[float] = None,
) -> Tuple[Any, str]:
    """Client plus the model to call (``model`` overrides the default)."""
    client = get_openai_client(api_key, timeout=timeout)
    return client, model or get_default_model()
