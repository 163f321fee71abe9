"""External service clients."""

from glosa_engine.services.openai_client import (
    get_client_and_model,
    get_default_model,
    get_openai_client,
    is_openai_configured,
)

__all__ = [
    "get_client_and_model",
    "get_default_model",
    "get_openai_client",
    "is_openai_configured",
]
