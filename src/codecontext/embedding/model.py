"""LiteLLM-backed embedding model provider.

``ready()`` validates the provider API key and requests one embedding so the
first real ``predict()`` does not pay for a misconfigured model. Every vector
is requested at the deployment dimension and checked on return.
"""

from __future__ import annotations

import os
from typing import Protocol

import litellm

from codecontext.embedding.hashing import DEFAULT_DIMENSIONS
from codecontext.errors import ModelFailure

# Disable LiteLLM verbose logging unless explicitly enabled
litellm.suppress_debug_info = True
litellm.set_verbose = False  # type: ignore[assignment]

_PROVIDER_ENV: dict[str, str | None] = {
    "openai": "OPENAI_API_KEY",
    "azure": "AZURE_API_KEY",
    "cohere": "COHERE_API_KEY",
    "gemini": "GEMINI_API_KEY",
    "mistral": "MISTRAL_API_KEY",
    "voyage": "VOYAGE_API_KEY",
    "ollama": None,  # Local, no key required
}


class EmbeddingModel(Protocol):
    """Capability consumed by EmbeddingGenerator."""

    name: str

    async def ready(self) -> None: ...

    async def predict(self, text: str) -> list[float]: ...


def validate_api_key(model: str) -> None:
    """Raise ModelFailure if the API key env var for *model*'s provider is unset."""
    provider = model.split("/")[0].lower() if "/" in model else "openai"
    env_var = _PROVIDER_ENV.get(provider)
    if env_var is None:
        return
    if not os.getenv(env_var):
        raise ModelFailure(
            f"API key not found for provider '{provider}'. "
            f"Set the {env_var} environment variable."
        )


class LiteLLMEmbeddingModel:
    """Embedding model reached through ``litellm.aembedding()``.

    Args:
        model: LiteLLM model string (provider/model format).
        dimensions: Requested output dimension; responses of any other
            length are rejected.
    """

    def __init__(self, model: str, dimensions: int = DEFAULT_DIMENSIONS) -> None:
        self.name = model
        self.dimensions = dimensions

    async def ready(self) -> None:
        validate_api_key(self.name)
        await self.predict("ready")

    async def predict(self, text: str) -> list[float]:
        try:
            response = await litellm.aembedding(
                model=self.name, input=[text], dimensions=self.dimensions
            )
            vector = list(response.data[0]["embedding"])
        except Exception as exc:
            raise ModelFailure(f"Embedding model '{self.name}' failed: {exc}") from exc
        if len(vector) != self.dimensions:
            raise ModelFailure(
                f"Embedding model '{self.name}' returned {len(vector)} dimensions, "
                f"expected {self.dimensions}"
            )
        return vector
