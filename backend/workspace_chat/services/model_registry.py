"""
Static model catalogue for the chat relay.

Maps the model ids the frontend sends to the upstream provider, the upstream
model id and the output token budget. Capability flags are fixed here so the
providers never have to guess from the upstream id at dispatch time.
"""

from dataclasses import dataclass
from typing import Dict, List, Literal, Optional

from workspace_chat.config import settings

ProviderName = Literal["anthropic", "openai"]

DEFAULT_MODEL_ID = "claude-4-sonnet"

# Upstream ids starting with this prefix reject streaming and system turns
REASONING_MODEL_PREFIX = "o1"


@dataclass(frozen=True)
class ModelConfig:
    """Read-only description of one selectable model."""

    id: str
    provider: ProviderName
    api_model_id: str
    max_tokens: int
    display_name: str
    description: str = ""
    supports_streaming: bool = True
    supports_system_role: bool = True

    @property
    def is_reasoning_restricted(self) -> bool:
        return not (self.supports_streaming and self.supports_system_role)


def is_reasoning_restricted(api_model_id: str) -> bool:
    """Legacy prefix rule, used only when declaring catalogue entries."""
    return api_model_id.startswith(REASONING_MODEL_PREFIX)


def _model(
    id: str,
    provider: ProviderName,
    api_model_id: str,
    max_tokens: int,
    display_name: str,
    description: str = "",
) -> ModelConfig:
    restricted = is_reasoning_restricted(api_model_id)
    return ModelConfig(
        id=id,
        provider=provider,
        api_model_id=api_model_id,
        max_tokens=max_tokens,
        display_name=display_name,
        description=description,
        supports_streaming=not restricted,
        supports_system_role=not restricted,
    )


MODELS: Dict[str, ModelConfig] = {
    m.id: m
    for m in (
        _model(
            "claude-4-sonnet",
            "anthropic",
            "claude-sonnet-4-20250514",
            8192,
            "Claude 4 Sonnet",
            "Fast, capable default model",
        ),
        _model(
            "claude-4.5-opus",
            "anthropic",
            "claude-opus-4-5-20251101",
            8192,
            "Claude 4.5 Opus",
            "Most capable Claude model",
        ),
        _model("gpt-4o", "openai", "gpt-4o", 4096, "GPT-4o", "OpenAI flagship model"),
        _model("o1", "openai", "o1", 32768, "o1", "Reasoning model, no streaming"),
        _model("o1-mini", "openai", "o1-mini", 65536, "o1-mini", "Small reasoning model"),
    )
}


def default_model() -> ModelConfig:
    """Configured default, falling back to the built-in one if misconfigured."""
    return MODELS.get(settings.default_model) or MODELS[DEFAULT_MODEL_ID]


def resolve_model(model_id: Optional[str]) -> ModelConfig:
    """Look up a model by id. Unknown or missing ids resolve to the default."""
    if model_id and model_id in MODELS:
        return MODELS[model_id]
    return default_model()


def list_models() -> List[ModelConfig]:
    return list(MODELS.values())
