"""LLM route configuration."""
from __future__ import annotations

from pathlib import Path
from typing import Dict

from pydantic import BaseModel, Field

DEFAULT_ROUTE = "interviewer"


class LlmRoute(BaseModel):
    """LLM endpoint configuration."""

    name: str
    base_url: str
    endpoint: str
    model: str
    timeout_s: float = Field(default=30.0, ge=0.1)
    max_retries: int = Field(default=0, ge=0)
    api_key_env: str | None = None
    temperature: float = Field(default=0.7, ge=0.0, le=2.0)
    max_tokens: int = Field(default=512, ge=1)
    extra_headers: Dict[str, str] = Field(default_factory=dict)


class AppConfig(BaseModel):
    """Application configuration root."""

    llm_routes: Dict[str, LlmRoute]
    registry: Dict[str, str] = Field(default_factory=dict)

    def route_for(self, target: str) -> LlmRoute:
        """Resolve the route bound to ``target``, falling back to the default route."""

        route_id = self.registry.get(target, DEFAULT_ROUTE)
        if route_id not in self.llm_routes:
            raise KeyError(f"Route '{route_id}' missing for '{target}'")
        return self.llm_routes[route_id]


def default_route() -> LlmRoute:
    """Route used when no configuration file is present."""

    return LlmRoute(
        name=DEFAULT_ROUTE,
        base_url="https://api.deepinfra.com",
        endpoint="/v1/openai/chat/completions",
        model="meta-llama/Meta-Llama-3-8B-Instruct",
        api_key_env="DEEPINFRA_API_KEY",
    )


def load_config(path: Path) -> AppConfig:
    """Load configuration from disk, or the built-in default when ``path`` is absent."""

    if not path.exists():
        return AppConfig(llm_routes={DEFAULT_ROUTE: default_route()})
    data = path.read_text(encoding="utf-8")
    return AppConfig.model_validate_json(data)
