from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from pydantic import BaseModel, Field

from artbot.errors import ConfigurationError


class LLMConfig(BaseModel):
    provider: str = "openai"
    model: str = "gpt-4o-mini"
    temperature: float = 0.7
    max_tokens: Optional[int] = 1500
    timeout: float = 60.0
    max_retries: int = 1
    base_url: Optional[str] = None
    api_key_env: Optional[str] = "OPENAI_API_KEY"


class ImageConfig(BaseModel):
    provider: str = "replicate"
    model: str = "adirik/flux-cinestill"
    fallback_model: str = "dall-e-3"
    width: int = 1024
    height: int = 1024
    steps: int = 28
    guidance_scale: float = 3.0
    timeout: float = 60.0
    max_retries: int = 1
    poll_interval: float = 2.0
    max_poll_attempts: int = 30
    api_key_env: str = "REPLICATE_API_KEY"
    fallback_api_key_env: Optional[str] = "OPENAI_API_KEY"


class AgentConfig(BaseModel):
    memory_limit: Optional[int] = 100
    temperature: Optional[float] = None


class WorkflowConfig(BaseModel):
    learning_rate: float = Field(default=0.1, gt=0, le=1)
    preferred_k: int = Field(default=3, ge=1)
    auto_feedback: bool = True
    max_cascade_depth: int = Field(default=32, ge=1)
    transcript_limit: Optional[int] = Field(default=1000, ge=1)


class LoggingConfig(BaseModel):
    level: str = "INFO"


class AppConfig(BaseModel):
    llm: LLMConfig = Field(default_factory=LLMConfig)
    image: ImageConfig = Field(default_factory=ImageConfig)
    agents: Dict[str, AgentConfig] = Field(default_factory=dict)
    workflow: WorkflowConfig = Field(default_factory=WorkflowConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    def agent(self, role: str) -> AgentConfig:
        return self.agents.get(role, AgentConfig())


def load_config(env: str = "base", config_dir: str | Path = "configs") -> AppConfig:
    config_dir = Path(config_dir)
    base_path = config_dir / "base.yaml"
    if not base_path.exists():
        raise ConfigurationError(f"missing config file: {base_path}")
    base = _read_yaml(base_path)
    if env != "base":
        override_path = config_dir / f"{env}.yaml"
        if override_path.exists():
            base = _merge_dicts(base, _read_yaml(override_path))
    return AppConfig(
        llm=LLMConfig(**base.get("llm", {})),
        image=ImageConfig(**base.get("image", {})),
        agents={k: AgentConfig(**(v or {})) for k, v in base.get("agents", {}).items()},
        workflow=WorkflowConfig(**base.get("workflow", {})),
        logging=LoggingConfig(**base.get("logging", {"level": "INFO"})),
    )


def _read_yaml(path: Path) -> Dict[str, Any]:
    return yaml.safe_load(path.read_text(encoding="utf-8")) or {}


def _merge_dicts(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    merged = dict(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(base.get(key), dict):
            merged[key] = _merge_dicts(base[key], value)
        else:
            merged[key] = value
    return merged
