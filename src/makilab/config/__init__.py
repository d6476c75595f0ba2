"""Configuration management."""

from makilab.config.loader import (
    ConfigError,
    ConfigValidationError,
    EnvironmentVariableError,
    expand_env_vars,
    load_config,
)
from makilab.config.models import (
    AgentConfig,
    BridgeServerConfig,
    Config,
    EmbeddingConfig,
    LLMConfig,
    LoggingConfig,
    MemoryConfig,
    PersonaConfig,
    WebConfig,
    WorkflowConfig,
    WorkflowStepConfig,
)

__all__ = [
    "AgentConfig",
    "BridgeServerConfig",
    "Config",
    "ConfigError",
    "ConfigValidationError",
    "EmbeddingConfig",
    "EnvironmentVariableError",
    "LLMConfig",
    "LoggingConfig",
    "MemoryConfig",
    "PersonaConfig",
    "WebConfig",
    "WorkflowConfig",
    "WorkflowStepConfig",
    "expand_env_vars",
    "load_config",
]
