"""YAML config loading with environment variable expansion."""

import os
import re
from pathlib import Path
from typing import Any

import yaml

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


class ConfigError(Exception):
    """Base exception for configuration errors."""


class ConfigValidationError(ConfigError):
    """A configuration value is missing or invalid."""


class EnvironmentVariableError(ConfigError):
    """A referenced environment variable is not set."""


# ${VAR_NAME}
ENV_VAR_PATTERN = re.compile(r"\$\{([^}]+)\}")


def expand_env_vars(value: str) -> str:
    """Replace ${VAR_NAME} occurrences with environment values.

    Args:
        value: String to expand.

    Returns:
        The expanded string.

    Raises:
        EnvironmentVariableError: A referenced variable is not set.
    """
    if not value:
        return value

    def replace_var(match: re.Match[str]) -> str:
        var_name = match.group(1)
        env_value = os.environ.get(var_name)
        if env_value is None:
            raise EnvironmentVariableError(
                f"Environment variable '{var_name}' is not set"
            )
        return env_value

    return ENV_VAR_PATTERN.sub(replace_var, value)


def _expand_recursive(data: Any) -> Any:
    """Walk a YAML structure and expand environment variables in strings."""
    if isinstance(data, dict):
        return {key: _expand_recursive(value) for key, value in data.items()}
    elif isinstance(data, list):
        return [_expand_recursive(item) for item in data]
    elif isinstance(data, str):
        return expand_env_vars(data)
    else:
        return data


def _validate_required_field(data: dict[str, Any], field: str, parent: str = "") -> Any:
    """Return a required field or raise.

    Args:
        data: Mapping to read from.
        field: Field name.
        parent: Parent path used in the error message.

    Returns:
        The field value.

    Raises:
        ConfigValidationError: The field is missing or null.
    """
    if not isinstance(data, dict) or field not in data or data[field] is None:
        full_path = f"{parent}.{field}" if parent else field
        raise ConfigValidationError(f"Required field '{full_path}' is missing")
    return data[field]


def _load_llm(llm_data: dict[str, Any]) -> dict[str, LLMConfig]:
    _validate_required_field(llm_data, "default", "llm")
    llm: dict[str, LLMConfig] = {}
    for key, llm_item in llm_data.items():
        model = _validate_required_field(llm_item, "model", f"llm.{key}")
        llm[key] = LLMConfig(
            model=model,
            temperature=llm_item.get("temperature", 0.7),
            max_tokens=llm_item.get("max_tokens", 1000),
        )
    return llm


def _load_memory(memory_data: dict[str, Any]) -> MemoryConfig:
    memory = MemoryConfig(
        database_path=_validate_required_field(memory_data, "database_path", "memory"),
        recent_message_limit=memory_data.get("recent_message_limit", 20),
        compaction_threshold=memory_data.get("compaction_threshold", 30),
        compaction_keep_recent=memory_data.get("compaction_keep_recent", 20),
        fact_extraction_max_tokens=memory_data.get("fact_extraction_max_tokens", 512),
        summary_max_tokens=memory_data.get("summary_max_tokens", 1024),
        tool_output_excerpt_chars=memory_data.get("tool_output_excerpt_chars", 500),
        shutdown_drain_seconds=memory_data.get("shutdown_drain_seconds", 5.0),
    )
    if memory.compaction_keep_recent >= memory.compaction_threshold:
        raise ConfigValidationError(
            "memory.compaction_keep_recent must be smaller than "
            "memory.compaction_threshold"
        )
    if memory.recent_message_limit <= 0:
        raise ConfigValidationError("memory.recent_message_limit must be positive")
    if memory.shutdown_drain_seconds < 0:
        raise ConfigValidationError("memory.shutdown_drain_seconds must not be negative")
    return memory


def _load_agent(agent_data: dict[str, Any] | None) -> AgentConfig:
    if not agent_data:
        return AgentConfig()
    defaults = AgentConfig()
    agent = AgentConfig(
        max_iterations=agent_data.get("max_iterations", defaults.max_iterations),
        iteration_limit_message=agent_data.get(
            "iteration_limit_message", defaults.iteration_limit_message
        ),
        tool_result_preview_chars=agent_data.get(
            "tool_result_preview_chars", defaults.tool_result_preview_chars
        ),
        plan_step_text_chars=agent_data.get(
            "plan_step_text_chars", defaults.plan_step_text_chars
        ),
    )
    if agent.max_iterations < 1:
        raise ConfigValidationError("agent.max_iterations must be at least 1")
    return agent


def _load_workflows(workflows_data: list[dict[str, Any]] | None) -> list[WorkflowConfig]:
    workflows: list[WorkflowConfig] = []
    for index, item in enumerate(workflows_data or []):
        parent = f"workflows[{index}]"
        steps = [
            WorkflowStepConfig(
                subagent=_validate_required_field(step, "subagent", f"{parent}.steps"),
                action=_validate_required_field(step, "action", f"{parent}.steps"),
                input=step.get("input") or {},
                parallel=step.get("parallel", False),
                requires_confirmation=step.get("requires_confirmation", False),
            )
            for step in _validate_required_field(item, "steps", parent)
        ]
        workflows.append(
            WorkflowConfig(
                name=_validate_required_field(item, "name", parent),
                interval_seconds=_validate_required_field(
                    item, "interval_seconds", parent
                ),
                steps=steps,
                run_on_start=item.get("run_on_start", False),
            )
        )
    return workflows


def load_config(path: str | Path) -> Config:
    """Load the configuration file.

    Args:
        path: Path to config.yaml.

    Returns:
        Config object.

    Raises:
        FileNotFoundError: The file does not exist.
        ConfigValidationError: A required value is missing or invalid.
        EnvironmentVariableError: A referenced environment variable is not set.
        yaml.YAMLError: YAML syntax error.
    """
    path = Path(path)

    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    with open(path, encoding="utf-8") as f:
        raw_data = yaml.safe_load(f) or {}

    data = _expand_recursive(raw_data)

    llm = _load_llm(_validate_required_field(data, "llm"))

    persona_data = _validate_required_field(data, "persona")
    persona = PersonaConfig(
        name=_validate_required_field(persona_data, "name", "persona"),
        system_prompt=_validate_required_field(
            persona_data, "system_prompt", "persona"
        ),
    )

    memory = _load_memory(_validate_required_field(data, "memory"))
    agent = _load_agent(data.get("agent"))

    embedding: EmbeddingConfig | None = None
    embedding_data = data.get("embedding")
    if embedding_data:
        embedding = EmbeddingConfig(
            model=_validate_required_field(embedding_data, "model", "embedding"),
            dimensions=embedding_data.get("dimensions"),
        )

    web: WebConfig | None = None
    web_data = data.get("web")
    if web_data:
        web = WebConfig(
            tavily_api_key=web_data.get("tavily_api_key"),
            search_max_results=web_data.get("search_max_results", 5),
            fetch_endpoint=web_data.get("fetch_endpoint"),
            fetch_timeout_seconds=web_data.get("fetch_timeout_seconds", 30.0),
            max_content_length=web_data.get("max_content_length", 8000),
        )

    bridge: dict[str, BridgeServerConfig] = {}
    for server_id, server_data in (data.get("bridge") or {}).items():
        bridge[server_id] = BridgeServerConfig(
            command=_validate_required_field(server_data, "command", f"bridge.{server_id}"),
            args=list(server_data.get("args") or []),
            env={k: str(v) for k, v in (server_data.get("env") or {}).items()},
            enabled=server_data.get("enabled", True),
        )

    logging_config: LoggingConfig | None = None
    logging_data = data.get("logging")
    if logging_data:
        logging_config = LoggingConfig(
            level=logging_data.get("level", "INFO"),
            format=logging_data.get(
                "format", "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
            ),
            loggers=logging_data.get("loggers"),
            debug_llm_messages=logging_data.get("debug_llm_messages", False),
        )

    return Config(
        llm=llm,
        persona=persona,
        memory=memory,
        agent=agent,
        embedding=embedding,
        web=web,
        bridge=bridge,
        workflows=_load_workflows(data.get("workflows")),
        logging=logging_config,
    )
