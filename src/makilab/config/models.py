"""Configuration dataclasses."""

from dataclasses import dataclass, field
from typing import Any

DEFAULT_ITERATION_LIMIT_MESSAGE = (
    "Désolé, j'ai atteint la limite d'itérations ({max_iterations}). "
    "Reformule ta demande."
)


@dataclass
class LLMConfig:
    """LLM settings (passed to LiteLLM completion)."""

    model: str
    temperature: float = 0.7
    max_tokens: int = 1000


@dataclass
class PersonaConfig:
    """Persona settings.

    Attributes:
        name: Display name of the assistant.
        system_prompt: Base persona/policy block placed first in every
            system prompt.
    """

    name: str
    system_prompt: str


@dataclass
class AgentConfig:
    """Turn loop settings."""

    max_iterations: int = 10
    iteration_limit_message: str = DEFAULT_ITERATION_LIMIT_MESSAGE
    tool_result_preview_chars: int = 200
    plan_step_text_chars: int = 100

    def format_iteration_limit(self, max_iterations: int | None = None) -> str:
        """Render the iteration-limit message.

        Args:
            max_iterations: Limit to mention. Defaults to the configured one.

        Returns:
            The user-visible fallback answer.
        """
        limit = self.max_iterations if max_iterations is None else max_iterations
        return self.iteration_limit_message.format(max_iterations=limit)


@dataclass
class MemoryConfig:
    """Memory settings.

    Attributes:
        database_path: SQLite file path (":memory:" for an in-memory DB).
        recent_message_limit: Size of the recent-history window per channel.
        compaction_threshold: Message count above which a channel is compacted.
        compaction_keep_recent: Messages left untouched by compaction.
        fact_extraction_max_tokens: Token budget for fact extraction.
        summary_max_tokens: Token budget for compaction summaries.
        tool_output_excerpt_chars: Per-turn tool output budget handed to
            fact extraction.
        shutdown_drain_seconds: Time allowed at shutdown to finish pending
            memory events (0 drops them).
    """

    database_path: str
    recent_message_limit: int = 20
    compaction_threshold: int = 30
    compaction_keep_recent: int = 20
    fact_extraction_max_tokens: int = 512
    summary_max_tokens: int = 1024
    tool_output_excerpt_chars: int = 500
    shutdown_drain_seconds: float = 5.0


@dataclass
class EmbeddingConfig:
    """Embedding settings (passed to LiteLLM aembedding)."""

    model: str
    dimensions: int | None = None


@dataclass
class WebConfig:
    """Web capability settings.

    Attributes:
        tavily_api_key: Tavily API key. Search is disabled when unset.
        search_max_results: Maximum number of search results.
        fetch_endpoint: Markdown extraction endpoint. Fetch is disabled when unset.
        fetch_timeout_seconds: Timeout of a fetch request.
        max_content_length: Maximum characters returned by fetch.
    """

    tavily_api_key: str | None = None
    search_max_results: int = 5
    fetch_endpoint: str | None = None
    fetch_timeout_seconds: float = 30.0
    max_content_length: int = 8000

    @property
    def search_enabled(self) -> bool:
        return bool(self.tavily_api_key)

    @property
    def fetch_enabled(self) -> bool:
        return bool(self.fetch_endpoint)


@dataclass
class BridgeServerConfig:
    """External bridge (stdio MCP) server settings."""

    command: str
    args: list[str] = field(default_factory=list)
    env: dict[str, str] = field(default_factory=dict)
    enabled: bool = True


@dataclass
class WorkflowStepConfig:
    """A single step of a scheduled workflow."""

    subagent: str
    action: str
    input: dict[str, Any] = field(default_factory=dict)
    parallel: bool = False
    requires_confirmation: bool = False


@dataclass
class WorkflowConfig:
    """Scheduled workflow settings."""

    name: str
    interval_seconds: float
    steps: list[WorkflowStepConfig] = field(default_factory=list)
    run_on_start: bool = False


@dataclass
class LoggingConfig:
    """Logging settings."""

    level: str = "INFO"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    loggers: dict[str, str] | None = None
    debug_llm_messages: bool = False


@dataclass
class Config:
    """Application settings."""

    llm: dict[str, LLMConfig]
    persona: PersonaConfig
    memory: MemoryConfig
    agent: AgentConfig = field(default_factory=AgentConfig)
    embedding: EmbeddingConfig | None = None
    web: WebConfig | None = None
    bridge: dict[str, BridgeServerConfig] = field(default_factory=dict)
    workflows: list[WorkflowConfig] = field(default_factory=list)
    logging: LoggingConfig | None = None

    @property
    def default_llm(self) -> LLMConfig:
        return self.llm["default"]

    @property
    def background_llm(self) -> LLMConfig:
        """LLM used for fact extraction and compaction."""
        return self.llm.get("background", self.llm["default"])
