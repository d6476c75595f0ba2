"""Application entry point."""

import argparse
import asyncio
import logging
import signal
import sys
from collections.abc import Sequence

from makilab.application.handlers import (
    CompactionHandler,
    FactExtractionHandler,
    SemanticIndexHandler,
    WorkflowEventHandler,
)
from makilab.application.services import (
    DispatchResolver,
    MemoryLifecycleManager,
    SemanticIndexer,
)
from makilab.application.use_cases import (
    PlanExecutor,
    RunWorkflowUseCase,
    TurnLoop,
    workflow_from_config,
)
from makilab.config import Config, ConfigError, LoggingConfig, load_config
from makilab.domain.entities.capability import Capability
from makilab.domain.exceptions import CapabilityRegistrationError
from makilab.domain.services import CapabilityRegistry
from makilab.infrastructure.bridge import MCPBridge
from makilab.infrastructure.capabilities import (
    MemoryCapability,
    TimeCapability,
    WebCapability,
)
from makilab.infrastructure.events import (
    EventDispatcher,
    EventLoop,
    EventQueue,
    EventScheduler,
)
from makilab.infrastructure.llm import (
    LiteLLMEmbedder,
    LLMClient,
    LLMConversationSummarizer,
    LLMFactExtractor,
)
from makilab.infrastructure.persistence import (
    DatabaseError,
    DatabaseManager,
    SQLiteFactRepository,
    SQLiteMessageRepository,
    SQLiteSummaryRepository,
    SQLiteVectorIndex,
    SQLiteWorkflowRunRepository,
)
from makilab.infrastructure.tools import GetTimeTool
from makilab.presentation import ConsoleChannel

# Default logging for early startup
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


def configure_logging(config: LoggingConfig | None) -> None:
    """Configure logging based on config.

    Args:
        config: Logging configuration. If None, keeps the defaults.
    """
    if config is None:
        return

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, config.level.upper(), logging.INFO))

    if root_logger.handlers:
        formatter = logging.Formatter(config.format)
        for handler in root_logger.handlers:
            handler.setFormatter(formatter)

    for logger_name, logger_level in (config.loggers or {}).items():
        logging.getLogger(logger_name).setLevel(
            getattr(logging, logger_level.upper(), logging.INFO)
        )
        logger.debug("Set logger '%s' to level %s", logger_name, logger_level.upper())


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="makilab", description="Personal assistant")
    parser.add_argument(
        "--config",
        default="config.yaml",
        help="path to the YAML configuration file (default: config.yaml)",
    )
    return parser.parse_args(argv)


def build_capabilities(
    config: Config,
    fact_repository: SQLiteFactRepository,
    indexer: SemanticIndexer,
) -> list[Capability]:
    """Instantiate the built-in capabilities enabled by the configuration."""
    capabilities: list[Capability] = [
        TimeCapability(),
        MemoryCapability(fact_repository, indexer if indexer.enabled else None),
    ]
    if config.web and (config.web.search_enabled or config.web.fetch_enabled):
        capabilities.append(WebCapability(config.web))
    return capabilities


async def main(argv: Sequence[str] | None = None) -> None:
    """Start the assistant."""
    args = parse_args(argv)

    try:
        config = load_config(args.config)
    except (ConfigError, FileNotFoundError) as e:
        logger.error("Failed to load config: %s", e)
        sys.exit(1)

    configure_logging(config.logging)
    debug_llm_messages = bool(config.logging and config.logging.debug_llm_messages)

    # Database
    db_manager = DatabaseManager(config.memory.database_path)
    try:
        await db_manager.create_tables()
    except DatabaseError as e:
        logger.error("Failed to open database: %s", e)
        sys.exit(1)

    message_repository = SQLiteMessageRepository(db_manager.get_session)
    summary_repository = SQLiteSummaryRepository(db_manager.get_session)
    fact_repository = SQLiteFactRepository(db_manager.get_session)
    workflow_run_repository = SQLiteWorkflowRunRepository(db_manager.get_session)

    # LLM clients: default drives turns, background drives memory work
    chat_client = LLMClient(config.default_llm, debug_llm_messages=debug_llm_messages)
    background_client = LLMClient(
        config.background_llm, debug_llm_messages=debug_llm_messages
    )

    indexer = SemanticIndexer()
    if config.embedding is not None:
        indexer = SemanticIndexer(
            embedder=LiteLLMEmbedder(config.embedding),
            index=SQLiteVectorIndex(db_manager.get_session),
        )

    queue = EventQueue()
    memory = MemoryLifecycleManager(
        message_repository=message_repository,
        summary_repository=summary_repository,
        fact_repository=fact_repository,
        config=config.memory,
        fact_extractor=LLMFactExtractor(background_client, config.memory),
        summarizer=LLMConversationSummarizer(background_client, config.memory),
        indexer=indexer,
        queue=queue,
    )

    try:
        registry = CapabilityRegistry(
            build_capabilities(config, fact_repository, indexer)
        )
    except CapabilityRegistrationError as e:
        logger.error("Invalid capability: %s", e)
        await db_manager.close()
        sys.exit(1)

    bridge = MCPBridge(config.bridge)
    await bridge.connect()

    resolver = DispatchResolver(registry, legacy_tools=[GetTimeTool()], bridge=bridge)
    turn_loop = TurnLoop(
        chat_model=chat_client,
        dispatcher=resolver,
        memory=memory,
        base_prompt=config.persona.system_prompt,
        config=config.agent,
    )
    run_workflow = RunWorkflowUseCase(
        executor=PlanExecutor(resolver, config.agent),
        workflows=[workflow_from_config(w) for w in config.workflows],
        run_repository=workflow_run_repository,
    )

    # Event system
    event_dispatcher = EventDispatcher()
    for handler in (
        FactExtractionHandler(memory),
        SemanticIndexHandler(memory),
        CompactionHandler(memory),
        WorkflowEventHandler(run_workflow),
    ):
        event_dispatcher.register_object(handler)
    event_loop = EventLoop(
        queue, event_dispatcher, drain_timeout=config.memory.shutdown_drain_seconds
    )
    scheduler = EventScheduler(queue, config.workflows)

    logger.info(
        "Starting %s (%d capabilities: %s)",
        config.persona.name,
        len(registry),
        ", ".join(registry.names),
    )

    loop_task = asyncio.create_task(event_loop.start())
    scheduler_task = asyncio.create_task(scheduler.start())
    console_task = asyncio.create_task(
        ConsoleChannel(turn_loop, assistant_name=config.persona.name).run()
    )

    # Signal handlers for graceful shutdown
    stop_event = asyncio.Event()
    loop = asyncio.get_running_loop()

    def shutdown_handler() -> None:
        logger.info("Received shutdown signal...")
        stop_event.set()

    loop.add_signal_handler(signal.SIGINT, shutdown_handler)
    loop.add_signal_handler(signal.SIGTERM, shutdown_handler)

    stop_task = asyncio.create_task(stop_event.wait())
    await asyncio.wait({console_task, stop_task}, return_when=asyncio.FIRST_COMPLETED)

    logger.info("Shutting down...")
    await scheduler.stop()
    await event_loop.stop()
    # Let the loop finish pending memory work before cancelling it
    await asyncio.wait({loop_task}, timeout=config.memory.shutdown_drain_seconds + 2.0)

    for task in (console_task, stop_task, loop_task, scheduler_task):
        task.cancel()
    results = await asyncio.gather(
        console_task, stop_task, loop_task, scheduler_task, return_exceptions=True
    )
    for result in results:
        if isinstance(result, Exception):
            logger.error("Task ended with error: %s", result)

    await bridge.close()
    await db_manager.close()
    logger.info("Shutdown complete")


def run() -> None:
    """Run the async main function."""
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        logger.info("Shutting down...")


if __name__ == "__main__":
    run()
