"""Common fixtures for LLM infrastructure tests."""

import pytest

from makilab.config import LLMConfig, MemoryConfig


@pytest.fixture
def llm_config() -> LLMConfig:
    """Create LLM config."""
    return LLMConfig(model="gpt-4o", temperature=0.7, max_tokens=1000)


@pytest.fixture
def memory_config() -> MemoryConfig:
    """Create memory config."""
    return MemoryConfig(database_path=":memory:")
