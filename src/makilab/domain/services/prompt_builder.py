"""System prompt assembly."""

from makilab.domain.entities.memory_context import ChannelMemoryContext
from makilab.domain.services.capability_registry import CapabilityRegistry


def format_facts(facts: dict[str, str]) -> str | None:
    """Format the facts block.

    Args:
        facts: Durable facts.

    Returns:
        Markdown section, or None if there are no facts.
    """
    if not facts:
        return None
    lines = "\n".join(f"- {key}: {value}" for key, value in facts.items())
    return f"## Ce que tu sais sur l'utilisateur\n{lines}"


def format_summary(summary: str | None) -> str | None:
    if not summary:
        return None
    return f"## Résumé des échanges précédents\n{summary}"


def format_capabilities(registry: CapabilityRegistry) -> str | None:
    """Format the capabilities block.

    Lists every capability with its actions and required parameters.

    Args:
        registry: Capability registry.

    Returns:
        Markdown section, or None if no capability is registered.
    """
    if len(registry) == 0:
        return None

    lines: list[str] = ["## Subagents disponibles", ""]
    for capability in registry:
        lines.append(f"### {capability.name}")
        lines.append(capability.description)
        lines.append("Actions :")
        for action in capability.actions:
            required = action.required_params
            params = (
                f" (paramètres: {', '.join(required)})"
                if required
                else " (aucun paramètre)"
            )
            lines.append(f"- **{action.name}**{params} — {action.description}")
        lines.append("")

    return "\n".join(lines).rstrip()


def build_system_prompt(
    base_prompt: str,
    memory: ChannelMemoryContext,
    registry: CapabilityRegistry,
) -> str:
    """Build the system prompt of a turn.

    Order: base persona/policy block, facts, previous-exchange summary,
    capabilities. Empty blocks are left out.

    Args:
        base_prompt: Fixed persona/policy block.
        memory: Memory loaded for the turn.
        registry: Capability registry.

    Returns:
        Complete system prompt.
    """
    parts = [base_prompt.strip()]
    for section in (
        format_facts(memory.facts),
        format_summary(memory.summary),
        format_capabilities(registry),
    ):
        if section:
            parts.append(section)
    return "\n\n".join(parts)
