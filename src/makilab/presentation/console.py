"""Console channel: stdin/stdout transport for the turn loop."""

import asyncio
import logging
import sys
from typing import TextIO

from makilab.application.use_cases.run_turn import TurnLoop
from makilab.domain.entities.stream_event import (
    DoneEvent,
    ErrorEvent,
    StreamEvent,
    TextDeltaEvent,
    ToolEndEvent,
    ToolStartEvent,
)

logger = logging.getLogger(__name__)

QUIT_COMMAND = "/quit"


async def open_stdin_reader() -> asyncio.StreamReader:
    """Wrap stdin in a StreamReader so reads do not block the event loop."""
    loop = asyncio.get_running_loop()
    reader = asyncio.StreamReader()
    protocol = asyncio.StreamReaderProtocol(reader)
    await loop.connect_read_pipe(lambda: protocol, sys.stdin)
    return reader


class ConsoleChannel:
    """Interactive console session.

    Each input line is one turn on the channel. Text is printed as it
    streams; ``/quit`` or end of input ends the session.
    """

    def __init__(
        self,
        turn_loop: TurnLoop,
        channel: str = "cli",
        assistant_name: str = "makilab",
        reader: asyncio.StreamReader | None = None,
        output: TextIO | None = None,
    ) -> None:
        """Initialize.

        Args:
            turn_loop: Turn loop to drive.
            channel: Channel identifier of the session.
            assistant_name: Name shown before each answer.
            reader: Input stream (stdin when omitted).
            output: Output stream (stdout when omitted).
        """
        self._turn_loop = turn_loop
        self._channel = channel
        self._assistant_name = assistant_name
        self._reader = reader
        self._output = output or sys.stdout
        self._pending_text = ""

    async def run(self) -> None:
        """Read lines until /quit or end of input."""
        reader = self._reader or await open_stdin_reader()
        self._write(f"{self._assistant_name} prêt. Tape {QUIT_COMMAND} pour quitter.\n")

        while True:
            self._write("> ")
            raw = await reader.readline()
            if not raw:
                self._write("\n")
                break
            text = raw.decode("utf-8", errors="replace").strip()
            if not text:
                continue
            if text == QUIT_COMMAND:
                break
            await self.handle(text)

        logger.info("Console session ended")

    async def handle(self, text: str) -> None:
        """Run one turn and render its events."""
        self._write(f"{self._assistant_name}: ")
        self._pending_text = ""
        async for event in self._turn_loop.stream(text, channel=self._channel):
            self._render(event)

    def _render(self, event: StreamEvent) -> None:
        if isinstance(event, TextDeltaEvent):
            self._pending_text += event.content
            self._write(event.content)
        elif isinstance(event, ToolStartEvent):
            self._pending_text = ""
            self._write(f"\n  [→ {event.name}]\n")
        elif isinstance(event, ToolEndEvent):
            marker = "✓" if event.success else "✗"
            suffix = "" if event.success else f" {event.result}"
            self._write(f"  [{marker} {event.name}]{suffix}\n")
        elif isinstance(event, DoneEvent):
            # The final answer was not streamed (e.g. iteration limit)
            if self._pending_text.strip() != event.full_text.strip():
                self._write(event.full_text)
            self._write("\n")
        elif isinstance(event, ErrorEvent):
            self._write(f"\n[erreur] {event.message}\n")

    def _write(self, text: str) -> None:
        self._output.write(text)
        self._output.flush()
