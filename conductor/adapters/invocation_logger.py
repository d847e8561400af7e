"""Fire-and-forget invocation logging.

Writing a record must never delay or fail an agent invocation, so records are
handed to a background thread and every failure is dropped after a debug log.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Any

from conductor.adapters.sinks import FileSink, InvocationSink, ListSink
from conductor.config import RuntimeSettings
from conductor.models.invocation import InvocationRecord
from conductor.models.messages import Message
from conductor.utils.identifiers import generate_invocation_id, utc_timestamp

logger = logging.getLogger(__name__)


class InvocationLogger:
    """Records agent invocations into a sink without blocking the caller.

    Usage:
        invocation_logger = InvocationLogger(FileSink("./logs/invocations.jsonl"))
        agent = create_agent(definition, invocation_logger=invocation_logger)
    """

    def __init__(self, sink: InvocationSink | None = None) -> None:
        self.sink: InvocationSink = sink if sink is not None else ListSink()
        self._pending: set[asyncio.Future[Any]] = set()

    @classmethod
    def from_settings(cls, settings: RuntimeSettings) -> "InvocationLogger":
        """File-backed logger when a log directory is configured, in-memory otherwise."""
        if settings.invocation_log_dir:
            return cls(FileSink(Path(settings.invocation_log_dir) / "invocations.jsonl"))
        return cls(ListSink())

    def log(self, agent_name: str, input: str, messages: list[Message], output: Any) -> None:
        """Schedule a record write and return immediately. Never raises."""
        try:
            record = InvocationRecord(
                invocation_id=generate_invocation_id(),
                agent_name=agent_name,
                timestamp=utc_timestamp(),
                input=input,
                messages=list(messages),
                output=output,
            )
        except Exception as exc:
            logger.debug("Could not build invocation record for %s: %s", agent_name, exc)
            return

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            # no loop: synchronous best effort
            self._write(record)
            return

        task = loop.create_task(asyncio.to_thread(self._write, record))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    def _write(self, record: InvocationRecord) -> None:
        try:
            self.sink.append(record)
        except Exception as exc:
            logger.debug("Dropped invocation record for %s: %s", record.agent_name, exc)

    async def flush(self) -> None:
        """Wait for scheduled writes to finish (tests and shutdown)."""
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    @property
    def records(self) -> list[InvocationRecord]:
        """Records held by an in-memory sink.

        Raises:
            TypeError: if the sink is not a ListSink.
        """
        if isinstance(self.sink, ListSink):
            return self.sink.records
        raise TypeError("records property only available with in-memory sink")
