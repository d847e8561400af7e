"""Sinks for invocation records."""

import json
from pathlib import Path
from typing import Protocol

import httpx

from conductor.models.invocation import InvocationRecord


class InvocationSink(Protocol):
    """Protocol for receiving invocation records."""

    def append(self, record: InvocationRecord) -> None:
        """Append a record to the sink."""
        ...


class ListSink:
    """Stores records in a list."""

    def __init__(self) -> None:
        self.records: list[InvocationRecord] = []

    def append(self, record: InvocationRecord) -> None:
        """Append a record to the list."""
        self.records.append(record)

    def clear(self) -> None:
        """Clear all records."""
        self.records.clear()


class FileSink:
    """Writes records to a JSONL file."""

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)

    def append(self, record: InvocationRecord) -> None:
        """Append a record to the file."""
        with open(self.path, "a") as f:
            f.write(record.model_dump_json() + "\n")


class HttpSink:
    """Posts records to an invocation-log API."""

    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport

    def append(self, record: InvocationRecord) -> None:
        payload = {"records": [json.loads(record.model_dump_json())]}
        url = f"{self.base_url}/api/agent-invocations"
        with httpx.Client(timeout=self.timeout, transport=self._transport) as client:
            response = client.post(url, json=payload)
            response.raise_for_status()
