"""Adapters to the outside world: model gateway and invocation logging."""

from conductor.adapters.invocation_logger import InvocationLogger
from conductor.adapters.model_gateway import (
    LangChainGateway,
    ModelFactory,
    ModelGateway,
    initialize_model,
    reply_to_message,
    to_langchain_messages,
)
from conductor.adapters.sinks import FileSink, HttpSink, InvocationSink, ListSink

__all__ = [
    "InvocationLogger",
    "InvocationSink",
    "ListSink",
    "FileSink",
    "HttpSink",
    "LangChainGateway",
    "ModelFactory",
    "ModelGateway",
    "initialize_model",
    "reply_to_message",
    "to_langchain_messages",
]
