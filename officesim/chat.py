"""Chat collaborator used by the ``talk`` action.

The simulation only emits ``(sender, formatted message)``; how the message is
displayed or stored is up to the sink.
"""

from __future__ import annotations

from collections import deque
from typing import Deque, List, Protocol

from .schemas import Character, ChatMessage


MAX_MESSAGES = 100


class ChatSink(Protocol):
    """Anything that accepts chat lines from characters."""

    def add_message(self, sender: Character, message: str) -> None:
        ...


class InMemoryChatLog:
    """Default sink that keeps the most recent messages in memory."""

    def __init__(self, max_messages: int = MAX_MESSAGES) -> None:
        self._messages: Deque[ChatMessage] = deque(maxlen=max_messages)

    def add_message(self, sender: Character, message: str) -> None:
        self._messages.append(
            ChatMessage(sender_id=sender.id, sender_name=sender.name, message=message)
        )

    @property
    def messages(self) -> List[ChatMessage]:
        return list(self._messages)

    def clear(self) -> None:
        self._messages.clear()
