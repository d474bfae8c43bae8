"""Roles describing where content came from or who it is meant for."""

from enum import Enum


class Role(str, Enum):
    """The origin or intended audience of a piece of content."""

    USER = "user"
    ASSISTANT = "assistant"

    def __str__(self) -> str:
        return self.value