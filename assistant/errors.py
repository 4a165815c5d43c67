from __future__ import annotations


class ChatError(Exception):
    """Base class for every error raised by the chat service."""


class ConfigurationError(ChatError):
    """A required setting (usually the API key) is missing."""


class UpstreamError(ChatError):
    """The Claude API answered with an ``error`` object."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class TransportError(ChatError):
    """Network failure or an unreadable response body."""


class UploadError(ChatError):
    """The multipart form could not be parsed or the file could not be stored."""


class SessionIndexError(ChatError, IndexError):
    pass


class TitleAlreadySetError(ChatError):
    pass


class TurnInFlightError(ChatError):
    """A turn is already running for this session."""

    def __init__(self, index: int) -> None:
        super().__init__(f"Session {index} already has a turn in flight")
        self.index = index
