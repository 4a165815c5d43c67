from __future__ import annotations

import threading
from enum import Enum
from typing import Dict, Iterator, List, Optional

from pydantic import BaseModel, ConfigDict

from assistant.core.prompt import GREETING
from assistant.errors import SessionIndexError, TitleAlreadySetError


TITLE_DISPLAY_LIMIT = 35


class Role(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"


class Message(BaseModel):
    model_config = ConfigDict(frozen=True)

    role: Role
    content: str

    def to_wire(self) -> Dict[str, str]:
        return {"role": self.role.value, "content": self.content}


class TurnState(str, Enum):
    IDLE = "idle"
    AWAITING_REPLY = "awaiting_reply"
    AWAITING_TITLE = "awaiting_title"


class ChatSession:
    """One conversation thread: title, ordered messages and its turn state."""

    def __init__(self, title: str, greeting: str) -> None:
        self.title = title
        self.title_set = False
        self.state = TurnState.IDLE
        self._messages: List[Message] = [Message(role=Role.ASSISTANT, content=greeting)]
        # guards the Idle check so two turns can't start on one session
        self.lock = threading.Lock()

    @property
    def messages(self) -> List[Message]:
        return list(self._messages)

    @property
    def loading(self) -> bool:
        return self.state is TurnState.AWAITING_REPLY

    def user_message_count(self) -> int:
        return sum(1 for m in self._messages if m.role is Role.USER)

    def display_title(self, limit: int = TITLE_DISPLAY_LIMIT) -> str:
        if len(self.title) > limit:
            return self.title[:limit] + "..."
        return self.title

    def _append(self, message: Message) -> None:
        self._messages.append(message)

    def __repr__(self) -> str:
        return (
            f"ChatSession(title={self.title!r}, messages={len(self._messages)}, "
            f"state={self.state.value})"
        )


class SessionStore:
    """In-memory, append-only list of chat sessions with a current pointer.

    The store starts with one seeded session and is never empty.
    """

    def __init__(
        self,
        greeting: str = GREETING,
        first_title: str = "New Chat",
        new_title: str = "",
    ) -> None:
        self.greeting = greeting
        self.new_title = new_title
        self._sessions: List[ChatSession] = [ChatSession(first_title, greeting)]
        self._current_index = 0

    @property
    def current_index(self) -> int:
        return self._current_index

    @property
    def current(self) -> ChatSession:
        return self._sessions[self._current_index]

    def __len__(self) -> int:
        return len(self._sessions)

    def __iter__(self) -> Iterator[ChatSession]:
        return iter(list(self._sessions))

    def get(self, index: int) -> ChatSession:
        self._check_index(index)
        return self._sessions[index]

    def create_session(self, title: Optional[str] = None) -> int:
        session = ChatSession(self.new_title if title is None else title, self.greeting)
        self._sessions.append(session)
        self._current_index = len(self._sessions) - 1
        return self._current_index

    def select_session(self, index: int) -> None:
        self._check_index(index)
        self._current_index = index

    def append_message(self, index: int, message: Message) -> None:
        self.get(index)._append(message)

    def messages(self, index: int) -> List[Message]:
        return self.get(index).messages

    def set_title(self, index: int, title: str) -> None:
        session = self.get(index)
        if session.title_set:
            raise TitleAlreadySetError(f"Session {index} already has a title")
        session.title = title
        session.title_set = True

    def _check_index(self, index: int) -> None:
        # bool is an int subclass; reject it along with negatives
        if isinstance(index, bool) or not isinstance(index, int):
            raise SessionIndexError(f"Session index must be an int, got {index!r}")
        if not 0 <= index < len(self._sessions):
            raise SessionIndexError(
                f"Session index {index} out of range (0..{len(self._sessions) - 1})"
            )
