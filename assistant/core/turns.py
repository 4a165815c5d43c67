from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Optional

from assistant.client import ReplySource
from assistant.core.prompt import (
    FETCH_ERROR_REPLY,
    GREETING,
    SYSTEM_PROMPT,
    TITLE_PROMPT,
    TITLE_PROMPT_SHORT,
)
from assistant.core.sessions import Message, Role, SessionStore, TurnState
from assistant.errors import TurnInFlightError


logger = logging.getLogger("pnwer.turns")

_TITLE_STRIP = re.compile(r"['\"\n]")


@dataclass
class ChatConfig:
    """Product text and title rules for one deployment of the chat page."""

    preprompt: str = SYSTEM_PROMPT
    title_preprompt: str = TITLE_PROMPT
    greeting: str = GREETING
    title_word_cap: Optional[int] = 5
    ellipsis: str = "..."
    first_title: str = "New Chat"
    new_title: str = ""

    @classmethod
    def short_titles(cls) -> "ChatConfig":
        """Four-word summary prompt, no word cap and blank titles everywhere."""
        return cls(title_preprompt=TITLE_PROMPT_SHORT, title_word_cap=None, first_title="")

    def build_store(self) -> SessionStore:
        return SessionStore(
            greeting=self.greeting,
            first_title=self.first_title,
            new_title=self.new_title,
        )


@dataclass
class TurnResult:
    index: int
    reply: str
    failed: bool = False
    title: Optional[str] = None


def derive_title(raw: Optional[str], word_cap: Optional[int] = 5, ellipsis: str = "...") -> str:
    """Clean a summary reply into a session title.

    Quotes and newlines are removed. When the cleaned text has more than
    ``word_cap`` whitespace-separated words it is cut to the first ``word_cap``
    words and ``ellipsis`` is appended.
    """
    topic = _TITLE_STRIP.sub("", raw or "")
    if word_cap is None:
        return topic
    words = topic.split()
    if len(words) > word_cap:
        return " ".join(words[:word_cap]) + ellipsis
    return topic


class TurnController:
    """Runs user turns against a SessionStore.

    A turn appends the user message, asks the proxy for a reply and, on the
    first user message of a session, asks a second time for a short title.
    Each session moves Idle -> AwaitingReply -> (AwaitingTitle ->) Idle and
    refuses a new turn while it is not Idle.
    """

    def __init__(
        self,
        source: ReplySource,
        store: Optional[SessionStore] = None,
        config: Optional[ChatConfig] = None,
    ) -> None:
        self.source = source
        self.config = config or ChatConfig()
        self.store = store if store is not None else self.config.build_store()
        self.draft = ""

    @property
    def loading(self) -> bool:
        return self.store.current.loading

    def start_new_chat(self) -> int:
        return self.store.create_session()

    def select_chat(self, index: int) -> None:
        self.store.select_session(index)

    def send_message(self, text: Optional[str] = None) -> Optional[TurnResult]:
        user_text = self.draft if text is None else text
        if not user_text or not user_text.strip():
            return None

        index = self.store.current_index
        session = self.store.get(index)
        with session.lock:
            if session.state is not TurnState.IDLE:
                raise TurnInFlightError(index)
            session.state = TurnState.AWAITING_REPLY

        try:
            self.store.append_message(index, Message(role=Role.USER, content=user_text))
            self.draft = ""
            user_count = session.user_message_count()
            outgoing = [
                m.to_wire()
                for m in session.messages
                if m.role in (Role.USER, Role.ASSISTANT)
            ]

            try:
                reply = self.source.ask(outgoing, self.config.preprompt)
            except Exception as exc:
                logger.exception("Reply failed for session %s: %s", index, exc)
                self.store.append_message(
                    index, Message(role=Role.ASSISTANT, content=FETCH_ERROR_REPLY)
                )
                return TurnResult(index=index, reply=FETCH_ERROR_REPLY, failed=True)

            self.store.append_message(index, Message(role=Role.ASSISTANT, content=reply))
            result = TurnResult(index=index, reply=reply)

            if user_count == 1:
                session.state = TurnState.AWAITING_TITLE
                result.title = self._derive_session_title(index, user_text)
            return result
        finally:
            session.state = TurnState.IDLE

    def _derive_session_title(self, index: int, user_text: str) -> Optional[str]:
        try:
            summary = self.source.ask(
                [{"role": Role.USER.value, "content": user_text}],
                self.config.title_preprompt,
            )
        except Exception as exc:
            logger.warning("Title request failed for session %s: %s", index, exc)
            return None

        title = derive_title(summary, self.config.title_word_cap, self.config.ellipsis)
        self.store.set_title(index, title)
        logger.info("Session %s titled %r", index, title)
        return title
