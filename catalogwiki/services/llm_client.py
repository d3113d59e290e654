"""Model client used for outline and detail generation.

Provider-agnostic via LiteLLM. The pipeline only depends on the
``TextGenerator`` protocol (a single ``generate(prompt) -> str``), so tests
and alternative backends can pass any object with that method.

The client is constructed explicitly and handed to the pipeline; there is
no module-level singleton.
"""

import dataclasses
import logging
import uuid
from typing import Callable, List, Optional, Protocol

from sqlalchemy.orm import Session

from ..core.config import settings
from ..exceptions import GenerationError
from ..repositories import ChatMessageRepository

logger = logging.getLogger(__name__)


class TextGenerator(Protocol):
    """Anything that turns a prompt into text. May raise on transport errors."""

    def generate(self, prompt: str) -> str:
        ...


@dataclasses.dataclass(frozen=True)
class ChatReply:
    conversation_id: str
    content: str


class ConversationMemory:
    """Bounded, persisted message history per conversation.

    Each call opens its own session so the memory can be shared across
    request threads.
    """

    def __init__(self, session_factory: Callable[[], Session], max_messages: int = 20):
        self._session_factory = session_factory
        self.max_messages = max_messages

    def history(self, conversation_id: str) -> List[dict]:
        db = self._session_factory()
        try:
            rows = ChatMessageRepository(db).latest(conversation_id, self.max_messages)
            return [{"role": row.role, "content": row.content} for row in rows]
        finally:
            db.close()

    def append(self, conversation_id: str, *messages: dict) -> None:
        """Store messages and drop anything beyond the window."""
        db = self._session_factory()
        try:
            repo = ChatMessageRepository(db)
            for message in messages:
                repo.append(conversation_id, message["role"], message["content"])
            repo.prune(conversation_id, self.max_messages)
            db.commit()
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()


class LlmClient:
    """LiteLLM-backed implementation of TextGenerator.

    Args:
        model: LiteLLM model string. Defaults to ``LLM_MODEL``.
        api_key: Provider key. Defaults to ``LLM_API_KEY``.
        api_base: Optional custom endpoint. Defaults to ``LLM_API_BASE``.
        memory: Conversation store for chat(); optional for generate().
    """

    def __init__(
        self,
        model: Optional[str] = None,
        api_key: Optional[str] = None,
        api_base: Optional[str] = None,
        timeout: Optional[int] = None,
        max_tokens: Optional[int] = None,
        memory: Optional[ConversationMemory] = None,
    ):
        self.model = model if model is not None else settings.llm_model
        self.api_key = api_key if api_key is not None else settings.llm_api_key
        self.api_base = api_base if api_base is not None else settings.llm_api_base
        self.timeout = timeout or settings.llm_timeout
        self.max_tokens = max_tokens or settings.llm_max_tokens
        self.memory = memory

    def is_configured(self) -> bool:
        return bool(self.model)

    def generate(self, prompt: str) -> str:
        """Single-turn completion. Returns the text, possibly empty.

        Raises:
            GenerationError: no model configured or the provider call failed.
        """
        return self._complete([{"role": "user", "content": prompt}])

    def chat(self, prompt: str, conversation_id: Optional[str] = None) -> ChatReply:
        """Multi-turn completion with persisted history.

        A new conversation id is generated when none is given.
        """
        if self.memory is None:
            raise GenerationError("Chat requires a conversation memory")

        conversation_id = conversation_id or str(uuid.uuid4())
        history = self.memory.history(conversation_id)
        user_message = {"role": "user", "content": prompt}

        content = self._complete(history + [user_message])
        self.memory.append(
            conversation_id,
            user_message,
            {"role": "assistant", "content": content},
        )
        return ChatReply(conversation_id=conversation_id, content=content)

    def _complete(self, messages: List[dict]) -> str:
        if not self.is_configured():
            raise GenerationError("No model configured. Set LLM_MODEL.")

        kwargs: dict = {
            "model": self.model,
            "messages": messages,
            "max_tokens": self.max_tokens,
            "timeout": self.timeout,
        }
        if self.api_key:
            kwargs["api_key"] = self.api_key
        if self.api_base:
            kwargs["api_base"] = self.api_base

        try:
            import litellm

            response = litellm.completion(**kwargs)
            content = response.choices[0].message.content
        except Exception as e:
            logger.error("Model call failed (%s): %s", self.model, e)
            raise GenerationError(f"Model call failed: {e}", original_error=e) from e

        return content or ""
