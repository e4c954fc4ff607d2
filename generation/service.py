from __future__ import annotations

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor, wait
from typing import Optional

from core.auth import require_user
from core.exceptions import AnswerGenerationFailure, ValidationFailure, format_error_chain
from vector_store.models import DOCUMENTS, MESSAGES, SOURCE_KEY, USER_KEY, RecordInput
from vector_store.store import VectorStore

from .config import GenerationConfig
from .context_builder import build_context
from .llm import LanguageModel
from .models import ChatAnswer
from .prompts import build_system_prompt

logger = logging.getLogger(__name__)

HUMAN_SOURCE = "Human"
AI_SOURCE = "AI"


class ChatService:
    """
    Answers a chat message from the user's documents and past turns.

    Past turns are retrieved by semantic relevance to the new message (the
    "messages" collection acts as long-term memory), not as a window of the
    most recent turns. After a successful answer both turns are written back
    in the background; answer() does not wait for that write.
    """

    def __init__(
        self,
        store: VectorStore,
        llm: LanguageModel,
        config: GenerationConfig | None = None,
    ):
        self.config = config or GenerationConfig()
        self.store = store
        self.llm = llm
        self._executor = ThreadPoolExecutor(
            max_workers=self.config.write_back_workers,
            thread_name_prefix="chat-write-back",
        )
        self._pending: set[Future] = set()
        self._pending_lock = threading.Lock()

    def answer(self, user_id: Optional[str], message: str) -> ChatAnswer:
        user_id = require_user(user_id)
        if not message or not message.strip():
            raise ValidationFailure("Message must not be empty", field="message")

        scope = {USER_KEY: user_id}
        docs = self.store.similarity_search(
            DOCUMENTS, message, k=self.config.document_top_k, where=scope
        )
        history = self.store.similarity_search(
            MESSAGES, message, k=self.config.history_top_k, where=scope
        )
        logger.debug(f"Retrieved {len(docs)} chunks and {len(history)} past turns for user {user_id}")

        context = build_context(docs, history)
        system_prompt = build_system_prompt(context.docs_text, context.history_text)

        try:
            text = self.llm.complete(system_prompt, message)
        except Exception as e:
            logger.error(f"Answer generation failed:\n{format_error_chain(e)}")
            raise AnswerGenerationFailure(original_error=e) from e

        if not text or not text.strip():
            raise AnswerGenerationFailure("Language model returned an empty answer")

        self._schedule_write_back(user_id, message, text)
        return ChatAnswer(text=text, sources=context.sources)

    def wait_for_pending(self, timeout: Optional[float] = None) -> bool:
        """Block until queued history writes finish. Returns False on timeout."""
        with self._pending_lock:
            pending = set(self._pending)
        if not pending:
            return True
        _, not_done = wait(pending, timeout=timeout)
        return not not_done

    def close(self) -> None:
        self._executor.shutdown(wait=True)

    def _schedule_write_back(self, user_id: str, message: str, text: str) -> Future:
        records = [
            RecordInput(text=message, metadata={SOURCE_KEY: HUMAN_SOURCE, USER_KEY: user_id}),
            RecordInput(text=text, metadata={SOURCE_KEY: AI_SOURCE, USER_KEY: user_id}),
        ]
        future = self._executor.submit(self.store.add, MESSAGES, records)
        with self._pending_lock:
            self._pending.add(future)
        future.add_done_callback(self._write_back_done)
        return future

    def _write_back_done(self, future: Future) -> None:
        with self._pending_lock:
            self._pending.discard(future)
        error = future.exception()
        if error is not None:
            logger.error(f"Chat history write-back failed:\n{format_error_chain(error)}")
