"""
Generation component for the chat assistant.

Retrieves the user's relevant document chunks and past turns, builds the
prompt, calls the language model and stores the new turn as memory.
"""

__version__ = "1.0.0"

from .config import GenerationConfig
from .context_builder import ChatContext, build_context
from .llm import LanguageModel, OllamaChatModel, OpenAIChatModel
from .models import ChatAnswer, ChatRequest
from .service import AI_SOURCE, HUMAN_SOURCE, ChatService

__all__ = [
    "__version__",
    "GenerationConfig",
    "ChatService",
    "ChatAnswer",
    "ChatRequest",
    "ChatContext",
    "build_context",
    "LanguageModel",
    "OllamaChatModel",
    "OpenAIChatModel",
    "HUMAN_SOURCE",
    "AI_SOURCE",
]
