"""
Shared building blocks: error taxonomy, logging setup and user checks.
"""

from .auth import require_user
from .exceptions import (
    AnswerGenerationFailure,
    AuthRequired,
    ChatAssistantError,
    CompletionFailure,
    EmbeddingFailure,
    StorageFailure,
    ValidationFailure,
    format_error_chain,
    is_retryable,
)
from .logging_config import get_logger, setup_logging

__all__ = [
    "require_user",
    "ChatAssistantError",
    "EmbeddingFailure",
    "CompletionFailure",
    "AnswerGenerationFailure",
    "AuthRequired",
    "StorageFailure",
    "ValidationFailure",
    "is_retryable",
    "format_error_chain",
    "setup_logging",
    "get_logger",
]
