"""
Custom Exceptions for the document chat assistant.

Every failure that crosses a pipeline boundary is one of these types, so
callers (HTTP layer, CLI, tests) can tell a missing login from a broken
embedding provider without inspecting messages.

Exception Hierarchy:
    ChatAssistantError (base)
    ├── EmbeddingFailure
    ├── CompletionFailure
    │   └── AnswerGenerationFailure
    ├── AuthRequired
    ├── StorageFailure
    └── ValidationFailure

Usage:
    from core.exceptions import AuthRequired, ChatAssistantError

    try:
        answer = chat_service.answer(user_id, message)
    except AuthRequired:
        ...
    except ChatAssistantError as e:
        print(e.public_message)
"""

from __future__ import annotations

from typing import Optional

# HTTP status codes that indicate a transient provider problem.
RETRYABLE_STATUS_CODES = (408, 429, 500, 502, 503, 504)


# =============================================================================
# BASE EXCEPTION
# =============================================================================


class ChatAssistantError(Exception):
    """
    Base exception for all assistant errors.

    Attributes:
        message: Human-readable error description (may contain internals)
        details: Additional technical details (optional)
        public_message: Generic text that is safe to show to end users
    """

    public_message = "The request could not be completed."

    def __init__(
        self,
        message: str = "An assistant error occurred",
        details: Optional[str] = None,
    ):
        self.message = message
        self.details = details

        full_message = message
        if details:
            full_message = f"{message} | Details: {details}"

        super().__init__(full_message)


class _ProviderError(ChatAssistantError):
    """Shared shape for failures raised by external model providers."""

    def __init__(
        self,
        message: str,
        original_error: Optional[Exception] = None,
        status_code: Optional[int] = None,
        retryable: bool = False,
    ):
        self.original_error = original_error
        self.status_code = status_code
        self.retryable = retryable

        details = str(original_error) if original_error else None
        if status_code:
            message = f"{message} (HTTP {status_code})"

        super().__init__(message, details)


# =============================================================================
# PROVIDER ERRORS
# =============================================================================


class EmbeddingFailure(_ProviderError):
    """
    Raised when the embedding provider cannot turn text into a vector.

    Covers connection errors, timeouts, unknown models and malformed
    responses.
    """

    public_message = "The document search service is unavailable. Please try again."

    def __init__(
        self,
        message: str = "Embedding generation failed",
        original_error: Optional[Exception] = None,
        status_code: Optional[int] = None,
        retryable: bool = False,
    ):
        super().__init__(message, original_error, status_code, retryable)


class CompletionFailure(_ProviderError):
    """Raised when the language model does not return a completion."""

    public_message = "The assistant could not answer right now. Please try again."

    def __init__(
        self,
        message: str = "Language model completion failed",
        original_error: Optional[Exception] = None,
        status_code: Optional[int] = None,
        retryable: bool = False,
    ):
        super().__init__(message, original_error, status_code, retryable)


class AnswerGenerationFailure(CompletionFailure):
    """
    Raised by the chat pipeline when no answer could be generated.

    Nothing is written to the message history when this is raised.
    """

    def __init__(
        self,
        message: str = "Failed to generate an answer",
        original_error: Optional[Exception] = None,
    ):
        status_code = getattr(original_error, "status_code", None)
        super().__init__(message, original_error, status_code)


# =============================================================================
# REQUEST ERRORS
# =============================================================================


class AuthRequired(ChatAssistantError):
    """Raised when an operation is attempted without an authenticated user."""

    public_message = "Please login"

    def __init__(self, message: str = "An authenticated user is required"):
        super().__init__(message)


class ValidationFailure(ChatAssistantError):
    """
    Raised for invalid input: empty messages, empty document sets,
    blank filenames, unknown collections.

    Attributes:
        field: Name of the offending input, if known
    """

    def __init__(self, message: str, field: Optional[str] = None):
        self.field = field
        super().__init__(message)

    @property
    def public_message(self) -> str:  # type: ignore[override]
        return self.message


# =============================================================================
# STORAGE ERRORS
# =============================================================================


class StorageFailure(ChatAssistantError):
    """
    Raised when the underlying persistence layer is unreachable or rejects
    a write.

    Attributes:
        operation: The storage operation that failed (e.g. "add", "delete")
        original_error: The underlying exception
    """

    public_message = "Storage is temporarily unavailable. Please try again."

    def __init__(
        self,
        operation: str,
        original_error: Optional[Exception] = None,
        message: Optional[str] = None,
    ):
        self.operation = operation
        self.original_error = original_error
        details = str(original_error) if original_error else None
        super().__init__(message or f"Storage operation '{operation}' failed", details)


# =============================================================================
# CONVENIENCE FUNCTIONS
# =============================================================================


def is_retryable(error: Exception) -> bool:
    """
    Check if an error is potentially recoverable by retrying.

    Returns True for provider errors flagged as transient (connection
    problems, timeouts) and for provider errors carrying a 408/429/5xx
    status. Request errors (auth, validation) are never retryable.
    """
    if isinstance(error, _ProviderError):
        if error.retryable:
            return True
        return error.status_code in RETRYABLE_STATUS_CODES
    return False


def format_error_chain(error: Exception) -> str:
    """
    Format an exception and its chain for logging.

    Returns a multi-line string showing the error hierarchy.
    """
    lines = []
    current: Optional[BaseException] = error
    depth = 0

    while current is not None:
        prefix = "  " * depth + ("└─ " if depth > 0 else "")
        lines.append(f"{prefix}{type(current).__name__}: {current}")

        if getattr(current, "original_error", None) is not None:
            current = current.original_error
            depth += 1
        elif current.__cause__:
            current = current.__cause__
            depth += 1
        else:
            break

    return "\n".join(lines)
