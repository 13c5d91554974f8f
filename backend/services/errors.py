"""
Error taxonomy for body shape generation.

Every error carries a stable ``code`` so the web layer can map it to a
response without parsing messages.
"""

import re
from typing import Optional


class BodyShapeError(Exception):
    """Base class for all body shape generation errors."""

    code = "INTERNAL_ERROR"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InputError(BodyShapeError):
    """Caller supplied invalid measurements or targets. Never retried."""

    code = "VALIDATION_ERROR"

    def __init__(self, message: str, field_errors: Optional[dict[str, list[str]]] = None):
        super().__init__(message)
        self.field_errors = field_errors or {}


class InvalidArgumentsError(InputError):
    code = "INVALID_ARGUMENTS"


class NoChangeNeededError(InputError):
    code = "NO_CHANGE_NEEDED"


class ConversionError(BodyShapeError):
    """Image bytes could not be read or encoded."""

    code = "FILE_CONVERSION_ERROR"


class ConfigurationError(BodyShapeError):
    """Invalid region code or missing credentials. Fatal at construction."""

    code = "CONFIGURATION_ERROR"


class GenerationError(BodyShapeError):
    """The remote model did not produce an image."""

    code = "GENERATION_ERROR"


class TransientRemoteError(GenerationError):
    """Rate limit, timeout or temporary unavailability. Retried."""


class TerminalRemoteError(GenerationError):
    """Malformed response, missing image payload or non-retryable 4xx."""


_SUSPICIOUS_ERROR_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"traceback", re.IGNORECASE),
    re.compile(r"\bfile\s+\".*?\.py\"", re.IGNORECASE),
    re.compile(r"-----BEGIN [A-Z ]*PRIVATE KEY-----", re.IGNORECASE),
    re.compile(r"\bapi[_-]?key\s*[=:]", re.IGNORECASE),
    re.compile(r"\bAIza[0-9A-Za-z_\-]{20,}"),
    re.compile(r"/home/|/users/|[a-z]:\\", re.IGNORECASE),
)


def sanitize_public_error_message(
    message: Optional[str],
    *,
    fallback: str = "Internal error",
    max_chars: int = 240,
) -> Optional[str]:
    """
    Sanitize an error message before placing it into a result object.

    Treat `message` as untrusted: it may contain stack traces, file paths,
    or credentials (especially if derived from `str(exception)`).
    """
    if not message:
        return None

    safe = message.encode("utf-8", errors="replace").decode("utf-8", errors="replace")
    safe = re.sub(r"\s+", " ", safe).strip()
    if not safe:
        return None

    if any(p.search(safe) for p in _SUSPICIOUS_ERROR_PATTERNS):
        return fallback

    if len(safe) > max_chars:
        return f"{safe[:max_chars]}..."
    return safe
