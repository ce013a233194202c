"""
Custom Exceptions for Aether
============================

Only failures that abort a generation are modelled as exceptions.
Malformed or unstructured model output is never raised: the extractor
recovers from it and reports unterminated blocks on the result instead.

Usage:
    from aether.core.exceptions import AIRateLimitError, AIServiceError

    try:
        project = await session.run(source.stream(prompt, files))
    except AIRateLimitError:
        console.print("Rate limited. Try again in a minute.")
        raise
"""

from typing import Optional, Any, Dict


class AetherError(Exception):
    """Base exception for all Aether errors"""

    def __init__(
        self,
        message: str,
        code: str = "INTERNAL_ERROR",
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.code = code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "details": self.details
        }


# ============================================
# Configuration Errors
# ============================================

class ConfigurationError(AetherError):
    """Required configuration is missing or invalid"""

    def __init__(self, message: str, setting: Optional[str] = None):
        super().__init__(message, code="CONFIGURATION_ERROR")
        if setting:
            self.details["setting"] = setting


# ============================================
# Validation Errors (400-type)
# ============================================

class ValidationError(AetherError):
    """Input validation failed"""

    def __init__(self, message: str, field: Optional[str] = None):
        details = {"field": field} if field else {}
        super().__init__(message, code="VALIDATION_ERROR", details=details)


class InvalidPromptError(ValidationError):
    """Prompt rejected by the sanitizer"""

    def __init__(self, message: str, reason: str):
        super().__init__(message, field="prompt")
        self.code = "INVALID_PROMPT"
        self.details["reason"] = reason


# ============================================
# AI / Transport Errors
# ============================================

class AIServiceError(AetherError):
    """Generative backend or network failure while streaming"""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message, code="AI_SERVICE_ERROR")
        self.status_code = status_code
        if status_code:
            self.details["status_code"] = status_code


class AIRateLimitError(AIServiceError):
    """AI rate limit exceeded"""

    def __init__(self, retry_after: Optional[int] = None):
        super().__init__("AI rate limit exceeded. Please try again later.", status_code=429)
        self.code = "AI_RATE_LIMITED"
        if retry_after:
            self.details["retry_after_seconds"] = retry_after


class GenerationCancelledError(AetherError):
    """Generation session was cancelled before the stream ended"""

    def __init__(self, session_id: Optional[str] = None):
        super().__init__("Generation cancelled", code="GENERATION_CANCELLED")
        if session_id:
            self.details["session_id"] = session_id


# ============================================
# Storage Errors
# ============================================

class StorageError(AetherError):
    """Storage operation failed"""

    def __init__(self, message: str):
        super().__init__(message, code="STORAGE_ERROR")


class InvalidFilePathError(StorageError):
    """Generated file path escapes the project directory"""

    def __init__(self, file_path: str):
        super().__init__(f"File path '{file_path}' escapes the project directory")
        self.code = "INVALID_FILE_PATH"
        self.details["file_path"] = file_path


def error_response(error: AetherError) -> Dict[str, Any]:
    """Convert exception to a serializable error payload"""
    return {
        "success": False,
        "error": error.to_dict()
    }
