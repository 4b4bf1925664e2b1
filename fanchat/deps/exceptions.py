"""
Domain exceptions and the HTTP status each one maps to
"""


class FanChatError(Exception):
    """Base exception for errors surfaced to API callers"""
    status_code = 500
    error_code = "INTERNAL_ERROR"
    default_message = "Internal server error"

    def __init__(self, message: str = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class PersonaError(FanChatError):
    """Base exception for persona responder failures"""
    pass


class PersonaConfigurationError(PersonaError):
    """Raised when the language model API key is missing or empty"""
    status_code = 500
    error_code = "CONFIG_ERROR"
    default_message = "Language model API key is not configured. Please configure OPENAI_API_KEY environment variable or Settings.openai_api_key"


class InvalidHistoryError(PersonaError):
    """Raised when the conversation history is missing or malformed"""
    status_code = 400
    error_code = "BAD_REQUEST"
    default_message = "Invalid messages format"


class UpstreamError(PersonaError):
    """Raised when the language model call fails"""
    status_code = 500
    error_code = "UPSTREAM_ERROR"
    default_message = "Failed to generate AI response"


class StoreUnavailableError(FanChatError):
    """Raised when the backing store cannot be reached"""
    status_code = 503
    error_code = "STORE_UNAVAILABLE"
    default_message = "Chat store is temporarily unavailable"


class ChatNotFoundError(FanChatError):
    status_code = 404
    error_code = "NOT_FOUND"
    default_message = "Chat not found"


class AvatarValidationError(FanChatError):
    """Raised when an uploaded profile picture is rejected before storage"""
    status_code = 400
    error_code = "INVALID_FILE"
    default_message = "Please upload an image file"


class AvatarTooLargeError(AvatarValidationError):
    status_code = 413
    error_code = "FILE_TOO_LARGE"
    default_message = "Profile picture is too large"


class ReauthenticationRequiredError(FanChatError):
    """Raised when a sensitive operation is attempted with a wrong or missing password"""
    status_code = 401
    error_code = "REAUTH_REQUIRED"
    default_message = "Current password is incorrect"


class PasswordPolicyError(FanChatError):
    """Raised when a new password does not satisfy the password rules"""
    status_code = 400
    error_code = "WEAK_PASSWORD"
    default_message = "Password validation failed"

    def __init__(self, errors: list, message: str = None):
        self.errors = errors
        super().__init__(message)
