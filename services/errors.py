from typing import Any, Dict, List, Optional


class CuisineMuseError(Exception):
    """Base class for errors that map onto an HTTP response."""

    status_code = 500
    code = "internal_error"
    public_message = "Something went wrong. Please try again."

    def __init__(self, message: Optional[str] = None) -> None:
        super().__init__(message or self.public_message)
        self.message = message or self.public_message

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.code, "message": self.message}


class ValidationError(CuisineMuseError):
    status_code = 400
    code = "validation_error"
    public_message = "Invalid request."

    def __init__(
        self,
        message: Optional[str] = None,
        details: Optional[List[Dict[str, str]]] = None,
    ) -> None:
        super().__init__(message)
        self.details = details or []

    def to_dict(self) -> Dict[str, Any]:
        body = super().to_dict()
        if self.details:
            body["details"] = self.details
        return body


class NotFound(CuisineMuseError):
    status_code = 404
    code = "not_found"
    public_message = "Not found."


class RateLimited(CuisineMuseError):
    status_code = 429
    code = "rate_limited"
    public_message = "Too many requests, please try again after some time"


class InvalidConversationState(CuisineMuseError):
    status_code = 400
    code = "invalid_conversation_state"
    public_message = "Last message must be from user with content"


class ProviderError(CuisineMuseError):
    """Upstream AI or email failure.

    The constructor message is the internal detail that gets logged; clients
    only ever see ``public_message``.
    """

    status_code = 500
    code = "provider_error"
    public_message = "The recipe assistant is unavailable right now. Please try again."

    def __init__(self, detail: Optional[str] = None) -> None:
        super().__init__(detail)
        self.detail = detail or self.public_message

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.code, "message": self.public_message}


class ProviderUnavailable(ProviderError):
    code = "provider_unavailable"


class MalformedRecipeJSON(ProviderError):
    code = "malformed_recipe_json"
    public_message = "The recipe assistant returned an unreadable recipe. Please try again."


class EmailDeliveryFailed(ProviderError):
    code = "email_delivery_failed"
    public_message = "Failed to send email. Please try again."
