"""Error message translation service.

Translates upstream HTTP failures from the language model, web search and
payment gateway into messages that can be shown directly in the chat or a
toast.
"""


class ErrorTranslator:
    """Translate technical errors to user-friendly messages."""

    @staticmethod
    def translate_model_error(status_code: int, body: str | None = None) -> str:
        """Translate a language-model API error.

        Args:
            status_code: HTTP status code from the model endpoint
            body: Raw error body (optional)

        Returns:
            User-facing error message
        """
        if status_code == 404:
            return "Gemini API 404: Endpoint or model not found. Check model name."
        if status_code == 403:
            return "Gemini API 403: API key doesn't have permission."
        if status_code == 429:
            return "Gemini API rate limit exceeded. Please try again in a few moments."
        snippet = (body or "")[:100]
        return f"Gemini API error {status_code}: {snippet}"

    @staticmethod
    def translate_gateway_error(status_code: int | None, description: str | None = None) -> str:
        """Translate a payment gateway error.

        Args:
            status_code: HTTP status code from the gateway (None if unreachable)
            description: Gateway-provided description (optional)

        Returns:
            User-facing error message
        """
        if status_code is None:
            return "The payment gateway is unreachable right now. Please try again shortly."
        if status_code == 401:
            return "The payment gateway rejected our credentials. Please contact support."
        if status_code == 400 and description:
            return f"The payment could not be started: {description}"
        if status_code == 429:
            return "Too many payment attempts. Please wait a moment and try again."
        if status_code >= 500:
            return "The payment gateway is having trouble. Please try again shortly."
        return description or "Failed to create order"

    @staticmethod
    def apology(error_message: str) -> str:
        """Chat reply used when idea validation fails."""
        return (
            "I apologize, but I encountered an error while processing your request. "
            f"Error: {error_message}. Please try again or contact support if the issue persists."
        )
