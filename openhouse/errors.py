"""Domain exceptions raised by services and mapped to HTTP responses by the API."""


class OpenHouseError(Exception):
    """Base class for errors with a user-facing message."""

    error_type = "internal_error"
    status_code = 500

    def __init__(self, message: str, details: str | dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details


class NotFoundError(OpenHouseError):
    """Requested row does not exist or is not visible to the caller."""

    error_type = "not_found"
    status_code = 404


class PermissionDeniedError(OpenHouseError):
    """Caller is authenticated but not allowed to perform the operation."""

    error_type = "permission_denied"
    status_code = 403


class ConflictError(OpenHouseError):
    """Operation conflicts with existing state (duplicates, illegal transitions)."""

    error_type = "conflict"
    status_code = 409


class InvalidRequestError(OpenHouseError):
    """Request is well-formed but semantically invalid."""

    error_type = "invalid_request"
    status_code = 400


class PaymentRequiredError(OpenHouseError):
    """Feature is behind the paywall and the caller has not paid."""

    error_type = "payment_required"
    status_code = 402

    def __init__(self, feature: str, label: str | None = None):
        super().__init__(
            f"{label or feature} requires platform access. Complete payment to unlock it.",
            details={"feature": feature},
        )
        self.feature = feature


class ConfigurationError(OpenHouseError):
    """A required secret or endpoint is not configured."""

    error_type = "configuration_error"
    status_code = 500


class SignatureVerificationError(OpenHouseError):
    """HMAC signature did not match."""

    error_type = "invalid_signature"
    status_code = 401


class UpstreamServiceError(OpenHouseError):
    """An external API (gateway, model, search) failed."""

    error_type = "upstream_error"
    status_code = 502

    def __init__(
        self,
        message: str,
        upstream_status: int | None = None,
        details: str | dict | None = None,
    ):
        super().__init__(message, details=details)
        self.upstream_status = upstream_status


class PaymentGatewayError(UpstreamServiceError):
    """Payment gateway rejected or failed a request."""

    error_type = "payment_gateway_error"
    status_code = 400
