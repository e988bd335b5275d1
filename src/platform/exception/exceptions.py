class CustomBaseError(Exception):
    """Base class for all custom exceptions - controls logging behavior in @Logger.io"""

    def __init__(self, message: str, status_code: int) -> None:
        self.message = message
        self.status_code = status_code
        super().__init__(message)


class DomainError(CustomBaseError):
    def __init__(self, message: str, status_code: int = 400) -> None:
        super().__init__(message, status_code)


class NotFoundError(CustomBaseError):
    def __init__(self, message: str) -> None:
        super().__init__(message, 404)


# ========== Message Queue Errors ==========


class BrokerConnectionError(CustomBaseError):
    """Broker unreachable or topology could not be declared - fatal at startup"""

    def __init__(self, message: str) -> None:
        super().__init__(message, 503)


class PublishError(CustomBaseError):
    """Raised once the publish retry budget is exhausted"""

    def __init__(
        self,
        message: str,
        *,
        event_type: str,
        routing_key: str,
        attempts: int,
    ) -> None:
        self.event_type = event_type
        self.routing_key = routing_key
        self.attempts = attempts
        super().__init__(message, 503)


class UnknownEventTypeError(CustomBaseError):
    """EventType header missing or not part of the closed event set"""

    def __init__(self, message: str) -> None:
        super().__init__(message, 422)


class MalformedEventError(CustomBaseError):
    """Message body cannot be parsed into the typed event"""

    def __init__(self, message: str) -> None:
        super().__init__(message, 422)
