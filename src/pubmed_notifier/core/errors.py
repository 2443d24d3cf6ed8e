"""Exception hierarchy for the notifier."""

from typing import Optional


class NotifierError(Exception):
    """Base class for all notifier errors."""


class ConfigError(NotifierError):
    """Invalid or incomplete configuration."""


class MissingCredentialError(ConfigError):
    """No webhook URL or token is registered for a target."""

    def __init__(self, target_id: str) -> None:
        super().__init__(f"No credential configured for target '{target_id}'")
        self.target_id = target_id


class FetchError(NotifierError):
    """Feed could not be retrieved or understood."""


class FeedHTTPStatusError(FetchError):
    """Feed request did not return HTTP 200.

    ``status`` is None when the request failed at the transport level.
    """

    def __init__(self, url: str, status: Optional[int], reason: str = "") -> None:
        message = f"HTTP {status} for {url}" if status is not None else f"Request to {url} failed"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)
        self.url = url
        self.status = status


class FeedParseError(FetchError):
    """Feed body is not well-formed XML."""


class TranslationError(NotifierError):
    """Translation service failed or returned nothing usable."""


class DeliveryError(NotifierError):
    """Destination did not accept a batch."""

    def __init__(self, batch_index: int, total: int) -> None:
        super().__init__(f"Batch {batch_index + 1}/{total} was not delivered")
        self.batch_index = batch_index
        self.total = total
