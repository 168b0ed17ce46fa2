"""Event decoder protocol — receipt logs to named events."""
from typing import Any, Protocol

from ..models import DecodedEvent


class EventDecoder(Protocol):
    """Abstract interface for decoding transaction receipt logs."""

    def decode_logs(self, receipt: Any) -> list[DecodedEvent]: ...
