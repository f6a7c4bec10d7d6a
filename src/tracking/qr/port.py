"""QR encoder port.

Turns a checkout payload into whatever the terminal renders as a QR code.
The representation is opaque to basket tracking.
"""

from abc import ABC, abstractmethod


class QrEncoder(ABC):
    @abstractmethod
    def encode(self, payload: str) -> str:
        """Encode ``payload`` for display as a QR code."""
        ...
