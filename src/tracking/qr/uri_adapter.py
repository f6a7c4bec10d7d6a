"""QR encoder that renders the checkout payload as a URI string.

Terminals feed the URI to their own QR renderer. Only the basket id is
carried, never prices or contents.
"""

from urllib.parse import quote

from tracking.qr.port import QrEncoder


class UriQrEncoder(QrEncoder):
    def __init__(self, scheme: str = "smartbasket") -> None:
        self.scheme = scheme

    def encode(self, payload: str) -> str:
        return f"{self.scheme}://checkout/{quote(payload, safe='')}"
