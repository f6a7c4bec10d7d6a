"""QR encoder factory — get_qr_encoder() / set_qr_encoder() / reset_qr_encoder()."""

from tracking.config import get_settings
from tracking.qr.port import QrEncoder
from tracking.qr.uri_adapter import UriQrEncoder

_current_encoder: QrEncoder | None = None


def get_qr_encoder() -> QrEncoder:
    """Return the current QR encoder. Defaults to UriQrEncoder."""
    global _current_encoder
    if _current_encoder is None:
        _current_encoder = UriQrEncoder(scheme=get_settings().qr_scheme)
    return _current_encoder


def set_qr_encoder(encoder: QrEncoder) -> None:
    global _current_encoder
    _current_encoder = encoder


def reset_qr_encoder() -> None:
    global _current_encoder
    _current_encoder = None


__all__ = ["QrEncoder", "UriQrEncoder", "get_qr_encoder", "set_qr_encoder", "reset_qr_encoder"]
