"""Helper modules for FestivalPOS: pure reporting calculations."""

__all__ = [
    "revenue",
]
