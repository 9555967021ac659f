"""Error taxonomy shared by the vault and asset subsystem."""


class InspoError(Exception):
    """Base exception for library operations."""


class StorageIOError(InspoError):
    """Raised when a directory or file cannot be created, copied, moved, read, or deleted."""


class NotFoundError(InspoError):
    """Raised when a vault id or asset path no longer exists."""


class DecodeError(InspoError):
    """Raised when a preview cannot be decoded from a media file."""


class UnsupportedMediaError(InspoError):
    """Raised when a dropped file does not carry a supported media extension."""


__all__ = [
    "InspoError",
    "StorageIOError",
    "NotFoundError",
    "DecodeError",
    "UnsupportedMediaError",
]
