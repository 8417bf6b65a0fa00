"""
Error taxonomy for the payment flow.

Every failure that reaches a caller is one of these; raw driver errors are
translated at the database boundary by ``translate_persistence_error``.
"""

import logging

from sqlalchemy.exc import DBAPIError, SQLAlchemyError

logger = logging.getLogger(__name__)


class KostError(Exception):
    """Base class; ``message`` is safe to show to an operator."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class PaymentValidationError(KostError):
    """Form input rejected before any I/O."""


class BalanceUnavailableError(KostError):
    """The database balance function could not be used."""


class PersistenceError(KostError):
    """A write was rejected; nothing was stored."""


class SubmissionInProgressError(KostError):
    """Another submission for the same form has not finished yet."""


# Ordered: first match wins
_PERSISTENCE_MESSAGES = (
    ("duplicate key", "Nomor kwitansi sudah ada, silakan coba lagi"),
    ("foreign key", "Data penghuni tidak valid"),
    ("check constraint", "Data pembayaran tidak valid"),
    ("violates row-level security", "Tidak memiliki akses untuk menyimpan data"),
)


def translate_persistence_error(exc: Exception) -> PersistenceError:
    """Map a database error to a PersistenceError with an operator-facing message."""
    if isinstance(exc, DBAPIError) and exc.orig is not None:
        raw = str(exc.orig)
    else:
        raw = str(exc)
    lowered = raw.lower()
    for needle, message in _PERSISTENCE_MESSAGES:
        if needle in lowered:
            return PersistenceError(message)
    if raw and isinstance(exc, SQLAlchemyError):
        # Last resort: surface the first line of the driver message
        return PersistenceError(f"Gagal menyimpan pembayaran: {raw.splitlines()[0]}")
    return PersistenceError("Gagal menyimpan pembayaran")
