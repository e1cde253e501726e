"""
Exception hierarchy for pgfacade.

Driver errors (`psycopg.Error`) raised by plain query helpers are not wrapped;
these types cover configuration, decoding, transaction and input failures.
Wrapping errors always chain the underlying driver error via `raise ... from`.
"""

from __future__ import annotations


class PgFacadeError(Exception):
    """Base class for all errors raised by this package."""


class PoolConfigError(PgFacadeError):
    """The connection string built from the configuration could not be parsed."""


class PoolCreationError(PgFacadeError):
    """The connection pool could not be created or opened."""


class DecodeError(PgFacadeError):
    """A row could not be mapped onto the requested type."""


class NoRowsError(DecodeError):
    """A single-row query returned no rows."""


class TooManyRowsError(DecodeError):
    """A single-row query returned more than one row."""


class TransactionError(PgFacadeError):
    """Begin, execute or commit failed inside a batch transaction."""


class BulkInsertError(PgFacadeError):
    """The database rejected a multi-row INSERT."""


class EmptyInsertError(PgFacadeError, ValueError):
    """Bulk insert was called without any rows."""


__all__ = [
    "PgFacadeError",
    "PoolConfigError",
    "PoolCreationError",
    "DecodeError",
    "NoRowsError",
    "TooManyRowsError",
    "TransactionError",
    "BulkInsertError",
    "EmptyInsertError",
]
