from __future__ import annotations


class EnsIndexerError(Exception):
    """Base class for indexer failures."""


class EventDecodingError(EnsIndexerError, ValueError):
    """
    A log could not be decoded as one of the registrar events.

    Means the upstream address/topic filter and the decoding schema disagree,
    so it is never swallowed.
    """


class MetadataFetchError(EnsIndexerError):
    """The metadata service answered with a payload we cannot use."""


class BatchPersistenceError(EnsIndexerError):
    """Writing a batch working set failed; the whole batch must be retried."""
