"""
Exception hierarchy for the indexer.

Every failure in the sync engine maps to one of these classes. The class
decides what happens next:

- NodeUnavailable: wait a fixed interval and poll the node again
- FetchError / PersistError: fail the height, retried with its round
- StartupError: fatal, the process exits
"""

from __future__ import annotations


class IndexerError(Exception):
    """
    Base exception for all indexer errors.

    Attributes:
        message: Human-readable error description.
    """

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r})"


class NodeError(IndexerError):
    """Base class for errors raised while talking to the node."""


class NodeUnavailable(NodeError):
    """Raised when the node reports not-ready or cannot be reached."""


class FetchError(NodeError):
    """
    Raised when data for a height or transaction is missing or malformed.

    Attributes:
        height: Block height being fetched, when known.
        txid: Transaction id being fetched, when known.
    """

    def __init__(
        self,
        message: str,
        *,
        height: int | None = None,
        txid: str | None = None,
    ) -> None:
        self.height = height
        self.txid = txid
        super().__init__(message)


class PersistError(IndexerError):
    """
    Raised when a block cannot be written.

    The enclosing database transaction has been rolled back when this is raised.

    Attributes:
        height: Height of the block that failed to persist.
    """

    def __init__(self, message: str, *, height: int | None = None) -> None:
        self.height = height
        super().__init__(message)


class StartupError(IndexerError):
    """Raised when the database stays unreachable after the startup retry budget."""
