"""Sync service state machine."""

from __future__ import annotations

from enum import Enum, auto


class SyncState(Enum):
    """
    Sync service states representing the current synchronization phase.

    State Machine Diagram
    ---------------------
    ::

        AWAITING_NODE --> CATCHING_UP <--> SYNCED
              ^                |             |
              +----------------+-------------+

    The Lifecycle
    -------------
    1. **AWAITING_NODE**: Indexer starts, node readiness not yet confirmed
    2. **CATCHING_UP**: Frontier is at or below the chain height; rounds run
    3. **SYNCED**: Frontier is past the chain height; poll for new blocks

    Transitions
    -----------
    AWAITING_NODE -> CATCHING_UP
        - Triggered when: Node is ready and blocks remain to ingest

    AWAITING_NODE -> SYNCED
        - Triggered when: Node is ready and the index is already complete

    CATCHING_UP <-> SYNCED
        - Triggered when: The frontier passes the chain height, or new
          blocks arrive

    Any -> AWAITING_NODE
        - Triggered when: Node reports not-ready or cannot be reached
    """

    AWAITING_NODE = auto()
    """
    Waiting for the node.

    No rounds run and the frontier does not move. The service re-checks
    readiness on a fixed delay.
    """

    CATCHING_UP = auto()
    """
    Ingesting blocks.

    Each iteration runs one round of concurrent windows. Failed rounds are
    retried from the same frontier.
    """

    SYNCED = auto()
    """
    Caught up with the node.

    Every height up to the last known chain height is stored. The service
    polls the chain height and returns to CATCHING_UP when it grows.
    """

    def can_transition_to(self, target: SyncState) -> bool:
        """
        Check if transition to target state is valid.

        Args:
            target: The proposed target state.

        Returns:
            True if the transition is allowed by the state machine rules.
        """
        return target in _VALID_TRANSITIONS.get(self, set())

    @property
    def is_syncing(self) -> bool:
        """Check if this state represents active ingestion."""
        return self == SyncState.CATCHING_UP


_VALID_TRANSITIONS: dict[SyncState, set[SyncState]] = {
    SyncState.AWAITING_NODE: {SyncState.CATCHING_UP, SyncState.SYNCED},
    SyncState.CATCHING_UP: {SyncState.SYNCED, SyncState.AWAITING_NODE},
    SyncState.SYNCED: {SyncState.CATCHING_UP, SyncState.AWAITING_NODE},
}
"""Valid state transitions for the sync state machine."""
