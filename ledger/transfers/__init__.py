"""Transfer and reversal executors."""

from ledger.transfers.attempts import (
    Aborted,
    AttemptOutcome,
    Committable,
    run_in_attempt,
)
from ledger.transfers.executor import TransferExecutor
from ledger.transfers.linking import (
    LINK_FIELD,
    build_transfer_legs,
    reversal_delta,
    select_counterpart,
)
from ledger.transfers.reversal import ReversalExecutor

__all__ = [
    "Aborted",
    "AttemptOutcome",
    "Committable",
    "LINK_FIELD",
    "ReversalExecutor",
    "TransferExecutor",
    "build_transfer_legs",
    "reversal_delta",
    "run_in_attempt",
    "select_counterpart",
]
