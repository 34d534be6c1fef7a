"""
Escrow service - wallet balances and the append-only transaction ledger.
"""

from .ledger import (
    EscrowResult,
    top_up,
    hold_funds,
    release_funds,
    refund_funds,
    get_balance,
    recent_transactions,
)

__all__ = [
    "EscrowResult",
    "top_up",
    "hold_funds",
    "release_funds",
    "refund_funds",
    "get_balance",
    "recent_transactions",
]
