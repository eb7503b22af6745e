"""
lifecycle_engine.py - Time-driven Rental Expiry

Rentals are the only records in the marketplace that change with the clock.
The engine moves the ledger clock forward and asks a contract, per unit type,
whether any unit has become due; for rentals that contract is
rental_contract, which closes every rental whose end time has passed.

One step(timestamp):
1. advance the ledger clock to timestamp
2. poll each unit whose type has a contract, in symbol order
3. execute every non-empty result
4. poll again while the previous pass applied anything

Completions are ordinary transactions with a LIFECYCLE origin, so the
transaction log is the whole audit trail.
"""

from __future__ import annotations
from datetime import datetime
from typing import Dict, Iterable, List, Optional

from .core import (
    PendingTransaction, Transaction,
    ExecuteResult, LedgerError,
    SmartContract, UNIT_TYPE_RENTAL,
)
from .ledger import Ledger
from .units.rental import rental_contract


class LifecycleEngine:
    """
    Polls registered contracts each time the clock moves.

    A rejected contract transaction is a bug in the contract, not a business
    outcome, so it raises LedgerError instead of being skipped.
    """

    def __init__(
        self,
        ledger: Ledger,
        contracts: Optional[Dict[str, SmartContract]] = None,
        max_passes: int = 10,
    ):
        """
        Args:
            ledger: The ledger to drive
            contracts: unit_type -> contract (callable or object with check_lifecycle)
            max_passes: Upper bound on polling passes within one step
        """
        self.ledger = ledger
        self.contracts: Dict[str, SmartContract] = dict(contracts or {})
        self.max_passes = max_passes
        self.verbose = ledger.verbose

    def register(self, unit_type: str, contract: SmartContract) -> None:
        self.contracts[unit_type] = contract

    def step(self, timestamp: datetime) -> List[Transaction]:
        """
        Advance to timestamp and apply everything that has become due.

        Returns:
            Transactions applied during this step, in execution order

        Raises:
            ValueError: If timestamp is before the ledger clock
            LedgerError: If a contract returns something other than a
                         PendingTransaction, or the ledger rejects its result
        """
        self.ledger.advance_time(timestamp)
        applied: List[Transaction] = []
        for _ in range(self.max_passes):
            this_pass = self._poll(timestamp)
            if not this_pass:
                break
            applied.extend(this_pass)
        return applied

    def run(self, timestamps: Iterable[datetime]) -> List[Transaction]:
        applied: List[Transaction] = []
        for timestamp in timestamps:
            applied.extend(self.step(timestamp))
        return applied

    def _poll(self, timestamp: datetime) -> List[Transaction]:
        applied: List[Transaction] = []
        for symbol in self.ledger.list_units():
            contract = self.contracts.get(self.ledger.get_unit(symbol).unit_type)
            if contract is None:
                continue

            if hasattr(contract, 'check_lifecycle'):
                pending = contract.check_lifecycle(self.ledger, symbol, timestamp)
            else:
                pending = contract(self.ledger, symbol, timestamp)

            if not isinstance(pending, PendingTransaction):
                raise LedgerError(
                    f"Contract for {symbol} must return PendingTransaction, got {type(pending)}"
                )
            if pending.is_empty():
                continue

            if self.verbose:
                print(f"[LIFECYCLE] {symbol} due at {timestamp}")

            result = self.ledger.execute(pending)
            if result == ExecuteResult.REJECTED:
                raise LedgerError(
                    f"Lifecycle event failed for {symbol}: {self.ledger.last_rejection}"
                )
            if result == ExecuteResult.APPLIED:
                applied.append(self.ledger.transaction_log[-1])
        return applied


def create_rental_engine(ledger: Ledger) -> LifecycleEngine:
    """LifecycleEngine that completes elapsed rentals through rental_contract."""
    return LifecycleEngine(ledger, {UNIT_TYPE_RENTAL: rental_contract})
