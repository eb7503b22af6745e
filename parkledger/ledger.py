"""
ledger.py - Stateful Ledger for Tokens, Records and Cash

The Ledger class is the central state manager of the marketplace.
It is the only module that mutates state, ensuring controlled and auditable changes.

Key responsibilities:
    - Implements LedgerView protocol for safe read-only access by pure functions
    - Executes transactions atomically (all moves and state changes succeed or none do)
    - Maintains wallet balances and unit definitions (cash, space tokens, rental records)
    - Provides the monotonic logical clock used by rentals
    - Publishes notifications of applied transactions
    - Always validates and always logs - no exceptions

Execution order inside execute():
    1. Validate everything (registration, transfer rules, balances, stale state)
    2. Apply unit state changes
    3. Apply moves one by one, invoking the receiving wallet's hook after each credit
A hook that raises rolls the whole transaction back, state changes included.
"""

from __future__ import annotations
from collections import defaultdict
from dataclasses import replace
from datetime import datetime
from typing import Callable, Dict, List, Set, Optional, Tuple, Any
import copy
from decimal import Decimal

from .core import (
    # Types
    Move, Transaction, Unit,
    PendingTransaction,
    ExecuteResult,
    Positions, UnitState, BalanceMap,
    # Constants
    QUANTITY_EPSILON, SYSTEM_WALLET,
    # Exceptions
    LedgerError, TransferRuleViolation, UnitNotRegistered, WalletNotRegistered,
    TransferFailed,
    # Helper functions
    _freeze_state,
)
from .notifications import Notification


# Called after a move credits the wallet it is registered for.
# Raising aborts and rolls back the enclosing transaction.
ReceiveHook = Callable[[Move], None]


class Ledger:
    """
    Ledger with full validation, rollback and audit trail.

    Implements the LedgerView protocol, allowing the ledger to be passed to pure
    functions that access only read-only methods.

    Design Principles:
        - Always validates: Every transaction is validated against balance constraints,
          transfer rules, stale unit state and timestamp requirements.
        - Always logs: Every applied transaction is recorded in the transaction log
          and its notifications in the notification log.

    Thread Safety:
        Not thread-safe. Each thread should maintain its own Ledger instance.

    Example:
        ledger = Ledger("main")
        ledger.register_unit(cash("USD", "US Dollar"))
        ledger.register_wallet("alice")
        ledger.register_wallet("bob")

        tx = build_transaction(ledger, [
            Move(Decimal("100"), "USD", "alice", "bob", "payment_001")
        ])
        result = ledger.execute(tx)
    """

    POSITION_EPSILON = QUANTITY_EPSILON

    def __init__(
        self,
        name: str,
        initial_time: Optional[datetime] = None,
        verbose: bool = True,
        test_mode: bool = False
    ):
        """
        Create a ledger.

        Args:
            name: Ledger identifier
            initial_time: Starting time for the ledger (default: 1970-01-01)
            verbose: Print registrations, applied and rejected transactions (default: True)
            test_mode: Enable test mode to allow set_balance() calls (default: False)
        """
        self.name = name
        self.balances: Dict[str, Dict[str, Decimal]] = {}
        self.units: Dict[str, Unit] = {}
        self.registered_wallets: Set[str] = set()
        self.seen_intent_ids: Set[str] = set()
        self.transaction_log: List[Transaction] = []
        self.notifications: List[Notification] = []
        self.last_rejection: Optional[str] = None
        self._current_time: datetime = initial_time or datetime(1970, 1, 1)
        self.verbose = verbose
        self._test_mode = test_mode
        self._next_sequence: int = 0
        self._receive_hooks: Dict[str, ReceiveHook] = {}
        self._applying = False
        # Inverted index mapping unit -> {wallet -> quantity} for O(1) position lookups
        self._positions_by_unit: Dict[str, Dict[str, Decimal]] = defaultdict(dict)

        self.registered_wallets.add(SYSTEM_WALLET)
        self.balances[SYSTEM_WALLET] = defaultdict(lambda: Decimal("0"))

    # ========================================================================
    # LedgerView PROTOCOL IMPLEMENTATION (read-only methods)
    # ========================================================================

    @property
    def current_time(self) -> datetime:
        """Current logical time of the ledger."""
        return self._current_time

    def get_balance(self, wallet_id: str, unit_symbol: str) -> Decimal:
        """
        Get the balance of a specific unit in a wallet.

        Raises:
            WalletNotRegistered: If wallet is not registered
            UnitNotRegistered: If unit is not registered
        """
        if wallet_id not in self.registered_wallets:
            raise WalletNotRegistered(f"Wallet {wallet_id} not registered")
        if unit_symbol not in self.units:
            raise UnitNotRegistered(f"Unit {unit_symbol} not registered")
        return self.balances[wallet_id].get(unit_symbol, Decimal("0"))

    def get_unit_state(self, unit_symbol: str) -> UnitState:
        """
        Get a deep copy of a unit's internal state.

        Raises:
            UnitNotRegistered: If unit is not registered
        """
        if unit_symbol not in self.units:
            raise UnitNotRegistered(f"Unit {unit_symbol} not registered")
        state = self.units[unit_symbol].state
        return copy.deepcopy(state) if state else {}

    def get_positions(self, unit_symbol: str) -> Positions:
        """Get all non-zero positions for a unit, keyed by wallet."""
        return dict(self._positions_by_unit.get(unit_symbol, {}))

    def has_unit(self, unit_symbol: str) -> bool:
        return unit_symbol in self.units

    def list_wallets(self) -> Set[str]:
        """List all registered wallet IDs."""
        return self.registered_wallets.copy()

    def list_units(self) -> List[str]:
        """List all registered unit symbols."""
        return sorted(self.units.keys())

    def get_unit(self, symbol: str) -> Unit:
        """Return the Unit object for a given symbol."""
        if symbol not in self.units:
            raise UnitNotRegistered(f"Unit {symbol} not registered")
        return self.units[symbol]

    def get_wallet_balances(self, wallet_id: str) -> BalanceMap:
        """Get all balances for a wallet."""
        if wallet_id not in self.registered_wallets:
            raise WalletNotRegistered(f"Wallet {wallet_id} not registered")
        return dict(self.balances[wallet_id])

    def total_supply(self, unit_symbol: str) -> Decimal:
        """
        Total of a unit across all wallets, system wallet included.

        Wallets are sorted before summation for deterministic accumulation.
        """
        if unit_symbol not in self.units:
            raise UnitNotRegistered(f"Unit {unit_symbol} not registered")
        return sum(
            (self.balances[w].get(unit_symbol, Decimal("0")) for w in sorted(self.registered_wallets)),
            Decimal("0"),
        )

    def verify_double_entry(
        self,
        expected_supplies: Optional[Dict[str, Decimal]] = None,
        tolerance: Decimal = Decimal("1e-9")
    ) -> Dict[str, Any]:
        """
        Verify that conservation laws hold for all units.

        Every move debits one wallet and credits another, so each unit's total
        across all wallets (system wallet included) is constant: zero for units
        only ever issued through the system wallet.

        Returns:
            Dict with keys:
            - 'valid': bool - True if all conservation laws hold
            - 'supplies': Dict[str, Decimal] - Current total supply for each unit
            - 'discrepancies': List[Dict] - unit, expected, actual, difference
        """
        supplies = {}
        discrepancies = []
        expected_supplies = expected_supplies or {}

        for unit_symbol in self.units:
            current_supply = self.total_supply(unit_symbol)
            supplies[unit_symbol] = current_supply
            expected = expected_supplies.get(unit_symbol, Decimal("0"))
            difference = abs(current_supply - expected)
            if difference > tolerance:
                discrepancies.append({
                    'unit': unit_symbol,
                    'expected': expected,
                    'actual': current_supply,
                    'difference': difference,
                })

        return {
            'valid': len(discrepancies) == 0,
            'supplies': supplies,
            'discrepancies': discrepancies,
        }

    def is_registered(self, wallet_id: str) -> bool:
        """Check if a wallet is registered."""
        return wallet_id in self.registered_wallets

    # ========================================================================
    # TIME MANAGEMENT
    # ========================================================================

    def advance_time(self, new_time: datetime) -> None:
        """
        Advance the ledger's logical clock to a new time.

        Time can only move forward, never backward.

        Raises:
            ValueError: If new_time is before the current time
        """
        if new_time < self._current_time:
            raise ValueError(
                f"Cannot move time backwards: {new_time} < {self._current_time}"
            )
        self._current_time = new_time

    # ========================================================================
    # REGISTRATION (Mutating)
    # ========================================================================

    def register_wallet(self, wallet_id: str, on_receive: Optional[ReceiveHook] = None) -> str:
        """
        Register a new wallet in the ledger.

        Args:
            wallet_id: Unique identifier for the wallet
            on_receive: Optional hook called with each move credited to this wallet

        Raises:
            ValueError: If wallet is already registered or the id is empty
        """
        if not wallet_id or not wallet_id.strip():
            raise ValueError("wallet_id cannot be empty")
        if wallet_id in self.registered_wallets:
            raise ValueError(f"Wallet {wallet_id} already registered")
        self.registered_wallets.add(wallet_id)
        self.balances[wallet_id] = defaultdict(lambda: Decimal("0"))
        if on_receive is not None:
            self._receive_hooks[wallet_id] = on_receive
        return wallet_id

    def set_receive_hook(self, wallet_id: str, on_receive: Optional[ReceiveHook]) -> None:
        """Install (or with None, remove) the receive hook of a registered wallet."""
        if wallet_id not in self.registered_wallets:
            raise WalletNotRegistered(f"Wallet {wallet_id} not registered")
        if on_receive is None:
            self._receive_hooks.pop(wallet_id, None)
        else:
            self._receive_hooks[wallet_id] = on_receive

    def register_unit(self, unit: Unit) -> None:
        """
        Register a new unit in the ledger.

        Raises:
            ValueError: If unit symbol is already registered
        """
        if unit.symbol in self.units:
            raise ValueError(f"Unit {unit.symbol} already registered")
        self.units[unit.symbol] = unit
        if self.verbose:
            self._print_registration(unit)

    def set_balance(self, wallet_id: str, unit_symbol: str, quantity: Decimal) -> None:
        """
        Set a wallet's balance for a unit directly.

        WARNING: bypasses validation and the transaction log; only available
        in test mode. Use build_transaction() and execute() otherwise.

        Raises:
            LedgerError: If called when test_mode is False
        """
        if not self._test_mode:
            raise LedgerError(
                "set_balance() is disabled in production mode. "
                "Use build_transaction() and execute() to modify balances. "
                "Set test_mode=True when creating Ledger for testing."
            )
        if wallet_id not in self.registered_wallets:
            raise WalletNotRegistered(f"Wallet {wallet_id} not registered")
        if unit_symbol not in self.units:
            raise UnitNotRegistered(f"Unit {unit_symbol} not registered")
        if not isinstance(quantity, Decimal):
            quantity = Decimal(str(quantity))
        self.balances[wallet_id][unit_symbol] = quantity
        self._update_position_index(wallet_id, unit_symbol, quantity)

    # ========================================================================
    # TRANSACTION EXECUTION (Mutating)
    # ========================================================================

    def _generate_exec_id(self, sequence: int) -> str:
        """Format: exec:{ledger_name}:{sequence:012d}:{timestamp_micros}"""
        micros = int(self._current_time.timestamp() * 1_000_000)
        return f"exec:{self.name}:{sequence:012d}:{micros}"

    def execute(self, pending: PendingTransaction) -> ExecuteResult:
        """
        Execute a PendingTransaction atomically.

        All moves, state changes, unit creations and notifications take effect
        together or not at all. Execution is idempotent: a pending transaction
        with the same intent_id will not be applied twice.

        Returns:
            ExecuteResult.APPLIED if successful
            ExecuteResult.ALREADY_APPLIED if transaction was already executed
            ExecuteResult.REJECTED if validation failed (reason in last_rejection)

        Raises:
            LedgerError: If called from inside a receive hook
            TransferFailed: If a receive hook raised; the transaction is rolled back
                            and the hook's exception is chained as __cause__
        """
        if pending.is_empty():
            return ExecuteResult.APPLIED

        if self._applying:
            raise LedgerError("Cannot execute a transaction from inside a receive hook")

        if pending.intent_id in self.seen_intent_ids:
            if self.verbose:
                print(f"⚠  ALREADY_APPLIED: intent_id={pending.intent_id}")
            return ExecuteResult.ALREADY_APPLIED

        # Units are registered for validation and dropped again on rejection
        created: List[str] = []
        for unit in pending.units_to_create:
            if unit.symbol in self.units:
                self._drop_units(created)
                return self._reject(f"unit already registered: {unit.symbol}")
            self.units[unit.symbol] = unit
            created.append(unit.symbol)

        valid, reason = self._validate_pending(pending)
        if not valid:
            self._drop_units(created)
            return self._reject(reason)

        # Units this transaction changes, restored on rollback
        units_before = {sc.unit: self.units[sc.unit] for sc in pending.state_changes}

        balances_before = {
            (wallet, move.unit_symbol): self.balances[wallet].get(move.unit_symbol, Decimal("0"))
            for move in pending.moves
            for wallet in (move.source, move.dest)
        }

        self._applying = True
        try:
            self._apply_state_changes(pending)
            self._execute_moves(pending.moves)
        except Exception as exc:
            self.units.update(units_before)
            self._drop_units(created)
            for (wallet, unit_symbol), quantity in balances_before.items():
                self.balances[wallet][unit_symbol] = quantity
                self._update_position_index(wallet, unit_symbol, quantity)
            self.last_rejection = f"receive hook failed: {exc}"
            if self.verbose:
                print(f"✗ ROLLED BACK: {self.last_rejection}")
            raise TransferFailed(self.last_rejection) from exc
        finally:
            self._applying = False

        sequence = self._next_sequence
        self._next_sequence += 1

        tx = Transaction(
            moves=pending.moves,
            state_changes=pending.state_changes,
            origin=pending.origin,
            timestamp=pending.timestamp,
            intent_id=pending.intent_id,
            exec_id=self._generate_exec_id(sequence),
            ledger_name=self.name,
            execution_time=self._current_time,
            sequence_number=sequence,
            units_to_create=pending.units_to_create,
            notifications=pending.notifications,
        )

        self.transaction_log.append(tx)
        self.seen_intent_ids.add(pending.intent_id)
        self.notifications.extend(pending.notifications)
        self.last_rejection = None

        if self.verbose:
            for unit in pending.units_to_create:
                self._print_registration(unit)
            self._print_tx_result(tx, "APPLIED", "✓")
        return ExecuteResult.APPLIED

    def _drop_units(self, symbols: List[str]) -> None:
        for symbol in symbols:
            self.units.pop(symbol, None)

    def _reject(self, reason: str) -> ExecuteResult:
        self.last_rejection = reason
        if self.verbose:
            print(f"✗ REJECTED: {reason}")
        return ExecuteResult.REJECTED

    def _print_registration(self, unit: Unit) -> None:
        rule_str = f", rule={unit.transfer_rule.__name__}" if unit.transfer_rule else ""
        print(f"📝 Registered: {unit.symbol} ({unit.name}) [{unit.unit_type}]{rule_str}")

    def _print_tx_result(self, tx: Transaction, result: str, icon: str) -> None:
        """Print Transaction.__repr__ with a result line in place of the closing border."""
        lines = repr(tx).split('\n')
        w = 100
        bar = "─" * w

        def pad(text: str) -> str:
            if len(text) > w:
                return text[:w-3] + "..."
            return text + " " * (w - len(text))

        lines[-1] = f"├{bar}┤"
        lines.append(f"│{pad(' ' + icon + ' ' + result)}│")
        lines.append(f"└{bar}┘")
        print("\n".join(lines))

    def _validate_pending(self, pending: PendingTransaction) -> Tuple[bool, str]:
        """
        Validate pending transaction against all constraints.

        Checks performed:
        1. Timestamp validation (transaction must not be from the future)
        2. Unit and wallet registration
        3. Transfer rule enforcement
        4. Balance constraint validation (min/max balance limits)
        5. Stale state: each state change's old_state must equal the current state

        Returns:
            (True, "") on success, (False, reason) otherwise
        """
        if pending.timestamp > self._current_time:
            return False, "future timestamp"

        for move in pending.moves:
            if move.unit_symbol not in self.units:
                return False, f"unit not registered: {move.unit_symbol}"
            if not self.is_registered(move.source):
                return False, f"wallet not registered: {move.source}"
            if not self.is_registered(move.dest):
                return False, f"wallet not registered: {move.dest}"

            unit = self.units[move.unit_symbol]
            if unit.transfer_rule:
                try:
                    unit.transfer_rule(self, move)
                except TransferRuleViolation as e:
                    return False, str(e)

        net: Dict[Tuple[str, str], Decimal] = {}
        for move in pending.moves:
            unit = self.units[move.unit_symbol]
            key_src = (move.source, move.unit_symbol)
            key_dst = (move.dest, move.unit_symbol)
            net[key_src] = unit.round(net.get(key_src, Decimal("0")) - move.quantity)
            net[key_dst] = unit.round(net.get(key_dst, Decimal("0")) + move.quantity)

        # SYSTEM_WALLET is exempt from balance validation
        for (wallet, unit_sym), delta in net.items():
            if wallet == SYSTEM_WALLET:
                continue
            current = self.balances[wallet][unit_sym]
            unit = self.units[unit_sym]
            proposed = unit.round(current + delta)
            if proposed < unit.min_balance:
                return False, f"{wallet} {unit_sym}: {proposed} < min {unit.min_balance}"
            if proposed > unit.max_balance:
                return False, f"{wallet} {unit_sym}: {proposed} > max {unit.max_balance}"

        for sc in pending.state_changes:
            if sc.unit not in self.units:
                return False, f"unit not registered: {sc.unit}"
            if sc.old_state is not None:
                current_state = self.units[sc.unit].state
                if sc.old_state != current_state:
                    return False, f"stale state for {sc.unit}"

        return True, ""

    def _apply_state_changes(self, pending: PendingTransaction) -> None:
        # Unit is frozen, so each change installs a new Unit instance
        for sc in pending.state_changes:
            old_unit = self.units[sc.unit]
            new_state = copy.deepcopy(sc.new_state if isinstance(sc.new_state, dict) else {})
            self.units[sc.unit] = replace(old_unit, _frozen_state=_freeze_state(new_state))

    def _update_position_index(self, wallet_id: str, unit_symbol: str, quantity: Decimal) -> None:
        """Keep unit -> {wallet -> quantity} in sync; zero positions are dropped."""
        if abs(quantity) > self.POSITION_EPSILON:
            self._positions_by_unit[unit_symbol][wallet_id] = quantity
        else:
            self._positions_by_unit[unit_symbol].pop(wallet_id, None)

    def _execute_moves(self, moves) -> None:
        """
        Apply moves to wallet balances in order.

        The destination's receive hook runs after each credit, while the rest
        of the transaction is still pending.
        """
        for move in moves:
            unit = self.units[move.unit_symbol]
            new_src_balance = unit.round(
                self.balances[move.source][move.unit_symbol] - move.quantity
            )
            self.balances[move.source][move.unit_symbol] = new_src_balance
            self._update_position_index(move.source, move.unit_symbol, new_src_balance)
            new_dst_balance = unit.round(
                self.balances[move.dest][move.unit_symbol] + move.quantity
            )
            self.balances[move.dest][move.unit_symbol] = new_dst_balance
            self._update_position_index(move.dest, move.unit_symbol, new_dst_balance)

            hook = self._receive_hooks.get(move.dest)
            if hook is not None:
                hook(move)
