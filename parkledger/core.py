"""
Core types and pure functions for the parking marketplace ledger.

This module provides the foundational data structures and protocols:
1. Protocols: LedgerView for read-only ledger access, SmartContract for lifecycle polling
2. Immutable data structures: Move, PendingTransaction, Transaction, Unit
3. Exceptions: LedgerError and the marketplace error kinds
4. Type aliases: Positions, BalanceMap, UnitState
5. Transfer rules: Pure validation functions for moves
6. Unit factories: cash currency units

All functions in this module are pure and operate on read-only views.
No function can mutate ledger state directly.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal, ROUND_HALF_EVEN, ROUND_DOWN, getcontext
from enum import Enum
import copy
import hashlib
from typing import (
    Dict, List, Set, Optional, Callable, Any, Protocol,
    Tuple, FrozenSet, runtime_checkable,
)

from .notifications import Notification


# ============================================================================
# DECIMAL CONTEXT CONFIGURATION
# ============================================================================
#
# Amounts are integers in the smallest currency unit, carried as Decimal so
# that moves stay exact. The global context is configured once at import.
#
# PRECONDITION: No other code should modify the global Decimal context.
#
_LEDGER_DECIMAL_CONTEXT = getcontext()
_LEDGER_DECIMAL_CONTEXT.prec = 50
_LEDGER_DECIMAL_CONTEXT.rounding = ROUND_HALF_EVEN


# ============================================================================
# CONSTANTS
# ============================================================================

# Reserved wallet for issuance (minting tokens, funding wallets).
# The system wallet is exempt from balance validation and can hold any balance.
SYSTEM_WALLET = "system"

# Unit type constants (strings, not enum).
UNIT_TYPE_CASH = "CASH"
UNIT_TYPE_PARKING_SPACE = "PARKING_SPACE"
UNIT_TYPE_RENTAL = "RENTAL"
UNIT_TYPE_MARKETPLACE_REGISTRY = "MARKETPLACE_REGISTRY"
UNIT_TYPE_RENTER_INDEX = "RENTER_INDEX"

# Quantities with absolute value below this threshold are treated as zero.
QUANTITY_EPSILON = Decimal("1e-12")

# Largest price, payment, rental cost or funding amount accepted. Kept well
# below the 50-digit context so sums of many such amounts stay exact.
MAX_AMOUNT = 10 ** 30 - 1

DECIMAL_ROUNDING = {
    UNIT_TYPE_CASH: ROUND_DOWN,
    UNIT_TYPE_PARKING_SPACE: ROUND_DOWN,
}


# ============================================================================
# TYPE ALIASES
# ============================================================================

# Mapping from wallet ID to quantity held by that wallet for a specific unit.
Positions = Dict[str, Decimal]

# Mapping from unit symbol to quantity held in a single wallet.
BalanceMap = Dict[str, Decimal]

# Internal state for a unit (space record, rental record, registry indices).
UnitState = Dict[str, Any]


# ============================================================================
# PROTOCOLS
# ============================================================================

@runtime_checkable
class LedgerView(Protocol):
    """
    Read-only interface to ledger state.

    Marketplace functions that accept a LedgerView declare their read-only
    intent: they inspect balances and unit state and return a
    PendingTransaction describing what should change. The Ledger class
    implements this protocol but also provides mutation methods. For testing,
    FakeView provides a truly immutable implementation.
    """

    @property
    def current_time(self) -> datetime:
        """Return the current logical time of the ledger."""
        ...

    def get_balance(self, wallet_id: str, unit_symbol: str) -> Decimal:
        """Return the balance of a specific unit in a wallet."""
        ...

    def get_unit_state(self, unit_symbol: str) -> UnitState:
        """Return a copy of the unit's internal state."""
        ...

    def get_positions(self, unit_symbol: str) -> Positions:
        """Return all non-zero positions for a unit across all wallets."""
        ...

    def has_unit(self, unit_symbol: str) -> bool:
        """Return True if a unit with this symbol is registered."""
        ...

    def list_wallets(self) -> Set[str]:
        """Return the set of all registered wallet IDs."""
        ...


class SmartContract(Protocol):
    """
    Protocol for lifecycle-aware contracts.

    Contracts receive a LedgerView and return a PendingTransaction directly.
    Use build_transaction() or empty_pending_transaction() to create the return value.
    """

    def check_lifecycle(
        self,
        view: LedgerView,
        symbol: str,
        timestamp: datetime,
    ) -> 'PendingTransaction':
        ...


# ============================================================================
# ENUMS
# ============================================================================

class ExecuteResult(Enum):
    """
    Outcome of a transaction execution attempt.

    APPLIED: Transaction was successfully validated and applied to the ledger.
    ALREADY_APPLIED: Transaction ID was previously processed (idempotent behavior).
    REJECTED: Transaction failed validation due to insufficient funds, balance
              constraints, transfer rule violations or stale state.
    """
    APPLIED = "applied"
    ALREADY_APPLIED = "already_applied"
    REJECTED = "rejected"


class OriginType(Enum):
    """Classification of where a transaction originated."""
    USER_ACTION = "user_action"           # Marketplace call made by a wallet
    CONTRACT = "contract"                 # Built by a contract function
    LIFECYCLE = "lifecycle"               # Automatic lifecycle event (rental expiry)
    SYSTEM = "system"                     # System operations (funding, setup)


# ============================================================================
# EXCEPTIONS
# ============================================================================

class LedgerError(Exception):
    """Base exception for all ledger-related errors."""
    pass


class InsufficientFunds(LedgerError):
    """Raised when value offered or held is below what an operation requires."""
    pass


class TransferRuleViolation(LedgerError):
    """Raised when a move violates the unit's transfer rule."""
    pass


class UnitNotRegistered(LedgerError):
    """Raised when attempting to operate on a unit that has not been registered with the ledger."""
    pass


class WalletNotRegistered(LedgerError):
    """Raised when attempting to operate on a wallet that has not been registered with the ledger."""
    pass


class MarketplaceError(LedgerError):
    """Base class for rejected marketplace operations."""
    pass


class InvalidInput(MarketplaceError, ValueError):
    """Empty, zero or out-of-range argument."""
    pass


class NotFound(MarketplaceError):
    """Referenced space or rental id was never allocated."""
    pass


class InvalidState(MarketplaceError):
    """Operation is illegal in the current state (space rented, rental completed)."""
    pass


class Unauthorized(MarketplaceError):
    """Caller lacks the required relationship to the space or rental."""
    pass


class InsufficientPayment(MarketplaceError, InsufficientFunds):
    """Payment offered is below price_per_hour * duration_hours."""
    pass


class TooEarly(MarketplaceError):
    """Rental completion attempted before the rental end time."""
    pass


class TransferFailed(MarketplaceError):
    """Moving value to the owner or back to the renter failed."""
    pass


class ReentrancyError(MarketplaceError):
    """A guarded operation was entered while another one was in progress."""
    pass


# ============================================================================
# TRANSACTION ORIGIN
# ============================================================================

@dataclass(frozen=True, slots=True)
class TransactionOrigin:
    """
    Immutable record of a transaction's origin for audit purposes.

    Attributes:
        origin_type: Classification of the origin source (USER_ACTION, LIFECYCLE, etc.)
        source_id: Identifier of the specific source (caller wallet, contract name)
        unit_symbol: Symbol of the unit that triggered this (if applicable)
        event_type: Specific event within the source (e.g., "RENT", "COMPLETE")
    """
    origin_type: OriginType
    source_id: str
    unit_symbol: Optional[str] = None
    event_type: Optional[str] = None

    def __repr__(self) -> str:
        parts = [f"{self.origin_type.value}:{self.source_id}"]
        if self.unit_symbol:
            parts.append(f"unit={self.unit_symbol}")
        if self.event_type:
            parts.append(f"event={self.event_type}")
        return f"Origin({', '.join(parts)})"


# ============================================================================
# UNIT STATE CHANGE
# ============================================================================

@dataclass(frozen=True, slots=True)
class UnitStateChange:
    """
    Record of a unit state change for transaction logging and rollback.

    Stores complete before/after state snapshots. The ledger rejects the
    change if old_state no longer matches the unit's current state.

    Attributes:
        unit: Symbol of the unit whose state changed
        old_state: Complete state before the change (dict or None)
        new_state: Complete state after the change (dict)
    """
    unit: str
    old_state: Any
    new_state: Any

    def changed_fields(self) -> Dict[str, Tuple[Any, Any]]:
        """Return {field: (old_value, new_value)} for fields that differ."""
        old = self.old_state if isinstance(self.old_state, dict) else {}
        new = self.new_state if isinstance(self.new_state, dict) else {}
        changes = {}
        for key in set(old.keys()) | set(new.keys()):
            old_val = old.get(key)
            new_val = new.get(key)
            if old_val != new_val:
                changes[key] = (old_val, new_val)
        return changes


# ============================================================================
# CORE DATA STRUCTURES
# ============================================================================

@dataclass(frozen=True, slots=True)
class Move:
    """
    A single transfer of value between two wallets.

    Attributes:
        quantity: The amount to transfer (must be finite and non-zero).
        unit_symbol: The symbol of the unit being transferred (e.g., "USD", "SPACE_1").
        source: The wallet ID from which value is debited.
        dest: The wallet ID to which value is credited.
        contract_id: Identifier of the contract generating this move.
        metadata: Optional additional information about the move.
    """
    quantity: Decimal
    unit_symbol: str
    source: str
    dest: str
    contract_id: str
    metadata: Optional[Dict[str, Any]] = None

    def __post_init__(self):
        if not self.source or not self.source.strip():
            raise ValueError("Move source cannot be empty")
        if not self.dest or not self.dest.strip():
            raise ValueError("Move dest cannot be empty")
        if not self.unit_symbol or not self.unit_symbol.strip():
            raise ValueError("Move unit_symbol cannot be empty")
        if not self.contract_id or not self.contract_id.strip():
            raise ValueError("Move contract_id cannot be empty")
        if not isinstance(self.quantity, Decimal):
            raise ValueError(f"Move quantity must be Decimal, got {type(self.quantity)}")
        if self.quantity.is_infinite() or self.quantity.is_nan():
            raise ValueError(f"Move quantity must be finite, got {self.quantity}")
        if abs(self.quantity) < QUANTITY_EPSILON:
            raise ValueError("Move quantity is effectively zero")
        if self.source == self.dest:
            raise ValueError("Source and dest must be different")

    def __repr__(self) -> str:
        return f"Move({self.quantity} {self.unit_symbol}: {self.source}→{self.dest})"


def _normalize_decimal(d: Decimal) -> str:
    """Canonical string for a Decimal: Decimal("1.0") and Decimal("1.00") both become "1"."""
    normalized = d.normalize()
    if normalized == normalized.to_integral_value():
        return str(int(normalized))
    return format(normalized, 'f')


def _canonicalize(value: Any) -> str:
    """
    Produce a canonical string representation of a value for hashing.

    Independent of dict insertion order and Decimal representation.
    """
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, Decimal):
        return f"D:{_normalize_decimal(value)}"
    if isinstance(value, (int, float)):
        return f"N:{value}"
    if isinstance(value, str):
        return f"S:{value}"
    if isinstance(value, datetime):
        return f"T:{value.isoformat()}"
    if isinstance(value, dict):
        items = sorted(value.items(), key=lambda kv: str(kv[0]))
        serialized = ",".join(f"{_canonicalize(k)}:{_canonicalize(v)}" for k, v in items)
        return f"{{{serialized}}}"
    if isinstance(value, (list, tuple)):
        serialized = ",".join(_canonicalize(item) for item in value)
        return f"[{serialized}]"
    if isinstance(value, set):
        serialized = ",".join(_canonicalize(item) for item in sorted(value, key=str))
        return f"<{serialized}>"
    return f"R:{repr(value)}"


def _compute_intent_id(
    moves: Tuple[Move, ...],
    state_changes: Tuple[UnitStateChange, ...],
    origin: TransactionOrigin,
    units_to_create: Tuple['Unit', ...] = ()
) -> str:
    """
    Compute a deterministic content hash for a transaction's intent.

    Same moves, state changes, origin and created units always produce the
    same intent_id. Used for idempotency checking.
    """
    sorted_moves = tuple(sorted(
        moves,
        key=lambda m: (_normalize_decimal(m.quantity), m.unit_symbol, m.source, m.dest, m.contract_id)
    ))

    content_parts = [f"origin:{origin.origin_type.value}:{origin.source_id}"]
    if origin.unit_symbol:
        content_parts.append(f"unit:{origin.unit_symbol}")
    if origin.event_type:
        content_parts.append(f"event:{origin.event_type}")

    for unit in sorted(units_to_create, key=lambda u: u.symbol):
        content_parts.append(f"unit_create:{unit.symbol}|{unit.unit_type}|{_canonicalize(unit.state)}")

    for m in sorted_moves:
        qty = _normalize_decimal(m.quantity)
        content_parts.append(f"move:{qty}|{m.unit_symbol}|{m.source}|{m.dest}|{m.contract_id}")

    for sc in sorted(state_changes, key=lambda s: s.unit):
        old_canonical = _canonicalize(sc.old_state)
        new_canonical = _canonicalize(sc.new_state)
        content_parts.append(f"state_change:{sc.unit}|{old_canonical}|{new_canonical}")

    content = "|".join(content_parts)
    return hashlib.sha256(content.encode()).hexdigest()[:16]


@dataclass(frozen=True, slots=True)
class PendingTransaction:
    """
    A transaction specification before execution - represents INTENT.

    Created by marketplace functions and submitted to the ledger for execution.

    Lifecycle:
    1. A compute_* function validates preconditions against a LedgerView and
       creates a PendingTransaction with moves, state_changes, units_to_create
       and notifications
    2. intent_id is auto-computed from content (deterministic hash)
    3. Ledger.execute() validates and applies everything, or nothing

    Attributes:
        moves: Tuple of value transfers between wallets
        state_changes: Tuple of unit state changes (with old_state and new_state)
        origin: Who/what created this transaction and why
        timestamp: When this pending transaction was created
        units_to_create: Tuple of Unit objects to register before executing moves
        notifications: Records published when (and only when) the transaction applies
        intent_id: Content-addressable hash of the transaction intent (auto-computed)
    """
    moves: Tuple[Move, ...]
    state_changes: Tuple[UnitStateChange, ...]
    origin: TransactionOrigin
    timestamp: datetime
    units_to_create: Tuple['Unit', ...] = ()
    notifications: Tuple[Notification, ...] = ()
    intent_id: str = field(default="")

    def __post_init__(self):
        if not self.intent_id:
            computed_id = _compute_intent_id(
                self.moves, self.state_changes, self.origin, self.units_to_create
            )
            object.__setattr__(self, 'intent_id', computed_id)

    def is_empty(self) -> bool:
        """Return True if this pending transaction has no moves, no state deltas, and no units to create."""
        return not self.moves and not self.state_changes and not self.units_to_create

    def __repr__(self) -> str:
        return f"PendingTransaction({len(self.moves)} moves, {len(self.state_changes)} deltas, {self.origin})"


def build_transaction(
    view: LedgerView,
    moves: List[Move],
    state_changes: Optional[List[UnitStateChange]] = None,
    origin: Optional[TransactionOrigin] = None,
    units_to_create: Optional[Tuple['Unit', ...]] = None,
    notifications: Optional[List[Notification]] = None,
) -> PendingTransaction:
    """
    Build a PendingTransaction from moves and state deltas.

    This is the standard way to create transactions.

    Args:
        view: Read-only ledger view (provides current_time)
        moves: List of moves to include in the transaction
        state_changes: Optional list of UnitStateChange objects
        origin: Transaction origin (defaults to CONTRACT origin)
        units_to_create: Optional tuple of Unit objects to register before executing moves
        notifications: Optional records to publish once the transaction applies

    Example:
        def compute_release(view, symbol):
            old_state = view.get_unit_state(symbol)
            new_state = {**old_state, "available": True}
            changes = [UnitStateChange(unit=symbol, old_state=old_state, new_state=new_state)]
            return build_transaction(view, [], changes)
    """
    if origin is None:
        origin = TransactionOrigin(
            origin_type=OriginType.CONTRACT,
            source_id="contract",
        )

    # Deep copy state changes to prevent mutation after building
    copied_changes: Tuple[UnitStateChange, ...] = ()
    if state_changes:
        copied_changes = tuple(
            UnitStateChange(
                unit=sc.unit,
                old_state=copy.deepcopy(sc.old_state),
                new_state=copy.deepcopy(sc.new_state),
            )
            for sc in state_changes
        )

    return PendingTransaction(
        moves=tuple(moves),
        state_changes=copied_changes,
        origin=origin,
        timestamp=view.current_time,
        units_to_create=units_to_create or (),
        notifications=tuple(notifications or ()),
    )


def empty_pending_transaction(view: LedgerView) -> PendingTransaction:
    """Create an empty PendingTransaction; use it when a contract has nothing to do."""
    return PendingTransaction(
        moves=(),
        state_changes=(),
        origin=TransactionOrigin(OriginType.CONTRACT, "noop"),
        timestamp=view.current_time,
    )


@dataclass(frozen=True, slots=True)
class Transaction:
    """
    An executed, immutable record of ledger state changes - represents FACT.

    Created by the ledger when executing a PendingTransaction.

    Attributes:
        moves: Tuple of value transfers between wallets
        state_changes: Tuple of unit state changes (with old_state and new_state)
        origin: Who/what created this transaction and why
        timestamp: When the PendingTransaction was created
        intent_id: Content hash from PendingTransaction (for idempotency)
        exec_id: Unique execution identifier (ledger + sequence + time)
        ledger_name: Name of the ledger that executed this
        execution_time: When this was executed and logged
        sequence_number: Monotonic sequence within the ledger (for ordering)
        units_to_create: Units registered by this transaction
        notifications: Records published by this transaction
        contract_ids: Set of contract IDs from moves (auto-populated)
    """
    moves: Tuple[Move, ...]
    state_changes: Tuple[UnitStateChange, ...]
    origin: TransactionOrigin
    timestamp: datetime
    intent_id: str
    exec_id: str
    ledger_name: str
    execution_time: datetime
    sequence_number: int
    units_to_create: Tuple['Unit', ...] = ()
    notifications: Tuple[Notification, ...] = ()
    contract_ids: FrozenSet[str] = None

    def __post_init__(self):
        if not self.moves and not self.state_changes and not self.units_to_create:
            raise ValueError("Transaction must have moves, state_changes, or units_to_create")
        if self.contract_ids is None:
            object.__setattr__(
                self, 'contract_ids',
                frozenset(m.contract_id for m in self.moves)
            )

    def __repr__(self) -> str:
        w = 100  # Inner content width
        bar = "─" * w

        def pad(text: str) -> str:
            """Pad or truncate text to exactly w characters."""
            if len(text) > w:
                return text[:w-3] + "..."
            return text + " " * (w - len(text))

        lines = [
            "",
            f"┌{bar}┐",
            f"│{pad(' Transaction: ' + self.exec_id)}│",
            f"├{bar}┤",
            f"│{pad('   intent_id      : ' + self.intent_id)}│",
            f"│{pad('   timestamp      : ' + str(self.timestamp))}│",
            f"│{pad('   execution_time : ' + str(self.execution_time))}│",
            f"│{pad('   sequence       : ' + str(self.sequence_number))}│",
            f"│{pad('   origin         : ' + str(self.origin))}│",
        ]
        if self.units_to_create:
            lines.append(f"├{bar}┤")
            lines.append(f"│{pad(' Units Created (' + str(len(self.units_to_create)) + '):')}│")
            for unit in self.units_to_create:
                lines.append(f"│{pad('   ' + unit.symbol + ' (' + unit.name + ')')}│")
        lines.append(f"├{bar}┤")
        lines.append(f"│{pad(' Moves (' + str(len(self.moves)) + '):')}│")
        for i, move in enumerate(self.moves):
            move_str = f"   [{i}] {move.quantity} {move.unit_symbol}: {move.source} → {move.dest}"
            lines.append(f"│{pad(move_str)}│")
        if self.state_changes:
            lines.append(f"├{bar}┤")
            lines.append(f"│{pad(' State Changes (' + str(len(self.state_changes)) + '):')}│")
            for sc in self.state_changes:
                lines.append(f"│{pad('   [' + sc.unit + ']')}│")
                for field_name, (old_val, new_val) in sc.changed_fields().items():
                    lines.append(f"│{pad(f'      {field_name}: {old_val!r} → {new_val!r}')}│")
        if self.notifications:
            lines.append(f"├{bar}┤")
            for note in self.notifications:
                lines.append(f"│{pad('   ' + note.name + ' ' + repr(note))}│")
        lines.append(f"└{bar}┘")
        return "\n".join(lines)


# Type alias for transfer rule functions.
# Transfer rules validate moves and raise TransferRuleViolation if invalid.
TransferRule = Callable[[LedgerView, Move], None]


def _freeze_state(state: Optional[UnitState]) -> Tuple[Tuple[str, Any], ...]:
    """Convert a state dict to a tuple of (key, value) pairs sorted by key."""
    if not state:
        return ()
    return tuple(sorted(state.items()))


def _thaw_state(frozen_state: Tuple[Tuple[str, Any], ...]) -> UnitState:
    """Convert a frozen state representation back to a dict."""
    return dict(frozen_state)


@dataclass(frozen=True, slots=True)
class Unit:
    """
    Definition of a unit (asset type) in the ledger.

    Attributes:
        symbol: Short identifier for the unit (e.g., "USD", "SPACE_1", "RENTAL_7").
        name: Human-readable name for the unit.
        unit_type: Category of the unit (CASH, PARKING_SPACE, RENTAL, ...).
        min_balance: Minimum allowed balance in any wallet.
        max_balance: Maximum allowed balance in any wallet.
        decimal_places: Number of decimal places for rounding (None = no rounding).
        transfer_rule: Optional function to validate moves involving this unit.
        _frozen_state: Internal frozen state representation (tuple of key-value pairs).
    """
    symbol: str
    name: str
    unit_type: str
    min_balance: Decimal = Decimal("0")
    max_balance: Decimal = Decimal("Infinity")
    decimal_places: Optional[int] = None
    transfer_rule: Optional[TransferRule] = None
    _frozen_state: Tuple[Tuple[str, Any], ...] = field(default_factory=tuple)

    @property
    def state(self) -> UnitState:
        """Get the unit's state as a new dictionary."""
        return _thaw_state(self._frozen_state)

    def round(self, value: Decimal) -> Decimal:
        """Round a value to this unit's decimal precision; unchanged if decimal_places is None."""
        if self.decimal_places is None:
            return value
        if not isinstance(value, Decimal):
            value = Decimal(str(value))
        quantizer = Decimal(10) ** -self.decimal_places
        rounding_mode = DECIMAL_ROUNDING.get(self.unit_type, ROUND_HALF_EVEN)
        return value.quantize(quantizer, rounding=rounding_mode)


# ============================================================================
# TRANSFER RULES
# ============================================================================

def recorded_owner_transfer_rule(view: LedgerView, move: Move) -> None:
    """
    Enforce that a non-fungible token only leaves its recorded owner's wallet.

    The unit state's 'owner' field mirrors the ledger holder. A move of the
    token is accepted only when its source is that owner (or the system wallet
    when minting), so the token can never drift away from the recorded owner
    through a raw transfer.

    Raises:
        TransferRuleViolation: If the unit has no recorded owner or the source
                               wallet is neither the owner nor the system wallet.
    """
    state = view.get_unit_state(move.unit_symbol)
    owner = state.get('owner')
    if not owner:
        raise TransferRuleViolation(
            f"Token {move.unit_symbol} has no recorded owner"
        )
    if move.source not in (owner, SYSTEM_WALLET):
        raise TransferRuleViolation(
            f"Token {move.unit_symbol}: {move.source} is not the recorded owner"
        )


# ============================================================================
# UNIT FACTORIES
# ============================================================================

def cash(
    symbol: str,
    name: str,
    decimal_places: int = 0,
    min_balance: Decimal = Decimal("0"),
) -> Unit:
    """
    Create a cash currency unit.

    Args:
        symbol: Currency code (e.g., "USD", "WEI").
        name: Full name of the currency.
        decimal_places: Decimal places for amounts (default 0: amounts are
                        integers in the smallest currency unit).
        min_balance: Lowest balance a wallet may hold (default 0: no overdraft).
    """
    return Unit(
        symbol=symbol,
        name=name,
        unit_type=UNIT_TYPE_CASH,
        decimal_places=decimal_places,
        min_balance=min_balance,
        _frozen_state=_freeze_state({'issuer': SYSTEM_WALLET}),
    )
