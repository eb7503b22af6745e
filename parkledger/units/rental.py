"""
rental.py - Rental Records and the Rental State Machine

Each rental is a record-only unit RENTAL_<id> (no balances, min = max = 0)
whose state holds the rental:

    rental_id, space_id, renter
    start_time, end_time      - end = start + duration_hours
    duration_hours
    total_cost                - price_per_hour * duration_hours, exact
    payment, refund           - refund = payment - total_cost
    active                    - True from opening until completion
    completed_at, completed_by
    previous_space_rental     - rental opened before this one on the same space
    previous_renter_rental    - rental opened before this one by the same renter

This module is the only writer of rental records:
1. compute_rental_open()       - pay for a space, flip it to Rented, record the rental
2. compute_rental_completion() - renter or owner closes an elapsed rental
3. rental_contract()           - SmartContract closing elapsed rentals automatically

Payment routing inside compute_rental_open (one transaction, applied in order):
    renter -> escrow   payment
    escrow -> owner    total_cost
    escrow -> renter   refund (only when payment > total_cost)

All functions take LedgerView (read-only) and return immutable results.
"""

from __future__ import annotations
from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Optional

from ..core import (
    LedgerView, Move, PendingTransaction, Unit, UnitStateChange,
    TransactionOrigin, OriginType,
    InvalidInput, NotFound, InvalidState, Unauthorized, InsufficientPayment, TooEarly,
    SYSTEM_WALLET, UNIT_TYPE_RENTAL, MAX_AMOUNT,
    build_transaction, empty_pending_transaction, _freeze_state,
)
from ..notifications import SpaceRented, RentalCompleted
from .parking_space import (
    space_exists, load_space, owner_of, availability_change, rented_change,
    last_space_rental, require_wallet,
)
from .registry import (
    REGISTRY_SYMBOL, allocate_rental_id, append_renter_rental, get_registry_state,
    last_renter_rental,
)


MAX_RENTAL_HOURS = 24


@dataclass(frozen=True, slots=True)
class Rental:
    """Immutable snapshot of a rental record."""
    rental_id: int
    space_id: int
    renter: str
    start_time: datetime
    end_time: datetime
    total_cost: int
    active: bool
    duration_hours: int
    payment: int
    refund: int
    completed_at: Optional[datetime] = None
    completed_by: Optional[str] = None


def rental_symbol(rental_id: int) -> str:
    return f"RENTAL_{rental_id}"


def compute_rental_cost(price_per_hour: int, duration_hours: int) -> int:
    return price_per_hour * duration_hours


def compute_refund(payment: int, total_cost: int) -> int:
    """
    Amount returned to the renter.

    Raises:
        InsufficientPayment: If payment is below total_cost
    """
    if payment < total_cost:
        raise InsufficientPayment(f"payment {payment} is below total cost {total_cost}")
    return payment - total_cost


def create_rental_unit(
    rental_id: int,
    space_id: int,
    renter: str,
    start_time: datetime,
    duration_hours: int,
    total_cost: int,
    payment: int,
    previous_space_rental: Optional[int] = None,
    previous_renter_rental: Optional[int] = None,
) -> Unit:
    """
    Create the record unit for an opened rental.

    The unit carries no balances; the rental lives entirely in its state,
    including its links into the space and renter histories.
    """
    if not renter or not renter.strip():
        raise InvalidInput("renter cannot be empty")

    return Unit(
        symbol=rental_symbol(rental_id),
        name=f"Rental #{rental_id} of Parking Space #{space_id}",
        unit_type=UNIT_TYPE_RENTAL,
        min_balance=Decimal("0"),
        max_balance=Decimal("0"),
        decimal_places=0,
        _frozen_state=_freeze_state({
            'rental_id': rental_id,
            'space_id': space_id,
            'renter': renter,
            'start_time': start_time,
            'end_time': start_time + timedelta(hours=duration_hours),
            'duration_hours': duration_hours,
            'total_cost': total_cost,
            'payment': payment,
            'refund': payment - total_cost,
            'active': True,
            'completed_at': None,
            'completed_by': None,
            'previous_space_rental': previous_space_rental,
            'previous_renter_rental': previous_renter_rental,
        }),
    )


def rental_exists(view: LedgerView, rental_id) -> bool:
    if isinstance(rental_id, bool) or not isinstance(rental_id, int):
        return False
    return view.has_unit(rental_symbol(rental_id))


def load_rental(view: LedgerView, rental_id: int) -> Rental:
    """
    Read a rental record.

    Raises:
        NotFound: If no rental with this id was ever opened
    """
    if not rental_exists(view, rental_id):
        raise NotFound(f"Rental {rental_id!r} does not exist")
    state = view.get_unit_state(rental_symbol(rental_id))
    return Rental(
        rental_id=state['rental_id'],
        space_id=state['space_id'],
        renter=state['renter'],
        start_time=state['start_time'],
        end_time=state['end_time'],
        total_cost=state['total_cost'],
        active=state['active'],
        duration_hours=state['duration_hours'],
        payment=state['payment'],
        refund=state['refund'],
        completed_at=state['completed_at'],
        completed_by=state['completed_by'],
    )


# =============================================================================
# STATE TRANSITIONS
# =============================================================================

def compute_rental_open(
    view: LedgerView,
    space_id: int,
    duration_hours: int,
    payment: int,
    renter: str,
    registry: str = REGISTRY_SYMBOL,
    max_hours: int = MAX_RENTAL_HOURS,
) -> PendingTransaction:
    """
    Rent an available space for a whole number of hours.

    Checks run in order:
    1. Space exists (NotFound)
    2. Space is available (InvalidState)
    3. Renter is a registered, non-reserved wallet (InvalidInput)
    4. 1 <= duration_hours <= max_hours, payment is a non-negative integer,
       neither payment nor the cost exceeds MAX_AMOUNT (InvalidInput)
    5. payment >= price_per_hour * duration_hours and the renter holds it (InsufficientPayment)

    The resulting transaction:
    - registers RENTAL_<id> (active, end = now + duration) linked to the
      previous rental of the space and of the renter
    - moves the space and renter history heads to the new id
    - flips the space to Rented
    - pays the owner exactly total_cost and refunds the excess to the renter
    - emits SpaceRented

    Example:
        pending = compute_rental_open(ledger, space_id=1, duration_hours=2,
                                      payment=250, renter="bob")
        ledger.execute(pending)   # owner +200, bob -200
    """
    space = load_space(view, space_id)
    if not space.available:
        raise InvalidState(f"Parking space {space_id} is already rented")
    require_wallet(view, renter, "renter", registry)

    if isinstance(duration_hours, bool) or not isinstance(duration_hours, int):
        raise InvalidInput(f"duration_hours must be an integer, got {duration_hours!r}")
    if not 1 <= duration_hours <= max_hours:
        raise InvalidInput(f"duration_hours must be between 1 and {max_hours}, got {duration_hours}")
    if isinstance(payment, bool) or not isinstance(payment, int) or payment < 0:
        raise InvalidInput(f"payment must be a non-negative integer, got {payment!r}")
    if payment > MAX_AMOUNT:
        raise InvalidInput(f"payment exceeds the maximum amount {MAX_AMOUNT}")

    total_cost = compute_rental_cost(space.price_per_hour, duration_hours)
    if total_cost > MAX_AMOUNT:
        raise InvalidInput(f"total cost {total_cost} exceeds the maximum amount {MAX_AMOUNT}")
    refund = compute_refund(payment, total_cost)

    registry_state = get_registry_state(view, registry)
    currency = registry_state['currency']
    escrow = registry_state['escrow_wallet']

    held = view.get_balance(renter, currency)
    if held < payment:
        raise InsufficientPayment(f"{renter} holds {held} {currency}, cannot pay {payment}")

    owner = owner_of(view, space_id)
    rental_id, registry_change = allocate_rental_id(registry_state, registry)
    start_time = view.current_time
    unit = create_rental_unit(
        rental_id, space_id, renter, start_time, duration_hours, total_cost, payment,
        previous_space_rental=last_space_rental(view, space_id),
        previous_renter_rental=last_renter_rental(view, renter),
    )
    end_time = unit.state['end_time']
    index_units, index_changes = append_renter_rental(view, renter, rental_id)

    contract_id = f"rent_{unit.symbol}"
    moves = [
        Move(Decimal(payment), currency, renter, escrow, f"{contract_id}_payment"),
        Move(Decimal(total_cost), currency, escrow, owner, f"{contract_id}_settle"),
    ]
    if refund > 0:
        moves.append(Move(Decimal(refund), currency, escrow, renter, f"{contract_id}_refund"))

    state_changes = [
        registry_change,
        rented_change(view, space_id, rental_id),
        *index_changes,
    ]
    note = SpaceRented(
        rental_id=rental_id,
        space_id=space_id,
        renter=renter,
        start_time=start_time,
        end_time=end_time,
        total_cost=total_cost,
    )
    return build_transaction(
        view, moves, state_changes,
        origin=TransactionOrigin(OriginType.USER_ACTION, renter, unit.symbol, "RENT"),
        units_to_create=(unit, *index_units),
        notifications=[note],
    )


def _build_completion(
    view: LedgerView,
    rental: Rental,
    completed_by: str,
    completion_time: datetime,
    origin: TransactionOrigin,
) -> PendingTransaction:
    symbol = rental_symbol(rental.rental_id)
    state = view.get_unit_state(symbol)
    new_state = {
        **state,
        'active': False,
        'completed_at': completion_time,
        'completed_by': completed_by,
    }
    state_changes = [
        UnitStateChange(unit=symbol, old_state=state, new_state=new_state),
        availability_change(view, rental.space_id, True),
    ]
    return build_transaction(
        view, [], state_changes,
        origin=origin,
        notifications=[RentalCompleted(rental_id=rental.rental_id, space_id=rental.space_id)],
    )


def compute_rental_completion(
    view: LedgerView,
    rental_id: int,
    caller: str,
    completion_time: Optional[datetime] = None,
) -> PendingTransaction:
    """
    Close an elapsed rental and make its space available again.

    Checks run in order:
    1. Rental exists (NotFound)
    2. Rental is active (InvalidState)
    3. Caller is the renter or the space's current owner (Unauthorized)
    4. completion_time >= end_time (TooEarly)

    No value moves: the owner was paid when the rental opened.

    Args:
        view: Read-only ledger access
        rental_id: Rental to close
        caller: Wallet asking for completion
        completion_time: Defaults to view.current_time
    """
    rental = load_rental(view, rental_id)
    if not rental.active:
        raise InvalidState(f"Rental {rental_id} is not active")

    if caller != rental.renter and caller != owner_of(view, rental.space_id):
        raise Unauthorized(f"{caller} is neither the renter nor the owner for rental {rental_id}")

    when = completion_time or view.current_time
    if when < rental.end_time:
        raise TooEarly(f"Rental {rental_id} ends at {rental.end_time}, now {when}")

    origin = TransactionOrigin(OriginType.USER_ACTION, caller, rental_symbol(rental_id), "COMPLETE")
    return _build_completion(view, rental, caller, when, origin)


def rental_contract(
    view: LedgerView,
    symbol: str,
    timestamp: datetime,
) -> PendingTransaction:
    """
    SmartContract interface for rentals with LifecycleEngine.

    Completes an active rental once its end time has passed, attributed to
    the system wallet. Returns an empty transaction otherwise.

    Example:
        engine = LifecycleEngine(ledger)
        engine.register(UNIT_TYPE_RENTAL, rental_contract)
        engine.step(datetime(2024, 1, 1, 12))
    """
    state = view.get_unit_state(symbol)
    if not state.get('active', False):
        return empty_pending_transaction(view)
    if timestamp < state['end_time']:
        return empty_pending_transaction(view)
    if not space_exists(view, state['space_id']):
        return empty_pending_transaction(view)

    rental = load_rental(view, state['rental_id'])
    origin = TransactionOrigin(OriginType.LIFECYCLE, SYSTEM_WALLET, symbol, "EXPIRY")
    return _build_completion(view, rental, SYSTEM_WALLET, timestamp, origin)


def rental_is_live(rental: Rental, now: datetime) -> bool:
    """True iff the rental is flagged active and its window has not ended."""
    return rental.active and now < rental.end_time