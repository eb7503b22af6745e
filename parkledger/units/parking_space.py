"""
parking_space.py - Tokenized Parking Space Units

Each parking space is a non-fungible unit SPACE_<id>: exactly one token exists
and the wallet holding it owns the space. The unit state is the space record:

    space_id        - sequential identifier, never reused
    location        - free text, non-empty
    price_per_hour  - positive integer in the smallest currency unit
    owner           - mirror of the token holder, updated with every transfer
    available       - True while the space can be rented
    exists          - set at creation, never cleared
    revision        - bumped by every change to the record
    last_rental_id  - newest rental opened on the space (head of its history)
    rental_count    - number of rentals ever opened on the space

This module is the only writer of space records:
1. compute_space_creation() - allocate an id, register the unit, mint the token
2. compute_price_update()   - owner changes the hourly price
3. compute_space_transfer() - owner hands the token to another wallet
4. rented_change() / availability_change() - state deltas used by the rental state machine

All functions take LedgerView (read-only) and return immutable results.
"""

from __future__ import annotations
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, List, Optional

from ..core import (
    LedgerView, Move, PendingTransaction, Unit, UnitStateChange,
    TransactionOrigin, OriginType,
    InvalidInput, NotFound, Unauthorized,
    SYSTEM_WALLET, UNIT_TYPE_PARKING_SPACE, QUANTITY_EPSILON, MAX_AMOUNT,
    build_transaction, recorded_owner_transfer_rule, _freeze_state,
)
from ..notifications import ParkingSpaceCreated, PriceUpdated, SpaceTransferred
from .registry import REGISTRY_SYMBOL, allocate_space_id, get_registry_state


@dataclass(frozen=True, slots=True)
class ParkingSpace:
    """Immutable snapshot of a space record."""
    space_id: int
    location: str
    price_per_hour: int
    owner: str
    available: bool
    exists: bool


def space_symbol(space_id: int) -> str:
    return f"SPACE_{space_id}"


def require_positive_int(value: Any, name: str) -> int:
    """Return value if it is a positive int (bool excluded), else raise InvalidInput."""
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidInput(f"{name} must be an integer, got {value!r}")
    if value <= 0:
        raise InvalidInput(f"{name} must be positive, got {value}")
    return value


def require_amount(value: Any, name: str) -> int:
    """Positive int no larger than MAX_AMOUNT, else InvalidInput."""
    require_positive_int(value, name)
    if value > MAX_AMOUNT:
        raise InvalidInput(f"{name} exceeds the maximum amount {MAX_AMOUNT}")
    return value


def require_wallet(
    view: LedgerView,
    wallet_id: Any,
    name: str,
    registry: str = REGISTRY_SYMBOL,
) -> str:
    """
    Return wallet_id if it is a registered user wallet.

    The system wallet and the marketplace escrow wallet are reserved: they
    never own spaces, rent or receive a space.

    Raises:
        InvalidInput: Empty, unknown or reserved wallet
    """
    if not isinstance(wallet_id, str) or not wallet_id.strip():
        raise InvalidInput(f"{name} cannot be empty")
    if wallet_id == SYSTEM_WALLET:
        raise InvalidInput(f"{name} cannot be the system wallet")
    if view.has_unit(registry) and wallet_id == get_registry_state(view, registry)['escrow_wallet']:
        raise InvalidInput(f"{name} cannot be the escrow wallet {wallet_id}")
    if wallet_id not in view.list_wallets():
        raise InvalidInput(f"{name} {wallet_id} is not a registered wallet")
    return wallet_id


def space_exists(view: LedgerView, space_id: Any) -> bool:
    if isinstance(space_id, bool) or not isinstance(space_id, int):
        return False
    symbol = space_symbol(space_id)
    if not view.has_unit(symbol):
        return False
    return bool(view.get_unit_state(symbol).get('exists', False))


def load_space(view: LedgerView, space_id: int) -> ParkingSpace:
    """
    Read a space record.

    Raises:
        NotFound: If no space with this id was ever created
    """
    if not space_exists(view, space_id):
        raise NotFound(f"Parking space {space_id!r} does not exist")
    state = view.get_unit_state(space_symbol(space_id))
    return ParkingSpace(
        space_id=state['space_id'],
        location=state['location'],
        price_per_hour=state['price_per_hour'],
        owner=state['owner'],
        available=state['available'],
        exists=state['exists'],
    )


def owner_of(view: LedgerView, space_id: int) -> str:
    """
    Return the wallet holding the space token.

    Ownership comes from ledger positions, not from the mirrored 'owner'
    field; the system wallet's issuance position is ignored.

    Raises:
        NotFound: If the space does not exist
    """
    if not space_exists(view, space_id):
        raise NotFound(f"Parking space {space_id!r} does not exist")
    holders = [
        wallet for wallet, qty in view.get_positions(space_symbol(space_id)).items()
        if wallet != SYSTEM_WALLET and qty > QUANTITY_EPSILON
    ]
    if len(holders) != 1:
        raise NotFound(f"Parking space {space_id} has no single holder: {sorted(holders)}")
    return holders[0]


def require_owner(view: LedgerView, space_id: int, caller: str) -> str:
    """
    Permission check: caller must hold the space token.

    Returns:
        The owner wallet

    Raises:
        NotFound: If the space does not exist
        Unauthorized: If caller is not the owner
    """
    owner = owner_of(view, space_id)
    if caller != owner:
        raise Unauthorized(f"{caller} is not the owner of parking space {space_id}")
    return owner


def create_parking_space_unit(
    space_id: int,
    location: str,
    price_per_hour: int,
    owner: str,
) -> Unit:
    """
    Create the non-fungible unit for a parking space.

    Args:
        space_id: Identifier allocated by the registry
        location: Where the space is (non-empty)
        price_per_hour: Hourly price in the smallest currency unit (> 0)
        owner: Wallet receiving the token

    Raises:
        InvalidInput: If location is empty or price_per_hour is not a positive integer

    Example:
        unit = create_parking_space_unit(1, "Lot A", 100, "alice")
        # Max balance 1 per wallet, token moves only out of the recorded owner's wallet
    """
    if not isinstance(location, str) or not location.strip():
        raise InvalidInput("location cannot be empty")
    require_amount(price_per_hour, "price_per_hour")
    if not owner or not owner.strip():
        raise InvalidInput("owner cannot be empty")

    return Unit(
        symbol=space_symbol(space_id),
        name=f"Parking Space #{space_id}: {location}",
        unit_type=UNIT_TYPE_PARKING_SPACE,
        min_balance=Decimal("0"),
        max_balance=Decimal("1"),
        decimal_places=0,
        transfer_rule=recorded_owner_transfer_rule,
        _frozen_state=_freeze_state({
            'space_id': space_id,
            'location': location,
            'price_per_hour': price_per_hour,
            'owner': owner,
            'available': True,
            'exists': True,
            'revision': 0,
            'last_rental_id': None,
            'rental_count': 0,
        }),
    )


# =============================================================================
# STATE TRANSITIONS
# =============================================================================

def compute_space_creation(
    view: LedgerView,
    location: str,
    price_per_hour: int,
    creator: str,
    registry: str = REGISTRY_SYMBOL,
) -> PendingTransaction:
    """
    Create and mint a new parking space to its creator.

    This creates:
    1. Registry state change: next_space_id advances
    2. SPACE_<id> unit (available, exists, owner=creator)
    3. Move: token system -> creator
    4. ParkingSpaceCreated notification

    Raises:
        InvalidInput: Empty location, non-positive price, unknown creator wallet

    Example:
        pending = compute_space_creation(ledger, "Lot A", 100, "alice")
        ledger.execute(pending)
    """
    if not isinstance(location, str) or not location.strip():
        raise InvalidInput("location cannot be empty")
    require_amount(price_per_hour, "price_per_hour")
    require_wallet(view, creator, "creator", registry)

    registry_state = get_registry_state(view, registry)
    space_id, registry_change = allocate_space_id(registry_state, registry)
    unit = create_parking_space_unit(space_id, location, price_per_hour, creator)

    moves = [
        Move(
            quantity=Decimal("1"),
            unit_symbol=unit.symbol,
            source=SYSTEM_WALLET,
            dest=creator,
            contract_id=f"mint_{unit.symbol}",
        ),
    ]
    origin = TransactionOrigin(OriginType.USER_ACTION, creator, unit.symbol, "CREATE_SPACE")
    note = ParkingSpaceCreated(
        space_id=space_id,
        location=location,
        price_per_hour=price_per_hour,
        owner=creator,
    )
    return build_transaction(
        view, moves, [registry_change],
        origin=origin,
        units_to_create=(unit,),
        notifications=[note],
    )


def compute_price_update(
    view: LedgerView,
    space_id: int,
    new_price: int,
    caller: str,
) -> PendingTransaction:
    """
    Owner changes the hourly price of a space.

    Checks run in order: space exists, caller owns it, price is positive.
    Open rentals keep the cost they were opened with.

    Raises:
        NotFound, Unauthorized, InvalidInput
    """
    require_owner(view, space_id, caller)
    require_amount(new_price, "new_price")

    symbol = space_symbol(space_id)
    state = view.get_unit_state(symbol)
    new_state = {**state, 'price_per_hour': new_price, 'revision': state['revision'] + 1}

    return build_transaction(
        view, [],
        [UnitStateChange(unit=symbol, old_state=state, new_state=new_state)],
        origin=TransactionOrigin(OriginType.USER_ACTION, caller, symbol, "UPDATE_PRICE"),
        notifications=[PriceUpdated(space_id=space_id, new_price=new_price)],
    )


def compute_space_transfer(
    view: LedgerView,
    space_id: int,
    caller: str,
    new_owner: str,
    registry: str = REGISTRY_SYMBOL,
) -> PendingTransaction:
    """
    Owner hands the space token to another wallet.

    The token move and the mirrored 'owner' field change in one transaction.
    A space may change hands while rented; the rental keeps running and the
    new owner may complete it.

    Raises:
        NotFound: Space does not exist
        Unauthorized: Caller is not the owner
        InvalidInput: new_owner is empty, unknown, reserved, or already the owner
    """
    owner = require_owner(view, space_id, caller)
    require_wallet(view, new_owner, "new_owner", registry)
    if new_owner == owner:
        raise InvalidInput(f"{new_owner} already owns parking space {space_id}")

    symbol = space_symbol(space_id)
    state = view.get_unit_state(symbol)
    new_state = {**state, 'owner': new_owner, 'revision': state['revision'] + 1}

    moves = [
        Move(
            quantity=Decimal("1"),
            unit_symbol=symbol,
            source=owner,
            dest=new_owner,
            contract_id=f"transfer_{symbol}",
        ),
    ]
    return build_transaction(
        view, moves,
        [UnitStateChange(unit=symbol, old_state=state, new_state=new_state)],
        origin=TransactionOrigin(OriginType.USER_ACTION, caller, symbol, "TRANSFER"),
        notifications=[SpaceTransferred(space_id=space_id, previous_owner=owner, new_owner=new_owner)],
    )


def availability_change(view: LedgerView, space_id: int, available: bool) -> UnitStateChange:
    """State delta flipping a space between Available and Rented."""
    symbol = space_symbol(space_id)
    state = view.get_unit_state(symbol)
    new_state = {**state, 'available': available, 'revision': state['revision'] + 1}
    return UnitStateChange(unit=symbol, old_state=state, new_state=new_state)


def rented_change(view: LedgerView, space_id: int, rental_id: int) -> UnitStateChange:
    """State delta for opening a rental: Rented, and rental_id becomes the history head."""
    symbol = space_symbol(space_id)
    state = view.get_unit_state(symbol)
    new_state = {
        **state,
        'available': False,
        'last_rental_id': rental_id,
        'rental_count': state['rental_count'] + 1,
        'revision': state['revision'] + 1,
    }
    return UnitStateChange(unit=symbol, old_state=state, new_state=new_state)


def last_space_rental(view: LedgerView, space_id: int) -> Optional[int]:
    """Head of the space's rental history, or None if never rented."""
    return view.get_unit_state(space_symbol(space_id))['last_rental_id']


def list_space_ids(view: LedgerView, registry: str = REGISTRY_SYMBOL) -> List[int]:
    """All allocated space ids in ascending order."""
    return list(range(1, get_registry_state(view, registry)['next_space_id']))
