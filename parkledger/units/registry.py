"""
registry.py - Marketplace Registry and Rental Indices

The registry is a stateless-balance unit whose state holds the settings and
counters the marketplace shares across spaces and rentals:

    next_space_id   - next identifier handed out by space creation (starts at 1)
    next_rental_id  - next identifier handed out by rental creation (starts at 1)
    currency        - cash unit rentals are paid in
    escrow_wallet   - wallet that receives a payment and splits it into
                      owner settlement and renter refund

The two rental histories are not stored here. Each one is a chain running
backwards through the rental records:

    space index   SPACE_<id>.last_rental_id   -> RENTAL_<n>.previous_space_rental  -> ...
    renter index  RENTER_<wallet>.last_rental_id -> RENTAL_<n>.previous_renter_rental -> ...

Opening a rental writes one link into the new record and moves two heads,
so its cost does not depend on how many rentals came before it.
Identifiers are never reused and the chains are never pruned: they are
historical logs, not live views.
"""

from __future__ import annotations
from decimal import Decimal
from typing import Optional, Tuple

from ..core import (
    LedgerView, Unit, UnitState, UnitStateChange,
    UNIT_TYPE_MARKETPLACE_REGISTRY, UNIT_TYPE_RENTER_INDEX,
    _freeze_state,
)


REGISTRY_SYMBOL = "PARKING_REGISTRY"
DEFAULT_CURRENCY = "USD"
DEFAULT_ESCROW_WALLET = "marketplace_escrow"


def create_registry_unit(
    symbol: str = REGISTRY_SYMBOL,
    currency: str = DEFAULT_CURRENCY,
    escrow_wallet: str = DEFAULT_ESCROW_WALLET,
) -> Unit:
    """
    Create the registry unit for one marketplace.

    Args:
        symbol: Registry unit symbol
        currency: Cash unit symbol used for rental payments
        escrow_wallet: Wallet that routes payments to owners and refunds

    Raises:
        ValueError: If currency or escrow_wallet is empty
    """
    if not currency or not currency.strip():
        raise ValueError("currency cannot be empty")
    if not escrow_wallet or not escrow_wallet.strip():
        raise ValueError("escrow_wallet cannot be empty")

    return Unit(
        symbol=symbol,
        name="Parking Marketplace Registry",
        unit_type=UNIT_TYPE_MARKETPLACE_REGISTRY,
        min_balance=Decimal("0"),
        max_balance=Decimal("0"),
        decimal_places=0,
        _frozen_state=_freeze_state({
            'next_space_id': 1,
            'next_rental_id': 1,
            'currency': currency,
            'escrow_wallet': escrow_wallet,
        }),
    )


def get_registry_state(view: LedgerView, registry: str = REGISTRY_SYMBOL) -> UnitState:
    """Return a copy of the registry state (raises UnitNotRegistered if absent)."""
    return view.get_unit_state(registry)


def next_space_id(view: LedgerView, registry: str = REGISTRY_SYMBOL) -> int:
    return get_registry_state(view, registry)['next_space_id']


def next_rental_id(view: LedgerView, registry: str = REGISTRY_SYMBOL) -> int:
    return get_registry_state(view, registry)['next_rental_id']


def allocate_space_id(state: UnitState, registry: str) -> Tuple[int, UnitStateChange]:
    """
    Reserve the next space id.

    Returns:
        (space_id, UnitStateChange advancing the counter)
    """
    space_id = state['next_space_id']
    new_state = {**state, 'next_space_id': space_id + 1}
    return space_id, UnitStateChange(unit=registry, old_state=state, new_state=new_state)


def allocate_rental_id(state: UnitState, registry: str) -> Tuple[int, UnitStateChange]:
    """Reserve the next rental id; returns (rental_id, counter change)."""
    rental_id = state['next_rental_id']
    new_state = {**state, 'next_rental_id': rental_id + 1}
    return rental_id, UnitStateChange(unit=registry, old_state=state, new_state=new_state)


# =============================================================================
# RENTER INDEX
# =============================================================================

def renter_index_symbol(renter: str) -> str:
    return f"RENTER_{renter}"


def last_renter_rental(view: LedgerView, renter: str) -> Optional[int]:
    """Head of the renter's chain, or None before their first rental."""
    symbol = renter_index_symbol(renter)
    if not view.has_unit(symbol):
        return None
    return view.get_unit_state(symbol)['last_rental_id']


def create_renter_index_unit(renter: str, rental_id: int) -> Unit:
    """Record unit created with a renter's first rental."""
    return Unit(
        symbol=renter_index_symbol(renter),
        name=f"Rentals of {renter}",
        unit_type=UNIT_TYPE_RENTER_INDEX,
        min_balance=Decimal("0"),
        max_balance=Decimal("0"),
        decimal_places=0,
        _frozen_state=_freeze_state({
            'renter': renter,
            'last_rental_id': rental_id,
            'rental_count': 1,
        }),
    )


def append_renter_rental(
    view: LedgerView,
    renter: str,
    rental_id: int,
) -> Tuple[Tuple[Unit, ...], Tuple[UnitStateChange, ...]]:
    """
    Move the renter's chain head to rental_id.

    Returns:
        (units_to_create, state_changes): the index unit on a first rental,
        otherwise one change to the existing index
    """
    symbol = renter_index_symbol(renter)
    if not view.has_unit(symbol):
        return (create_renter_index_unit(renter, rental_id),), ()
    state = view.get_unit_state(symbol)
    new_state = {
        **state,
        'last_rental_id': rental_id,
        'rental_count': state['rental_count'] + 1,
    }
    return (), (UnitStateChange(unit=symbol, old_state=state, new_state=new_state),)
