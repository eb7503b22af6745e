"""
queries.py - Read-only Query Surface

Pure functions over a LedgerView. None of them mutates state, none raises for
an unknown rental id where a boolean answer is asked for, and all of them are
callable from inside a receive hook.
"""

from __future__ import annotations
from datetime import datetime
from typing import List, Optional

from .core import LedgerView, QUANTITY_EPSILON
from .units.parking_space import (
    ParkingSpace, load_space, space_symbol, space_exists, list_space_ids, last_space_rental,
)
from .units.rental import Rental, load_rental, rental_exists, rental_is_live, rental_symbol
from .units.registry import REGISTRY_SYMBOL, get_registry_state, last_renter_rental


AVAILABLE_LISTING_LIMIT = 100


def _follow_history(view: LedgerView, head: Optional[int], link: str) -> List[int]:
    history = []
    rental_id = head
    while rental_id is not None:
        history.append(rental_id)
        rental_id = view.get_unit_state(rental_symbol(rental_id))[link]
    history.reverse()
    return history


def get_space_rentals(view: LedgerView, space_id: int) -> List[int]:
    """Every rental id ever opened on a space, oldest first (empty if none)."""
    if not space_exists(view, space_id):
        return []
    return _follow_history(view, last_space_rental(view, space_id), 'previous_space_rental')


def get_renter_rentals(view: LedgerView, renter: str) -> List[int]:
    """Every rental id ever opened by a renter, oldest first (empty if none)."""
    if not isinstance(renter, str):
        return []
    return _follow_history(view, last_renter_rental(view, renter), 'previous_renter_rental')


def is_rental_active(view: LedgerView, rental_id: int, now: Optional[datetime] = None) -> bool:
    """
    True iff the rental is flagged active and its end time is still ahead.

    Liveness comes from the clock: an elapsed rental reads as inactive even
    before anyone completes it. Unknown ids read as inactive.
    """
    if not rental_exists(view, rental_id):
        return False
    return rental_is_live(load_rental(view, rental_id), now or view.current_time)


def list_available_spaces(
    view: LedgerView,
    limit: int = AVAILABLE_LISTING_LIMIT,
    registry: str = REGISTRY_SYMBOL,
) -> List[int]:
    """
    Ids of spaces that exist and are available, ascending, at most `limit` of them.

    The scan stops as soon as `limit` ids are collected.
    """
    if limit <= 0:
        return []
    available: List[int] = []
    for space_id in list_space_ids(view, registry):
        if not space_exists(view, space_id):
            continue
        if view.get_unit_state(space_symbol(space_id))['available']:
            available.append(space_id)
            if len(available) >= limit:
                break
    return available


def get_space(view: LedgerView, space_id: int) -> ParkingSpace:
    return load_space(view, space_id)


def get_rental(view: LedgerView, rental_id: int) -> Rental:
    return load_rental(view, rental_id)


def spaces_owned_by(view: LedgerView, wallet: str, registry: str = REGISTRY_SYMBOL) -> List[int]:
    """Ids of spaces whose token the wallet currently holds."""
    owned = []
    for space_id in list_space_ids(view, registry):
        symbol = space_symbol(space_id)
        if not view.has_unit(symbol):
            continue
        if view.get_positions(symbol).get(wallet, 0) > QUANTITY_EPSILON:
            owned.append(space_id)
    return owned


def total_spaces(view: LedgerView, registry: str = REGISTRY_SYMBOL) -> int:
    return get_registry_state(view, registry)['next_space_id'] - 1


def total_rentals(view: LedgerView, registry: str = REGISTRY_SYMBOL) -> int:
    return get_registry_state(view, registry)['next_rental_id'] - 1
