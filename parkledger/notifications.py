"""
notifications.py - Marketplace Notification Records

Immutable records emitted by marketplace operations. A notification is part of
the PendingTransaction that produces it and reaches Ledger.notifications only
when that transaction is applied, so a rejected operation never emits anything.

Each class carries a ``name`` attribute with the externally visible event name.
"""

from __future__ import annotations
from dataclasses import dataclass
from datetime import datetime
from typing import Union


@dataclass(frozen=True, slots=True)
class ParkingSpaceCreated:
    """A new parking space token was minted to its creator."""
    space_id: int
    location: str
    price_per_hour: int
    owner: str

    name = "ResourceCreated"


@dataclass(frozen=True, slots=True)
class PriceUpdated:
    """The owner changed the hourly price of a space."""
    space_id: int
    new_price: int

    name = "PriceUpdated"


@dataclass(frozen=True, slots=True)
class SpaceRented:
    """A rental was opened and paid for."""
    rental_id: int
    space_id: int
    renter: str
    start_time: datetime
    end_time: datetime
    total_cost: int

    name = "SpaceRented"


@dataclass(frozen=True, slots=True)
class RentalCompleted:
    """A rental was closed and its space released."""
    rental_id: int
    space_id: int

    name = "RentalCompleted"


@dataclass(frozen=True, slots=True)
class SpaceTransferred:
    """The space token moved to a new owner."""
    space_id: int
    previous_owner: str
    new_owner: str

    name = "Transfer"


Notification = Union[
    ParkingSpaceCreated, PriceUpdated, SpaceRented, RentalCompleted, SpaceTransferred,
]
