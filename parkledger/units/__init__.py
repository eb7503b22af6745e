"""
Units module - Factory functions and state transitions for marketplace units.

- Registry unit holding id counters, and the per-renter rental index
- Parking space units (one non-fungible token per space)
- Rental record units and the rental state machine

All unit factories and related functions are re-exported here for convenience.
"""

# Registry
from .registry import (
    REGISTRY_SYMBOL,
    DEFAULT_CURRENCY,
    DEFAULT_ESCROW_WALLET,
    create_registry_unit,
    get_registry_state,
    next_space_id,
    next_rental_id,
)

# Parking spaces
from .parking_space import (
    ParkingSpace,
    space_symbol,
    create_parking_space_unit,
    space_exists,
    load_space,
    owner_of,
    require_owner,
    compute_space_creation,
    compute_price_update,
    compute_space_transfer,
    availability_change,
)

# Rentals
from .rental import (
    MAX_RENTAL_HOURS,
    Rental,
    rental_symbol,
    create_rental_unit,
    rental_exists,
    load_rental,
    compute_rental_cost,
    compute_refund,
    compute_rental_open,
    compute_rental_completion,
    rental_contract,
)

__all__ = [
    # Registry
    'REGISTRY_SYMBOL',
    'DEFAULT_CURRENCY',
    'DEFAULT_ESCROW_WALLET',
    'create_registry_unit',
    'get_registry_state',
    'next_space_id',
    'next_rental_id',
    # Parking spaces
    'ParkingSpace',
    'space_symbol',
    'create_parking_space_unit',
    'space_exists',
    'load_space',
    'owner_of',
    'require_owner',
    'compute_space_creation',
    'compute_price_update',
    'compute_space_transfer',
    'availability_change',
    # Rentals
    'MAX_RENTAL_HOURS',
    'Rental',
    'rental_symbol',
    'create_rental_unit',
    'rental_exists',
    'load_rental',
    'compute_rental_cost',
    'compute_refund',
    'compute_rental_open',
    'compute_rental_completion',
    'rental_contract',
]
