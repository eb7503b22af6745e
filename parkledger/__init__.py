"""
parkledger - Tokenized Parking Space Rental Marketplace

Parking spaces are non-fungible units on an atomic, audited ledger; rentals
are record units paid for in a cash unit. Every operation is one transaction
that applies completely or not at all.

Usage:
    from datetime import datetime
    from parkledger import Ledger, Marketplace

    ledger = Ledger("parking", datetime(2024, 1, 1, 9), verbose=False)
    market = Marketplace(ledger)
    market.open_account("alice")
    market.open_account("bob")
    market.fund("bob", 1_000)

    space_id = market.create_space("alice", "Lot A", 100)
    rental_id = market.rent_space("bob", space_id, 2, 250)   # cost 200, refund 50
"""

# Core types
from .core import (
    LedgerView,
    SmartContract,
    Move,
    Transaction,
    PendingTransaction,
    TransactionOrigin,
    OriginType,
    build_transaction,
    empty_pending_transaction,
    Unit,
    UnitStateChange,
    ExecuteResult,
    LedgerError,
    InsufficientFunds,
    TransferRuleViolation,
    UnitNotRegistered,
    WalletNotRegistered,
    MarketplaceError,
    InvalidInput,
    NotFound,
    InvalidState,
    Unauthorized,
    InsufficientPayment,
    TooEarly,
    TransferFailed,
    ReentrancyError,
    recorded_owner_transfer_rule,
    cash,
    SYSTEM_WALLET,
    UNIT_TYPE_CASH,
    UNIT_TYPE_PARKING_SPACE,
    UNIT_TYPE_RENTAL,
    UNIT_TYPE_MARKETPLACE_REGISTRY,
    UNIT_TYPE_RENTER_INDEX,
    MAX_AMOUNT,
)

# Ledger
from .ledger import Ledger, ReceiveHook

# Notifications
from .notifications import (
    Notification,
    ParkingSpaceCreated,
    PriceUpdated,
    SpaceRented,
    RentalCompleted,
    SpaceTransferred,
)

from .guard import ReentrancyGuard

# Units
from .units.registry import (
    REGISTRY_SYMBOL,
    DEFAULT_CURRENCY,
    DEFAULT_ESCROW_WALLET,
    create_registry_unit,
    next_space_id,
    next_rental_id,
)
from .units.parking_space import (
    ParkingSpace,
    space_symbol,
    create_parking_space_unit,
    load_space,
    owner_of,
    require_owner,
    compute_space_creation,
    compute_price_update,
    compute_space_transfer,
)
from .units.rental import (
    MAX_RENTAL_HOURS,
    Rental,
    rental_symbol,
    create_rental_unit,
    load_rental,
    compute_rental_cost,
    compute_refund,
    compute_rental_open,
    compute_rental_completion,
    rental_contract,
)

# Queries
from .queries import (
    AVAILABLE_LISTING_LIMIT,
    get_space_rentals,
    get_renter_rentals,
    is_rental_active,
    list_available_spaces,
    get_space,
    get_rental,
    spaces_owned_by,
    total_spaces,
    total_rentals,
)

# Marketplace
from .marketplace import Marketplace, MarketplaceConfig

# Lifecycle
from .lifecycle_engine import LifecycleEngine, create_rental_engine

__all__ = [
    # Core
    'LedgerView', 'SmartContract', 'Move', 'Transaction', 'PendingTransaction',
    'TransactionOrigin', 'OriginType', 'build_transaction', 'empty_pending_transaction',
    'Unit', 'UnitStateChange', 'ExecuteResult',
    'LedgerError', 'InsufficientFunds',
    'TransferRuleViolation', 'UnitNotRegistered', 'WalletNotRegistered',
    'MarketplaceError', 'InvalidInput', 'NotFound', 'InvalidState', 'Unauthorized',
    'InsufficientPayment', 'TooEarly', 'TransferFailed', 'ReentrancyError',
    'recorded_owner_transfer_rule', 'cash',
    'SYSTEM_WALLET', 'UNIT_TYPE_CASH', 'UNIT_TYPE_PARKING_SPACE', 'UNIT_TYPE_RENTAL',
    'UNIT_TYPE_MARKETPLACE_REGISTRY', 'UNIT_TYPE_RENTER_INDEX', 'MAX_AMOUNT',
    # Ledger
    'Ledger', 'ReceiveHook',
    # Notifications
    'Notification', 'ParkingSpaceCreated', 'PriceUpdated', 'SpaceRented',
    'RentalCompleted', 'SpaceTransferred',
    'ReentrancyGuard',
    # Registry
    'REGISTRY_SYMBOL', 'DEFAULT_CURRENCY', 'DEFAULT_ESCROW_WALLET',
    'create_registry_unit', 'next_space_id', 'next_rental_id',
    # Parking spaces
    'ParkingSpace', 'space_symbol', 'create_parking_space_unit', 'load_space',
    'owner_of', 'require_owner', 'compute_space_creation', 'compute_price_update',
    'compute_space_transfer',
    # Rentals
    'MAX_RENTAL_HOURS', 'Rental', 'rental_symbol', 'create_rental_unit', 'load_rental',
    'compute_rental_cost', 'compute_refund', 'compute_rental_open',
    'compute_rental_completion', 'rental_contract',
    # Queries
    'AVAILABLE_LISTING_LIMIT', 'get_space_rentals', 'get_renter_rentals',
    'is_rental_active', 'list_available_spaces', 'get_space', 'get_rental',
    'spaces_owned_by', 'total_spaces', 'total_rentals',
    # Marketplace
    'Marketplace', 'MarketplaceConfig',
    # Lifecycle
    'LifecycleEngine', 'create_rental_engine',
]

__version__ = '1.0.0'
