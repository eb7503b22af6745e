"""
conftest.py - Shared pytest fixtures for marketplace tests

Provides common fixtures used across unit, functional and conformance tests:
- Basic ledgers (empty, with cash and wallets)
- Marketplaces (empty, with a listed space, with an open rental)
- Lifecycle engine setups
- FakeView states for the pure compute_* functions
"""

import pytest
from datetime import timedelta
from decimal import Decimal

from parkledger import (
    Ledger,
    cash,
    create_rental_engine,
    REGISTRY_SYMBOL,
    SYSTEM_WALLET,
)

from tests.fake_view import FakeView
from tests.helpers import T0, open_market, space_state, registry_state


# =============================================================================
# BASIC FIXTURES
# =============================================================================

@pytest.fixture
def empty_ledger():
    """Fresh ledger with no registrations."""
    return Ledger("test", verbose=False, test_mode=True)


@pytest.fixture
def basic_ledger():
    """Ledger with USD and two wallets."""
    ledger = Ledger("test", T0, verbose=False, test_mode=True)
    ledger.register_unit(cash("USD", "US Dollar"))
    ledger.register_wallet("alice")
    ledger.register_wallet("bob")
    return ledger


@pytest.fixture
def funded_ledger(basic_ledger):
    """Basic ledger with alice holding 10,000."""
    basic_ledger.set_balance("alice", "USD", Decimal("10000"))
    return basic_ledger


# =============================================================================
# MARKETPLACE FIXTURES
# =============================================================================

@pytest.fixture
def market():
    """Marketplace with alice, bob and carol funded with 10,000 each."""
    return open_market()


@pytest.fixture
def listed_market(market):
    """Marketplace where alice listed "Lot A" at 100 per hour (space 1)."""
    space_id = market.create_space("alice", "Lot A", 100)
    return market, space_id


@pytest.fixture
def rented_market(listed_market):
    """Space 1 rented by bob for 2 hours, paying 250 (cost 200, refund 50)."""
    market, space_id = listed_market
    rental_id = market.rent_space("bob", space_id, 2, 250)
    return market, space_id, rental_id


# =============================================================================
# ENGINE FIXTURES
# =============================================================================

@pytest.fixture
def rental_engine(rented_market):
    """LifecycleEngine polling rentals on the rented marketplace."""
    market, space_id, rental_id = rented_market
    return create_rental_engine(market.ledger), market, space_id, rental_id


# =============================================================================
# FAKE VIEW FIXTURES
# =============================================================================

@pytest.fixture
def space_view():
    """FakeView with one available space owned by alice and a funded renter."""
    return FakeView(
        balances={
            SYSTEM_WALLET: {"SPACE_1": Decimal("-1")},
            "alice": {"SPACE_1": Decimal("1")},
            "bob": {"USD": Decimal("1000")},
            "carol": {},
            "marketplace_escrow": {},
        },
        states={
            "USD": {'issuer': SYSTEM_WALLET},
            REGISTRY_SYMBOL: registry_state(),
            "SPACE_1": space_state(),
        },
        time=T0,
    )


@pytest.fixture
def rental_view():
    """FakeView with space 1 rented by bob from T0 for 2 hours."""
    rented = space_state(available=False, last_rental_id=1, rental_count=1)
    rented['revision'] = 1
    return FakeView(
        balances={
            SYSTEM_WALLET: {"SPACE_1": Decimal("-1")},
            "alice": {"SPACE_1": Decimal("1"), "USD": Decimal("200")},
            "bob": {"USD": Decimal("800")},
            "carol": {},
            "marketplace_escrow": {},
        },
        states={
            "USD": {'issuer': SYSTEM_WALLET},
            REGISTRY_SYMBOL: registry_state(next_rental_id=2),
            "RENTER_bob": {'renter': "bob", 'last_rental_id': 1, 'rental_count': 1},
            "SPACE_1": rented,
            "RENTAL_1": {
                'rental_id': 1,
                'space_id': 1,
                'renter': "bob",
                'start_time': T0,
                'end_time': T0 + timedelta(hours=2),
                'duration_hours': 2,
                'total_cost': 200,
                'payment': 250,
                'refund': 50,
                'active': True,
                'completed_at': None,
                'completed_by': None,
                'previous_space_rental': None,
                'previous_renter_rental': None,
            },
        },
        time=T0 + timedelta(hours=2),
    )
