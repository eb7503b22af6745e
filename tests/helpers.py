"""
helpers.py - Shared builders for marketplace tests

Plain functions (not fixtures) so that hypothesis tests can build a fresh
marketplace per example.
"""

from __future__ import annotations
from datetime import datetime
from typing import Any, Dict

from parkledger import Ledger, Marketplace, MarketplaceConfig


T0 = datetime(2025, 1, 1, 9, 0)


def snapshot(ledger: Ledger) -> Dict[str, Any]:
    """Capture everything an operation may change."""
    return {
        "balances": {
            wallet: {unit: qty for unit, qty in balances.items() if qty != 0}
            for wallet, balances in ledger.balances.items()
        },
        "units": {symbol: ledger.get_unit_state(symbol) for symbol in ledger.list_units()},
        "transactions": len(ledger.transaction_log),
        "notifications": list(ledger.notifications),
        "seen_intents": set(ledger.seen_intent_ids),
    }


def open_market(
    time: datetime = T0,
    wallets=("alice", "bob", "carol"),
    funding: int = 10_000,
    config: MarketplaceConfig = None,
) -> Marketplace:
    """Marketplace with registered wallets, each funded with `funding`."""
    ledger = Ledger("parking", time, verbose=False, test_mode=True)
    market = Marketplace(ledger, config)
    for wallet in wallets:
        market.open_account(wallet)
        if funding:
            market.fund(wallet, funding)
    return market


def space_state(space_id: int = 1, owner: str = "alice", price: int = 100,
                available: bool = True, location: str = "Lot A",
                last_rental_id=None, rental_count: int = 0) -> Dict[str, Any]:
    return {
        'space_id': space_id,
        'location': location,
        'price_per_hour': price,
        'owner': owner,
        'available': available,
        'exists': True,
        'revision': 0,
        'last_rental_id': last_rental_id,
        'rental_count': rental_count,
    }


def registry_state(next_space_id: int = 2, next_rental_id: int = 1) -> Dict[str, Any]:
    return {
        'next_space_id': next_space_id,
        'next_rental_id': next_rental_id,
        'currency': "USD",
        'escrow_wallet': "marketplace_escrow",
    }
