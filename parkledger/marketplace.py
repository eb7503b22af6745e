"""
marketplace.py - Parking Marketplace Facade

The Marketplace binds one Ledger to the parking registry and exposes the
caller-facing operations. Every mutating operation:

    1. takes the caller's wallet id as its first argument
    2. holds the ReentrancyGuard for its whole duration
    3. computes one PendingTransaction from a read-only view
    4. submits it to Ledger.execute, which applies everything or nothing

Nothing here mutates ledger state except through Ledger.execute.

Example:
    ledger = Ledger("parking", datetime(2024, 1, 1, 9), verbose=False)
    market = Marketplace(ledger)
    market.open_account("alice")
    market.open_account("bob")
    market.fund("bob", 1_000)

    space_id = market.create_space("alice", "Lot A", price_per_hour=100)
    rental_id = market.rent_space("bob", space_id, duration_hours=2, payment=250)
    ledger.advance_time(datetime(2024, 1, 1, 11))
    market.complete_rental("bob", rental_id)
"""

from __future__ import annotations
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from .core import (
    Move, PendingTransaction, TransactionOrigin, OriginType, ExecuteResult,
    InvalidInput, InvalidState, TransferFailed,
    SYSTEM_WALLET,
    build_transaction, cash,
)
from .guard import ReentrancyGuard
from .ledger import Ledger, ReceiveHook
from .notifications import Notification
from . import queries
from .units.parking_space import (
    ParkingSpace,
    compute_space_creation, compute_price_update, compute_space_transfer,
    owner_of, require_amount,
)
from .units.registry import (
    REGISTRY_SYMBOL, DEFAULT_CURRENCY, DEFAULT_ESCROW_WALLET,
    create_registry_unit,
)
from .units.rental import (
    MAX_RENTAL_HOURS, Rental,
    compute_rental_open, compute_rental_completion,
)


@dataclass(frozen=True)
class MarketplaceConfig:
    """
    Static settings of one marketplace.

    Attributes:
        currency: Cash unit rentals are paid in (registered if missing)
        currency_name: Display name used when the currency is registered here
        escrow_wallet: Wallet routing each payment to the owner and the refund
        registry_symbol: Symbol of the registry unit holding ids and indices
        max_rental_hours: Longest rental accepted
        listing_limit: Most ids returned by list_available_spaces
    """
    currency: str = DEFAULT_CURRENCY
    currency_name: str = "US Dollar"
    escrow_wallet: str = DEFAULT_ESCROW_WALLET
    registry_symbol: str = REGISTRY_SYMBOL
    max_rental_hours: int = MAX_RENTAL_HOURS
    listing_limit: int = queries.AVAILABLE_LISTING_LIMIT

    def __post_init__(self):
        if self.max_rental_hours < 1:
            raise ValueError(f"max_rental_hours must be at least 1, got {self.max_rental_hours}")
        if self.listing_limit < 1:
            raise ValueError(f"listing_limit must be at least 1, got {self.listing_limit}")
        if self.escrow_wallet == SYSTEM_WALLET:
            raise ValueError("escrow_wallet cannot be the system wallet")


class Marketplace:
    """
    Caller-facing parking marketplace on top of a Ledger.

    Not thread-safe, like the Ledger it wraps. One ReentrancyGuard covers all
    mutating operations, so a receive hook that calls back into any of them
    fails with ReentrancyError and the outer operation is rolled back.
    """

    def __init__(self, ledger: Ledger, config: Optional[MarketplaceConfig] = None):
        """
        Register the currency, the escrow wallet and the registry unit.

        Raises:
            ValueError: If the ledger already hosts a registry with this symbol
        """
        self.ledger = ledger
        self.config = config or MarketplaceConfig()
        self.guard = ReentrancyGuard("marketplace")

        if ledger.has_unit(self.config.registry_symbol):
            raise ValueError(
                f"Ledger {ledger.name} already hosts registry {self.config.registry_symbol}"
            )
        if not ledger.has_unit(self.config.currency):
            ledger.register_unit(cash(self.config.currency, self.config.currency_name))
        if not ledger.is_registered(self.config.escrow_wallet):
            ledger.register_wallet(self.config.escrow_wallet)
        ledger.register_unit(create_registry_unit(
            symbol=self.config.registry_symbol,
            currency=self.config.currency,
            escrow_wallet=self.config.escrow_wallet,
        ))

    # ========================================================================
    # ACCOUNTS
    # ========================================================================

    def open_account(self, wallet_id: str, on_receive: Optional[ReceiveHook] = None) -> str:
        """Register a wallet, optionally with a hook called on every credit to it."""
        return self.ledger.register_wallet(wallet_id, on_receive=on_receive)

    def fund(self, wallet_id: str, amount: int) -> None:
        """
        Issue cash to a wallet from the system wallet.

        Raises:
            InvalidInput: Amount not a positive integer up to MAX_AMOUNT, or the
                          wallet is unknown, the system wallet or the escrow wallet
            TransferFailed: Receive hook failed (nothing is issued)
        """
        require_amount(amount, "amount")
        if (not self.ledger.is_registered(wallet_id)
                or wallet_id in (SYSTEM_WALLET, self.config.escrow_wallet)):
            raise InvalidInput(f"cannot fund wallet {wallet_id!r}")

        with self.guard:
            reference = len(self.ledger.transaction_log)
            pending = build_transaction(
                self.ledger,
                [Move(Decimal(amount), self.config.currency, SYSTEM_WALLET, wallet_id,
                      f"fund_{wallet_id}_{reference}")],
                origin=TransactionOrigin(OriginType.SYSTEM, SYSTEM_WALLET, self.config.currency, "FUND"),
            )
            self._submit(pending)

    def balance_of(self, wallet_id: str) -> int:
        return int(self.ledger.get_balance(wallet_id, self.config.currency))

    # ========================================================================
    # MUTATING OPERATIONS
    # ========================================================================

    def create_space(self, caller: str, location: str, price_per_hour: int) -> int:
        """
        Tokenize a parking space and mint it to the caller.

        Returns:
            The new space id

        Raises:
            InvalidInput: Empty location, price outside 1..MAX_AMOUNT, or a reserved caller
        """
        with self.guard:
            pending = compute_space_creation(
                self.ledger, location, price_per_hour, caller,
                registry=self.config.registry_symbol,
            )
            self._submit(pending)
        return pending.notifications[0].space_id

    def update_price(self, caller: str, space_id: int, new_price: int) -> None:
        """
        Raises:
            NotFound, Unauthorized, InvalidInput
        """
        with self.guard:
            self._submit(compute_price_update(self.ledger, space_id, new_price, caller))

    def rent_space(self, caller: str, space_id: int, duration_hours: int, payment: int) -> int:
        """
        Pay for and open a rental starting now.

        The owner receives exactly price_per_hour * duration_hours; any excess
        payment is refunded to the caller in the same transaction.

        Returns:
            The new rental id

        Raises:
            NotFound: Space does not exist
            InvalidState: Space is already rented
            InvalidInput: Reserved or unknown caller, duration outside
                          1..max_rental_hours, or an amount above MAX_AMOUNT
            InsufficientPayment: Payment below total cost, or not held by the caller
            TransferFailed: A receive hook failed; nothing changed
        """
        with self.guard:
            pending = compute_rental_open(
                self.ledger, space_id, duration_hours, payment, caller,
                registry=self.config.registry_symbol,
                max_hours=self.config.max_rental_hours,
            )
            self._submit(pending)
        return pending.notifications[0].rental_id

    def complete_rental(self, caller: str, rental_id: int) -> None:
        """
        Close an elapsed rental; the space becomes available again.

        Raises:
            NotFound, InvalidState, Unauthorized, TooEarly
        """
        with self.guard:
            self._submit(compute_rental_completion(self.ledger, rental_id, caller))

    def transfer_space(self, caller: str, space_id: int, new_owner: str) -> None:
        """
        Hand the space token to another wallet.

        Raises:
            NotFound, Unauthorized, InvalidInput, TransferFailed
        """
        with self.guard:
            self._submit(compute_space_transfer(
                self.ledger, space_id, caller, new_owner,
                registry=self.config.registry_symbol,
            ))

    def _submit(self, pending: PendingTransaction) -> None:
        result = self.ledger.execute(pending)
        if result == ExecuteResult.REJECTED:
            raise TransferFailed(f"ledger rejected transaction: {self.ledger.last_rejection}")
        if result == ExecuteResult.ALREADY_APPLIED:
            raise InvalidState(f"transaction {pending.intent_id} was already applied")

    # ========================================================================
    # QUERIES
    # ========================================================================

    @property
    def now(self) -> datetime:
        return self.ledger.current_time

    @property
    def notifications(self) -> List[Notification]:
        return list(self.ledger.notifications)

    def get_space_rentals(self, space_id: int) -> List[int]:
        return queries.get_space_rentals(self.ledger, space_id)

    def get_renter_rentals(self, renter: str) -> List[int]:
        return queries.get_renter_rentals(self.ledger, renter)

    def is_rental_active(self, rental_id: int) -> bool:
        return queries.is_rental_active(self.ledger, rental_id)

    def list_available_spaces(self) -> List[int]:
        return queries.list_available_spaces(
            self.ledger, self.config.listing_limit, self.config.registry_symbol,
        )

    def get_space(self, space_id: int) -> ParkingSpace:
        return queries.get_space(self.ledger, space_id)

    def get_rental(self, rental_id: int) -> Rental:
        return queries.get_rental(self.ledger, rental_id)

    def owner_of(self, space_id: int) -> str:
        return owner_of(self.ledger, space_id)

    def spaces_owned_by(self, wallet_id: str) -> List[int]:
        return queries.spaces_owned_by(self.ledger, wallet_id, self.config.registry_symbol)

    def total_spaces(self) -> int:
        return queries.total_spaces(self.ledger, self.config.registry_symbol)

    def total_rentals(self) -> int:
        return queries.total_rentals(self.ledger, self.config.registry_symbol)
