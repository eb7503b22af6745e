#!/usr/bin/env python3
"""
demo.py - Interactive Tutorial: The Parking Marketplace Step by Step

A pedagogical walkthrough of tokenized parking spaces on the ledger.
Each step builds on the previous one. Press Enter to advance.

WHAT YOU'LL LEARN:
  1-3:   Foundation     - The marketplace, accounts, listing a space
  4-6:   Renting        - Payment routing, refunds, the rental record
  7-9:   Rules          - Rejections, ownership, atomicity
  10-12: Lifecycle      - Completion, automatic expiry, conservation

Run:
    python demo.py           # Interactive mode (press Enter for each step)
    python demo.py --quick   # Run all steps without pausing
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
import sys

from parkledger import (
    Ledger, Marketplace,
    MarketplaceError, TransferFailed,
    SYSTEM_WALLET,
    create_rental_engine,
)


# ============================================================================
# CONFIGURATION
# ============================================================================

@dataclass
class DemoConfig:
    """Configuration for the tutorial. Modify these to experiment."""
    start_time: datetime = datetime(2025, 1, 1, 9, 0, 0)

    alice_funding: int = 1_000
    bob_funding: int = 1_000
    carol_funding: int = 1_000

    lot_a_price: int = 100
    rental_hours: int = 2
    rental_payment: int = 250
    new_price: int = 150


CONFIG = DemoConfig()

QUICK_MODE = "--quick" in sys.argv


def wait_for_enter():
    """Pause for user input unless in quick mode."""
    if not QUICK_MODE:
        input("\n[Press Enter to continue...]")


def step_header(number: int, title: str, objective: str):
    print(f"\n{'='*70}")
    print(f"STEP {number}: {title}")
    print(f"{'='*70}")
    print(f"\nObjective: {objective}\n")


def section_header(text: str):
    print(f"\n--- {text} ---\n")


def show_balances(market: Marketplace, wallets=("alice", "bob", "carol", "marketplace_escrow")):
    for wallet in wallets:
        print(f"  {wallet:<20} {market.balance_of(wallet):>8} {market.config.currency}")


# ============================================================================
# PHASE 1: FOUNDATION (Steps 1-3)
# ============================================================================

def step_01_marketplace():
    """Create the ledger and the marketplace on top of it."""
    step_header(1, "The Marketplace",
        "A Marketplace is a thin facade; the Ledger underneath records everything.")

    print("""
    The marketplace registers three things on its ledger:

    1. A CASH unit       - what rentals are paid in (USD)
    2. An ESCROW wallet  - routes each payment to the owner and the change back
    3. A REGISTRY unit   - holds the id counters
    """)

    wait_for_enter()

    print(">>> ledger = Ledger('parking', initial_time=datetime(2025, 1, 1, 9, 0))")
    print(">>> market = Marketplace(ledger)")
    ledger = Ledger("parking", initial_time=CONFIG.start_time, verbose=True)
    market = Marketplace(ledger)

    section_header("Initial State")
    print(f"Current time:  {market.now}")
    print(f"Units:         {ledger.list_units()}")
    print(f"Wallets:       {sorted(ledger.list_wallets())}")
    print(f"Spaces:        {market.total_spaces()}")
    return market


def step_02_accounts(market: Marketplace):
    """Open and fund accounts."""
    step_header(2, "Accounts",
        "Wallets are opened, then funded from the system wallet.")

    wait_for_enter()

    for wallet, amount in (("alice", CONFIG.alice_funding),
                           ("bob", CONFIG.bob_funding),
                           ("carol", CONFIG.carol_funding)):
        print(f'>>> market.open_account("{wallet}"); market.fund("{wallet}", {amount})')
        market.open_account(wallet)
        market.fund(wallet, amount)

    section_header("Balances")
    show_balances(market)
    print(f"  {SYSTEM_WALLET:<20} {market.ledger.get_balance(SYSTEM_WALLET, 'USD'):>8} USD")

    section_header("Key Insight")
    print("""
    The system wallet goes negative by exactly what was issued.
    Across ALL wallets every unit sums to zero, always.
    """)
    return market


def step_03_list_space(market: Marketplace):
    """Tokenize a parking space."""
    step_header(3, "Listing a Parking Space",
        "Creating a space mints a one-of-a-kind SPACE_<id> token to its owner.")

    wait_for_enter()

    print(f'>>> space_id = market.create_space("alice", "Lot A", {CONFIG.lot_a_price})')
    space_id = market.create_space("alice", "Lot A", CONFIG.lot_a_price)

    section_header("The Space")
    space = market.get_space(space_id)
    print(f"  id:             {space.space_id}")
    print(f"  location:       {space.location}")
    print(f"  price per hour: {space.price_per_hour}")
    print(f"  owner:          {space.owner} (token holder: {market.owner_of(space_id)})")
    print(f"  available:      {space.available}")
    print(f"\nAvailable spaces: {market.list_available_spaces()}")
    return market, space_id


# ============================================================================
# PHASE 2: RENTING (Steps 4-6)
# ============================================================================

def step_04_rent(market: Marketplace, space_id: int):
    """Rent with overpayment."""
    step_header(4, "Renting a Space",
        "One transaction: pay escrow, settle the owner, refund the change.")

    cost = CONFIG.lot_a_price * CONFIG.rental_hours
    print(f"""
    Bob rents Lot A for {CONFIG.rental_hours} hours and sends {CONFIG.rental_payment}.
    The cost is {CONFIG.lot_a_price} x {CONFIG.rental_hours} = {cost}, so {CONFIG.rental_payment - cost} comes back.
    """)

    wait_for_enter()

    print(f'>>> rental_id = market.rent_space("bob", {space_id}, '
          f'{CONFIG.rental_hours}, {CONFIG.rental_payment})')
    rental_id = market.rent_space("bob", space_id, CONFIG.rental_hours, CONFIG.rental_payment)

    section_header("Balances")
    show_balances(market)
    return market, rental_id


def step_05_rental_record(market: Marketplace, space_id: int, rental_id: int):
    """Inspect the rental record and indices."""
    step_header(5, "The Rental Record",
        "Rentals are record units, each linked to the previous rental of its space and renter.")

    wait_for_enter()

    rental = market.get_rental(rental_id)
    print(f"  rental id:    {rental.rental_id}")
    print(f"  renter:       {rental.renter}")
    print(f"  window:       {rental.start_time} -> {rental.end_time}")
    print(f"  total cost:   {rental.total_cost}  (refund {rental.refund})")
    print(f"  active:       {market.is_rental_active(rental_id)}")

    section_header("Indices")
    print(f"  rentals of space {space_id}: {market.get_space_rentals(space_id)}")
    print(f"  rentals of bob:     {market.get_renter_rentals('bob')}")
    print(f"  available spaces:   {market.list_available_spaces()}")
    return market


def step_06_notifications(market: Marketplace):
    """Show published notifications."""
    step_header(6, "Notifications",
        "Each committed operation publishes its records; failed ones publish nothing.")

    wait_for_enter()

    for note in market.notifications:
        print(f"  {note.name:<18} {note}")
    return market


# ============================================================================
# PHASE 3: RULES (Steps 7-9)
# ============================================================================

def step_07_rejections(market: Marketplace, space_id: int, rental_id: int):
    """Operations that are refused."""
    step_header(7, "Rejections",
        "Every refused operation raises and leaves the ledger untouched.")

    wait_for_enter()

    attempts = [
        ("carol rents the rented space", lambda: market.rent_space("carol", space_id, 1, 100)),
        ("bob completes too early", lambda: market.complete_rental("bob", rental_id)),
        ("bob reprices alice's space", lambda: market.update_price("bob", space_id, 1)),
        ("carol rents a missing space", lambda: market.rent_space("carol", 99, 1, 100)),
    ]
    log_size = len(market.ledger.transaction_log)
    for label, attempt in attempts:
        try:
            attempt()
        except MarketplaceError as exc:
            print(f"  {label:<32} -> {type(exc).__name__}: {exc}")
    print(f"\nTransaction log unchanged: {len(market.ledger.transaction_log) == log_size}")
    return market


def step_08_price_and_owner(market: Marketplace, space_id: int, rental_id: int):
    """Owner-only operations."""
    step_header(8, "Ownership",
        "Only the token holder may reprice or transfer a space.")

    wait_for_enter()

    print(f'>>> market.update_price("alice", {space_id}, {CONFIG.new_price})')
    market.update_price("alice", space_id, CONFIG.new_price)
    print(f"  new price: {market.get_space(space_id).price_per_hour}")
    print(f"  bob's running rental still costs {market.get_rental(rental_id).total_cost}")
    return market


def step_09_atomicity(market: Marketplace):
    """A receive hook that tries to re-enter the marketplace."""
    step_header(9, "Atomicity and Re-entry",
        "A hook calling back into the marketplace rolls the whole operation back.")

    print("""
    Carol lists Lot C. Dave's wallet has a receive hook that tries to rent
    Lot C again the moment his refund arrives.
    """)

    wait_for_enter()

    lot_c = market.create_space("carol", "Lot C", 10)

    def greedy(move):
        market.rent_space("dave", lot_c, 1, 10)

    market.open_account("dave")
    market.fund("dave", 100)
    market.ledger.set_receive_hook("dave", greedy)

    try:
        market.rent_space("dave", lot_c, 1, 50)
    except TransferFailed as exc:
        print(f"  TransferFailed: {exc}")
        print(f"  caused by:      {type(exc.__cause__).__name__}")
    print(f"  dave still holds {market.balance_of('dave')}, Lot C available: "
          f"{market.get_space(lot_c).available}")
    market.ledger.set_receive_hook("dave", None)
    return market


# ============================================================================
# PHASE 4: LIFECYCLE (Steps 10-12)
# ============================================================================

def step_10_completion(market: Marketplace, rental_id: int):
    """Complete after the window ends."""
    step_header(10, "Completing a Rental",
        "After end_time the renter or the owner may close the rental.")

    wait_for_enter()

    end = market.get_rental(rental_id).end_time
    print(f">>> ledger.advance_time({end})")
    market.ledger.advance_time(end)
    print(f'>>> market.complete_rental("bob", {rental_id})')
    market.complete_rental("bob", rental_id)
    print(f"\nAvailable spaces: {market.list_available_spaces()}")
    return market


def step_11_engine(market: Marketplace, space_id: int):
    """Automatic expiry through the LifecycleEngine."""
    step_header(11, "The LifecycleEngine",
        "Polling closes elapsed rentals without anyone calling complete_rental.")

    wait_for_enter()

    rental_id = market.rent_space("carol", space_id, 1, CONFIG.new_price)
    engine = create_rental_engine(market.ledger)
    later = market.get_rental(rental_id).end_time + timedelta(minutes=5)
    print(f">>> engine.step({later})")
    executed = engine.step(later)
    print(f"\nTransactions executed by the engine: {len(executed)}")
    rental = market.get_rental(rental_id)
    print(f"  rental {rental_id} completed_by={rental.completed_by} at {rental.completed_at}")
    return market


def step_12_conservation(market: Marketplace):
    """Final check."""
    step_header(12, "Conservation Finale",
        "After everything, every unit still sums to zero.")

    wait_for_enter()

    result = market.ledger.verify_double_entry()
    for unit, supply in sorted(result['supplies'].items()):
        print(f"  {unit:<20} {supply}")
    print(f"\nValid: {result['valid']}")
    section_header("Final Balances")
    show_balances(market, ("alice", "bob", "carol", "dave", "marketplace_escrow"))


def main():
    """Run the complete tutorial."""
    print("=" * 70)
    print("       PARKING MARKETPLACE - INTERACTIVE TUTORIAL")
    print("=" * 70)

    if QUICK_MODE:
        print("Running in QUICK mode (no pauses)")
    else:
        print("Running in INTERACTIVE mode (press Enter to advance)")

    wait_for_enter()

    market = step_01_marketplace()
    market.ledger.verbose = False
    wait_for_enter()

    market = step_02_accounts(market)
    wait_for_enter()

    market, space_id = step_03_list_space(market)
    wait_for_enter()

    market, rental_id = step_04_rent(market, space_id)
    wait_for_enter()

    market = step_05_rental_record(market, space_id, rental_id)
    wait_for_enter()

    market = step_06_notifications(market)
    wait_for_enter()

    market = step_07_rejections(market, space_id, rental_id)
    wait_for_enter()

    market = step_08_price_and_owner(market, space_id, rental_id)
    wait_for_enter()

    market = step_09_atomicity(market)
    wait_for_enter()

    market = step_10_completion(market, rental_id)
    wait_for_enter()

    market = step_11_engine(market, space_id)
    wait_for_enter()

    step_12_conservation(market)

    print("\n" + "=" * 70)
    print("       TUTORIAL COMPLETE!")
    print("=" * 70)
    print("""
    Next steps:
      - See parkledger/units/*.py for the space and rental state machines
      - Run tests: pytest tests/
    """)


if __name__ == "__main__":
    main()
