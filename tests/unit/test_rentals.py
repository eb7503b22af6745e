"""
Tests for rental.py - Rental Records and the Rental State Machine

Tests:
- compute_rental_cost / compute_refund arithmetic
- create_rental_unit factory
- compute_rental_open (check order, moves, state changes, notification)
- compute_rental_completion (check order, completion record)
- rental_contract (automatic completion of elapsed rentals)
"""

import pytest
from datetime import timedelta
from decimal import Decimal

from parkledger import (
    InvalidInput, NotFound, InvalidState, Unauthorized, InsufficientPayment, TooEarly,
    SpaceRented, RentalCompleted,
    OriginType,
    compute_rental_cost, compute_refund,
    create_rental_unit,
    compute_rental_open, compute_rental_completion,
    rental_contract, load_rental,
    REGISTRY_SYMBOL, SYSTEM_WALLET, UNIT_TYPE_RENTAL, MAX_AMOUNT,
)
from tests.fake_view import FakeView
from tests.helpers import T0, space_state, registry_state


# ============================================================================
# Arithmetic
# ============================================================================

class TestCostAndRefund:

    def test_cost_is_exact_product(self):
        assert compute_rental_cost(100, 2) == 200
        assert compute_rental_cost(10**18, 24) == 24 * 10**18

    def test_refund(self):
        assert compute_refund(250, 200) == 50
        assert compute_refund(200, 200) == 0

    def test_underpayment_raises(self):
        with pytest.raises(InsufficientPayment, match="below total cost"):
            compute_refund(199, 200)


# ============================================================================
# create_rental_unit Tests
# ============================================================================

class TestCreateRentalUnit:

    def test_create_basic(self):
        unit = create_rental_unit(3, 1, "bob", T0, 2, 200, 250)
        assert unit.symbol == "RENTAL_3"
        assert unit.unit_type == UNIT_TYPE_RENTAL
        assert unit.max_balance == Decimal("0")
        state = unit.state
        assert state['end_time'] == T0 + timedelta(hours=2)
        assert state['active'] is True
        assert state['refund'] == 50
        assert state['completed_at'] is None

    def test_empty_renter_rejected(self):
        with pytest.raises(InvalidInput):
            create_rental_unit(1, 1, "", T0, 2, 200, 200)


# ============================================================================
# compute_rental_open Tests
# ============================================================================

class TestComputeRentalOpen:

    def test_open_transaction(self, space_view):
        pending = compute_rental_open(space_view, 1, 2, 250, "bob")

        assert [u.symbol for u in pending.units_to_create] == ["RENTAL_1", "RENTER_bob"]
        moves = [(m.source, m.dest, m.quantity) for m in pending.moves]
        assert moves == [
            ("bob", "marketplace_escrow", Decimal("250")),
            ("marketplace_escrow", "alice", Decimal("200")),
            ("marketplace_escrow", "bob", Decimal("50")),
        ]

        changes = {sc.unit: sc.changed_fields() for sc in pending.state_changes}
        assert changes["SPACE_1"] == {
            'available': (True, False),
            'last_rental_id': (None, 1),
            'rental_count': (0, 1),
            'revision': (0, 1),
        }
        assert changes[REGISTRY_SYMBOL] == {'next_rental_id': (1, 2)}
        rental_state = pending.units_to_create[0].state
        assert rental_state['previous_space_rental'] is None
        assert rental_state['previous_renter_rental'] is None

        assert pending.notifications == (
            SpaceRented(
                rental_id=1, space_id=1, renter="bob",
                start_time=T0, end_time=T0 + timedelta(hours=2), total_cost=200,
            ),
        )
        assert pending.origin.origin_type == OriginType.USER_ACTION

    def test_exact_payment_has_no_refund_move(self, space_view):
        pending = compute_rental_open(space_view, 1, 3, 300, "bob")
        assert len(pending.moves) == 2
        assert sum(m.quantity for m in pending.moves if m.dest == "alice") == Decimal("300")

    def test_missing_space(self, space_view):
        with pytest.raises(NotFound):
            compute_rental_open(space_view, 5, 0, 0, "bob")

    def test_rented_space_checked_before_duration(self):
        view = FakeView(
            balances={"alice": {"SPACE_1": Decimal("1")}, "bob": {"USD": Decimal("1000")}},
            states={REGISTRY_SYMBOL: registry_state(), "SPACE_1": space_state(available=False)},
            time=T0,
        )
        with pytest.raises(InvalidState, match="already rented"):
            compute_rental_open(view, 1, 0, 0, "bob")

    @pytest.mark.parametrize("hours", [0, 25, -1, 2.5, True])
    def test_duration_out_of_range(self, space_view, hours):
        with pytest.raises(InvalidInput, match="duration_hours"):
            compute_rental_open(space_view, 1, hours, 10_000, "bob")

    def test_duration_bounds_inclusive(self, space_view):
        assert not compute_rental_open(space_view, 1, 1, 100, "bob").is_empty()
        # 24 hours passes the duration check and fails only on funds
        with pytest.raises(InsufficientPayment, match="cannot pay"):
            compute_rental_open(space_view, 1, 24, 2400, "bob")

    def test_custom_max_hours(self, space_view):
        with pytest.raises(InvalidInput):
            compute_rental_open(space_view, 1, 5, 500, "bob", max_hours=4)

    def test_underpayment(self, space_view):
        with pytest.raises(InsufficientPayment):
            compute_rental_open(space_view, 1, 2, 199, "bob")

    def test_payment_not_held(self, space_view):
        with pytest.raises(InsufficientPayment, match="cannot pay"):
            compute_rental_open(space_view, 1, 2, 1001, "bob")

    def test_negative_payment_is_invalid_input(self, space_view):
        with pytest.raises(InvalidInput, match="payment"):
            compute_rental_open(space_view, 1, 2, -1, "bob")

    def test_unknown_renter(self, space_view):
        with pytest.raises(InvalidInput):
            compute_rental_open(space_view, 1, 2, 200, "mallory")

    def test_missing_space_reported_before_unknown_renter(self, space_view):
        with pytest.raises(NotFound):
            compute_rental_open(space_view, 99, 1, 100, "ghost")

    def test_rented_space_reported_before_unknown_renter(self, rental_view):
        with pytest.raises(InvalidState):
            compute_rental_open(rental_view, 1, 1, 100, "ghost")

    @pytest.mark.parametrize("renter", [SYSTEM_WALLET, "marketplace_escrow"])
    def test_reserved_wallet_cannot_rent(self, space_view, renter):
        with pytest.raises(InvalidInput, match="cannot be the"):
            compute_rental_open(space_view, 1, 2, 200, renter)

    def test_payment_above_max_amount(self, space_view):
        with pytest.raises(InvalidInput, match="maximum amount"):
            compute_rental_open(space_view, 1, 1, MAX_AMOUNT + 1, "bob")

    def test_cost_at_and_above_max_amount(self):
        view = FakeView(
            balances={"alice": {"SPACE_1": Decimal("1")}, "bob": {"USD": Decimal(MAX_AMOUNT)}},
            states={REGISTRY_SYMBOL: registry_state(), "SPACE_1": space_state(price=MAX_AMOUNT)},
            time=T0,
        )
        pending = compute_rental_open(view, 1, 1, MAX_AMOUNT, "bob")
        assert pending.moves[1].quantity == Decimal(MAX_AMOUNT)
        with pytest.raises(InvalidInput, match="total cost"):
            compute_rental_open(view, 1, 2, MAX_AMOUNT, "bob")


class TestRentalHistoryLinks:

    def test_links_point_to_previous_rentals(self, rented_market):
        market, space_id, first = rented_market
        market.ledger.advance_time(T0 + timedelta(hours=2))
        market.complete_rental("bob", first)
        by_carol = market.rent_space("carol", space_id, 1, 100)
        market.ledger.advance_time(T0 + timedelta(hours=3))
        market.complete_rental("carol", by_carol)
        by_bob = market.rent_space("bob", space_id, 1, 100)

        carol_state = market.ledger.get_unit_state(f"RENTAL_{by_carol}")
        assert carol_state['previous_space_rental'] == first
        assert carol_state['previous_renter_rental'] is None
        bob_state = market.ledger.get_unit_state(f"RENTAL_{by_bob}")
        assert bob_state['previous_space_rental'] == by_carol
        assert bob_state['previous_renter_rental'] == first

    def test_second_rental_updates_existing_renter_index(self, rented_market):
        market, space_id, first = rented_market
        market.ledger.advance_time(T0 + timedelta(hours=2))
        market.complete_rental("bob", first)
        pending = compute_rental_open(market.ledger, space_id, 1, 100, "bob")

        assert [u.symbol for u in pending.units_to_create] == ["RENTAL_2"]
        changes = {sc.unit: sc.changed_fields() for sc in pending.state_changes}
        assert changes["RENTER_bob"] == {'last_rental_id': (1, 2), 'rental_count': (1, 2)}


# ============================================================================
# compute_rental_completion Tests
# ============================================================================

class TestComputeRentalCompletion:

    def test_completion_by_renter(self, rental_view):
        pending = compute_rental_completion(rental_view, 1, "bob")
        changes = {sc.unit: sc.changed_fields() for sc in pending.state_changes}
        assert changes["RENTAL_1"] == {
            'active': (True, False),
            'completed_at': (None, T0 + timedelta(hours=2)),
            'completed_by': (None, "bob"),
        }
        assert changes["SPACE_1"] == {'available': (False, True), 'revision': (1, 2)}
        assert pending.moves == ()
        assert pending.notifications == (RentalCompleted(rental_id=1, space_id=1),)

    def test_completion_by_owner(self, rental_view):
        pending = compute_rental_completion(rental_view, 1, "alice")
        assert pending.origin.source_id == "alice"

    def test_missing_rental(self, rental_view):
        with pytest.raises(NotFound):
            compute_rental_completion(rental_view, 2, "bob")

    def test_stranger_rejected(self, rental_view):
        with pytest.raises(Unauthorized):
            compute_rental_completion(rental_view, 1, "carol")

    def test_authorization_checked_before_time(self, rental_view):
        with pytest.raises(Unauthorized):
            compute_rental_completion(rental_view, 1, "carol", T0)

    def test_too_early(self, rental_view):
        just_before = T0 + timedelta(hours=2) - timedelta(seconds=1)
        with pytest.raises(TooEarly):
            compute_rental_completion(rental_view, 1, "bob", just_before)

    def test_completed_rental_is_invalid_state(self, rental_view):
        state = rental_view.get_unit_state("RENTAL_1")
        state['active'] = False
        view = FakeView(
            balances={"alice": {"SPACE_1": Decimal("1")}, "bob": {}, "carol": {}},
            states={**{s: rental_view.get_unit_state(s) for s in ("SPACE_1", REGISTRY_SYMBOL)},
                    "RENTAL_1": state},
            time=T0 + timedelta(hours=5),
        )
        with pytest.raises(InvalidState, match="not active"):
            compute_rental_completion(view, 1, "carol")

    def test_load_rental(self, rental_view):
        rental = load_rental(rental_view, 1)
        assert rental.renter == "bob"
        assert rental.total_cost == 200
        assert rental.active


# ============================================================================
# rental_contract Tests
# ============================================================================

class TestRentalContract:

    def test_not_due(self, rental_view):
        pending = rental_contract(rental_view, "RENTAL_1", T0 + timedelta(hours=1))
        assert pending.is_empty()

    def test_due_completes_as_system(self, rental_view):
        when = T0 + timedelta(hours=2)
        pending = rental_contract(rental_view, "RENTAL_1", when)
        assert pending.origin.origin_type == OriginType.LIFECYCLE
        changes = {sc.unit: sc.new_state for sc in pending.state_changes}
        assert changes["RENTAL_1"]['completed_by'] == SYSTEM_WALLET
        assert changes["RENTAL_1"]['completed_at'] == when
        assert changes["SPACE_1"]['available'] is True

    def test_inactive_rental_ignored(self, rental_view):
        state = rental_view.get_unit_state("RENTAL_1")
        state['active'] = False
        view = FakeView(balances={}, states={"RENTAL_1": state}, time=T0)
        assert rental_contract(view, "RENTAL_1", T0 + timedelta(days=1)).is_empty()
