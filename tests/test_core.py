"""
test_core.py - Unit tests for core data structures

Tests:
- Move: creation, validation, immutability
- PendingTransaction / Transaction: intent ids, emptiness, notifications
- UnitStateChange: changed_fields
- Unit: frozen state, rounding
- Transfer rules: recorded owner rule
- Unit factories: cash
- Exception hierarchy of the marketplace error kinds
"""

import pytest
from datetime import datetime
from decimal import Decimal

from parkledger import (
    Move, Transaction, PendingTransaction, Unit, UnitStateChange,
    TransactionOrigin, OriginType,
    build_transaction, empty_pending_transaction,
    cash,
    recorded_owner_transfer_rule,
    TransferRuleViolation,
    LedgerError, InsufficientFunds, MarketplaceError,
    InvalidInput, NotFound, InvalidState, Unauthorized,
    InsufficientPayment, TooEarly, TransferFailed, ReentrancyError,
    PriceUpdated,
    SYSTEM_WALLET, UNIT_TYPE_CASH,
)
from tests.fake_view import FakeView


def _test_origin() -> TransactionOrigin:
    return TransactionOrigin(
        origin_type=OriginType.USER_ACTION,
        source_id="test",
    )


class TestMove:
    """Tests for Move dataclass."""

    def test_create_valid_move(self):
        move = Move(Decimal("100"), "USD", "alice", "bob", "tx_001")
        assert move.source == "alice"
        assert move.dest == "bob"
        assert move.unit_symbol == "USD"
        assert move.quantity == Decimal("100")
        assert move.contract_id == "tx_001"
        assert move.metadata is None

    def test_move_zero_quantity_raises(self):
        with pytest.raises(ValueError, match="quantity is effectively zero"):
            Move(Decimal("0"), "USD", "alice", "bob", "tx_001")

    def test_move_same_source_dest_raises(self):
        with pytest.raises(ValueError, match="Source and dest must be different"):
            Move(Decimal("100"), "USD", "alice", "alice", "tx_001")

    def test_move_requires_decimal(self):
        with pytest.raises(ValueError, match="must be Decimal"):
            Move(100, "USD", "alice", "bob", "tx_001")

    def test_move_rejects_non_finite(self):
        with pytest.raises(ValueError, match="finite"):
            Move(Decimal("Infinity"), "USD", "alice", "bob", "tx_001")

    def test_move_empty_fields_raise(self):
        with pytest.raises(ValueError, match="source cannot be empty"):
            Move(Decimal("1"), "USD", " ", "bob", "tx_001")
        with pytest.raises(ValueError, match="contract_id cannot be empty"):
            Move(Decimal("1"), "USD", "alice", "bob", "")

    def test_move_is_frozen(self):
        move = Move(Decimal("100"), "USD", "alice", "bob", "tx_001")
        with pytest.raises(AttributeError):
            move.quantity = Decimal("200")

    def test_move_repr(self):
        move = Move(Decimal("100"), "USD", "alice", "bob", "tx_001")
        assert "alice" in repr(move)
        assert "bob" in repr(move)
        assert "USD" in repr(move)


class TestPendingTransaction:
    """Tests for PendingTransaction and build_transaction."""

    def test_intent_id_is_deterministic(self):
        view = FakeView(balances={}, time=datetime(2025, 1, 1))
        moves = [Move(Decimal("100"), "USD", "alice", "bob", "p1")]
        tx1 = build_transaction(view, moves, origin=_test_origin())
        tx2 = build_transaction(view, moves, origin=_test_origin())
        assert tx1.intent_id == tx2.intent_id
        assert len(tx1.intent_id) == 16

    def test_intent_id_ignores_decimal_representation(self):
        view = FakeView(balances={})
        tx1 = build_transaction(view, [Move(Decimal("1.0"), "USD", "a", "b", "p")])
        tx2 = build_transaction(view, [Move(Decimal("1.00"), "USD", "a", "b", "p")])
        assert tx1.intent_id == tx2.intent_id

    def test_intent_id_depends_on_state_change(self):
        view = FakeView(balances={})
        sc1 = UnitStateChange("SPACE_1", {'price_per_hour': 100}, {'price_per_hour': 120})
        sc2 = UnitStateChange("SPACE_1", {'price_per_hour': 100}, {'price_per_hour': 130})
        assert build_transaction(view, [], [sc1]).intent_id != build_transaction(view, [], [sc2]).intent_id

    def test_build_transaction_copies_state(self):
        view = FakeView(balances={})
        new_state = {'available': False}
        tx = build_transaction(view, [], [UnitStateChange("SPACE_1", {'available': True}, new_state)])
        new_state['available'] = True
        assert tx.state_changes[0].new_state == {'available': False}

    def test_build_transaction_uses_view_time_and_default_origin(self):
        view = FakeView(balances={}, time=datetime(2025, 3, 1, 12))
        tx = build_transaction(view, [Move(Decimal("1"), "USD", "a", "b", "p")])
        assert tx.timestamp == datetime(2025, 3, 1, 12)
        assert tx.origin.origin_type == OriginType.CONTRACT

    def test_notifications_carried(self):
        view = FakeView(balances={})
        note = PriceUpdated(space_id=1, new_price=150)
        tx = build_transaction(view, [], [UnitStateChange("SPACE_1", {}, {'x': 1})], notifications=[note])
        assert tx.notifications == (note,)

    def test_empty_pending_transaction(self):
        view = FakeView(balances={})
        tx = empty_pending_transaction(view)
        assert tx.is_empty()
        assert isinstance(tx, PendingTransaction)


class TestTransaction:
    """Tests for Transaction dataclass."""

    def test_transaction_requires_content(self):
        with pytest.raises(ValueError, match="must have moves"):
            Transaction(
                moves=(), state_changes=(), origin=_test_origin(),
                timestamp=datetime(2025, 1, 1), intent_id="x", exec_id="e",
                ledger_name="l", execution_time=datetime(2025, 1, 1), sequence_number=0,
            )

    def test_contract_ids_populated(self):
        moves = (
            Move(Decimal("1"), "USD", "a", "b", "rent_RENTAL_1_payment"),
            Move(Decimal("1"), "USD", "b", "c", "rent_RENTAL_1_settle"),
        )
        tx = Transaction(
            moves=moves, state_changes=(), origin=_test_origin(),
            timestamp=datetime(2025, 1, 1), intent_id="x", exec_id="e",
            ledger_name="l", execution_time=datetime(2025, 1, 1), sequence_number=0,
        )
        assert tx.contract_ids == frozenset({"rent_RENTAL_1_payment", "rent_RENTAL_1_settle"})
        assert "Transaction: e" in repr(tx)


class TestUnitStateChange:

    def test_changed_fields(self):
        sc = UnitStateChange(
            "SPACE_1",
            {'available': True, 'price_per_hour': 100},
            {'available': False, 'price_per_hour': 100},
        )
        assert sc.changed_fields() == {'available': (True, False)}

    def test_changed_fields_from_none(self):
        sc = UnitStateChange("X", None, {'a': 1})
        assert sc.changed_fields() == {'a': (None, 1)}


class TestUnit:

    def test_state_returns_new_dict(self):
        unit = cash("USD", "US Dollar")
        state = unit.state
        state['issuer'] = "mallory"
        assert unit.state['issuer'] == SYSTEM_WALLET

    def test_round_integer_units(self):
        unit = cash("USD", "US Dollar")
        assert unit.round(Decimal("10.9")) == Decimal("10")

    def test_round_without_decimal_places(self):
        unit = Unit("X", "X", "OTHER")
        assert unit.round(Decimal("1.23456")) == Decimal("1.23456")


class TestCash:

    def test_cash_defaults(self):
        unit = cash("USD", "US Dollar")
        assert unit.unit_type == UNIT_TYPE_CASH
        assert unit.decimal_places == 0
        assert unit.min_balance == Decimal("0")
        assert unit.transfer_rule is None


class TestRecordedOwnerTransferRule:

    def _view(self, owner="alice"):
        return FakeView(
            balances={"alice": {"SPACE_1": Decimal("1")}},
            states={"SPACE_1": {'owner': owner}},
        )

    def test_owner_may_transfer(self):
        recorded_owner_transfer_rule(self._view(), Move(Decimal("1"), "SPACE_1", "alice", "bob", "t"))

    def test_system_may_mint(self):
        recorded_owner_transfer_rule(self._view(), Move(Decimal("1"), "SPACE_1", SYSTEM_WALLET, "alice", "m"))

    def test_non_owner_rejected(self):
        with pytest.raises(TransferRuleViolation, match="not the recorded owner"):
            recorded_owner_transfer_rule(self._view(), Move(Decimal("1"), "SPACE_1", "bob", "carol", "t"))

    def test_missing_owner_rejected(self):
        with pytest.raises(TransferRuleViolation, match="no recorded owner"):
            recorded_owner_transfer_rule(self._view(owner=None), Move(Decimal("1"), "SPACE_1", "alice", "bob", "t"))


class TestExceptionHierarchy:

    @pytest.mark.parametrize("exc", [
        InvalidInput, NotFound, InvalidState, Unauthorized,
        InsufficientPayment, TooEarly, TransferFailed, ReentrancyError,
    ])
    def test_marketplace_errors_are_ledger_errors(self, exc):
        assert issubclass(exc, MarketplaceError)
        assert issubclass(exc, LedgerError)

    def test_invalid_input_is_value_error(self):
        assert issubclass(InvalidInput, ValueError)

    def test_insufficient_payment_is_insufficient_funds(self):
        assert issubclass(InsufficientPayment, InsufficientFunds)
