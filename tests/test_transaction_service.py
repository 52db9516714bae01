import pytest
from sqlalchemy.exc import OperationalError

from pharmasave.schemas.transaction import UnifiedTransactionRequest
from pharmasave.services import transaction_service


def purchase(amount, **kwargs):
    return UnifiedTransactionRequest(
        transaction_type="purchase", amount_or_value_a=amount, party_a_id="buyer", party_b_id="seller", **kwargs
    )


def trade(value_a, value_b):
    return UnifiedTransactionRequest(
        transaction_type="trade", amount_or_value_a=value_a, value_b=value_b, party_a_id="a", party_b_id="b"
    )


def test_purchase_charges_both_sides():
    result = transaction_service.mock_transaction_response(purchase(100))

    assert result.success is True
    assert result.transaction_subtype == "standard_purchase"
    assert result.party_a_pays == 103
    assert result.party_b_receives == 97
    assert result.party_b_pays == 0
    assert result.total_platform_fees == 6
    assert result.party_a_final_balance == 4897
    assert result.party_b_final_balance == 3097
    assert result.marketplace_reference.startswith("MOCK-PURCHASE-")


def test_purchase_keeps_given_reference():
    result = transaction_service.mock_transaction_response(purchase(250, marketplace_ref="REF-1"))
    assert result.marketplace_reference == "REF-1"


def test_equal_trade_only_costs_fees():
    result = transaction_service.mock_transaction_response(trade(500, 500))

    assert result.transaction_subtype == "equal_trade"
    assert result.party_a_pays == 15
    assert result.party_b_pays == 15
    assert result.party_a_receives == 0
    assert result.party_b_receives == 0
    assert result.total_platform_fees == 30


def test_unequal_trade_higher_side_pays_difference():
    result = transaction_service.mock_transaction_response(trade(1000, 800))

    assert result.transaction_subtype == "unequal_trade_a_pays"
    assert result.value_difference == 200
    assert result.party_a_pays == 230
    assert result.party_b_pays == 30
    assert result.party_b_receives == 200
    assert result.total_platform_fees == 60
    assert result.party_a_final_balance == 4770
    assert result.party_b_final_balance == 3170


def test_unequal_trade_other_direction():
    result = transaction_service.mock_transaction_response(trade(600, 900))

    assert result.transaction_subtype == "unequal_trade_b_pays"
    assert result.value_difference == -300
    assert result.party_a_pays == 27
    assert result.party_b_pays == 327
    assert result.party_a_receives == 300


def test_error_response_leaves_balances_untouched():
    result = transaction_service.mock_transaction_response(purchase(100), "boom")

    assert result.success is False
    assert result.transaction_subtype == "mock_error"
    assert result.error_message == "boom"
    assert result.total_platform_fees == 0
    assert result.party_a_final_balance == 5000
    assert result.party_b_final_balance == 3000


def test_execute_without_settlement_function_uses_local_calculation(db):
    result = transaction_service.execute_transaction(db, purchase(100))
    assert result.success is True
    assert result.party_a_pays == 103


def test_local_settlement_charges_configured_rates(db, fee_service):
    fee_service.update_config(db, "buyer_fee_percentage", 0.05)
    fee_service.update_config(db, "seller_fee_percentage", 0.04)

    quote = fee_service.calculate_transaction_fees(db, 100)
    result = transaction_service.execute_transaction(db, purchase(100), fee_service)

    assert result.party_a_pays == quote.buyer_total == 105
    assert result.party_b_receives == quote.net_amount == 96
    assert result.total_platform_fees == quote.total_fees == 9

    traded = transaction_service.simulate_trade(db, 500, 500, "a", "b", fee_service=fee_service)
    assert traded.party_a_pays == 25
    assert traded.party_b_pays == 20


def test_execute_falls_back_when_settlement_function_fails(db, monkeypatch):
    def failing_call(*args, **kwargs):
        raise OperationalError("SELECT 1", {}, Exception("function crashed"))

    monkeypatch.setattr(transaction_service, "routine_exists", lambda db, name: True)
    monkeypatch.setattr(transaction_service, "call_routine", failing_call)

    result = transaction_service.execute_transaction(db, purchase(100))

    assert result.success is False
    assert result.transaction_subtype == "mock_error"
    assert "function crashed" in result.error_message


def test_execute_uses_settlement_function_rows(db, monkeypatch):
    row = transaction_service.mock_transaction_response(purchase(100)).model_dump()
    row.update(transaction_subtype="db_purchase", marketplace_reference="DB-REF")

    monkeypatch.setattr(transaction_service, "routine_exists", lambda db, name: True)
    monkeypatch.setattr(transaction_service, "call_routine", lambda db, name, params: [row])

    result = transaction_service.execute_transaction(db, purchase(100))

    assert result.transaction_subtype == "db_purchase"
    assert result.marketplace_reference == "DB-REF"


def test_simulated_trade_gets_test_reference(db):
    result = transaction_service.simulate_trade(db, 400, 400, "a", "b")
    assert result.marketplace_reference.startswith("TEST-TRADE-")


def test_request_rejects_non_positive_amount():
    with pytest.raises(ValueError):
        purchase(0)


def test_marketplace_stats_without_pharmacies_are_demo_figures(db):
    stats = transaction_service.get_marketplace_stats(db)
    assert stats.active_pharmacies == 147


def test_marketplace_stats_scale_with_pharmacies(db, owner, other_owner):
    stats = transaction_service.get_marketplace_stats(db)
    assert stats.active_pharmacies == 2
    assert stats.total_transactions == 16


def test_wallet_balance_for_unknown_pharmacy_is_demo_balance(db):
    balance = transaction_service.get_wallet_balance(db, "missing")
    assert balance.balance == 5000
