from pharmasave.models import PlatformConfig
from pharmasave.services.fee_service import CACHE_PREFIX


def test_defaults_when_nothing_configured(db, fee_service):
    assert fee_service.get_config(db, "buyer_fee_percentage") == 0.03
    assert fee_service.get_config(db, "minimum_transaction_amount") == 50
    assert fee_service.get_config(db, "unknown_key") == 0


def test_stored_value_is_cached(db, fee_service, fake_redis):
    db.add(PlatformConfig(config_key="buyer_fee_percentage", config_value=0.025))
    db.commit()

    assert fee_service.get_config(db, "buyer_fee_percentage") == 0.025
    assert fake_redis.store[f"{CACHE_PREFIX}buyer_fee_percentage"] == "0.025"

    db.query(PlatformConfig).delete()
    db.commit()
    assert fee_service.get_config(db, "buyer_fee_percentage") == 0.025


def test_update_invalidates_cache(db, fee_service, fake_redis):
    fee_service.update_config(db, "seller_fee_percentage", 0.02)
    assert fee_service.get_config(db, "seller_fee_percentage") == 0.02

    assert fee_service.update_config(db, "seller_fee_percentage", 0.04, updated_by="admin-1") is True
    assert f"{CACHE_PREFIX}seller_fee_percentage" not in fake_redis.store
    assert fee_service.get_config(db, "seller_fee_percentage") == 0.04


def test_local_fee_calculation(db, fee_service):
    fees = fee_service.calculate_transaction_fees(db, 100)

    assert fees.buyer_fee == 3
    assert fees.seller_fee == 3
    assert fees.total_fees == 6
    assert fees.buyer_total == 103
    assert fees.net_amount == 97
    assert fees.currency == "EGP"


def test_fee_rounding_is_half_up(db, fee_service):
    fees = fee_service.calculate_fees_locally(db, 50.5)
    # 50.5 * 0.03 = 1.515
    assert fees.buyer_fee == 1.52


def test_amount_limits(db, fee_service):
    too_small = fee_service.validate_transaction_amount(db, 10)
    assert too_small.is_valid is False
    assert too_small.error == "Minimum transaction amount is EGP 50.00"

    too_large = fee_service.validate_transaction_amount(db, 60000)
    assert too_large.is_valid is False
    assert "Maximum" in too_large.error

    assert fee_service.validate_transaction_amount(db, 500).is_valid is True


def test_clear_cache_drops_every_key(db, fee_service, fake_redis):
    fee_service.get_all(db)
    fake_redis.store[f"{CACHE_PREFIX}buyer_fee_percentage"] = "0.5"
    fee_service.clear_cache()
    assert fake_redis.store == {}
