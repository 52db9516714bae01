"""
Platform fee configuration and fee arithmetic.

Configuration values are resolved cache → database → built-in default. The cache is
Redis with a five minute TTL; a Redis outage only costs the cache.
"""

import logging
from decimal import Decimal
from typing import Any, Dict, Optional

import redis
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from pharmasave.core.config import settings
from pharmasave.core.database_utils import routine_exists, call_routine
from pharmasave.core.redis import get_redis_client
from pharmasave.models import PlatformConfig
from pharmasave.schemas.transaction import FeeCalculation, AmountValidation
from pharmasave.utils.formatting import to_money, format_currency

logger = logging.getLogger(__name__)

CACHE_PREFIX = "platform_config:"

DEFAULT_CONFIG: Dict[str, float] = {
    "platform_fee_percentage": 0.06,
    "buyer_fee_percentage": settings.BUYER_FEE_PERCENTAGE,
    "seller_fee_percentage": settings.SELLER_FEE_PERCENTAGE,
    "withdrawal_fee_fixed": settings.WITHDRAWAL_FEE_FIXED,
    "monthly_subscription_fee": settings.MONTHLY_SUBSCRIPTION_FEE,
    "minimum_transaction_amount": settings.MIN_TRANSACTION_AMOUNT,
    "maximum_transaction_amount": settings.MAX_TRANSACTION_AMOUNT,
}


class PlatformFeeService:
    def __init__(self, redis_client: Optional[Any] = None, ttl_seconds: Optional[int] = None):
        self._redis = redis_client
        self.ttl_seconds = ttl_seconds or settings.PLATFORM_CONFIG_CACHE_SECONDS

    @property
    def redis(self):
        return self._redis if self._redis is not None else get_redis_client()

    @staticmethod
    def get_default_value(config_key: str) -> float:
        return DEFAULT_CONFIG.get(config_key, 0)

    def _cache_get(self, config_key: str) -> Optional[float]:
        try:
            cached = self.redis.get(f"{CACHE_PREFIX}{config_key}")
        except redis.RedisError as e:
            logger.warning(f"Redis unavailable, skipping config cache: {e}")
            return None
        return float(cached) if cached is not None else None

    def _cache_set(self, config_key: str, value: float) -> None:
        try:
            self.redis.setex(f"{CACHE_PREFIX}{config_key}", self.ttl_seconds, str(value))
        except redis.RedisError as e:
            logger.warning(f"Redis unavailable, config {config_key} not cached: {e}")

    def _load_from_db(self, db: Session, config_key: str) -> Optional[float]:
        if routine_exists(db, "get_platform_config"):
            rows = call_routine(db, "get_platform_config", {"p_config_key": config_key})
            if rows:
                value = next(iter(rows[0].values()))
                return float(value) if value is not None else None
        row = db.query(PlatformConfig).filter(PlatformConfig.config_key == config_key).first()
        return float(row.config_value) if row else None

    def get_config(self, db: Session, config_key: str) -> float:
        cached = self._cache_get(config_key)
        if cached is not None:
            return cached
        try:
            value = self._load_from_db(db, config_key)
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Error fetching config {config_key}: {e}")
            return self.get_default_value(config_key)
        if value is None:
            return self.get_default_value(config_key)
        self._cache_set(config_key, value)
        return value

    def get_all(self, db: Session) -> Dict[str, float]:
        return {key: self.get_config(db, key) for key in DEFAULT_CONFIG}

    def update_config(self, db: Session, config_key: str, config_value: float, updated_by: Optional[str] = None) -> bool:
        try:
            if routine_exists(db, "update_platform_config"):
                call_routine(db, "update_platform_config", {"p_config_key": config_key, "p_config_value": config_value})
            else:
                row = db.query(PlatformConfig).filter(PlatformConfig.config_key == config_key).first()
                if row is None:
                    row = PlatformConfig(config_key=config_key, config_value=config_value)
                row.config_value = config_value
                row.updated_by = updated_by
                db.add(row)
                db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Error updating config {config_key}: {e}")
            return False
        self.invalidate(config_key)
        logger.info(f"⚙️ Platform config {config_key} set to {config_value}")
        return True

    def invalidate(self, config_key: str) -> None:
        try:
            self.redis.delete(f"{CACHE_PREFIX}{config_key}")
        except redis.RedisError as e:
            logger.warning(f"Redis unavailable, could not invalidate {config_key}: {e}")

    def clear_cache(self) -> None:
        for key in DEFAULT_CONFIG:
            self.invalidate(key)

    def calculate_fees_locally(self, db: Session, transaction_amount: float) -> FeeCalculation:
        platform_fee_rate = self.get_config(db, "platform_fee_percentage")
        buyer_fee = to_money(Decimal(str(transaction_amount)) * Decimal(str(self.get_config(db, "buyer_fee_percentage"))))
        seller_fee = to_money(Decimal(str(transaction_amount)) * Decimal(str(self.get_config(db, "seller_fee_percentage"))))
        amount = to_money(transaction_amount)
        platform_fee = buyer_fee + seller_fee
        return FeeCalculation(
            transaction_amount=float(amount),
            platform_fee_rate=platform_fee_rate,
            platform_fee=float(platform_fee),
            buyer_fee=float(buyer_fee),
            seller_fee=float(seller_fee),
            total_fees=float(platform_fee),
            net_amount=float(amount - seller_fee),
            buyer_total=float(amount + buyer_fee),
            currency=settings.CURRENCY,
        )

    def calculate_transaction_fees(self, db: Session, transaction_amount: float, transaction_type: str = "purchase") -> FeeCalculation:
        if routine_exists(db, "calculate_transaction_fees"):
            try:
                rows = call_routine(
                    db,
                    "calculate_transaction_fees",
                    {"p_transaction_amount": transaction_amount, "p_transaction_type": transaction_type},
                )
                if rows:
                    return FeeCalculation(**rows[0])
            except (SQLAlchemyError, ValueError) as e:
                db.rollback()
                logger.error(f"Error calculating fees remotely, using local calculation: {e}")
        return self.calculate_fees_locally(db, transaction_amount)

    def validate_transaction_amount(self, db: Session, amount: float) -> AmountValidation:
        min_amount = self.get_config(db, "minimum_transaction_amount")
        max_amount = self.get_config(db, "maximum_transaction_amount")
        if amount < min_amount:
            return AmountValidation(
                is_valid=False,
                error=f"Minimum transaction amount is {format_currency(min_amount)}",
                min_amount=min_amount,
                max_amount=max_amount,
            )
        if amount > max_amount:
            return AmountValidation(
                is_valid=False,
                error=f"Maximum transaction amount is {format_currency(max_amount)}",
                min_amount=min_amount,
                max_amount=max_amount,
            )
        return AmountValidation(is_valid=True, min_amount=min_amount, max_amount=max_amount)


platform_fee_service = PlatformFeeService()
