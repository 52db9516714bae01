from typing import Any, Dict

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from pharmasave import models
from pharmasave.api import deps
from pharmasave.schemas.transaction import (
    AmountValidation,
    FeeCalculation,
    MarketplaceStats,
    PlatformConfigUpdate,
    PurchaseTestRequest,
    TradeTestRequest,
    UnifiedTransactionRequest,
    UnifiedTransactionResponse,
    WalletBalance,
)
from pharmasave.services import transaction_service
from pharmasave.services.fee_service import DEFAULT_CONFIG, PlatformFeeService

router = APIRouter()


@router.post("/execute", response_model=UnifiedTransactionResponse)
def execute_transaction(
    *,
    db: Session = Depends(deps.get_db),
    fees: PlatformFeeService = Depends(deps.get_fee_service),
    _: models.AuthAccount = Depends(deps.get_current_account),
    request: UnifiedTransactionRequest,
) -> Any:
    """
    Settle a purchase or trade. Always answers with a settlement; when the database
    settlement function is unavailable the figures are computed against demo balances.
    """
    return transaction_service.execute_transaction(db, request, fees)


@router.post("/test/purchase", response_model=UnifiedTransactionResponse)
def test_purchase(
    *,
    db: Session = Depends(deps.get_db),
    fees: PlatformFeeService = Depends(deps.get_fee_service),
    _: models.AuthAccount = Depends(deps.get_current_account),
    data: PurchaseTestRequest,
) -> Any:
    return transaction_service.simulate_purchase(
        db, data.amount, data.buyer_id, data.seller_id, data.reference, fee_service=fees
    )


@router.post("/test/trade", response_model=UnifiedTransactionResponse)
def test_trade(
    *,
    db: Session = Depends(deps.get_db),
    fees: PlatformFeeService = Depends(deps.get_fee_service),
    _: models.AuthAccount = Depends(deps.get_current_account),
    data: TradeTestRequest,
) -> Any:
    return transaction_service.simulate_trade(
        db, data.value_a, data.value_b, data.trader_a_id, data.trader_b_id, data.reference, fee_service=fees
    )


@router.get("/stats", response_model=MarketplaceStats)
def marketplace_stats(
    *,
    db: Session = Depends(deps.get_db),
    _: models.AuthAccount = Depends(deps.get_current_account),
) -> Any:
    return transaction_service.get_marketplace_stats(db)


@router.get("/balance/{pharmacy_id}", response_model=WalletBalance)
def wallet_balance(
    *,
    db: Session = Depends(deps.get_db),
    _: models.AuthAccount = Depends(deps.get_current_account),
    pharmacy_id: str,
) -> Any:
    return transaction_service.get_wallet_balance(db, pharmacy_id)


@router.get("/fees/calculate", response_model=FeeCalculation)
def calculate_fees(
    *,
    db: Session = Depends(deps.get_db),
    fees: PlatformFeeService = Depends(deps.get_fee_service),
    _: models.AuthAccount = Depends(deps.get_current_account),
    amount: float = Query(..., gt=0),
    transaction_type: str = "purchase",
) -> Any:
    return fees.calculate_transaction_fees(db, amount, transaction_type)


@router.get("/fees/validate", response_model=AmountValidation)
def validate_amount(
    *,
    db: Session = Depends(deps.get_db),
    fees: PlatformFeeService = Depends(deps.get_fee_service),
    _: models.AuthAccount = Depends(deps.get_current_account),
    amount: float = Query(...),
) -> Any:
    return fees.validate_transaction_amount(db, amount)


@router.get("/config")
def read_platform_config(
    *,
    db: Session = Depends(deps.get_db),
    fees: PlatformFeeService = Depends(deps.get_fee_service),
    _: models.AuthAccount = Depends(deps.get_current_account),
) -> Dict[str, float]:
    return fees.get_all(db)


@router.put("/config")
def update_platform_config(
    *,
    db: Session = Depends(deps.get_db),
    fees: PlatformFeeService = Depends(deps.get_fee_service),
    admin: models.AdminUser = Depends(deps.get_current_admin),
    data: PlatformConfigUpdate,
) -> Dict[str, Any]:
    if data.config_key not in DEFAULT_CONFIG:
        raise HTTPException(status_code=422, detail=f"Unknown config key: {data.config_key}")
    if not fees.update_config(db, data.config_key, data.config_value, updated_by=admin.id):
        raise HTTPException(status_code=500, detail="Failed to update platform configuration")
    return {"success": True, "config_key": data.config_key, "config_value": data.config_value}


@router.post("/config/clear-cache")
def clear_config_cache(
    *,
    fees: PlatformFeeService = Depends(deps.get_fee_service),
    _: models.AdminUser = Depends(deps.get_current_admin),
) -> Dict[str, bool]:
    fees.clear_cache()
    return {"success": True}
