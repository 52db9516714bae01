from fastapi import APIRouter

from pharmasave.api.v1.endpoints import auth
from pharmasave.api.v1.endpoints import onboarding
from pharmasave.api.v1.endpoints import employees
from pharmasave.api.v1.endpoints import documents
from pharmasave.api.v1.endpoints import wallet
from pharmasave.api.v1.endpoints import transactions
from pharmasave.api.v1.endpoints import marketplace
from pharmasave.api.v1.endpoints import notifications
from pharmasave.api.v1.endpoints import admin_funds
from pharmasave.api.v1.endpoints import admin_verification
from pharmasave.api.v1.endpoints import admin_archives
from pharmasave.api.v1.endpoints import admin_financial
from pharmasave.api.v1.endpoints import admin_management

api_router = APIRouter()

api_router.include_router(auth.router, prefix="/auth", tags=["auth"])
api_router.include_router(onboarding.router, prefix="/onboarding", tags=["onboarding"])
api_router.include_router(employees.router, prefix="/employees", tags=["employees"])
api_router.include_router(documents.router, prefix="/documents", tags=["documents"])
api_router.include_router(wallet.router, prefix="/wallet", tags=["wallet"])
api_router.include_router(transactions.router, prefix="/transactions", tags=["transactions"])
api_router.include_router(marketplace.router, prefix="/marketplace", tags=["marketplace"])
api_router.include_router(notifications.router, prefix="/notifications", tags=["notifications"])
# Back office
api_router.include_router(admin_funds.router, prefix="/admin/funds", tags=["admin-funds"])
api_router.include_router(admin_verification.router, prefix="/admin/verification", tags=["admin-verification"])
api_router.include_router(admin_archives.router, prefix="/admin/archives", tags=["admin-archives"])
api_router.include_router(admin_financial.router, prefix="/admin/financial", tags=["admin-financial"])
api_router.include_router(admin_management.router, prefix="/admin", tags=["admin-management"])
