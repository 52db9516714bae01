from .auth_account import auth_account
from .pharmacy import pharmacy, pharmacy_document
from .pharmacist import pharmacist, invitation
from .wallet import wallet, wallet_transaction, fund_request, withdrawal_request
from .notification import notification
from .verification import verification_queue, archived_pharmacy
from .admin import admin
from .marketplace import listing, marketplace_transaction

__all__ = [
    "auth_account", "pharmacy", "pharmacy_document", "pharmacist", "invitation",
    "wallet", "wallet_transaction", "fund_request", "withdrawal_request",
    "notification", "verification_queue", "archived_pharmacy", "admin",
    "listing", "marketplace_transaction",
]
