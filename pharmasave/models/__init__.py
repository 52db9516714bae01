from .auth_account import AuthAccount
from .pharmacy import Pharmacy, PharmacyDocument, VerificationStatus
from .pharmacist import (
    Pharmacist,
    PharmacyInvitation,
    EmployeeRole,
    EmployeeStatus,
    InvitationStatus,
)
from .wallet import (
    Wallet,
    WalletTransaction,
    FundRequest,
    WithdrawalRequest,
    RequestStatus,
    WalletTransactionType,
)
from .verification import VerificationQueueEntry, ArchivedPharmacy, QueueStatus
from .notification import Notification, NotificationType
from .admin_user import AdminUser, AdminRole
from .marketplace import Listing, MarketplaceTransaction, TransactionStatus
from .financial import (
    FinancialMetrics,
    RevenueBreakdown,
    ExpenseBreakdown,
    TransactionHistory,
    PlatformConfig,
)
