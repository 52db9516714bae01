from .auth import Token, TokenPayload, SignUpRequest, SignUpResponse, SignInRequest, Account
from .pharmacy import Pharmacy, PharmacyUpdate, Pharmacist, PharmacistUpdate, ProfileResponse, PharmacyDocument
from .transaction import UnifiedTransactionRequest, UnifiedTransactionResponse, FeeCalculation, MarketplaceStats
from .verification import OperationResult
from . import employee
from . import wallet
from . import notification
from . import financial
from . import admin
