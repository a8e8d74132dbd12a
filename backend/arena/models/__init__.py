"""Database models."""

from arena.models.base import Base, TimestampMixin, UUIDMixin
from arena.models.duel import DuelMatch, DuelStatus
from arena.models.leaderboard import LeaderboardEntry
from arena.models.notification import Notification, NotificationType
from arena.models.redeem import RedeemClaim, RedeemCode
from arena.models.reward import CpaOfferCompletion, DailyRewardClaim
from arena.models.settings import GlobalSetting
from arena.models.shop import (
    Coupon,
    CouponClaim,
    DiscountType,
    OrderStatus,
    ShopItem,
    ShopOrder,
)
from arena.models.tournament import (
    Tournament,
    TournamentEntry,
    TournamentMode,
    TournamentResult,
    TournamentStatus,
)
from arena.models.user import DelegateScreen, Session, User, UserRole, UserStatus
from arena.models.wallet import (
    Currency,
    TransactionStatus,
    TransactionType,
    WalletTransaction,
)
from arena.models.withdrawal import MobileLoadRequest, RequestStatus, WithdrawRequest

__all__ = [
    # Base
    "Base",
    "TimestampMixin",
    "UUIDMixin",
    # User
    "User",
    "Session",
    "UserRole",
    "UserStatus",
    "DelegateScreen",
    # Wallet
    "WalletTransaction",
    "TransactionType",
    "TransactionStatus",
    "Currency",
    # Payout requests
    "WithdrawRequest",
    "MobileLoadRequest",
    "RequestStatus",
    # Tournaments
    "Tournament",
    "TournamentEntry",
    "TournamentResult",
    "TournamentMode",
    "TournamentStatus",
    "LeaderboardEntry",
    # Rewards
    "DailyRewardClaim",
    "CpaOfferCompletion",
    "RedeemCode",
    "RedeemClaim",
    # Shop
    "ShopItem",
    "Coupon",
    "CouponClaim",
    "ShopOrder",
    "DiscountType",
    "OrderStatus",
    # Games
    "DuelMatch",
    "DuelStatus",
    # Misc
    "Notification",
    "NotificationType",
    "GlobalSetting",
]
