"""User and Session models."""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING

from sqlalchemy import JSON, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from arena.models.base import MONEY, Base, TimestampMixin, UTCDateTime, UUIDMixin, utcnow

if TYPE_CHECKING:
    from arena.models.wallet import WalletTransaction


class UserRole(str, Enum):
    """Application roles."""

    USER = "user"
    ADMIN = "admin"
    DELEGATE = "delegate"


class UserStatus(str, Enum):
    """User account status."""

    ACTIVE = "active"
    SUSPENDED = "suspended"


class DelegateScreen(str, Enum):
    """Back-office screens a delegate can be granted."""

    WITHDRAWALS = "withdrawals"
    MOBILE_LOADS = "mobile_loads"
    TOURNAMENTS = "tournaments"
    RESULTS = "results"
    SHOP_ORDERS = "shop_orders"
    USERS = "users"


class User(Base, UUIDMixin, TimestampMixin):
    """User account model."""

    __tablename__ = "users"

    # Profile
    username: Mapped[str] = mapped_column(String(50), nullable=False)
    username_lower: Mapped[str] = mapped_column(
        String(50),
        unique=True,
        nullable=False,
        index=True,
    )
    email: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        nullable=False,
        index=True,
    )
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    phone: Mapped[str | None] = mapped_column(String(30), nullable=True)
    whatsapp_number: Mapped[str | None] = mapped_column(String(30), nullable=True)
    avatar_url: Mapped[str | None] = mapped_column(String(500), nullable=True)

    # In-game identity used for tournament results
    game_uid: Mapped[str | None] = mapped_column(String(64), nullable=True, index=True)
    game_name: Mapped[str | None] = mapped_column(String(64), nullable=True)

    role: Mapped[str] = mapped_column(
        String(20),
        default=UserRole.USER.value,
        nullable=False,
        index=True,
    )
    status: Mapped[str] = mapped_column(
        String(20),
        default=UserStatus.ACTIVE.value,
        nullable=False,
    )
    # {"withdrawals": true, "tournaments": false, ...}
    delegate_permissions: Mapped[dict] = mapped_column(JSON, default=dict, nullable=False)

    # Balances
    wallet: Mapped[Decimal] = mapped_column(MONEY, default=Decimal("0"), nullable=False)
    token_wallet: Mapped[Decimal] = mapped_column(MONEY, default=Decimal("0"), nullable=False)

    # Referrals
    referral_code: Mapped[str] = mapped_column(
        String(16),
        unique=True,
        nullable=False,
        index=True,
    )
    applied_referral_code: Mapped[str | None] = mapped_column(String(16), nullable=True)
    referred_by_delegate_id: Mapped[str | None] = mapped_column(
        String(36),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    referral_bonus_received: Mapped[Decimal] = mapped_column(
        MONEY, default=Decimal("0"), nullable=False
    )
    total_referral_commissions_earned: Mapped[Decimal] = mapped_column(
        MONEY, default=Decimal("0"), nullable=False
    )

    # Daily login rewards
    daily_login_streak: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    last_login_reward_claim: Mapped[datetime | None] = mapped_column(
        UTCDateTime(), nullable=True
    )

    # Offer wall progress toward the next reward
    cpa_progress: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    last_login: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)

    sessions: Mapped[list["Session"]] = relationship(
        "Session",
        back_populates="user",
        cascade="all, delete-orphan",
    )
    transactions: Mapped[list["WalletTransaction"]] = relationship(
        "WalletTransaction",
        back_populates="user",
        cascade="all, delete-orphan",
        order_by="desc(WalletTransaction.created_at)",
    )

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN.value

    @property
    def is_active(self) -> bool:
        return self.status == UserStatus.ACTIVE.value

    def can_access(self, screen: DelegateScreen | str) -> bool:
        """Admins see every screen; delegates only the ones granted to them."""
        if self.is_admin:
            return True
        if self.role != UserRole.DELEGATE.value:
            return False
        key = screen.value if isinstance(screen, DelegateScreen) else screen
        return bool((self.delegate_permissions or {}).get(key))

    def __repr__(self) -> str:
        return f"<User {self.username}>"


class Session(Base, UUIDMixin):
    """Login session holding the refresh token hash."""

    __tablename__ = "sessions"

    user_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    refresh_token_hash: Mapped[str] = mapped_column(String(255), nullable=False)

    user_agent: Mapped[str | None] = mapped_column(Text, nullable=True)
    ip_address: Mapped[str | None] = mapped_column(String(45), nullable=True)

    created_at: Mapped[datetime] = mapped_column(UTCDateTime(), default=utcnow, nullable=False)
    last_seen_at: Mapped[datetime] = mapped_column(UTCDateTime(), default=utcnow, nullable=False)
    expires_at: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False)

    user: Mapped["User"] = relationship("User", back_populates="sessions")

    def __repr__(self) -> str:
        return f"<Session {self.id[:8]}... user={self.user_id[:8]}...>"
