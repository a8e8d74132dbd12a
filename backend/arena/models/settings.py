"""Admin-editable settings, one JSON document per section."""

from sqlalchemy import JSON, String
from sqlalchemy.orm import Mapped, mapped_column

from arena.models.base import Base, TimestampMixin


class GlobalSetting(Base, TimestampMixin):
    __tablename__ = "global_settings"

    section: Mapped[str] = mapped_column(String(50), primary_key=True)
    value: Mapped[dict] = mapped_column(JSON, default=dict, nullable=False)
    updated_by: Mapped[str | None] = mapped_column(String(36), nullable=True)

    def __repr__(self) -> str:
        return f"<GlobalSetting {self.section}>"
