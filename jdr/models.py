"""SQLAlchemy ORM models for campaigns and their dice rolls."""

from __future__ import annotations

import enum
import json
from datetime import datetime

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    Enum,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from jdr.database import Base

# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class MemberRole(str, enum.Enum):
    """Role of a user within a campaign."""

    game_master = "game_master"
    player = "player"


class RollVisibility(str, enum.Enum):
    """Who may see a campaign roll."""

    public = "public"  # every campaign member
    private = "private"  # the roller only
    gm_only = "gm_only"  # the roller and the game masters


# ---------------------------------------------------------------------------
# Timestamp mixin
# ---------------------------------------------------------------------------


class TimestampMixin:
    """Adds created_at and updated_at columns to any model."""

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )


# ---------------------------------------------------------------------------
# Models
# ---------------------------------------------------------------------------


class User(TimestampMixin, Base):
    """A player account. Only the identity needed to attribute rolls."""

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    display_name: Mapped[str] = mapped_column(String(100), nullable=False)
    email: Mapped[str | None] = mapped_column(String(255), unique=True, nullable=True)

    memberships: Mapped[list[CampaignMember]] = relationship(
        back_populates="user", cascade="all, delete-orphan"
    )
    dice_rolls: Mapped[list[DiceRoll]] = relationship(back_populates="user")


class Campaign(TimestampMixin, Base):
    """A campaign that members roll dice in."""

    __tablename__ = "campaigns"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    members: Mapped[list[CampaignMember]] = relationship(
        back_populates="campaign", cascade="all, delete-orphan"
    )
    dice_rolls: Mapped[list[DiceRoll]] = relationship(
        back_populates="campaign", cascade="all, delete-orphan"
    )


class CampaignMember(TimestampMixin, Base):
    """Membership record linking a User to a Campaign with a role."""

    __tablename__ = "campaign_members"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    campaign_id: Mapped[int] = mapped_column(
        ForeignKey("campaigns.id", ondelete="CASCADE"), nullable=False
    )
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    role: Mapped[MemberRole] = mapped_column(
        Enum(MemberRole, native_enum=False), nullable=False, default=MemberRole.player
    )

    campaign: Mapped[Campaign] = relationship(back_populates="members")
    user: Mapped[User] = relationship(back_populates="memberships")

    __table_args__ = (UniqueConstraint("campaign_id", "user_id", name="uq_campaign_member"),)


class DiceRoll(TimestampMixin, Base):
    """A persisted campaign roll."""

    __tablename__ = "dice_rolls"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    campaign_id: Mapped[int] = mapped_column(
        ForeignKey("campaigns.id", ondelete="CASCADE"), nullable=False, index=True
    )
    user_id: Mapped[int | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    dice_type: Mapped[str] = mapped_column(String(10), nullable=False)
    number_of_dice: Mapped[int] = mapped_column(Integer, nullable=False)
    modifier: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    results_json: Mapped[str] = mapped_column(Text, nullable=False)
    total: Mapped[int] = mapped_column(Integer, nullable=False)
    notation: Mapped[str] = mapped_column(String(20), nullable=False)
    formatted_result: Mapped[str] = mapped_column(Text, nullable=False)
    quality: Mapped[str | None] = mapped_column(String(20), nullable=True)
    purpose: Mapped[str | None] = mapped_column(String(200), nullable=True)
    visibility: Mapped[RollVisibility] = mapped_column(
        Enum(RollVisibility, native_enum=False),
        nullable=False,
        default=RollVisibility.public,
    )

    campaign: Mapped[Campaign] = relationship(back_populates="dice_rolls")
    user: Mapped[User | None] = relationship(back_populates="dice_rolls")

    __table_args__ = (
        CheckConstraint(
            "number_of_dice >= 1 AND number_of_dice <= 20", name="ck_dice_roll_number_of_dice"
        ),
        CheckConstraint("modifier >= -100 AND modifier <= 100", name="ck_dice_roll_modifier"),
    )

    @property
    def results(self) -> list[int]:
        """Return the individual die faces, deserializing from JSON."""
        return json.loads(self.results_json)

    @results.setter
    def results(self, value: list[int]) -> None:
        """Serialize and store the individual die faces as a JSON string."""
        self.results_json = json.dumps(list(value))
