"""Pydantic request and response bodies for the dice API.

JSON keys are camelCase to match the web client; Python attributes stay
snake_case. Range checks are left to ``jdr.dice.validate_spec``
so every out-of-range value surfaces as the same InvalidSpecError.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from jdr.dice import DiceRollResult, DiceSpec
from jdr.models import DiceRoll, RollVisibility


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class DiceSpecIn(_CamelModel):
    dice_type: str
    # Strict: JSON true/false or "3" must not be coerced into a count.
    number_of_dice: int = Field(default=1, strict=True)
    modifier: int = Field(default=0, strict=True)

    def to_spec(self) -> DiceSpec:
        return DiceSpec(
            dice_type=self.dice_type,
            number_of_dice=self.number_of_dice,
            modifier=self.modifier,
        )


class CampaignRollIn(DiceSpecIn):
    campaign_id: int
    purpose: str | None = Field(default=None, max_length=200)
    visibility: RollVisibility = RollVisibility.public


class DiceRollOut(_CamelModel):
    dice_type: str
    number_of_dice: int
    modifier: int
    results: list[int]
    total: int
    notation: str
    formatted_result: str
    quality: str | None = None

    @classmethod
    def from_result(cls, result: DiceRollResult) -> DiceRollOut:
        return cls(
            dice_type=result.dice_type,
            number_of_dice=result.number_of_dice,
            modifier=result.modifier,
            results=list(result.results),
            total=result.total,
            notation=result.notation,
            formatted_result=result.formatted_result,
            quality=result.quality,
        )


class DiceRollRecordOut(DiceRollOut):
    id: int
    campaign_id: int
    user_id: int | None
    roller_name: str | None
    purpose: str | None
    visibility: RollVisibility
    created_at: datetime

    @classmethod
    def from_record(cls, roll: DiceRoll) -> DiceRollRecordOut:
        """Build from a DiceRoll whose ``user`` relationship is loaded."""
        return cls(
            id=roll.id,
            campaign_id=roll.campaign_id,
            user_id=roll.user_id,
            roller_name=roll.user.display_name if roll.user else None,
            dice_type=roll.dice_type,
            number_of_dice=roll.number_of_dice,
            modifier=roll.modifier,
            results=roll.results,
            total=roll.total,
            notation=roll.notation,
            formatted_result=roll.formatted_result,
            quality=roll.quality,
            purpose=roll.purpose,
            visibility=roll.visibility,
            created_at=roll.created_at,
        )


class Pagination(BaseModel):
    current: int
    pages: int
    total: int


class RollHistoryOut(BaseModel):
    rolls: list[DiceRollRecordOut]
    pagination: Pagination


class RollStatisticsOut(_CamelModel):
    total_rolls: int
    by_dice_type: dict[str, int]
    average_total: float | None
    critical_successes: int
    critical_failures: int
    favorite_dice_types: list[str]
