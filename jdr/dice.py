"""Server-side dice rolling engine.

A roll is described by a die type (d4 through d100), a number of dice and a
flat modifier. Notation follows the usual XdY, XdY+Z, XdY-Z form.
Examples: 1d20, 3d6+2, 2d10-1.

Randomness is injected: every draw goes through a ``Roller``, a callable
taking the number of sides and returning a face value in [1, sides]. Tests
pass a fixed sequence; production uses a shared ``random.Random``.
"""

from __future__ import annotations

import random
import re
from collections.abc import Callable
from dataclasses import dataclass

Roller = Callable[[int], int]

DICE_SIDES: dict[str, int] = {
    "d4": 4,
    "d6": 6,
    "d8": 8,
    "d10": 10,
    "d12": 12,
    "d20": 20,
    "d100": 100,
}

MIN_DICE = 1
MAX_DICE = 20
MIN_MODIFIER = -100
MAX_MODIFIER = 100

QUALITY_TIERS: tuple[str, ...] = (
    "critical_success",
    "excellent",
    "good",
    "poor",
    "terrible",
    "critical_failure",
)

_NOTATION_RE = re.compile(
    r"^(?P<count>\d{1,3})?(?P<die>d\d+)(?P<mod>[+-]\d{1,4})?$",
    re.IGNORECASE,
)

_rng = random.Random()


class InvalidSpecError(ValueError):
    """Raised when a dice request is out of range or malformed."""

    def __init__(self, field: str, reason: str) -> None:
        super().__init__(f"{field}: {reason}")
        self.field = field
        self.reason = reason


@dataclass(frozen=True)
class DiceSpec:
    """What to roll: ``number_of_dice`` dice of ``dice_type`` plus ``modifier``."""

    dice_type: str
    number_of_dice: int = 1
    modifier: int = 0

    @property
    def sides(self) -> int:
        return DICE_SIDES[self.dice_type]


@dataclass(frozen=True)
class DiceRollResult:
    dice_type: str
    number_of_dice: int
    modifier: int
    results: tuple[int, ...]
    total: int
    notation: str
    formatted_result: str
    quality: str | None


def default_roller(sides: int) -> int:
    """Draw from the process-wide generator."""
    return _rng.randint(1, sides)


def seeded_roller(seed: int) -> Roller:
    """Return a roller backed by its own generator seeded with ``seed``.

    Each call creates a fresh ``random.Random`` so two seeded rollers never
    share state.
    """
    rng = random.Random(seed)

    def _roll(sides: int) -> int:
        return rng.randint(1, sides)

    return _roll


def _is_int(value: object) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def validate_spec(spec: DiceSpec) -> None:
    """Check every field of ``spec`` against the allowed ranges.

    Raises:
        InvalidSpecError: Naming the first offending field.
    """
    if not isinstance(spec.dice_type, str) or spec.dice_type not in DICE_SIDES:
        allowed = ", ".join(DICE_SIDES)
        raise InvalidSpecError("diceType", f"must be one of {allowed}, got {spec.dice_type!r}")
    if not _is_int(spec.number_of_dice) or not MIN_DICE <= spec.number_of_dice <= MAX_DICE:
        raise InvalidSpecError(
            "numberOfDice",
            f"must be an integer between {MIN_DICE} and {MAX_DICE}, got {spec.number_of_dice!r}",
        )
    if not _is_int(spec.modifier) or not MIN_MODIFIER <= spec.modifier <= MAX_MODIFIER:
        raise InvalidSpecError(
            "modifier",
            f"must be an integer between {MIN_MODIFIER} and {MAX_MODIFIER}, got {spec.modifier!r}",
        )


def _signed_term(modifier: int, sep: str = "") -> str:
    if modifier == 0:
        return ""
    sign = "+" if modifier > 0 else "-"
    return f"{sep}{sign}{sep}{abs(modifier)}"


def format_notation(spec: DiceSpec) -> str:
    """Return canonical notation, e.g. ``3d6+2`` or ``1d20``."""
    return f"{spec.number_of_dice}{spec.dice_type}{_signed_term(spec.modifier)}"


def format_result(results: tuple[int, ...], modifier: int, total: int) -> str:
    """Return the breakdown shown to players, e.g. ``[4, 2, 6] + 2 = 14``."""
    faces = ", ".join(str(r) for r in results)
    return f"[{faces}]{_signed_term(modifier, ' ')} = {total}"


def parse_notation(notation: str) -> DiceSpec:
    """Parse dice notation into a validated DiceSpec.

    Args:
        notation: Dice notation string, e.g. "3d6+2". Whitespace is ignored
            and a missing count means one die.

    Raises:
        InvalidSpecError: If the notation is malformed or out of range.
    """
    m = _NOTATION_RE.match(re.sub(r"\s+", "", notation))
    if not m:
        raise InvalidSpecError("notation", f"invalid dice notation: {notation!r}")

    spec = DiceSpec(
        dice_type=m.group("die").lower(),
        number_of_dice=int(m.group("count") or 1),
        modifier=int(m.group("mod") or 0),
    )
    validate_spec(spec)
    return spec


def classify_quality(value: int, low: int, high: int) -> str:
    """Place ``value`` within [low, high] and return its quality tier.

    The extremes are criticals. Between them the range is cut into quarters:
    top quarter excellent, then good, poor, and terrible at the bottom.
    """
    if value >= high:
        return "critical_success"
    if value <= low:
        return "critical_failure"
    position = (value - low) / (high - low)
    if position >= 0.75:
        return "excellent"
    if position >= 0.5:
        return "good"
    if position >= 0.25:
        return "poor"
    return "terrible"


def quality_for(spec: DiceSpec, results: tuple[int, ...]) -> str:
    """Classify a roll's dice (modifier excluded) against their achievable range."""
    if spec.number_of_dice == 1:
        return classify_quality(results[0], 1, spec.sides)
    return classify_quality(sum(results), spec.number_of_dice, spec.number_of_dice * spec.sides)


def evaluate(spec: DiceSpec, roller: Roller | None = None) -> DiceRollResult:
    """Roll the dice described by ``spec``.

    Args:
        spec: What to roll.
        roller: Source of face values; defaults to the shared generator.

    Returns:
        The immutable roll result.

    Raises:
        InvalidSpecError: If ``spec`` is out of range.
    """
    validate_spec(spec)
    draw = roller or default_roller
    sides = spec.sides

    results = tuple(draw(sides) for _ in range(spec.number_of_dice))
    for value in results:
        if not 1 <= value <= sides:
            raise ValueError(f"Roller returned {value} for a {spec.dice_type}")

    total = sum(results) + spec.modifier
    return DiceRollResult(
        dice_type=spec.dice_type,
        number_of_dice=spec.number_of_dice,
        modifier=spec.modifier,
        results=results,
        total=total,
        notation=format_notation(spec),
        formatted_result=format_result(results, spec.modifier, total),
        quality=quality_for(spec, results),
    )


def roll(notation: str, roller: Roller | None = None) -> DiceRollResult:
    """Parse ``notation`` and roll it."""
    return evaluate(parse_notation(notation), roller)
