import logging
import math
from datetime import datetime, timezone
from typing import Any, Tuple
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

logger = logging.getLogger(__name__)


class ColorValue(BaseModel):
    """RGBA colour with channels in [0, 1]. Defaults to opaque black."""

    model_config = ConfigDict(allow_inf_nan=False)

    red: float = 0.0
    green: float = 0.0
    blue: float = 0.0
    opacity: float = 1.0

    @classmethod
    def from_color(cls, color: Any) -> "ColorValue":
        """Capture a colour, falling back to the default when it has no RGBA form.

        Accepts a ColorValue, a sequence of at least four components, a mapping
        with red/green/blue/opacity keys or a ``#RRGGBB`` / ``#RRGGBBAA`` string.
        """
        if isinstance(color, ColorValue):
            return color.model_copy()
        try:
            if isinstance(color, str):
                return cls._from_hex(color)
            if isinstance(color, dict):
                return cls.model_validate(color)
            components = [float(c) for c in color]
            if len(components) >= 4 and all(math.isfinite(c) for c in components[:4]):
                red, green, blue, opacity = components[:4]
                return cls(red=red, green=green, blue=blue, opacity=opacity)
        except (TypeError, ValueError):
            pass
        logger.debug("No RGBA components for %r, using default colour", color)
        return cls()

    @classmethod
    def _from_hex(cls, value: str) -> "ColorValue":
        digits = value.strip().lstrip("#")
        if len(digits) == 6:
            digits += "ff"
        if len(digits) != 8:
            raise ValueError(f"bad hex colour: {value}")
        red, green, blue, opacity = (int(digits[i:i + 2], 16) / 255 for i in range(0, 8, 2))
        return cls(red=red, green=green, blue=blue, opacity=opacity)

    def to_color(self) -> Tuple[float, float, float, float]:
        return (self.red, self.green, self.blue, self.opacity)

    def to_hex(self) -> str:
        # display only, stored channels are left as captured
        channels = (min(max(c, 0.0), 1.0) for c in self.to_color())
        return "#" + "".join(f"{round(c * 255):02x}" for c in channels)


BLUE = ColorValue(red=0.0, green=0.478, blue=1.0, opacity=1.0)
PURPLE = ColorValue(red=0.686, green=0.322, blue=0.871, opacity=1.0)


def _now() -> datetime:
    return datetime.now(timezone.utc)


class MoodEntry(BaseModel):
    """
    One mood journal record.
    Serialized with camelCase keys: id, date, colorGradientStart,
    colorGradientEnd, rating, notes.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: UUID = Field(default_factory=uuid4, frozen=True)
    date: datetime = Field(default_factory=_now, description="When the mood was recorded")
    color_gradient_start: ColorValue = Field(default_factory=lambda: BLUE.model_copy())
    color_gradient_end: ColorValue = Field(default_factory=lambda: PURPLE.model_copy())
    rating: int = Field(3, description="Mood score from 1 (worst) to 5 (best)")
    notes: str = ""

    @field_validator("date")
    @classmethod
    def validate_date(cls, v: datetime) -> datetime:
        if v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v

    @field_validator("rating")
    @classmethod
    def clamp_rating(cls, v: int) -> int:
        return min(max(v, 1), 5)

    @classmethod
    def new(cls) -> "MoodEntry":
        """Entry with the defaults of the add action."""
        return cls()
