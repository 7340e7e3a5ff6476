"""Shared validators for user-supplied values."""

from __future__ import annotations

import math

from discord_playlist.domain.shared.exceptions import ValidationError
from discord_playlist.domain.shared.messages import ErrorMessages


def validate_volume(value: float, max_volume: float) -> float:
    """Validate a volume percentage against the configured ceiling.

    Args:
        value: The requested volume percentage.
        max_volume: The highest percentage users may request.

    Returns:
        The validated percentage as a float.

    Raises:
        ValidationError: If the value is not a finite number in ``[0, max_volume]``.
    """
    volume = float(value)
    if math.isnan(volume) or volume < 0 or volume > max_volume:
        raise ValidationError(
            ErrorMessages.VOLUME_OUT_OF_RANGE.format(max_volume=_fmt(max_volume)),
            field="volume",
        )
    return volume


def _fmt(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else str(value)
