"""
Validators Tests

Tests for user-supplied volume validation.
"""

import pytest

from discord_playlist.domain.shared.exceptions import ValidationError
from discord_playlist.domain.shared.validators import validate_volume


class TestValidateVolume:
    @pytest.mark.parametrize("value", [0, 0.0, 37.5, 100])
    def test_accepts_in_range(self, value):
        assert validate_volume(value, 100.0) == float(value)

    @pytest.mark.parametrize("value", [-0.1, 100.01, float("nan")])
    def test_rejects_out_of_range(self, value):
        with pytest.raises(ValidationError) as exc_info:
            validate_volume(value, 100.0)

        assert exc_info.value.field == "volume"
        assert exc_info.value.message == "Volume must be between 0 and 100"

    def test_respects_lower_ceiling(self):
        with pytest.raises(ValidationError, match="between 0 and 62.5"):
            validate_volume(70, 62.5)
