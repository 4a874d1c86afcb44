"""Tests for centralized configuration."""

import pytest
from pydantic import ValidationError

from position_coach.config import Settings


class TestSettings:
    def test_defaults(self, monkeypatch):
        """Works with nothing configured."""
        for name in ("CP_THRESHOLD", "LOG_LEVEL", "JSON_INDENT"):
            monkeypatch.delenv(f"POSITION_COACH_{name}", raising=False)
        s = Settings(_env_file=None)
        assert s.cp_threshold == 150
        assert s.log_level == "WARNING"
        assert s.json_indent == 2

    def test_env_override(self, monkeypatch):
        monkeypatch.setenv("POSITION_COACH_CP_THRESHOLD", "200")
        monkeypatch.setenv("POSITION_COACH_LOG_LEVEL", "debug")
        monkeypatch.setenv("POSITION_COACH_JSON_INDENT", "4")
        s = Settings(_env_file=None)
        assert s.cp_threshold == 200.0
        assert s.log_level == "debug"
        assert s.json_indent == 4

    def test_unprefixed_variables_ignored(self, monkeypatch):
        monkeypatch.delenv("POSITION_COACH_CP_THRESHOLD", raising=False)
        monkeypatch.setenv("CP_THRESHOLD", "999")
        assert Settings(_env_file=None).cp_threshold == 150

    @pytest.mark.parametrize("value", ["0", "-10"])
    def test_threshold_must_be_positive(self, monkeypatch, value):
        monkeypatch.setenv("POSITION_COACH_CP_THRESHOLD", value)
        with pytest.raises(ValidationError):
            Settings(_env_file=None)
