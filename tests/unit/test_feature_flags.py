"""Tests for feature flags."""

import logging
from unittest.mock import patch

from convertsave import feature_flags


class TestIsEnabled:
    """Tests for is_enabled."""

    def test_only_one_enables(self):
        assert feature_flags.is_enabled(
            "DOCUMENT_CONVERSION", {"CONVERTSAVE_FEATURE_DOCUMENT_CONVERSION": "1"}
        )
        assert not feature_flags.is_enabled(
            "DOCUMENT_CONVERSION", {"CONVERTSAVE_FEATURE_DOCUMENT_CONVERSION": "true"}
        )
        assert not feature_flags.is_enabled("DOCUMENT_CONVERSION", {})

    def test_case_insensitive_name(self):
        env = {"CONVERTSAVE_FEATURE_DOCUMENT_CONVERSION": "1"}
        assert feature_flags.is_enabled("document_conversion", env)


def test_log_enabled_flags(caplog):
    with patch.dict(
        "os.environ", {"CONVERTSAVE_FEATURE_DOCUMENT_CONVERSION": "1"}
    ), caplog.at_level(logging.INFO, logger="convertsave.feature_flags"):
        feature_flags.log_enabled_flags()

    assert "DOCUMENT_CONVERSION" in caplog.text
