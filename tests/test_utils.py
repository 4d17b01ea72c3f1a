"""Tests for the shared helpers in utils."""

import pytest

from utils import _parse_environ_boolean, human_join


class TestHumanJoin:
    """Test joining role names for replies."""

    def test_empty(self):
        assert human_join([]) == ""

    def test_single(self):
        assert human_join(["Helper"]) == "Helper"

    def test_pair(self):
        assert human_join(["Helper", "Moderator"]) == "Helper and Moderator"

    def test_many(self):
        assert human_join(["Helper", "Moderator", "Fans"]) == "Helper, Moderator, and Fans"

    def test_custom_last(self):
        assert human_join(["Helper", "Moderator"], last="or") == "Helper or Moderator"


class TestParseEnvironBoolean:
    """Test the environment flag parsing."""

    def test_unset_defaults_true(self, monkeypatch):
        monkeypatch.delenv("PERSIST_BEFORE_POST", raising=False)
        assert _parse_environ_boolean("PERSIST_BEFORE_POST") is True

    def test_unset_false_if_none(self, monkeypatch):
        monkeypatch.delenv("RUN_DEVELOPMENT", raising=False)
        assert _parse_environ_boolean("RUN_DEVELOPMENT", false_if_none=True) is False

    @pytest.mark.parametrize("value, expected", [("true", True), ("1", True), ("TRUE", True), ("false", False), ("0", False)])
    def test_values(self, monkeypatch, value, expected):
        monkeypatch.setenv("PERSIST_BEFORE_POST", value)
        assert _parse_environ_boolean("PERSIST_BEFORE_POST") is expected
