import pytest

from shared.validators import parse_string_list
from wizard.server.settings import WizardServerSettings


class TestParseStringList:
    def test_json_array_string(self):
        assert parse_string_list('["http://a.com","http://b.com"]') == ["http://a.com", "http://b.com"]

    def test_comma_separated_with_whitespace(self):
        assert parse_string_list("http://a.com , http://b.com") == ["http://a.com", "http://b.com"]

    def test_passthrough_list(self):
        assert parse_string_list(["http://a.com", " http://b.com "]) == ["http://a.com", "http://b.com"]

    def test_duplicates_dropped_in_order(self):
        assert parse_string_list("b,a,b,a") == ["b", "a"]

    def test_comma_separated_skips_empty_segments(self):
        assert parse_string_list("http://a.com,,http://b.com,") == ["http://a.com", "http://b.com"]

    @pytest.mark.parametrize("value", ["", "   ", ",", ",,,", "[]", []])
    def test_empty_values_raise(self, value):
        with pytest.raises(ValueError, match="must not be empty"):
            parse_string_list(value)

    def test_empty_allowed_when_requested(self):
        assert parse_string_list("[]", allow_empty=True) == []
        assert parse_string_list([], allow_empty=True) == []

    def test_invalid_json_raises(self):
        with pytest.raises(ValueError, match="Invalid JSON array"):
            parse_string_list("[not valid json")

    def test_json_mixed_types_array_raises(self):
        with pytest.raises(ValueError, match="must be an array of strings"):
            parse_string_list('["http://a.com", 123]')


class TestStringListEnvSource:
    def test_comma_separated_env_value(self, monkeypatch):
        monkeypatch.setenv("WIZARD_CORS_ORIGINS", "http://a.com,http://b.com")
        assert WizardServerSettings().cors_origins == ["http://a.com", "http://b.com"]

    def test_json_env_value(self, monkeypatch):
        monkeypatch.setenv("WIZARD_CORS_ORIGINS", '["http://a.com"]')
        assert WizardServerSettings().cors_origins == ["http://a.com"]

    def test_default_without_env(self, monkeypatch):
        monkeypatch.delenv("WIZARD_CORS_ORIGINS", raising=False)
        assert WizardServerSettings().cors_origins == ["http://localhost:5173"]

    def test_other_fields_still_parsed(self, monkeypatch):
        monkeypatch.setenv("WIZARD_MAX_REQUEST_BODY_BYTES", "2048")
        assert WizardServerSettings().max_request_body_bytes == 2048
