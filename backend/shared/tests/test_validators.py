import pytest
from pydantic_settings import BaseSettings

from shared.validators import StringListEnvSettingsSource, parse_string_list


class TestParseStringList:
    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ('["http://a.com","http://b.com"]', ["http://a.com", "http://b.com"]),
            ("http://a.com,http://b.com", ["http://a.com", "http://b.com"]),
            ("http://a.com , http://b.com", ["http://a.com", "http://b.com"]),
            ("http://a.com,,http://b.com,", ["http://a.com", "http://b.com"]),
            ("  http://only.com  ", ["http://only.com"]),
        ],
    )
    def test_string_forms(self, raw, expected):
        assert parse_string_list(raw) == expected

    def test_passthrough_list(self):
        origins = ["http://a.com", "http://b.com"]
        assert parse_string_list(origins) == origins

    @pytest.mark.parametrize("raw", ["", ",", ",,,,", "[]", []])
    def test_empty_values_raise(self, raw):
        with pytest.raises(ValueError, match="must not be empty"):
            parse_string_list(raw)

    def test_invalid_json_raises(self):
        with pytest.raises(ValueError, match="Invalid JSON array"):
            parse_string_list("[not valid json")

    def test_json_mixed_types_array_raises(self):
        with pytest.raises(ValueError, match="must be an array of strings"):
            parse_string_list('["http://a.com", 123]')


class _ListSettings(BaseSettings):
    model_config = {"env_prefix": "TEST_"}

    cors_origins: list[str] = ["http://default"]
    ports: list[int] = [1]


class TestStringListEnvSettingsSource:
    def test_string_list_field_left_raw(self, monkeypatch):
        monkeypatch.setenv("TEST_CORS_ORIGINS", "http://a.com,http://b.com")
        source = StringListEnvSettingsSource(_ListSettings)

        assert source()["cors_origins"] == "http://a.com,http://b.com"

    def test_other_list_fields_still_json_decoded(self, monkeypatch):
        monkeypatch.setenv("TEST_PORTS", "[80, 443]")
        source = StringListEnvSettingsSource(_ListSettings)

        assert source()["ports"] == [80, 443]
