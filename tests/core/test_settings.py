"""Tests for settings validation and the client factory's use of them."""
from unittest.mock import patch

import pytest
from pydantic import ValidationError

from shopadmin.core.config import DEFAULT_API_BASE_URL, Settings
from shopadmin.services.api.factory import ShopAdminClient


def test_defaults_are_explicit():
    s = Settings(_env_file=None)
    assert s.api_base_url == DEFAULT_API_BASE_URL
    assert s.uses_default_api_base_url
    assert s.http_client_timeout > 0
    assert s.fulfill_content_field == "content"
    assert s.default_headers == {}


def test_base_url_from_env_strips_trailing_slash(monkeypatch):
    monkeypatch.setenv("API_BASE_URL", "https://shop.example.com/api/")
    s = Settings(_env_file=None)
    assert s.api_base_url == "https://shop.example.com/api"
    assert not s.uses_default_api_base_url


@pytest.mark.parametrize(
    "field,value",
    [
        ("api_base_url", "shop.example.com/api"),
        ("http_client_timeout", 0),
        ("fulfill_content_field", "codes"),
        ("api_default_headers", "[1, 2]"),
        ("api_default_headers", "{not json"),
    ],
)
def test_invalid_values_rejected(field, value):
    with pytest.raises(ValidationError):
        Settings(_env_file=None, **{field: value})


def test_default_headers_parsed():
    s = Settings(_env_file=None, api_default_headers='{"X-Admin-Key": "abc", "X-Shop": 7}')
    assert s.default_headers == {"X-Admin-Key": "abc", "X-Shop": "7"}


def test_factory_warns_on_fallback_base_url():
    with patch("shopadmin.services.api.factory.logger") as mock_logger:
        client = ShopAdminClient.from_settings(Settings(_env_file=None))
        mock_logger.warning.assert_called_once()
        assert mock_logger.warning.call_args.args[0] == "api_base_url_default"
    assert client.orders.fulfill_content_field == "content"


def test_factory_quiet_with_configured_url():
    s = Settings(_env_file=None, api_base_url="https://shop.example.com/api", fulfill_content_field="digitalContent")
    with patch("shopadmin.services.api.factory.logger") as mock_logger:
        client = ShopAdminClient.from_settings(s)
        mock_logger.warning.assert_not_called()
    assert client.transport.base_url == "https://shop.example.com/api"
    assert client.orders.fulfill_content_field == "digitalContent"
