"""
Tests for environment-driven settings in social.graze.identity.app.config
"""

import pytest

from social.graze.identity.app.config import Settings
from social.graze.identity.app.server import setup_providers
from social.graze.identity.app.util.__main__ import checkProviders
from social.graze.identity.auth.passport import Authenticator
from tests.test_helpers import FakeIdentityStore

PROVIDER_ENV = [
    "GITHUB_CLIENT_ID",
    "GITHUB_CLIENT_SECRET",
    "GOOGLE_CLIENT_ID",
    "GOOGLE_CLIENT_SECRET",
    "FACEBOOK_CLIENT_ID",
    "FACEBOOK_CLIENT_SECRET",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in PROVIDER_ENV + ["EXTERNAL_HOSTNAME", "PORT", "DEBUG"]:
        monkeypatch.delenv(name, raising=False)


class TestSettings:
    def test_defaults(self):
        settings = Settings()
        assert settings.debug is False
        assert settings.http_port == 5100
        assert settings.statsd_prefix == "identity"
        assert settings.github_client_id is None

    def test_reads_environment(self, monkeypatch):
        monkeypatch.setenv("PORT", "8080")
        monkeypatch.setenv("DEBUG", "true")
        monkeypatch.setenv("GITHUB_CLIENT_ID", "gh-id")

        settings = Settings()

        assert settings.http_port == 8080
        assert settings.debug is True
        assert settings.github_client_id == "gh-id"

    def test_callback_url(self, monkeypatch):
        monkeypatch.setenv("EXTERNAL_HOSTNAME", "id.example.com")
        assert (
            Settings().callback_url("github")
            == "https://id.example.com/auth/github/callback"
        )


class TestStrategyConfig:
    def test_complete(self, monkeypatch):
        monkeypatch.setenv("GOOGLE_CLIENT_ID", "g-id")
        monkeypatch.setenv("GOOGLE_CLIENT_SECRET", "g-secret")

        config = Settings().strategy_config("google")

        assert config.client_id == "g-id"
        assert config.client_secret == "g-secret"
        assert config.callback_url == "https://localhost:5100/auth/google/callback"
        assert config.missing_fields() == []

    def test_missing_secret(self, monkeypatch):
        monkeypatch.setenv("GITHUB_CLIENT_ID", "gh-id")

        config = Settings().strategy_config("github")

        assert config.missing_fields() == ["client_secret"]
        assert config.env_name("client_secret") == "GITHUB_CLIENT_SECRET"


class TestSetupProviders:
    def test_only_configured_providers_register(self, monkeypatch):
        monkeypatch.setenv("GITHUB_CLIENT_ID", "gh-id")
        monkeypatch.setenv("GITHUB_CLIENT_SECRET", "gh-secret")
        monkeypatch.setenv("FACEBOOK_CLIENT_ID", "fb-id")

        authenticator = Authenticator()
        setup_providers(Settings(), authenticator, FakeIdentityStore())

        assert authenticator.names() == ["github"]

    def test_nothing_configured(self):
        authenticator = Authenticator()
        setup_providers(Settings(), authenticator, FakeIdentityStore())
        assert len(authenticator) == 0


class TestCheckProviders:
    def test_reports_each_provider(self, monkeypatch, capsys):
        monkeypatch.setenv("GOOGLE_CLIENT_ID", "g-id")
        monkeypatch.setenv("GOOGLE_CLIENT_SECRET", "g-secret")
        monkeypatch.setenv("GITHUB_CLIENT_ID", "gh-id")

        checkProviders(Settings())

        lines = capsys.readouterr().out.splitlines()
        assert lines == [
            "github: disabled (missing GITHUB_CLIENT_SECRET)",
            "google: enabled, callback https://localhost:5100/auth/google/callback",
            "facebook: disabled (missing FACEBOOK_CLIENT_ID, FACEBOOK_CLIENT_SECRET)",
        ]
