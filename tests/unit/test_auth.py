"""
Unit tests for refresh caller authentication.
"""

import pytest

from catalog_sync.config import Settings
from catalog_sync.core.errors import AuthenticationError, ConfigurationError
from catalog_sync.pipeline import authenticate


@pytest.fixture
def auth_settings():
    return Settings(cron_secret="s3cret")


class TestAuthenticate:
    """Tests for authenticate()"""

    def test_bearer_secret(self, auth_settings):
        assert authenticate({"Authorization": "Bearer s3cret"}, auth_settings) == "bearer"

    def test_header_names_and_scheme_are_case_insensitive(self, auth_settings):
        assert authenticate({"authorization": "bearer s3cret"}, auth_settings) == "bearer"

    def test_scheduler_header(self, auth_settings):
        """Test the scheduler's marker header is accepted"""
        assert authenticate({"X-Vercel-Cron": "1"}, auth_settings) == "scheduler"

    @pytest.mark.parametrize("headers", [
        {},
        {"Authorization": "Bearer wrong"},
        {"Authorization": "s3cret"},
        {"Authorization": "Basic s3cret"},
        {"X-Vercel-Cron": "0"},
    ])
    def test_rejected(self, auth_settings, headers):
        """Test missing or wrong credentials raise AuthenticationError"""
        with pytest.raises(AuthenticationError) as exc_info:
            authenticate(headers, auth_settings)

        assert exc_info.value.error_type == "unauthorized"
        assert "CRON_SECRET" in str(exc_info.value)

    def test_wrong_bearer_falls_back_to_scheduler(self, auth_settings):
        headers = {"Authorization": "Bearer wrong", "x-vercel-cron": "1"}
        assert authenticate(headers, auth_settings) == "scheduler"

    def test_no_secret_configured(self):
        """Test a deployment without a secret refuses every caller"""
        with pytest.raises(ConfigurationError):
            authenticate({"Authorization": "Bearer anything"}, Settings())

    def test_custom_scheduler_header(self):
        settings = Settings(cron_secret="s3cret", scheduler_header="X-Cron-Job", scheduler_header_value="yes")
        assert authenticate({"x-cron-job": "yes"}, settings) == "scheduler"
