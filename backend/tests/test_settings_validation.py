"""
Tests for Settings configuration validation in config.py.
"""
import pytest
from pydantic import ValidationError

from app.core.config import Settings

# Test credentials for Settings instantiation
TEST_SECRET_KEY = "test-secret-key-for-unit-tests"  # pragma: allowlist secret


class TestSentryTracesSampleRateValidation:
    """Tests for SENTRY_TRACES_SAMPLE_RATE validation."""

    def test_valid_sample_rate_default(self):
        """Test that the default sample rate (0.1) is valid."""
        settings = Settings(SECRET_KEY=TEST_SECRET_KEY)
        assert settings.SENTRY_TRACES_SAMPLE_RATE == pytest.approx(0.1)

    @pytest.mark.parametrize("rate", [0.0, 0.5, 1.0])
    def test_valid_sample_rates(self, rate):
        """Test that the bounds and values between them are accepted."""
        settings = Settings(SECRET_KEY=TEST_SECRET_KEY, SENTRY_TRACES_SAMPLE_RATE=rate)
        assert settings.SENTRY_TRACES_SAMPLE_RATE == pytest.approx(rate)

    @pytest.mark.parametrize("rate", [-0.1, 1.1])
    def test_invalid_sample_rates(self, rate):
        """Test that values outside [0, 1] are rejected."""
        with pytest.raises(ValidationError) as exc_info:
            Settings(SECRET_KEY=TEST_SECRET_KEY, SENTRY_TRACES_SAMPLE_RATE=rate)
        errors = exc_info.value.errors()
        assert len(errors) == 1
        assert errors[0]["loc"] == ("SENTRY_TRACES_SAMPLE_RATE",)


class TestTestLinkSettings:
    """Tests for link and countdown durations."""

    def test_defaults(self):
        """Test that links last seven days and questions fifteen seconds."""
        settings = Settings(SECRET_KEY=TEST_SECRET_KEY)

        assert settings.TEST_LINK_EXPIRE_DAYS == 7
        assert settings.QUESTION_TIME_LIMIT_SECONDS == 15
        assert settings.ADMIN_SESSION_HOURS == 24
        assert settings.ADMIN_SESSION_COOKIE == "session"
        assert settings.API_PREFIX == "/api"

    @pytest.mark.parametrize(
        "field", ["TEST_LINK_EXPIRE_DAYS", "QUESTION_TIME_LIMIT_SECONDS", "ADMIN_SESSION_HOURS"]
    )
    def test_non_positive_durations_rejected(self, field):
        """Test that zero durations are rejected with the field name."""
        with pytest.raises(ValidationError, match=field):
            Settings(SECRET_KEY=TEST_SECRET_KEY, **{field: 0})

    def test_negative_sweep_interval_rejected(self):
        """Test that a negative sweep interval is rejected."""
        with pytest.raises(ValidationError, match="SESSION_SWEEP_INTERVAL_MINUTES"):
            Settings(SECRET_KEY=TEST_SECRET_KEY, SESSION_SWEEP_INTERVAL_MINUTES=-1)

    def test_zero_sweep_interval_allowed(self):
        """Test that 0 (sweeper disabled) is accepted."""
        settings = Settings(SECRET_KEY=TEST_SECRET_KEY, SESSION_SWEEP_INTERVAL_MINUTES=0)
        assert settings.SESSION_SWEEP_INTERVAL_MINUTES == 0


class TestPublicBaseUrl:
    """Tests for PUBLIC_BASE_URL normalization."""

    def test_trailing_slash_stripped(self):
        """Test that a trailing slash is removed."""
        settings = Settings(
            SECRET_KEY=TEST_SECRET_KEY, PUBLIC_BASE_URL="https://tests.example.com/"
        )
        assert settings.PUBLIC_BASE_URL == "https://tests.example.com"

    def test_unset_by_default(self):
        """Test that links fall back to the request origin by default."""
        settings = Settings(SECRET_KEY=TEST_SECRET_KEY)
        assert settings.PUBLIC_BASE_URL is None


class TestSecretKeyRequired:
    """Tests for the required SECRET_KEY."""

    def test_missing_secret_key_rejected(self, monkeypatch):
        """Test that Settings cannot be built without SECRET_KEY."""
        monkeypatch.delenv("SECRET_KEY", raising=False)
        with pytest.raises(ValidationError, match="SECRET_KEY"):
            Settings(_env_file=None)
