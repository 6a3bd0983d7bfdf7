from datetime import timezone

import pytest

from clinica.backend.app import create_app


def _app(**overrides):
    return create_app({
        "TESTING": True,
        "SQLALCHEMY_DATABASE_URI": "sqlite:///:memory:",
        **overrides,
    })


def test_settings_are_resolved_at_startup():
    app = _app(DASHBOARD_RECENT_LIMIT="3")
    assert app.config["DASHBOARD_RECENT_LIMIT"] == 3
    assert app.config["CLINIC_TZINFO"] is timezone.utc


def test_unknown_timezone_fails_at_startup():
    with pytest.raises(ValueError, match="CLINIC_TIMEZONE 'Mars/Olympus_Mons'"):
        _app(CLINIC_TIMEZONE="Mars/Olympus_Mons")


@pytest.mark.parametrize("limit", ["ten", "", None])
def test_non_numeric_recent_limit_fails_at_startup(limit):
    with pytest.raises(ValueError, match="DASHBOARD_RECENT_LIMIT must be an integer"):
        _app(DASHBOARD_RECENT_LIMIT=limit)
