import pytest
from pydantic import ValidationError

from stacka.settings import Settings


def test_prod_requires_cron_secret():
    with pytest.raises(ValidationError, match="CRON_SECRET"):
        Settings(app_env="prod", testing=False, metrics_enabled=False, _env_file=None)


def test_prod_requires_metrics_token_when_metrics_enabled():
    with pytest.raises(ValidationError, match="METRICS_TOKEN"):
        Settings(
            app_env="prod",
            testing=False,
            cron_secret="cron-secret",
            metrics_enabled=True,
            metrics_token=None,
            _env_file=None,
        )


def test_prod_forbids_testing_mode():
    with pytest.raises(ValidationError, match="testing"):
        Settings(
            app_env="prod",
            testing=True,
            cron_secret="cron-secret",
            metrics_enabled=False,
            _env_file=None,
        )


def test_dev_allows_missing_secrets():
    settings = Settings(app_env="dev", _env_file=None)

    assert settings.cron_secret is None
    assert settings.default_salary_day == 25
    assert settings.timezone == "Europe/Stockholm"


@pytest.mark.parametrize(
    ("field", "value"),
    [
        ("default_salary_day", 0),
        ("default_salary_day", 32),
        ("default_invoice_break_day", 29),
        ("timezone", "Mars/Olympus_Mons"),
    ],
)
def test_invalid_household_defaults(field, value):
    with pytest.raises(ValidationError):
        Settings(app_env="dev", _env_file=None, **{field: value})


def test_cors_origins_parsing():
    settings = Settings(app_env="dev", cors_origins="https://a.se, https://b.se", _env_file=None)

    assert settings.cors_origins == ["https://a.se", "https://b.se"]
