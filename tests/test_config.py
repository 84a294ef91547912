import pytest

from freightcompare.config import Settings


def test_allow_lists_parse_from_json_and_lowercase_emails(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("FC_TIED_UP_ALLOW_LISTS", '{"Ops@Example.com": ["Blue Arrow Logistics"]}')

    settings = Settings()

    assert settings.tied_up_allow_lists == {"ops@example.com": ("Blue Arrow Logistics",)}


def test_vendor_tuples_accept_comma_separated_values():
    settings = Settings(available_only_vendors="DP World, Gati ", frontend_allowed_origins='["http://a.test"]')

    assert settings.available_only_vendors == ("DP World", "Gati")
    assert settings.frontend_allowed_origins == ("http://a.test",)


def test_defaults_cover_every_transport_mode():
    settings = Settings()

    assert set(settings.volumetric_divisors) == {"Air", "Road", "Rail", "Ship"}
    assert settings.compare_cache_ttl_seconds == 1800
    assert settings.available_only_vendors == ("DP World",)
