"""Tests for tier1_runtime modules."""
from __future__ import annotations

from datetime import datetime, timezone
from zoneinfo import ZoneInfo

from updates_sdk.tier1_runtime.clock import (
    Clock,
    next_daily_run,
    now,
    resolve_timezone,
    set_clock,
)
from updates_sdk.tier1_runtime.validate import parse_provider_document


# ── clock ──────────────────────────────────────────────────────────────────

class TestClock:
    def test_now_returns_utc_datetime(self):
        dt = now()
        assert dt.tzinfo is not None

    def test_frozen_clock(self):
        fixed = datetime(2025, 1, 1, 12, 0, 0, tzinfo=timezone.utc)
        clock = Clock().freeze(fixed)
        assert clock.now() == fixed

    def test_frozen_clock_set_global(self):
        fixed = datetime(2025, 6, 15, 0, 0, 0, tzinfo=timezone.utc)
        set_clock(Clock().freeze(fixed))
        assert now() == fixed

    def test_advance(self):
        fixed = datetime(2025, 1, 1, 12, 0, 0, tzinfo=timezone.utc)
        later = Clock().freeze(fixed).advance(3600)
        assert later.now() == datetime(2025, 1, 1, 13, 0, 0, tzinfo=timezone.utc)


class TestDailyRun:
    def test_next_run_is_tomorrow_at_hour(self):
        tokyo = ZoneInfo("Asia/Tokyo")
        # 2025-03-10 01:00 in Tokyo, before today's 03:00 slot
        at = datetime(2025, 3, 9, 16, 0, tzinfo=timezone.utc)
        run = next_daily_run(at, 3, tokyo)
        assert run == datetime(2025, 3, 11, 3, 0, tzinfo=tokyo)

    def test_next_run_after_slot(self):
        tokyo = ZoneInfo("Asia/Tokyo")
        # 2025-03-10 22:00 in Tokyo
        at = datetime(2025, 3, 10, 13, 0, tzinfo=timezone.utc)
        run = next_daily_run(at, 3, tokyo)
        assert run == datetime(2025, 3, 11, 3, 0, tzinfo=tokyo)

    def test_local_date_is_used(self):
        tokyo = ZoneInfo("Asia/Tokyo")
        # still 2025-03-10 in UTC but already 2025-03-11 in Tokyo
        at = datetime(2025, 3, 10, 20, 0, tzinfo=timezone.utc)
        run = next_daily_run(at, 3, tokyo)
        assert run == datetime(2025, 3, 12, 3, 0, tzinfo=tokyo)

    def test_resolve_timezone_falls_back(self):
        assert resolve_timezone("Not/AZone") == ZoneInfo("Asia/Tokyo")
        assert resolve_timezone(None) == ZoneInfo("Asia/Tokyo")
        assert resolve_timezone("Europe/Berlin") == ZoneInfo("Europe/Berlin")


# ── validate ───────────────────────────────────────────────────────────────

class TestProviderDocument:
    def test_single_valid_entry(self):
        parsed = parse_provider_document({
            "acme": {
                "productionEndpoint": {
                    "siteUrl": "https://a.example",
                    "apiUrl": "https://a.example/api",
                }
            }
        })
        assert parsed.ok
        assert len(parsed.providers) == 1
        provider = parsed.providers[0]
        assert provider.identifier == "acme"
        assert provider.enabled is True
        assert provider.staging_endpoint is None
        assert provider.production_endpoint.api_url == "https://a.example/api"

    def test_entry_missing_api_url_is_skipped(self):
        parsed = parse_provider_document({
            "broken": {"productionEndpoint": {"siteUrl": "https://b.example"}},
            "acme": {
                "productionEndpoint": {
                    "siteUrl": "https://a.example",
                    "apiUrl": "https://a.example/api",
                }
            },
        })
        assert [p.identifier for p in parsed.providers] == ["acme"]
        assert "broken" in parsed.skipped
        assert "broken" not in parsed.wire

    def test_only_invalid_entries(self):
        parsed = parse_provider_document({
            "broken": {"productionEndpoint": {"siteUrl": "https://b.example", "apiUrl": ""}},
            "worse": "not-a-mapping",
            "nothing": {},
        })
        assert not parsed.ok
        assert set(parsed.skipped) == {"broken", "worse", "nothing"}

    def test_non_string_urls_rejected(self):
        parsed = parse_provider_document({
            "acme": {"productionEndpoint": {"siteUrl": 1, "apiUrl": 2}},
        })
        assert not parsed.ok

    def test_malformed_staging_is_dropped(self):
        parsed = parse_provider_document({
            "acme": {
                "productionEndpoint": {"siteUrl": "https://a.example", "apiUrl": "https://a.example/api"},
                "stagingEndpoint": {"siteUrl": "https://s.example"},
            }
        })
        assert parsed.ok
        assert parsed.providers[0].staging_endpoint is None
        assert "stagingEndpoint" not in parsed.wire["acme"]

    def test_staging_and_disabled(self):
        parsed = parse_provider_document({
            "acme": {
                "productionEndpoint": {"siteUrl": "https://a.example", "apiUrl": "https://a.example/api"},
                "stagingEndpoint": {"siteUrl": "https://s.example", "apiUrl": "https://s.example/api"},
                "enabled": False,
            }
        })
        provider = parsed.providers[0]
        assert provider.staging_endpoint.api_url == "https://s.example/api"
        assert provider.enabled is False

    def test_null_enabled_keeps_provider_enabled(self):
        parsed = parse_provider_document({
            "acme": {
                "productionEndpoint": {"siteUrl": "https://a.example", "apiUrl": "https://a.example/api"},
                "enabled": None,
            }
        })
        assert parsed.skipped == {}
        assert parsed.providers[0].enabled is True
        assert parsed.wire["acme"]["enabled"] is True

    def test_lowercase_keys_accepted(self):
        parsed = parse_provider_document({
            "acme": {"productionEndpoint": {"siteurl": "https://a.example", "apiurl": "https://a.example/api"}},
        })
        assert parsed.ok

    def test_wire_form_reparses_to_same_providers(self):
        raw = {
            "acme": {
                "productionEndpoint": {"siteUrl": "https://a.example", "apiUrl": "https://a.example/api"},
                "stagingEndpoint": {"siteUrl": "https://s.example", "apiUrl": "https://s.example/api"},
            },
            "globex": {
                "productionEndpoint": {"siteUrl": "https://g.example", "apiUrl": "https://g.example/api"},
                "enabled": False,
            },
        }
        first = parse_provider_document(raw)
        second = parse_provider_document(first.wire)
        assert [p.to_dict() for p in second.providers] == [p.to_dict() for p in first.providers]
        assert second.wire == first.wire

    def test_document_order_preserved(self):
        endpoint = {"siteUrl": "https://x.example", "apiUrl": "https://x.example/api"}
        parsed = parse_provider_document({
            "zeta": {"productionEndpoint": endpoint},
            "alpha": {"productionEndpoint": endpoint},
        })
        assert [p.identifier for p in parsed.providers] == ["zeta", "alpha"]
