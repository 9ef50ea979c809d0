"""
Unit tests for dashboard statistics and traffic analytics.
"""
from datetime import datetime, timezone

import pytest

from studio.utils.analytics import classify_browser, get_analytics, get_stats, is_mobile

EDGE_UA = ("Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) "
           "Chrome/120.0.0.0 Safari/537.36 Edg/120.0.2210.91")
CHROME_UA = ("Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) "
             "Chrome/120.0.0.0 Safari/537.36")
FIREFOX_UA = "Mozilla/5.0 (X11; Linux x86_64; rv:121.0) Gecko/20100101 Firefox/121.0"
FIREFOX_IOS_UA = ("Mozilla/5.0 (iPhone; CPU iPhone OS 17_2 like Mac OS X) AppleWebKit/605.1.15 "
                  "(KHTML, like Gecko) FxiOS/121.0 Mobile/15E148 Safari/605.1.15")
SAFARI_IPHONE_UA = ("Mozilla/5.0 (iPhone; CPU iPhone OS 17_2 like Mac OS X) AppleWebKit/605.1.15 "
                    "(KHTML, like Gecko) Version/17.2 Mobile/15E148 Safari/604.1")
ANDROID_CHROME_UA = ("Mozilla/5.0 (Linux; Android 14; Pixel 8) AppleWebKit/537.36 (KHTML, like Gecko) "
                     "Chrome/120.0.0.0 Mobile Safari/537.36")

NOW = datetime(2026, 3, 10, 12, 0, tzinfo=timezone.utc)


@pytest.mark.unit
class TestClassifiers:
    """Tests for the user-agent classifiers."""

    @pytest.mark.parametrize("ua,expected", [
        (EDGE_UA, "Edge"),
        ("Mozilla/5.0 (Windows NT 10.0) Edge/18.19041", "Edge"),
        (CHROME_UA, "Chrome"),
        (ANDROID_CHROME_UA, "Chrome"),
        (FIREFOX_UA, "Firefox"),
        (FIREFOX_IOS_UA, "Firefox"),
        (SAFARI_IPHONE_UA, "Safari"),
        ("curl/8.4.0", "Other"),
        ("", "Other"),
        (None, "Other"),
    ])
    def test_classify_browser(self, ua, expected):
        """Test that each user agent lands in the right browser bucket."""
        assert classify_browser(ua) == expected

    def test_is_mobile(self):
        """Test that mobile user agents are detected."""
        assert is_mobile(SAFARI_IPHONE_UA) is True
        assert is_mobile(ANDROID_CHROME_UA) is True
        assert is_mobile("Opera/9.80 (J2ME/MIDP; Opera Mini/9.80)") is True
        assert is_mobile(CHROME_UA) is False
        assert is_mobile(None) is False


@pytest.mark.unit
class TestAnalytics:
    """Tests for get_analytics traffic breakdowns."""

    def test_empty_database(self, json_database):
        """Test that an empty database yields zeroed breakdowns."""
        result = get_analytics(json_database, now=NOW)

        assert result["referrer_breakdown"] == []
        assert result["hourly_traffic"] == [0] * 24
        assert len(result["views_by_day"]) == 30
        assert all(d["count"] == 0 for d in result["views_by_day"])
        assert {b["browser"] for b in result["browser_breakdown"]} == {"Chrome", "Firefox", "Safari", "Edge", "Other"}

    def test_hourly_buckets_use_local_hour(self, json_database):
        """Test that hourly traffic is bucketed by the server's local hour."""
        json_database.data["pageViews"] = [
            {"page": "/", "created_at": datetime(2026, 3, 9, hour).astimezone().isoformat()}
            for hour in (9, 9, 14)
        ]

        hourly = get_analytics(json_database, now=NOW)["hourly_traffic"]

        assert hourly[9] == 2
        assert hourly[14] == 1
        assert sum(hourly) == 3

    def test_unparseable_timestamps_are_skipped(self, json_database):
        """Test that views without a parseable timestamp are ignored."""
        json_database.data["pageViews"] = [{"page": "/", "created_at": "yesterday"}, {"page": "/"}]

        assert sum(get_analytics(json_database, now=NOW)["hourly_traffic"]) == 0

    def test_views_by_day_covers_trailing_thirty_days(self, json_database):
        """Test that views_by_day spans 30 UTC days ending today."""
        json_database.data["pageViews"] = [
            {"page": "/", "created_at": "2026-03-10T01:00:00+00:00"},
            {"page": "/", "created_at": "2026-03-10T11:59:00+00:00"},
            {"page": "/", "created_at": "2026-03-01T08:00:00+00:00"},
            {"page": "/", "created_at": "2026-01-01T08:00:00+00:00"},
        ]

        days = get_analytics(json_database, now=NOW)["views_by_day"]

        assert len(days) == 30
        assert days[0]["date"] == "2026-02-09"
        assert days[-1] == {"date": "2026-03-10", "count": 2}
        assert {"date": "2026-03-01", "count": 1} in days
        assert sum(d["count"] for d in days) == 3

    def test_referrers_fall_back_to_direct(self, json_database):
        """Test that blank referrers without a referral code count as direct."""
        json_database.data["pageViews"] = [
            {"referrer": "https://google.com"},
            {"referrer": "https://google.com"},
            {"referrer": "", "referral_code": "partner1"},
            {"referrer": "   "},
            {"referrer": ""},
            {},
        ]

        refs = get_analytics(json_database, now=NOW)["referrer_breakdown"]

        assert refs[0] == {"referrer": "direct", "count": 3}
        assert {"referrer": "https://google.com", "count": 2} in refs
        assert {"referrer": "partner1", "count": 1} in refs

    def test_referrers_capped_at_top_ten(self, json_database):
        """Test that only the ten busiest referrers are reported."""
        views = []
        for i in range(12):
            views.extend({"referrer": f"site{i}.test"} for _ in range(i + 1))
        json_database.data["pageViews"] = views

        refs = get_analytics(json_database, now=NOW)["referrer_breakdown"]

        assert len(refs) == 10
        assert refs[0] == {"referrer": "site11.test", "count": 12}
        assert "site0.test" not in {r["referrer"] for r in refs}

    def test_browser_and_device_breakdown(self, json_database):
        """Test browser and device counts across a mix of user agents."""
        json_database.data["pageViews"] = [
            {"user_agent": EDGE_UA},
            {"user_agent": CHROME_UA},
            {"user_agent": ANDROID_CHROME_UA},
            {"user_agent": SAFARI_IPHONE_UA},
            {"user_agent": FIREFOX_UA},
            {"user_agent": ""},
        ]

        result = get_analytics(json_database, now=NOW)
        browsers = {b["browser"]: b["count"] for b in result["browser_breakdown"]}
        devices = {d["device"]: d["count"] for d in result["device_breakdown"]}

        assert browsers == {"Chrome": 2, "Firefox": 1, "Safari": 1, "Edge": 1, "Other": 1}
        assert devices == {"mobile": 2, "desktop": 4}


@pytest.mark.unit
class TestStats:
    """Tests for get_stats dashboard counters."""

    def test_stats_counts(self, json_database):
        """Test the status, view, service and collection counters."""
        json_database.data["submissions"] = [
            {"id": 4, "service": "custom-script", "status": "new", "created_at": "2026-03-10T09:00:00+00:00"},
            {"id": 3, "service": "custom-script", "status": "testing", "created_at": "2026-03-08T09:00:00+00:00"},
            {"id": 2, "service": "ui-design", "status": "completed", "created_at": "2026-03-04T09:00:00+00:00"},
            {"id": 1, "service": "custom-script", "status": "other", "created_at": "2026-02-01T09:00:00+00:00"},
        ]
        json_database.data["pageViews"] = [
            {"created_at": "2026-03-10T00:30:00+00:00"},
            {"created_at": "2026-03-09T23:30:00+00:00"},
        ]
        json_database.data["reviews"] = [{"id": 1}]
        json_database.data["coupons"] = [{"id": 1, "active": True}, {"id": 2, "active": False}]

        stats = get_stats(json_database, now=NOW)

        assert stats["total_submissions"] == 4
        assert stats["new_submissions"] == 1
        assert stats["testing"] == 1
        assert stats["completed"] == 1
        assert stats["in_progress"] == 0
        assert stats["by_status"]["other"] == 1
        assert stats["today_views"] == 1
        assert stats["total_views"] == 2
        assert stats["by_service"] == [
            {"service": "custom-script", "count": 3},
            {"service": "ui-design", "count": 1},
        ]
        assert stats["total_reviews"] == 1
        assert stats["active_coupons"] == 1
        assert stats["total_portfolio"] == 0
        assert stats["total_changelog"] == 0
        assert [s["id"] for s in stats["recent_submissions"]] == [4, 3, 2, 1]

    def test_daily_submissions_include_empty_days(self, json_database):
        """Test that the seven-day series includes days with no submissions."""
        json_database.data["submissions"] = [
            {"id": 2, "service": "x", "status": "new", "created_at": "2026-03-10T09:00:00+00:00"},
            {"id": 1, "service": "x", "status": "new", "created_at": "2026-03-04T09:00:00+00:00"},
        ]

        daily = get_stats(json_database, now=NOW)["daily_submissions"]

        assert [d["date"] for d in daily] == [
            "2026-03-04", "2026-03-05", "2026-03-06", "2026-03-07", "2026-03-08", "2026-03-09", "2026-03-10",
        ]
        assert [d["count"] for d in daily] == [1, 0, 0, 0, 0, 0, 1]

    def test_stats_do_not_mutate_document(self, json_database, db_path):
        """Test that computing stats never writes to disk."""
        json_database.add_page_view({"page": "/"})
        before = db_path.read_text(encoding="utf-8")

        get_stats(json_database)
        get_analytics(json_database)

        assert db_path.read_text(encoding="utf-8") == before
