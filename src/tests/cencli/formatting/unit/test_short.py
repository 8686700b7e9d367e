"""Tests for the short renderers."""

import pytest

from cencli.formatting import short


@pytest.mark.unit
@pytest.mark.parametrize(
    ("value", "expected"),
    [(1500, "1,500"), (12.9, "12"), (None, ""), ("n/a", "n/a"), (True, "True")],
)
def test_format_number(value, expected):
    assert short.format_number(value) == expected


@pytest.mark.unit
def test_format_location_skips_duplicate_province():
    location = {
        "city": "Singapore",
        "province": "Singapore",
        "country": "Singapore",
        "continent": "Asia",
    }

    assert short.format_location(location) == "Singapore, Singapore (Asia)"


@pytest.mark.unit
class TestAssets:
    """Tests for asset rendering."""

    def test_host(self):
        host = {
            "ip": "1.1.1.1",
            "autonomous_system": {"asn": 13335, "name": "Cloudflarenet"},
            "services": [
                {"port": 443, "protocol": "HTTP"},
                {"port": 53, "transport_protocol": "UDP", "protocol": "DNS"},
            ],
        }

        text = short.assets("host", [host])
        lines = text.splitlines()

        assert lines[0].startswith("━━━ Host #1 ")
        assert "IP: 1.1.1.1" in lines
        assert "Platform URL: platform.censys.io/hosts/1.1.1.1" in lines
        assert "ASN: 13335 (CLOUDFLARENET)" in lines
        assert lines[-2:] == ["  53/udp DNS", "  443/tcp HTTP"]

    def test_items_are_numbered_and_separated(self):
        text = short.assets("host", [{"ip": "1.1.1.1"}, {"ip": "8.8.8.8"}])

        assert "Host #2" in text
        assert "\n\n━━━ Host #2" in text

    def test_certificate(self):
        cert = {
            "fingerprint_sha256": "ab" * 32,
            "names": [f"host{i}.example.com" for i in range(12)],
            "parsed": {
                "subject": {"common_name": ["example.com"]},
                "issuer": {"organization": ["Example CA"], "common_name": ["Example R1"]},
            },
        }

        text = short.assets("certificate", [cert])

        assert "Certificate for: example.com" in text
        assert "Issuer: Example CA (Example R1)" in text
        assert "(+2 more)" in text

    def test_web_property(self):
        prop = {
            "hostname": "example.com",
            "port": 443,
            "endpoints": [{"path": "/login", "http": {"status_code": 200, "html_title": "Login"}}],
        }

        text = short.assets("webproperty", [prop])

        assert "Web Property: example.com:443" in text
        assert "  /login [200] Login" in text

    def test_plain_when_not_colored(self):
        assert "\x1b[" not in short.assets("host", [{"ip": "1.1.1.1"}])

    def test_styled_when_colored(self):
        assert "\x1b[" in short.assets("host", [{"ip": "1.1.1.1"}], colored=True)


@pytest.mark.unit
def test_search_hits_label_each_hit():
    hits = [{"host": {"ip": "1.1.1.1"}}, {"webproperty": {"hostname": "example.com", "port": 80}}]

    text = short.search_hits(hits)

    assert "Hit #1 (host)" in text
    assert "Hit #2 (web property)" in text
    assert "Web Property: example.com:80" in text


@pytest.mark.unit
class TestAccountRenderers:
    """Tests for credit and organization rendering."""

    def test_user_credits(self):
        text = short.user_credits({"balance": 250, "resets_at": "2025-02-01T00:00:00Z"})

        assert "Your Free User Credit Details" in text
        assert "  Balance: 250 credits (resets 2025-02-01)" in text

    def test_organization_credits(self):
        data = {
            "balance": 10000,
            "auto_replenish_config": {"enabled": True},
            "credit_expirations": [{"balance": 500, "expires_at": "2025-06-30T00:00:00Z"}],
        }

        text = short.organization_credits(data)

        assert "Balance: 10,000 credits" in text
        assert "Auto Replenish: enabled" in text
        assert "    500 credits on 2025-06-30" in text

    def test_organization_details(self):
        data = {
            "name": "Example Org",
            "uid": "org-1",
            "created_at": "2023-04-05T06:07:08Z",
            "member_counts": {"total": 12},
        }

        text = short.organization_details(data)

        assert "  Name: Example Org" in text
        assert "  ID: org-1" in text
        assert "  Created: 2023-04-05" in text
        assert "  Members: 12" in text


@pytest.mark.unit
class TestTables:
    """Tests for the tabular renderers."""

    def test_aggregate_buckets(self):
        buckets = [{"key": "22", "count": 1200}, {"key": "2222", "count": 7}]

        text = short.aggregate_buckets(buckets, "host.services.protocol=SSH", "host.services.port")

        lines = text.splitlines()
        assert "Aggregation Results" in lines[0]
        assert lines[1] == 'query: host.services.protocol=SSH | count by: "" | filtered: false'
        assert lines[3:] == [
            "  Count  host.services.port",
            "  1,200  22",
            "      7  2222",
        ]

    def test_aggregate_title_shows_settings(self):
        text = short.aggregate_buckets([], "q", "f", count_by_level="host", filter_by_query=True)

        assert "query: q | count by: host | filtered: true" in text
        assert text.endswith("No results found.")

    def test_organization_members(self):
        members = [
            {
                "email": "ada@example.com",
                "first_name": "Ada",
                "last_name": "Lovelace",
                "roles": ["admin", "viewer"],
                "first_login_time": "2024-05-01T12:30:00Z",
            },
            {"email": "bob@example.com", "roles": []},
        ]

        text = short.organization_members(members)

        assert "Organization Members (2)" in text
        rows = text.splitlines()[1:]
        assert rows[0].split() == ["Email", "Name", "Roles", "First", "Login", "Last", "Login"]
        assert "Ada Lovelace" in rows[1]
        assert "admin, viewer" in rows[1]
        assert "2024-05-01 12:30" in rows[1]
        assert rows[1].endswith("Never")
        assert rows[2].split()[:3] == ["bob@example.com", "-", "-"]

    def test_no_members(self):
        assert short.organization_members([]) == "No members found."
