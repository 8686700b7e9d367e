"""End-to-end tests of the ``censys`` command tree."""

import json

import httpx
import pytest

from cencli.cli import cli
from cencli.core.command import find_param

SEARCH_PATH = "/v3/global/search/query"
HOST_PATH = "/v3/global/asset/host"
USER_CREDITS_PATH = "/v3/accounts/users/credits"
AGGREGATE_PATH = "/v3/global/search/aggregate"
ORG_ID = "00000000-0000-0000-0000-00000000abcd"
FINGERPRINT = "3daf2843a77b6f4e6af43cd9b6f6746053b8c928e056e8a724808db8905a94cf"


def _search_page(*ips, token=""):
    return {
        "hits": [{"host_v1": {"resource": {"ip": ip}}} for ip in ips],
        "total_hits": len(ips),
        "next_page_token": token,
    }


def _stdout_lines(result):
    return [line for line in result.stdout.splitlines() if line.strip()]


@pytest.mark.integration
class TestOutputFormat:
    """Output format resolution across the command tree."""

    @pytest.fixture(autouse=True)
    def _search_route(self, api, authenticated):
        api.json("POST", SEARCH_PATH, _search_page("1.1.1.1"))

    def test_data_command_uses_config_format(self, invoke):
        result = invoke("search", "host.ip: 1.1.1.1")

        assert result.exit_code == 0, result.stderr
        assert json.loads(result.stdout) == [{"host": {"ip": "1.1.1.1"}}]
        assert "200 (OK)" in result.stderr
        assert "pages: 1" in result.stderr

    def test_persisted_format_from_environment(self, invoke, monkeypatch):
        monkeypatch.setenv("CENCLI_OUTPUT_FORMAT", "yaml")

        result = invoke("search", "host.ip: 1.1.1.1")

        assert result.exit_code == 0, result.stderr
        assert "ip: 1.1.1.1" in result.stdout
        assert not result.stdout.startswith("[")

    @pytest.mark.parametrize(
        "args",
        [
            ("-O", "ndjson", "search", "q"),
            ("search", "-O", "ndjson", "q"),
            ("search", "q", "--output-format", "ndjson"),
        ],
    )
    def test_flag_position_does_not_matter(self, invoke, args):
        result = invoke(*args)

        assert result.exit_code == 0, result.stderr
        assert _stdout_lines(result) == ['{"host":{"ip":"1.1.1.1"}}']

    def test_short_output(self, invoke):
        result = invoke("search", "-O", "short", "q")

        assert result.exit_code == 0, result.stderr
        assert "Hit #1 (host)" in result.stdout
        assert "1.1.1.1" in result.stdout

    def test_invalid_format(self, invoke, api):
        result = invoke("search", "-O", "xml", "q")

        assert result.exit_code == 2
        assert "[Invalid Output Format]" in result.stderr
        assert api.requests == []

    def test_unsupported_format_lists_command_formats(self, invoke):
        result = invoke("completion", "bash", "-O", "json")

        assert result.exit_code == 2
        assert "[Unsupported Output Format]" in result.stderr
        assert "supported formats: short" in result.stderr

    def test_invalid_persisted_format_is_config_error(self, invoke, monkeypatch):
        monkeypatch.setenv("CENCLI_OUTPUT_FORMAT", "short")

        result = invoke("search", "q")

        assert result.exit_code == 3
        assert "cannot be a default" in result.stderr


@pytest.mark.integration
def test_shadowed_defaults_do_not_leak_to_siblings():
    search_option = find_param(cli.commands["search"], "output_format")
    completion_option = find_param(cli.commands["completion"], "output_format")
    details_option = find_param(cli.commands["org"].commands["details"], "output_format")
    show_option = find_param(cli.commands["config"].commands["show"], "output_format")

    assert search_option.default is None
    assert completion_option.default == "short"
    assert details_option.default == "short"
    assert show_option.default is None


@pytest.mark.integration
def test_config_show_scope_binds_persisted_preference():
    """Test that config show, a DATA child of a SHORT group, resolves through the persisted format."""
    config_group = cli.commands["config"]

    assert config_group.scope.lookup("output_format") == "short"
    assert config_group.commands["show"].scope.lookup("output_format") is None
    assert cli.commands["org"].commands["details"].scope.lookup("output_format") == "short"


@pytest.mark.integration
class TestStreaming:
    """Tests for --streaming."""

    def test_streams_ndjson_across_pages(self, invoke, api, authenticated):
        api.add(
            "POST",
            SEARCH_PATH,
            httpx.Response(200, json={"result": _search_page("1.1.1.1", token="next")}),
            httpx.Response(200, json={"result": _search_page("8.8.8.8")}),
        )

        result = invoke("search", "-S", "--max-pages", "2", "q")

        assert result.exit_code == 0, result.stderr
        assert [json.loads(line) for line in _stdout_lines(result)] == [
            {"host": {"ip": "1.1.1.1"}},
            {"host": {"ip": "8.8.8.8"}},
        ]
        assert api.body(1)["page_token"] == "next"

    def test_conflicts_with_explicit_format(self, invoke, api, authenticated):
        result = invoke("search", "-S", "-O", "json", "q")

        assert result.exit_code == 2
        assert "[Conflicting Flags]" in result.stderr
        assert api.requests == []

    def test_configured_streaming_conflicts_on_any_command(self, invoke, api, authenticated, monkeypatch):
        monkeypatch.setenv("CENCLI_STREAMING", "true")

        result = invoke("credits", "-O", "json")

        assert result.exit_code == 2
        assert "[Conflicting Flags]" in result.stderr
        assert api.requests == []

    def test_configured_streaming_is_ignored_without_format(self, invoke, api, authenticated, monkeypatch):
        monkeypatch.setenv("CENCLI_STREAMING", "true")
        api.json("GET", USER_CREDITS_PATH, {"balance": 7})

        result = invoke("credits")

        assert result.exit_code == 0, result.stderr
        assert json.loads(result.stdout) == {"balance": 7}

    def test_rejected_by_non_streaming_command(self, invoke, authenticated):
        result = invoke("credits", "-S")

        assert result.exit_code == 2
        assert "[Streaming Not Supported]" in result.stderr


@pytest.mark.integration
class TestSearch:
    """Tests for the search command."""

    def test_partial_error_after_data(self, invoke, api, authenticated):
        api.add(
            "POST",
            SEARCH_PATH,
            httpx.Response(200, json={"result": _search_page("1.1.1.1", token="next")}),
            httpx.Response(400, json={"error": "bad page token"}),
        )

        result = invoke("search", "--max-pages", "-1", "q")

        assert result.exit_code == 0, result.stderr
        assert json.loads(result.stdout) == [{"host": {"ip": "1.1.1.1"}}]
        assert "[Error Returned from Censys API (partial data)]" in result.stderr
        assert "bad page token" in result.stderr

    def test_collection_search(self, invoke, api, authenticated):
        collection = "00000000-0000-0000-0000-0000000000c1"
        api.json("POST", f"/v3/collections/{collection}/search/query", _search_page())

        result = invoke("search", "--collection-id", collection, "-f", "host.ip,host.dns", "q")

        assert result.exit_code == 0, result.stderr
        assert api.body()["fields"] == ["host.ip", "host.dns"]

    def test_page_size_from_config(self, invoke, api, authenticated):
        api.json("POST", SEARCH_PATH, _search_page())

        assert invoke("config", "set", "search.page-size", "50").exit_code == 0
        result = invoke("search", "q")

        assert result.exit_code == 0, result.stderr
        assert api.body()["page_size"] == 50


@pytest.mark.integration
class TestView:
    """Tests for the view command."""

    def test_host_json(self, invoke, api, authenticated):
        api.json("POST", HOST_PATH, [{"resource": {"ip": "1.1.1.1"}}])

        result = invoke("view", "1.1.1[.]1")

        assert result.exit_code == 0, result.stderr
        assert json.loads(result.stdout) == [{"ip": "1.1.1.1"}]
        assert api.body()["host_ids"] == ["1.1.1.1"]

    def test_input_file(self, invoke, api, authenticated, tmp_path):
        api.json("POST", HOST_PATH, [])
        path = tmp_path / "hosts.txt"
        path.write_text("# hosts\n1.1.1.1\n8.8.8.8, 9.9.9.9\n", encoding="utf-8")

        result = invoke("view", "--input-file", str(path))

        assert result.exit_code == 0, result.stderr
        assert api.body()["host_ids"] == ["1.1.1.1", "8.8.8.8", "9.9.9.9"]

    def test_mixed_asset_types(self, invoke, api, authenticated):
        result = invoke("view", "1.1.1.1", "example.com")

        assert result.exit_code == 2
        assert "[Mixed Asset Types]" in result.stderr
        assert api.requests == []

    def test_no_assets(self, invoke, authenticated):
        result = invoke("view")

        assert result.exit_code == 2
        assert "[No Assets]" in result.stderr

    def test_certificate_at_time(self, invoke, api, authenticated):
        result = invoke("view", FINGERPRINT, "--at-time", "2024-01-01T00:00:00Z")

        assert result.exit_code == 2
        assert "[At-Time Not Supported]" in result.stderr
        assert api.requests == []


@pytest.mark.integration
class TestAggregate:
    """Tests for the aggregate command."""

    def test_table_by_default(self, invoke, api, authenticated):
        api.json("POST", AGGREGATE_PATH, {"buckets": [{"key": "22", "count": 1500}]})

        result = invoke("aggregate", "host.services.protocol=SSH", "host.services.port", "-n", "5")

        assert result.exit_code == 0, result.stderr
        assert "host.services.protocol=SSH" in result.stdout
        assert "1,500  22" in result.stdout
        assert api.body() == {
            "query": "host.services.protocol=SSH",
            "field": "host.services.port",
            "number_of_buckets": 5,
            "filter_by_query": False,
        }

    def test_json_buckets(self, invoke, api, authenticated):
        api.json("POST", AGGREGATE_PATH, {"buckets": [{"key": "SSH", "count": 3}]})

        result = invoke("aggregate", "-O", "json", "-l", "service", "-f", "q", "host.services.protocol")

        assert result.exit_code == 0, result.stderr
        assert json.loads(result.stdout) == [{"key": "SSH", "count": 3}]
        assert api.body()["count_by_level"] == "service"
        assert api.body()["filter_by_query"] is True

    def test_collection_aggregate(self, invoke, api, authenticated):
        collection = "00000000-0000-0000-0000-0000000000c1"
        api.json("POST", f"/v3/collections/{collection}/search/aggregate", {"buckets": []})

        result = invoke("aggregate", "-c", collection, "q", "services.port")

        assert result.exit_code == 0, result.stderr
        assert "No results found." in result.stdout

    def test_bucket_count_out_of_range(self, invoke, api, authenticated):
        result = invoke("aggregate", "-n", "0", "q", "f")

        assert result.exit_code == 2
        assert api.requests == []


@pytest.mark.integration
class TestAuthentication:
    """Exit codes for missing and rejected credentials."""

    def test_missing_token(self, invoke):
        result = invoke("credits")

        assert result.exit_code == 4
        assert "[Not Authenticated]" in result.stderr

    def test_rejected_token(self, invoke, api, authenticated):
        api.add("GET", USER_CREDITS_PATH, httpx.Response(401, json={"error": "bad token"}))

        result = invoke("credits")

        assert result.exit_code == 4
        assert "[Unauthorized to Access Censys API]" in result.stderr
        assert len(api.requests) == 1

    def test_stored_token_is_used(self, invoke, api):
        api.json("GET", USER_CREDITS_PATH, {"balance": 5})

        assert invoke("config", "auth", "--token", "stored-token-9876").exit_code == 0
        result = invoke("credits")

        assert result.exit_code == 0, result.stderr
        assert api.requests[0].headers["Authorization"] == "Bearer stored-token-9876"


@pytest.mark.integration
class TestCreditsAndOrg:
    """Tests for credits and org commands."""

    def test_user_credits_short(self, invoke, api, authenticated):
        api.json("GET", USER_CREDITS_PATH, {"balance": 1500, "resets_at": "2025-01-01T00:00:00Z"})

        result = invoke("credits", "-O", "short")

        assert result.exit_code == 0, result.stderr
        assert "Your Free User Credit Details" in result.stdout
        assert "1,500 credits" in result.stdout
        assert "(resets 2025-01-01)" in result.stdout

    def test_org_id_and_free_user_conflict(self, invoke, authenticated):
        result = invoke("credits", "--org-id", ORG_ID, "--free-user")

        assert result.exit_code == 2
        assert "[Conflicting Flags]" in result.stderr

    def test_org_details_requires_org_id(self, invoke, authenticated):
        result = invoke("org", "details")

        assert result.exit_code == 2
        assert "[No Organization ID]" in result.stderr

    def test_org_details_with_env_org_id(self, invoke, api, authenticated, monkeypatch):
        monkeypatch.setenv("CENCLI_ORG_ID", ORG_ID)
        api.json("GET", f"/v3/accounts/organizations/{ORG_ID}", {"name": "Example Org", "uid": ORG_ID})

        result = invoke("org", "details")

        assert result.exit_code == 0, result.stderr
        assert "Organization Details" in result.stdout
        assert "Example Org" in result.stdout

    def test_org_credits_json(self, invoke, api, authenticated):
        api.json("GET", f"/v3/accounts/organizations/{ORG_ID}/credits", {"balance": 42})

        result = invoke("org", "credits", "--org-id", ORG_ID, "-O", "json")

        assert result.exit_code == 0, result.stderr
        assert json.loads(result.stdout) == {"balance": 42}

    def test_invalid_org_id(self, invoke, authenticated):
        result = invoke("org", "details", "--org-id", "not-a-uuid")

        assert result.exit_code == 2

    def test_org_members_follow_pages(self, invoke, api, authenticated):
        members_path = f"/v3/accounts/organizations/{ORG_ID}/members"
        api.add(
            "GET",
            members_path,
            httpx.Response(
                200,
                json={
                    "result": {
                        "members": [{"email": "ada@example.com", "roles": ["admin"]}],
                        "pagination": {"next_page_token": "p2"},
                    },
                },
            ),
            httpx.Response(
                200,
                json={"result": {"members": [{"email": "bob@example.com"}], "pagination": {}}},
            ),
        )

        result = invoke("org", "members", "--org-id", ORG_ID)

        assert result.exit_code == 0, result.stderr
        assert "Organization Members (2)" in result.stdout
        assert "ada@example.com" in result.stdout
        assert "bob@example.com" in result.stdout
        assert api.requests[1].url.params["page_token"] == "p2"

    def test_org_members_json(self, invoke, api, authenticated, monkeypatch):
        monkeypatch.setenv("CENCLI_ORG_ID", ORG_ID)
        api.json(
            "GET",
            f"/v3/accounts/organizations/{ORG_ID}/members",
            {"members": [{"email": "ada@example.com", "roles": ["admin"]}]},
        )

        result = invoke("org", "members", "-O", "json")

        assert result.exit_code == 0, result.stderr
        assert json.loads(result.stdout) == {
            "members": [{"email": "ada@example.com", "roles": ["admin"]}],
        }

    def test_org_members_requires_org_id(self, invoke, authenticated):
        result = invoke("org", "members")

        assert result.exit_code == 2
        assert "[No Organization ID]" in result.stderr


@pytest.mark.integration
class TestConfigCommands:
    """Tests for the config group."""

    def test_set_then_get(self, invoke):
        set_result = invoke("config", "set", "search.page-size", "50")
        get_result = invoke("config", "get", "search.page-size")

        assert set_result.exit_code == 0, set_result.stderr
        assert "Set search.page-size = 50" in set_result.stderr
        assert get_result.stdout.strip() == "50"

    def test_short_cannot_be_default_format(self, invoke):
        result = invoke("config", "set", "output-format", "short")

        assert result.exit_code == 3
        assert "[Invalid Configuration]" in result.stderr

    def test_unknown_key(self, invoke):
        result = invoke("config", "get", "no.such.key")

        assert result.exit_code == 3

    def test_show_is_data(self, invoke):
        result = invoke("config", "show")

        assert result.exit_code == 0, result.stderr
        assert json.loads(result.stdout)["search"]["max-pages"] == 1

    def test_show_follows_persisted_format(self, invoke, monkeypatch):
        monkeypatch.setenv("CENCLI_OUTPUT_FORMAT", "yaml")

        result = invoke("config", "show")

        assert result.exit_code == 0, result.stderr
        assert "max-pages: 1" in result.stdout

    def test_org_id_round_trip(self, invoke):
        assert invoke("config", "org-id", ORG_ID).exit_code == 0

        result = invoke("config", "org-id")

        assert result.stdout.strip() == ORG_ID


@pytest.mark.integration
class TestMiscCommands:
    """Root, version and completion."""

    def test_root_shows_help(self, invoke):
        result = invoke()

        assert result.exit_code == 0
        assert "Usage:" in result.stdout
        assert "search" in result.stdout

    def test_version_json(self, invoke):
        result = invoke("version")

        assert result.exit_code == 0, result.stderr
        assert set(json.loads(result.stdout)) == {"version", "python", "platform"}

    def test_version_short(self, invoke):
        result = invoke("version", "-O", "short")

        assert result.stdout.startswith("censys version ")

    def test_completion_script(self, invoke):
        result = invoke("completion", "zsh")

        assert result.exit_code == 0, result.stderr
        assert "_CENSYS_COMPLETE" in result.stdout
