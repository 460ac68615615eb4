"""Unit tests for the keencache command-line interface."""

import json
from unittest.mock import patch

import pytest
from click.testing import CliRunner

from keencache.cache.models import CacheConfig
from keencache.cli.main import _parse_filter, _parse_predicate, cli
from keencache.query.params import FilterOperator


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def use_client(client):
    with patch("keencache.cli.main.CacheClient.from_settings", return_value=client):
        yield client


@pytest.fixture
def use_store_client(make_client):
    client = make_client()
    with patch("keencache.cli.main.CacheClient.from_settings", return_value=client):
        yield client


class TestQuery:
    def test_prints_result(self, runner, use_client, keen):
        keen.reply(42)

        result = runner.invoke(
            cli, ["query", "count", "purchases", "-t", "this_7_days", "-s", "scalar"]
        )

        assert result.exit_code == 0, result.output
        assert json.loads(result.output.strip().splitlines()[-1]) == {"result": 42}
        assert keen.last_params["event_collection"] == "purchases"

    def test_accumulate(self, runner, use_client, keen, items_payload):
        keen.reply(items_payload)

        result = runner.invoke(
            cli,
            ["query", "count", "purchases", "-t", "this_7_days", "-g", "country",
             "-s", "items", "--accumulate"],
        )

        assert result.exit_code == 0, result.output
        assert result.output.strip().splitlines()[-1] == '{"result":14}'

    def test_select(self, runner, use_client, keen, days_items_payload):
        keen.reply(days_items_payload)

        result = runner.invoke(
            cli,
            ["query", "count", "purchases", "-t", "this_7_days", "-g", "country",
             "-i", "daily", "-s", "days_items", "--select", "country=DE"],
        )

        assert result.exit_code == 0, result.output
        payload = json.loads(result.output.strip().splitlines()[-1])
        assert [d["value"] for d in payload["result"]] == [2, 4]
        assert keen.last_params["interval"] == "daily"

    def test_filters_and_target(self, runner, use_client, keen):
        keen.reply(99.5)

        result = runner.invoke(
            cli,
            ["query", "percentile", "purchases", "-t", "this_7_days",
             "--target-property", "price", "--percentile", "95",
             "-f", "country:eq:NL", "-f", "price:gt:10", "-s", "scalar"],
        )

        assert result.exit_code == 0, result.output
        params = keen.last_params
        assert params["percentile"] == "95"
        assert json.loads(params["filters"]) == [
            {"property_name": "country", "operator": "eq", "property_value": "NL"},
            {"property_name": "price", "operator": "gt", "property_value": 10},
        ]

    def test_writes_cache(self, runner, use_store_client, keen, fake_redis):
        keen.reply(7)

        result = runner.invoke(
            cli,
            ["query", "count", "purchases", "-t", "this_7_days", "-s", "scalar",
             "--cache-key", "purchases:7d", "--expire", "600"],
        )

        assert result.exit_code == 0, result.output
        assert fake_redis.data["purchases:7d"] == '{"result":7}'
        assert fake_redis.ttls["purchases:7d"] == 600

    def test_cache_ttl_defaults_to_config(self, runner, use_store_client, keen, fake_redis):
        keen.reply(7)

        with patch(
            "keencache.cli.main.load_cache_config",
            return_value=CacheConfig(redis_url="redis://localhost:6379/15", ttl=45),
        ):
            result = runner.invoke(
                cli,
                ["query", "count", "purchases", "-t", "this_7_days", "-s", "scalar",
                 "--cache-key", "purchases:7d"],
            )

        assert result.exit_code == 0, result.output
        assert fake_redis.ttls["purchases:7d"] == 45

    def test_service_error_exits_nonzero(self, runner, use_client, keen):
        keen.reply_raw(b'{"message": "Bad timeframe", "error_code": "TimeframeError"}', 400)

        result = runner.invoke(
            cli, ["query", "count", "purchases", "-t", "yesterday", "-s", "scalar"]
        )

        assert result.exit_code == 1
        assert "SERVICE_ERROR" in result.output

    def test_invalid_metric_exits_nonzero(self, runner, use_client):
        result = runner.invoke(
            cli, ["query", "sum", "purchases", "-t", "this_7_days", "-s", "scalar"]
        )

        assert result.exit_code == 1
        assert "VALIDATION_ERROR" in result.output

    def test_percentile_out_of_range_exits_nonzero(self, runner, use_client, keen):
        result = runner.invoke(
            cli,
            ["query", "percentile", "purchases", "-t", "this_7_days",
             "--target-property", "price", "--percentile", "150", "-s", "scalar"],
        )

        assert result.exit_code == 1
        assert "Error [VALIDATION_ERROR]" in result.output
        assert keen.requests == []

    def test_accumulate_and_select_are_exclusive(self, runner, use_client):
        result = runner.invoke(
            cli,
            ["query", "count", "purchases", "-t", "this_7_days", "-s", "items",
             "--accumulate", "--select", "country=NL"],
        )

        assert result.exit_code == 2
        assert "mutually exclusive" in result.output


class TestCached:
    def test_prints_cached_result(self, runner, fake_redis, mock_redis_class):
        fake_redis.data["purchases:7d"] = '{"result":[{"country":"NL","result":5}]}'

        result = runner.invoke(
            cli,
            ["cached", "purchases:7d", "-s", "items", "--redis-url", "redis://localhost:6379/15"],
        )

        assert result.exit_code == 0, result.output
        assert json.loads(result.output.strip().splitlines()[-1]) == {
            "result": [{"country": "NL", "result": 5}]
        }

    def test_miss_exits_nonzero(self, runner, fake_redis, mock_redis_class):
        result = runner.invoke(
            cli, ["cached", "absent", "-s", "scalar", "--redis-url", "redis://localhost:6379/15"]
        )

        assert result.exit_code == 1
        assert "CACHE_MISS" in result.output

    def test_requires_redis_url(self, runner):
        with patch("keencache.cli.main.load_cache_config", return_value=CacheConfig()):
            result = runner.invoke(cli, ["cached", "k", "-s", "scalar"])

        assert result.exit_code == 2
        assert "No Redis URL" in result.output

    def test_invalid_cache_config_exits_nonzero(self, runner, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        (tmp_path / "keencache.yaml").write_text(
            "cache:\n  redis_url: redis://localhost:6379/15\n  ttl: -1\n"
        )

        result = runner.invoke(cli, ["cached", "k", "-s", "scalar"])

        assert result.exit_code == 1
        assert "Error [CONFIGURATION_ERROR]" in result.output


class TestParsing:
    def test_filter(self):
        f = _parse_filter("tags:in:[\"a\", \"b\"]")
        assert f.operator is FilterOperator.IN
        assert f.property_value == ["a", "b"]

    def test_filter_value_may_contain_colons(self):
        assert _parse_filter("url:eq:https://example.com").property_value == "https://example.com"

    @pytest.mark.parametrize("raw", ["country", "country:eq", ":eq:NL", "country:like:NL"])
    def test_bad_filter(self, raw):
        import click

        with pytest.raises(click.BadParameter):
            _parse_filter(raw)

    def test_predicate(self):
        assert _parse_predicate("country=NL") == ("country", "NL")
        assert _parse_predicate("year=2024") == ("year", 2024)
