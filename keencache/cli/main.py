"""Command-line interface for keencache."""

import json
import sys
from typing import Any

import click

from keencache.core.config import load_cache_config, settings
from keencache.core.exceptions import KeenCacheError
from keencache.observability.logging import configure_logging
from keencache.query.client import CacheClient
from keencache.query.params import (
    AnalysisType,
    Filter,
    FilterOperator,
    Interval,
    Metric,
    TimeFrame,
)
from keencache.results.envelope import CachedResult
from keencache.results.shapes import DaysItems, DaysScalar, ItemList, ResultShape, Scalar

SHAPES: dict[str, type[ResultShape]] = {
    "scalar": Scalar,
    "items": ItemList,
    "days_scalar": DaysScalar,
    "days_items": DaysItems,
}


def _parse_value(raw: str) -> Any:
    """Interpret a CLI value as JSON when possible, else as a plain string."""
    try:
        return json.loads(raw)
    except ValueError:
        return raw


def _parse_filter(raw: str) -> Filter:
    name, sep, rest = raw.partition(":")
    operator, sep2, value = rest.partition(":")
    if not (sep and sep2 and name):
        raise click.BadParameter(
            f"expected name:operator:value, got {raw!r}", param_hint="--filter"
        )
    try:
        op = FilterOperator(operator)
    except ValueError:
        choices = ", ".join(o.value for o in FilterOperator)
        raise click.BadParameter(
            f"unknown operator {operator!r} (choose from {choices})",
            param_hint="--filter",
        ) from None
    return Filter(property_name=name, operator=op, property_value=_parse_value(value))


def _parse_predicate(raw: str) -> tuple[str, str | int]:
    field, sep, value = raw.partition("=")
    if not (sep and field):
        raise click.BadParameter(f"expected field=value, got {raw!r}", param_hint="--select")
    if value.lstrip("-").isdigit():
        return field, int(value)
    return field, value


def _fail(error: KeenCacheError) -> None:
    click.echo(f"Error [{error.code}]: {error.message}", err=True)
    sys.exit(1)


@click.group()
@click.option(
    "--log-level",
    default=settings.log_level.lower(),
    type=click.Choice(["debug", "info", "warning", "error"]),
    help="Logging level",
    show_default=True,
)
def cli(log_level: str) -> None:
    """keencache - cached Keen IO analytics results."""
    configure_logging(level=log_level.upper(), log_format=settings.log_format)


@cli.command()
@click.argument("analysis", type=click.Choice([a.value for a in AnalysisType]))
@click.argument("collection")
@click.option("--timeframe", "-t", required=True, help="Relative timeframe, e.g. this_7_days")
@click.option("--target-property", help="Property to aggregate (all but count)")
@click.option("--percentile", type=float, help="Percentile value (percentile only)")
@click.option("--group-by", "-g", multiple=True, help="Group by property (repeatable)")
@click.option(
    "--filter",
    "-f",
    "filters",
    multiple=True,
    help="Filter as name:operator:value (repeatable)",
)
@click.option("--interval", "-i", type=click.Choice([i.value for i in Interval]))
@click.option("--max-age", type=int, help="Accept Keen results up to N seconds old")
@click.option(
    "--shape",
    "-s",
    "shape_name",
    required=True,
    type=click.Choice(list(SHAPES)),
    help="Expected result shape",
)
@click.option("--accumulate", is_flag=True, help="Collapse the result to one aggregate")
@click.option("--select", "predicate", help="Select the entry where field=value")
@click.option("--cache-key", help="Write the (transformed) result to this key")
@click.option("--expire", type=int, help="Cache expiration in seconds")
def query(
    analysis: str,
    collection: str,
    timeframe: str,
    target_property: str | None,
    percentile: float | None,
    group_by: tuple[str, ...],
    filters: tuple[str, ...],
    interval: str | None,
    max_age: int | None,
    shape_name: str,
    accumulate: bool,
    predicate: str | None,
    cache_key: str | None,
    expire: int | None,
) -> None:
    """Run ANALYSIS on COLLECTION and print the JSON result."""
    if accumulate and predicate:
        raise click.UsageError("--accumulate and --select are mutually exclusive")
    parsed_filters = [_parse_filter(f) for f in filters]
    parsed_predicate = _parse_predicate(predicate) if predicate else None

    try:
        metric = Metric(
            analysis_type=AnalysisType(analysis),
            target_property=target_property,
            percentile=percentile,
        )
        with CacheClient.from_settings() as client:
            q = client.query(metric, collection, TimeFrame.of(timeframe))
            for field in group_by:
                q.group_by(field)
            for f in parsed_filters:
                q.filter(f)
            if interval:
                q.interval(Interval(interval))
            if max_age is not None:
                q.max_age(max_age)

            result: CachedResult[Any] = q.data(SHAPES[shape_name])
            if accumulate:
                result = result.accumulate()
            elif parsed_predicate:
                result = result.select(*parsed_predicate)

            if cache_key:
                ttl = expire if expire is not None else load_cache_config().ttl
                result.to_cache(cache_key, ttl)

            click.echo(result.to_json())
    except KeenCacheError as e:
        _fail(e)


@cli.command()
@click.argument("key")
@click.option(
    "--shape",
    "-s",
    "shape_name",
    required=True,
    type=click.Choice(list(SHAPES)),
    help="Shape the cached result was stored as",
)
@click.option("--redis-url", help="Redis URL (defaults to configured redis_url)")
def cached(key: str, shape_name: str, redis_url: str | None) -> None:
    """Print the cached result stored at KEY."""
    try:
        url = redis_url or load_cache_config().redis_url
        if not url:
            raise click.UsageError("No Redis URL: pass --redis-url or set REDIS_URL")
        result = CachedResult.from_cache(url, key, SHAPES[shape_name])
    except KeenCacheError as e:
        _fail(e)
    else:
        click.echo(result.to_json())


if __name__ == "__main__":
    cli()
