"""Unit tests for KeenQueryExecutor over httpx.MockTransport."""

import json

import httpx
import pytest

from keencache.core.exceptions import TransportError
from keencache.query.params import Filter, Interval, Metric, QueryRequest, TimeFrame


def count_request(**kwargs) -> QueryRequest:
    return QueryRequest(
        metric=Metric.count(),
        collection="purchases",
        timeframe=TimeFrame.of("this_7_days"),
        **kwargs,
    )


class TestExecute:
    def test_request_line_and_headers(self, executor, keen):
        keen.reply(42)

        executor.execute(count_request())

        request = keen.requests[0]
        assert request.method == "GET"
        assert request.url.path == f"/3.0/projects/{executor.project_id}/queries/count"
        assert request.headers["Authorization"] == "readkey456"
        assert request.headers["Accept"] == "application/json"

    def test_analysis_type_selects_endpoint(self, executor, keen):
        keen.reply(10.5)

        executor.execute(
            QueryRequest(
                metric=Metric.average("price"),
                collection="purchases",
                timeframe=TimeFrame.of("this_7_days"),
            )
        )

        assert keen.requests[0].url.path.endswith("/queries/average")
        assert keen.last_params["target_property"] == "price"

    def test_query_parameters(self, executor, keen):
        keen.reply([])

        executor.execute(
            count_request(
                group_by=["country"],
                filters=[Filter.eq("device", "ios")],
                interval=Interval.DAILY,
            )
        )

        params = keen.last_params
        assert params["event_collection"] == "purchases"
        assert params["timeframe"] == "this_7_days"
        assert params["group_by"] == "country"
        assert params["interval"] == "daily"
        assert json.loads(params["filters"]) == [
            {"property_name": "device", "operator": "eq", "property_value": "ios"}
        ]

    def test_returns_raw_response(self, executor, keen):
        keen.reply(42)

        response = executor.execute(count_request())

        assert response.status_code == 200
        assert json.loads(response.body) == {"result": 42}

    def test_error_status_is_returned_not_raised(self, executor, keen):
        keen.reply_raw(b'{"message": "Invalid key", "error_code": "InvalidApiKeyError"}', 401)

        response = executor.execute(count_request())

        assert response.status_code == 401
        assert b"InvalidApiKeyError" in response.body

    @pytest.mark.parametrize(
        "error",
        [
            httpx.ConnectError("connection refused"),
            httpx.ReadTimeout("timed out"),
        ],
    )
    def test_network_failure_raises_transport_error(self, executor, keen, error):
        keen.fail(error)

        with pytest.raises(TransportError) as exc_info:
            executor.execute(count_request())

        assert exc_info.value.details["error_type"] == type(error).__name__
        assert exc_info.value.details["path"] == f"/projects/{executor.project_id}/queries/count"


class TestTimeout:
    def test_set_timeout(self, executor):
        executor.set_timeout(2.5)
        assert executor.client.timeout == httpx.Timeout(2.5)

    def test_clear_timeout(self, executor):
        executor.set_timeout(None)
        assert executor.client.timeout == httpx.Timeout(None)
