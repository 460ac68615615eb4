"""Keen IO analysis executor over HTTP."""

from typing import Protocol

import httpx

from keencache.core.config import DEFAULT_KEEN_API_URL
from keencache.core.exceptions import TransportError
from keencache.core.models import KeenResponse
from keencache.observability.logging import LogEvents, get_logger
from keencache.observability.tracing import trace_operation
from keencache.query.params import QueryRequest

logger = get_logger(__name__)


class QueryExecutor(Protocol):
    """Anything that can run a Keen query and hand back the raw response."""

    def execute(self, request: QueryRequest) -> KeenResponse: ...

    def set_timeout(self, timeout: float | None) -> None: ...

    def close(self) -> None: ...


class KeenQueryExecutor:
    """Runs analyses against the Keen IO REST API.

    Issues ``GET {base_url}/projects/{project_id}/queries/{analysis_type}``
    authenticated with the project's read key. Non-success statuses are
    returned, not raised: interpreting the body is the caller's job.
    Network failures and timeouts raise ``TransportError``. Nothing is
    retried.
    """

    def __init__(
        self,
        read_key: str,
        project_id: str,
        base_url: str = DEFAULT_KEEN_API_URL,
        timeout: float | None = None,
        transport: httpx.BaseTransport | None = None,
    ):
        """Initialize executor.

        Args:
            read_key: Keen project read key
            project_id: Keen project id
            base_url: API root, e.g. https://api.keen.io/3.0
            timeout: Request timeout in seconds (None waits indefinitely)
            transport: Custom httpx transport (tests use httpx.MockTransport)
        """
        self.project_id = project_id
        self.client = httpx.Client(
            base_url=base_url.rstrip("/"),
            headers={"Authorization": read_key, "Accept": "application/json"},
            timeout=timeout,
            transport=transport,
        )

    def set_timeout(self, timeout: float | None) -> None:
        self.client.timeout = httpx.Timeout(timeout)

    @trace_operation("keen.query")
    def execute(self, request: QueryRequest) -> KeenResponse:
        """Run one analysis.

        Raises:
            TransportError: request could not be completed
        """
        analysis = request.metric.analysis_type.value
        path = f"/projects/{self.project_id}/queries/{analysis}"
        logger.info(
            LogEvents.QUERY_STARTED,
            analysis_type=analysis,
            collection=request.collection,
        )

        try:
            response = self.client.get(path, params=request.to_params())
        except httpx.HTTPError as e:
            logger.warning(
                LogEvents.QUERY_FAILED,
                analysis_type=analysis,
                collection=request.collection,
                error=str(e),
            )
            raise TransportError(
                f"Keen IO request failed: {e}",
                details={"path": path, "error_type": type(e).__name__},
            ) from e

        return KeenResponse(status_code=response.status_code, body=response.content)

    def close(self) -> None:
        self.client.close()
