# Copyright (c) Syntropy Systems
"""Control-plane client contract and its HTTP implementation."""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Protocol, TypeVar, cast

import httpx
from pydantic import BaseModel, ValidationError
from typing_extensions import Self

from hypersweep.errors import SubmissionRejected, TransportError
from hypersweep.models.api import (
    ChildJobListResponse,
    ErrorResponse,
    JobCancelResponse,
    JobCreateResponse,
    JobHyperparametersResponse,
    JobMetricsResponse,
    JobStatusResponse,
)

if TYPE_CHECKING:
    from collections.abc import Mapping
    from types import TracebackType

    from hypersweep.models.base import JSONValue

logger = logging.getLogger(__name__)

ResponseModel = TypeVar("ResponseModel", bound=BaseModel)

_AUTH_STATUS_CODES = (401, 403)


class ControlPlaneClient(Protocol):
    """The narrow contract hypersweep needs from the platform.

    Implementations own transport details. Errors must be raised as
    ``SubmissionRejected`` or ``TransportError``.
    """

    def submit_job(self, serialized_config: Mapping[str, JSONValue]) -> str:
        """Create a sweep job and return its ID."""
        ...

    def get_job_status(self, job_id: str) -> str:
        """Return the job's remote state name."""
        ...

    def get_job_metrics(self, job_id: str) -> dict[str, list[JSONValue]]:
        """Return every logged value of every metric, in logging order."""
        ...

    def list_child_jobs(self, job_id: str) -> list[str]:
        """Return child job IDs in submission order."""
        ...

    def get_job_hyperparameters(self, job_id: str) -> dict[str, JSONValue]:
        """Return the hyperparameter assignment of a child job."""
        ...

    def cancel_job(self, job_id: str) -> str | None:
        """Request cancellation and return the previous state, if known."""
        ...


class HttpControlPlaneClient:
    """HTTP client for the control plane's sweep endpoints."""

    server_url: str
    timeout: float
    _client: httpx.Client

    def __init__(self, server_url: str, timeout: float = 30.0) -> None:
        """Initialize the client.

        Args:
            server_url: Base URL of the control plane (e.g., "https://ml.example.com")
            timeout: Request timeout in seconds

        """
        self.server_url = server_url.rstrip("/")
        self.timeout = timeout
        self._client = httpx.Client(timeout=timeout)

    def close(self) -> None:
        """Close the HTTP client."""
        self._client.close()

    def __enter__(self) -> Self:
        """Enter the client context and return self."""
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        """Exit the client context and close the HTTP client."""
        self.close()

    def _request(
        self,
        method: str,
        path: str,
        json: Mapping[str, object] | None = None,
        *,
        response_model: type[ResponseModel],
        rejectable: bool = False,
    ) -> ResponseModel:
        """Make an HTTP request to the server.

        With ``rejectable`` set, a 4xx other than an auth failure is the
        server refusing the request and raises ``SubmissionRejected``.
        """
        url = f"{self.server_url}{path}"
        logger.debug("%s %s", method, url)
        try:
            response = self._client.request(method=method, url=url, json=json)
            _ = response.raise_for_status()
            data = cast("object", response.json())
        except httpx.HTTPStatusError as e:
            # Try to get error detail from response
            try:
                detail = ErrorResponse.model_validate(e.response.json()).detail
            except (ValidationError, ValueError):
                detail = e.response.text or str(e)
            code = e.response.status_code
            if rejectable and 400 <= code < 500 and code not in _AUTH_STATUS_CODES:  # noqa: PLR2004
                raise SubmissionRejected(detail, status_code=code) from e
            msg = f"Server error ({code}): {detail}"
            raise TransportError(msg) from e
        except httpx.RequestError as e:
            msg = f"Connection error: {e}"
            raise TransportError(msg) from e
        except ValueError as e:
            msg = f"Invalid JSON from {url}: {e}"
            raise TransportError(msg) from e

        try:
            return response_model.model_validate(data)
        except ValidationError as e:
            msg = f"Unexpected response from {url}: {e}"
            raise TransportError(msg) from e

    def submit_job(self, serialized_config: Mapping[str, JSONValue]) -> str:
        """Submit a sweep job.

        Args:
            serialized_config: Job description from ``RunConfiguration.to_wire()``

        Returns:
            ID of the new job

        Raises:
            SubmissionRejected: If the server refuses the job
            TransportError: On network, auth or server failure

        """
        result = self._request(
            "POST",
            "/api/v1/sweeps",
            json=serialized_config,
            response_model=JobCreateResponse,
            rejectable=True,
        )
        return result.job_id

    def get_job_status(self, job_id: str) -> str:
        """Get the current state of a job."""
        result = self._request(
            "GET",
            f"/api/v1/jobs/{job_id}",
            response_model=JobStatusResponse,
        )
        return result.status

    def get_job_metrics(self, job_id: str) -> dict[str, list[JSONValue]]:
        """Get all logged metric values of a job."""
        result = self._request(
            "GET",
            f"/api/v1/jobs/{job_id}/metrics",
            response_model=JobMetricsResponse,
        )
        return result.metrics

    def list_child_jobs(self, job_id: str) -> list[str]:
        """List child job IDs in submission order."""
        result = self._request(
            "GET",
            f"/api/v1/jobs/{job_id}/children",
            response_model=ChildJobListResponse,
        )
        return result.jobs

    def get_job_hyperparameters(self, job_id: str) -> dict[str, JSONValue]:
        """Get the hyperparameters a child job was launched with."""
        result = self._request(
            "GET",
            f"/api/v1/jobs/{job_id}/hyperparameters",
            response_model=JobHyperparametersResponse,
        )
        return result.hyperparameters

    def cancel_job(self, job_id: str) -> str | None:
        """Request cancellation of a job.

        Returns:
            The job's state before cancellation, if the server reports it

        """
        result = self._request(
            "POST",
            f"/api/v1/jobs/{job_id}/cancel",
            response_model=JobCancelResponse,
        )
        return result.previous_status


# Convenience function
def get_client(server_url: str, timeout: float = 30.0) -> HttpControlPlaneClient:
    """Create an HttpControlPlaneClient instance.

    Args:
        server_url: Base URL of the control plane
        timeout: Request timeout in seconds

    Returns:
        HttpControlPlaneClient instance

    """
    return HttpControlPlaneClient(server_url, timeout)
