"""
OneOps deployment client.

Submits platform scale-down requests to the OneOps transition API and
returns the resulting deployment handle.
"""

import httpx

from config.settings import OneOpsSettings
from scaledown.core.errors import DeploymentError
from scaledown.core.models import DeploymentHandle
from scaledown.utils.logging import get_logger

from .base import DeploymentClient

logger = get_logger(__name__)


class OneOpsClient(DeploymentClient):
    """Deployment client backed by the OneOps REST API."""

    def __init__(
        self,
        base_url: str,
        timeout: float = 60.0,
        user_header: str = "X-Cms-User",
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """
        Initialize OneOps client.

        Args:
            base_url: OneOps transition API base URL
            timeout: Request timeout in seconds
            user_header: Header carrying the acting user
            transport: Optional httpx transport (used by tests)
        """
        self.base_url = base_url
        self.timeout = timeout
        self.user_header = user_header
        self._transport = transport

        self._client: httpx.AsyncClient | None = None

    @classmethod
    def from_settings(cls, settings: OneOpsSettings) -> "OneOpsClient":
        return cls(
            base_url=settings.url,
            timeout=settings.timeout,
            user_header=settings.user_header,
        )

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                transport=self._transport,
            )
        return self._client

    async def submit_scale_down(
        self,
        platform_id: int,
        count: int,
        acting_identity: str,
    ) -> DeploymentHandle | None:
        client = await self._get_client()

        try:
            response = await client.post(
                f"/platforms/{platform_id}/scaledown",
                json={"scaleDownBy": count},
                headers={self.user_header: acting_identity},
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise DeploymentError(
                f"Scale down rejected for platform {platform_id}: "
                f"{e.response.status_code} {e.response.text}"
            ) from e
        except httpx.HTTPError as e:
            raise DeploymentError(f"Scale down request failed for platform {platform_id}: {e}") from e

        if not response.content.strip():
            return None

        try:
            body = response.json()
        except ValueError as e:
            raise DeploymentError(f"Invalid deployment response for platform {platform_id}") from e

        if not isinstance(body, dict) or body.get("deploymentId") is None:
            return None

        try:
            deployment_id = int(body["deploymentId"])
        except (TypeError, ValueError) as e:
            raise DeploymentError(
                f"Invalid deployment id {body['deploymentId']!r} for platform {platform_id}"
            ) from e

        logger.debug(
            "Scale down deployment response",
            platform_id=platform_id,
            deployment_id=deployment_id,
        )
        return DeploymentHandle(deployment_id=deployment_id)

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None
