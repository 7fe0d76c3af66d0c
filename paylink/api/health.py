"""
Health check endpoints.

Provides HTTP endpoints for health checks and monitoring.
"""

from aiohttp import web
from loguru import logger

from paylink.services.directory.client import DirectoryClient


class HealthAPI:
    """Health, readiness and liveness handlers."""

    def __init__(self, directory: DirectoryClient) -> None:
        """
        Initialize health API.

        Args:
            directory: Directory client whose reachability is reported
        """
        self._directory = directory

    @property
    def is_ready(self) -> bool:
        """Notification delivery needs both the directory URL and the internal key."""
        return self._directory.is_configured and self._directory.has_internal_key

    async def health_handler(self, request: web.Request) -> web.Response:
        """
        Health check endpoint.

        Returns:
            JSON response with directory status
        """
        try:
            reachable = await self._directory.check_connection()
        except Exception as e:
            logger.error(f"Health check failed: {e}")
            return web.json_response(
                {
                    "status": "unhealthy",
                    "error": str(e),
                },
                status=503,
            )

        healthy = self.is_ready and reachable
        return web.json_response(
            {
                "status": "healthy" if healthy else "unhealthy",
                "directory_configured": self._directory.is_configured,
                "internal_key_configured": self._directory.has_internal_key,
                "directory_reachable": reachable,
            },
            status=200 if healthy else 503,
        )

    async def readiness_handler(self, request: web.Request) -> web.Response:
        """
        Readiness check endpoint.

        Returns:
            JSON response indicating if notifications can be delivered
        """
        if not self.is_ready:
            return web.json_response(
                {
                    "status": "not_ready",
                    "ready": False,
                },
                status=503,
            )

        return web.json_response(
            {
                "status": "ready",
                "ready": True,
            }
        )

    async def liveness_handler(self, request: web.Request) -> web.Response:
        """
        Liveness check endpoint.

        Returns:
            JSON response indicating if the process is alive
        """
        return web.json_response(
            {
                "status": "alive",
                "alive": True,
            }
        )
