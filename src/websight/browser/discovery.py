"""Locate the page to work on when the caller gives no URL."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Iterable, Literal, Optional

import httpx

from ..config import DiscoveryConfig
from .playwright_session import is_internal_url

LOGGER = logging.getLogger(__name__)

Source = Literal["cdp", "devserver", "default"]


@dataclass
class DetectedPage:
    """Page chosen by discovery and where it came from."""

    url: str
    source: Source
    port: Optional[int] = None

    def describe(self) -> str:
        if self.source == "cdp":
            return "browser tab"
        if self.source == "devserver":
            return f"dev server (port {self.port})"
        return "default"


class PageDetector:
    """Probe debug ports, then dev-server ports, then fall back to a default URL."""

    def __init__(
        self,
        config: Optional[DiscoveryConfig] = None,
        cdp_ports: Iterable[int] = (9222, 9229),
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._config = config or DiscoveryConfig()
        self._cdp_ports = list(cdp_ports)
        self._transport = transport

    async def detect(self) -> DetectedPage:
        async with self._client() as client:
            for port in self._cdp_ports:
                url = await self._active_tab(client, port)
                if url:
                    LOGGER.info("Detected active browser tab %s on port %s", url, port)
                    return DetectedPage(url=url, source="cdp", port=port)

            servers = await self.running_servers(client)
        if servers:
            port, url = servers[0]
            LOGGER.info("Detected dev server on port %s", port)
            return DetectedPage(url=url, source="devserver", port=port)
        LOGGER.info("Nothing detected, using %s", self._config.default_url)
        return DetectedPage(url=self._config.default_url, source="default")

    async def running_servers(
        self, client: Optional[httpx.AsyncClient] = None
    ) -> list[tuple[int, str]]:
        """Return ``(port, url)`` for every dev-server port serving HTML, in port priority."""

        if client is None:
            async with self._client() as own_client:
                return await self.running_servers(own_client)
        ports = self._config.dev_ports
        open_flags = await asyncio.gather(*(self._is_port_open(port) for port in ports))
        servers: list[tuple[int, str]] = []
        for port, is_open in zip(ports, open_flags):
            if not is_open:
                continue
            url = f"http://{self._config.host}:{port}/"
            if await self._serves_html(client, url):
                servers.append((port, url))
        return servers

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self._config.probe_timeout, transport=self._transport)

    async def _active_tab(self, client: httpx.AsyncClient, port: int) -> Optional[str]:
        try:
            response = await client.get(f"http://{self._config.host}:{port}/json/list")
            response.raise_for_status()
            targets = response.json()
        except (httpx.HTTPError, ValueError):
            return None
        for target in targets:
            url = target.get("url", "")
            if target.get("type") == "page" and not is_internal_url(url):
                return url
        return None

    async def _is_port_open(self, port: int) -> bool:
        try:
            _, writer = await asyncio.wait_for(
                asyncio.open_connection(self._config.host, port),
                timeout=self._config.port_timeout,
            )
        except (OSError, asyncio.TimeoutError):
            return False
        writer.close()
        try:
            await writer.wait_closed()
        except OSError:
            pass
        return True

    async def _serves_html(self, client: httpx.AsyncClient, url: str) -> bool:
        try:
            response = await client.head(url)
        except httpx.HTTPError:
            return False
        content_type = response.headers.get("content-type", "")
        return response.is_success and "text/html" in content_type
