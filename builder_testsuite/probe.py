"""Client for the builder node's control and metrics endpoints."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import Any

import aiohttp

from builder_testsuite.config import TopologyConfig
from builder_testsuite.exceptions import ProbeConnectionError, TransportError

HANDSHAKE_METHOD = "web3_clientVersion"


@dataclass(frozen=True, kw_only=True)
class BuilderProbe:
    """Connected probe for a single running builder node.

    The control-plane session is kept open for the lifetime of the probe even
    though metrics are fetched over plain HTTP from a separate port.
    """

    topology: TopologyConfig
    session: aiohttp.ClientSession = field(repr=False)
    log: logging.Logger = field(repr=False)
    client_version: str = ""

    @classmethod
    @asynccontextmanager
    async def connect(
        cls, topology: TopologyConfig, log: logging.Logger
    ) -> AsyncGenerator["BuilderProbe", None]:
        """Open a session and verify the builder answers JSON-RPC.

        Raises:
            ProbeConnectionError: If the control endpoint is unreachable or
                does not respond like a JSON-RPC server.

        """
        timeout = aiohttp.ClientTimeout(total=topology.connect_timeout)
        async with aiohttp.ClientSession(timeout=timeout) as session:
            client_version = await _handshake(session, topology.control_url)
            log.info(
                "Connected to builder at %s (%s)", topology.control_url, client_version
            )
            yield cls(
                topology=topology,
                session=session,
                log=log,
                client_version=client_version,
            )

    async def fetch_metrics(self) -> bytes:
        """Fetch the current metrics snapshot as raw bytes.

        Raises:
            TransportError: On network failure, timeout or non-2xx status.

        """
        url = self.topology.metrics_url
        timeout = aiohttp.ClientTimeout(total=self.topology.metrics_timeout)
        self.log.debug("Fetching metrics from %s", url)
        try:
            async with self.session.get(url, timeout=timeout) as response:
                body = await response.read()
                if response.status >= 300:
                    raise TransportError(
                        f"Failed to fetch metrics: {response.status} "
                        f"{body.decode(errors='replace')}"
                    )
        except aiohttp.ClientError as e:
            raise TransportError(f"Failed to fetch metrics from {url}: {e}") from e
        except TimeoutError as e:
            raise TransportError(
                f"Metrics endpoint {url} did not respond within "
                f"{self.topology.metrics_timeout} seconds"
            ) from e
        return body


async def _handshake(session: aiohttp.ClientSession, url: str) -> str:
    payload = {"jsonrpc": "2.0", "id": 1, "method": HANDSHAKE_METHOD, "params": []}
    try:
        async with session.post(url, json=payload) as response:
            if response.status != 200:
                text = await response.text()
                raise ProbeConnectionError(
                    f"Failed to connect to {url}: {response.status} {text}"
                )
            data: Any = await response.json(content_type=None)
    except aiohttp.ClientError as e:
        raise ProbeConnectionError(f"Failed to connect to {url}: {e}") from e
    except TimeoutError as e:
        raise ProbeConnectionError(f"Timed out connecting to {url}") from e
    except ValueError as e:
        raise ProbeConnectionError(f"Invalid JSON-RPC response from {url}: {e}") from e

    if not isinstance(data, dict) or data.get("jsonrpc") != "2.0":
        raise ProbeConnectionError(f"Invalid JSON-RPC response from {url}: {data!r}")
    if "error" in data:
        raise ProbeConnectionError(f"JSON-RPC error from {url}: {data['error']}")
    return str(data.get("result", ""))
