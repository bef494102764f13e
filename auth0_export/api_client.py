"""Async Management API client that reuses the Auth0 authenticator and config knobs."""
from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, Dict, List, Optional

import aiohttp

from .auth import Auth0Authenticator
from .errors import RenderError

logger = logging.getLogger(__name__)


class ApiClient:
    def __init__(self, domain: str, client_id: str, client_secret: str, config_loader=None):
        self.domain = domain
        self.base_url = f"https://{domain}"
        self.client_id = client_id
        self.client_secret = client_secret
        self.config_loader = config_loader

        rate_config = config_loader.get("export.rate_limiting", {}) if config_loader else {}
        self.rate_limit_per_minute = rate_config.get("rate_limit_per_minute", 50)
        self.burst_size = rate_config.get("burst_size", 10)

        perf_config = config_loader.get("export.performance", {}) if config_loader else {}
        self.connection_pool_size = perf_config.get("connection_pool_size", 10)
        self.connection_timeout = perf_config.get("connection_timeout", 10)
        self.read_timeout = perf_config.get("read_timeout", 30)
        self.per_page = perf_config.get("per_page", 50)

        self.session: Optional[aiohttp.ClientSession] = None
        self.authenticator: Optional[Auth0Authenticator] = None

        self.request_count = 0
        self.start_time = time.time()
        self.rate_limit_lock = asyncio.Lock()

    async def __aenter__(self):
        connector = aiohttp.TCPConnector(limit=self.connection_pool_size, ttl_dns_cache=300)
        timeout = aiohttp.ClientTimeout(total=None, connect=self.connection_timeout, sock_read=self.read_timeout)
        self.session = aiohttp.ClientSession(connector=connector, timeout=timeout)
        self.authenticator = Auth0Authenticator(self.domain, self.session)
        self.authenticator.set_client_credentials(self.client_id, self.client_secret)
        try:
            await self.authenticator.ensure_valid_token()
        except BaseException:
            await self.session.close()
            raise
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        if self.session:
            await self.session.close()

    async def check_rate_limit(self):
        async with self.rate_limit_lock:
            current_time = time.time()
            elapsed = current_time - self.start_time
            if elapsed >= 60:
                self.request_count = 0
                self.start_time = current_time
                elapsed = 0
            accumulated_requests = int((elapsed / 60) * self.rate_limit_per_minute)
            available_requests = self.burst_size + accumulated_requests
            if self.request_count >= available_requests:
                requests_per_second = self.rate_limit_per_minute / 60
                sleep_time = max(1.0 / requests_per_second, 0)
                if sleep_time > 0:
                    await asyncio.sleep(min(sleep_time, 60))
            self.request_count += 1

    async def get_json(self, endpoint: str, params: Optional[Dict[str, Any]] = None, optional: bool = False) -> Any:
        """GET an endpoint; returns None for a 404 on an optional resource."""
        if not self.session or not self.authenticator:
            raise RuntimeError("ApiClient not initialized; use async context manager")

        await self.check_rate_limit()
        headers = await self.authenticator.get_headers()
        url = f"{self.base_url}{endpoint}"
        try:
            async with self.session.get(url, params=params, headers=headers) as response:
                logger.debug(f"GET {endpoint} -> Status: {response.status}")
                if response.status == 404 and optional:
                    return None
                if response.status >= 400:
                    error_text = await response.text()
                    raise RenderError(
                        f"GET {endpoint} on {self.domain} failed with status {response.status}: {error_text}",
                        status=response.status,
                    )
                return await response.json()
        except asyncio.TimeoutError as e:
            raise RenderError(f"GET {endpoint} on {self.domain} timed out") from e
        except aiohttp.ClientError as e:
            raise RenderError(f"GET {endpoint} on {self.domain} failed: {e}") from e

    async def fetch_paginated(
        self,
        endpoint: str,
        supports_pagination: bool,
        collection_key: Optional[str] = None,
        base_params: Optional[Dict[str, Any]] = None,
    ) -> List[Dict]:
        all_items: List[Dict] = []
        params = dict(base_params or {})
        if supports_pagination:
            params.update({"per_page": self.per_page, "include_totals": "true"})
        page = 0

        while True:
            query_params = dict(params)
            if supports_pagination:
                query_params["page"] = page
            payload = await self.get_json(endpoint, query_params)
            if isinstance(payload, list):
                items = payload
                total = None
            elif isinstance(payload, dict):
                items = payload.get(collection_key or "", [])
                total = payload.get("total")
            else:
                raise RenderError(f"Unexpected payload for {endpoint} on {self.domain}: {type(payload).__name__}")
            all_items.extend(items)

            if not supports_pagination or not items:
                break
            if total is not None and len(all_items) >= total:
                break
            if total is None and len(items) < self.per_page:
                break
            page += 1
        return all_items
