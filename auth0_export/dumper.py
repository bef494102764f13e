"""Renders a tenant's live configuration into a directory tree."""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Protocol

from .api_client import ApiClient
from .endpoints import get_resource_endpoints
from .parser import Parser
from .sinks import SnapshotSink

logger = logging.getLogger(__name__)


@dataclass
class MaterializeOptions:
    domain: str
    client_id: str
    client_secret: str = field(repr=False)
    keyword_replacements: Dict[str, str] = field(default_factory=dict)
    allow_delete: bool = False
    excluded: List[str] = field(default_factory=list)


class ConfigMaterializer(Protocol):
    """Anything that can render one tenant's configuration into a directory."""

    async def render(self, output_dir: str, options: MaterializeOptions) -> None:
        ...


ApiClientFactory = Callable[[MaterializeOptions, Any], Any]


def _default_client_factory(options: MaterializeOptions, config_loader) -> ApiClient:
    return ApiClient(options.domain, options.client_id, options.client_secret, config_loader)


class TenantConfigDumper:
    """Config materializer backed by the Auth0 Management API."""

    def __init__(
        self,
        config_loader=None,
        client_factory: ApiClientFactory = _default_client_factory,
        resources: Optional[Dict[str, Dict[str, Any]]] = None,
    ):
        self.config_loader = config_loader
        self.client_factory = client_factory
        self.resources = resources or get_resource_endpoints()

    async def render(self, output_dir: str, options: MaterializeOptions) -> None:
        excluded = set(options.excluded)
        unknown = excluded.difference(self.resources)
        if unknown:
            logger.warning(f"Ignoring unknown excluded resource types: {', '.join(sorted(unknown))}")

        parser = Parser(options.keyword_replacements)
        sink = SnapshotSink(output_dir, allow_delete=options.allow_delete)
        os.makedirs(output_dir, exist_ok=True)

        logger.info(f"Dumping tenant config of {options.domain}")
        async with self.client_factory(options, self.config_loader) as client:
            for name, definition in self.resources.items():
                if name in excluded:
                    logger.debug(f"Skipping excluded resource type {name}")
                    continue
                if definition["kind"] == "singleton":
                    payload = await client.get_json(
                        definition["path"],
                        definition.get("params"),
                        optional=definition.get("optional", False),
                    )
                    if payload is None:
                        logger.debug(f"{name} not configured on {options.domain}")
                        continue
                    sink.write_file(definition["output"], parser.parse_object(definition, payload))
                    written = 1
                else:
                    items = await client.fetch_paginated(
                        definition["path"],
                        definition.get("supports_pagination", False),
                        definition.get("collection_key"),
                        definition.get("params"),
                    )
                    written = len(sink.write_collection(definition["output"], parser.parse_many(definition, items)))
                logger.debug(f"{name}: {written} file(s)")

        logger.info(f"Dumped {len(sink.written)} file(s) for {options.domain}")
