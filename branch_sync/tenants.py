"""Tenant source: decodes the ordered tenant list from a secret."""
from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List

from .errors import MalformedTenantListError

logger = logging.getLogger(__name__)

# JSON key -> TenantDescriptor attribute
REQUIRED_FIELDS = {
    "branchName": "branch_name",
    "domain": "domain",
    "tenantName": "tenant_name",
}
# Credentials are optional at decode time; a tenant without them fails its own cycle
CREDENTIAL_FIELDS = {
    "clientId": "client_id",
    "clientSecret": "client_secret",
}

_FORBIDDEN_REF_PARTS = re.compile(r"\s|\.\.|[~^:?*\[\\]|@\{")


@dataclass(frozen=True)
class TenantDescriptor:
    branch_name: str
    domain: str
    tenant_name: str
    client_id: str = ""
    client_secret: str = field(default="", repr=False)


def is_valid_branch_name(name: str) -> bool:
    if not name or name.startswith(("-", "/")) or name.endswith(("/", ".", ".lock")):
        return False
    if name == "@" or "//" in name or _FORBIDDEN_REF_PARTS.search(name):
        return False
    return not any(part.startswith(".") for part in name.split("/"))


def _parse_descriptor(index: int, entry: Any) -> TenantDescriptor:
    if not isinstance(entry, dict):
        raise MalformedTenantListError(f"Tenant #{index} is not an object")

    values: Dict[str, str] = {}
    for key, attribute in REQUIRED_FIELDS.items():
        value = entry.get(key)
        if not isinstance(value, str) or not value.strip():
            raise MalformedTenantListError(f"Tenant #{index} has no usable {key!r}")
        values[attribute] = value
    for key, attribute in CREDENTIAL_FIELDS.items():
        value = entry.get(key, "")
        if value is None:
            value = ""
        if not isinstance(value, str):
            raise MalformedTenantListError(f"Tenant #{index} has a non-string {key!r}")
        values[attribute] = value

    values["branch_name"] = values["branch_name"].strip()
    if not is_valid_branch_name(values["branch_name"]):
        raise MalformedTenantListError(
            f"Tenant #{index} has an invalid branchName: {values['branch_name']!r}"
        )
    return TenantDescriptor(**values)


def parse_tenant_list(raw: str) -> List[TenantDescriptor]:
    """Decode the tenant list, keeping the supplied order and any duplicates."""
    try:
        data = json.loads(raw)
    except (TypeError, json.JSONDecodeError) as e:
        raise MalformedTenantListError(f"Tenant list is not valid JSON: {e}") from e

    if not isinstance(data, list):
        raise MalformedTenantListError(f"Tenant list must be an array, got {type(data).__name__}")

    tenants = [_parse_descriptor(index, entry) for index, entry in enumerate(data)]

    seen = set()
    for tenant in tenants:
        if tenant.branch_name in seen:
            logger.warning(
                f"Branch {tenant.branch_name} is listed more than once; "
                f"tenant {tenant.tenant_name} will reconcile against the earlier tenant's result"
            )
        seen.add(tenant.branch_name)
    return tenants


def load_tenants(secret_provider, secret_name: str) -> List[TenantDescriptor]:
    logger.info("Fetching tenant list")
    secret = secret_provider.get_secret(secret_name)
    tenants = parse_tenant_list(secret.value)
    logger.info(f"Loaded {len(tenants)} tenant(s)")
    return tenants
