"""
Resource definitions for the Auth0 Management API v2.
Each entry describes how one resource type is listed and where its snapshot is written.
"""

from typing import Dict, Any


def get_resource_endpoints() -> Dict[str, Any]:
    """Get the resource types exported into a tenant snapshot."""
    return {
        # Singletons
        "tenant": {
            "path": "/api/v2/tenants/settings",
            "kind": "singleton",
            "output": "tenant.json",
            "strip_fields": ["flags.enable_client_connections"],
        },
        "prompts": {
            "path": "/api/v2/prompts",
            "kind": "singleton",
            "output": "prompts.json",
        },
        "branding": {
            "path": "/api/v2/branding",
            "kind": "singleton",
            "output": "branding.json",
            "optional": True,
        },
        "email_provider": {
            "path": "/api/v2/emails/provider",
            "kind": "singleton",
            "output": "emails/provider.json",
            "params": {"include_fields": "true"},
            "strip_fields": ["credentials"],
            "optional": True,  # 404 until a provider is configured
        },
        "guardian_factors": {
            "path": "/api/v2/guardian/factors",
            "kind": "singleton",
            "output": "guardian/factors.json",
        },

        # Collections
        "clients": {
            "path": "/api/v2/clients",
            "kind": "collection",
            "supports_pagination": True,
            "collection_key": "clients",
            "id_field": "client_id",
            "output": "clients",
            "name_field": "name",
            "strip_fields": ["client_secret", "signing_keys", "tenant", "global", "callback_url_template"],
        },
        "client_grants": {
            "path": "/api/v2/client-grants",
            "kind": "collection",
            "supports_pagination": True,
            "collection_key": "client_grants",
            "output": "client-grants",
            "name_fields": ["client_id", "audience"],
            "strip_fields": ["id"],
        },
        "connections": {
            "path": "/api/v2/connections",
            "kind": "collection",
            "supports_pagination": True,
            "collection_key": "connections",
            "output": "connections",
            "name_field": "name",
            "strip_fields": ["id", "options.client_secret", "options.configuration", "provisioning_ticket_url"],
        },
        "resource_servers": {
            "path": "/api/v2/resource-servers",
            "kind": "collection",
            "supports_pagination": True,
            "collection_key": "resource_servers",
            "output": "resource-servers",
            "name_field": "name",
            "strip_fields": ["id", "signing_secret"],
        },
        "roles": {
            "path": "/api/v2/roles",
            "kind": "collection",
            "supports_pagination": True,
            "collection_key": "roles",
            "output": "roles",
            "name_field": "name",
            "strip_fields": ["id"],
        },
        "rules": {
            "path": "/api/v2/rules",
            "kind": "collection",
            "supports_pagination": True,
            "collection_key": "rules",
            "output": "rules",
            "name_field": "name",
            "strip_fields": ["id"],
        },
        "actions": {
            "path": "/api/v2/actions/actions",
            "kind": "collection",
            "supports_pagination": True,
            "collection_key": "actions",
            "output": "actions",
            "name_field": "name",
            "strip_fields": ["id", "created_at", "updated_at", "secrets", "all_changes_deployed"],
        },
        "organizations": {
            "path": "/api/v2/organizations",
            "kind": "collection",
            "supports_pagination": True,
            "collection_key": "organizations",
            "output": "organizations",
            "name_field": "name",
            "strip_fields": ["id"],
        },
        "log_streams": {
            "path": "/api/v2/log-streams",
            "kind": "collection",
            "supports_pagination": False,
            "output": "log-streams",
            "name_field": "name",
            "strip_fields": ["id", "sink.httpAuthorization", "sink.splunkToken", "sink.datadogApiKey"],
        },
    }
