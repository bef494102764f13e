"""Secret providers for the SSH key and the tenant list."""
from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field
from typing import Dict, Optional, Protocol

import boto3
from botocore.exceptions import ClientError, NoCredentialsError

from .errors import AccessDeniedError, ConfigurationError, SecretNotFoundError

logger = logging.getLogger(__name__)

_ACCESS_DENIED_CODES = {
    "AccessDeniedException",
    "AccessDenied",
    "UnauthorizedOperation",
    "KMSAccessDeniedException",
    "InvalidKeyId",
}


@dataclass(frozen=True)
class Secret:
    name: str
    value: str = field(repr=False)
    decrypted: bool = True


class SecretProvider(Protocol):
    """Abstraction for fetching decrypted secrets by name."""

    def get_secret(self, name: str) -> Secret:
        ...


class SsmSecretProvider:
    """
    Secret provider backed by AWS Systems Manager Parameter Store.
    SecureString parameters are decrypted server side; each name is fetched
    once per provider instance.
    """

    def __init__(self, client=None, region_name: Optional[str] = None):
        self.client = client or boto3.client("ssm", region_name=region_name)
        self._cache: Dict[str, Secret] = {}

    def get_secret(self, name: str) -> Secret:
        if name in self._cache:
            return self._cache[name]

        logger.info(f"Fetching secret {name} from Parameter Store")
        try:
            response = self.client.get_parameter(Name=name, WithDecryption=True)
        except ClientError as e:
            code = e.response.get("Error", {}).get("Code", "")
            if code == "ParameterNotFound":
                raise SecretNotFoundError(name) from e
            if code in _ACCESS_DENIED_CODES:
                raise AccessDeniedError(name, code) from e
            raise
        except NoCredentialsError as e:
            raise AccessDeniedError(name, str(e)) from e

        secret = Secret(name=name, value=response["Parameter"]["Value"])
        self._cache[name] = secret
        return secret


class JsonSecretProvider:
    """
    Secret provider that reads secrets from a JSON object file
    like {"/dev/configbackup/github/private-key": "-----BEGIN ..."}.
    """

    def __init__(self, secrets_file: str):
        self.secrets_file = secrets_file

    def get_secret(self, name: str) -> Secret:
        if not os.path.exists(self.secrets_file):
            raise SecretNotFoundError(name)

        try:
            with open(self.secrets_file, "r", encoding="utf-8") as f:
                data = json.load(f)
        except PermissionError as e:
            raise AccessDeniedError(name, str(e)) from e

        if not isinstance(data, dict) or name not in data:
            raise SecretNotFoundError(name)

        value = data[name]
        # Structured values are handed out the way Parameter Store would: as JSON text
        if not isinstance(value, str):
            value = json.dumps(value)
        return Secret(name=name, value=value)


def build_secret_provider(settings) -> SecretProvider:
    if settings.secret_provider == "json":
        if not settings.secrets_file:
            raise ConfigurationError("SECRETS_FILE is required for the json secrets provider")
        return JsonSecretProvider(settings.secrets_file)
    return SsmSecretProvider(region_name=settings.config_loader.get("secrets.region"))
