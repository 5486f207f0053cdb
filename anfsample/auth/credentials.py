from __future__ import annotations

import json
import logging
import os
from typing import Optional, Tuple

from azure.identity import ClientSecretCredential
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from ..errors import AuthFailureError

logger = logging.getLogger(__name__)

AUTH_LOCATION_ENV = "AZURE_AUTH_LOCATION"


class AzureAuthInfo(BaseModel):
    """Contents of an Azure SDK authentication file (``--sdk-auth`` format)."""

    model_config = ConfigDict(populate_by_name=True)

    client_id: str = Field(alias="clientId")
    client_secret: str = Field(alias="clientSecret")
    subscription_id: str = Field(alias="subscriptionId")
    tenant_id: str = Field(alias="tenantId")
    active_directory_endpoint_url: Optional[str] = Field(
        default=None, alias="activeDirectoryEndpointUrl"
    )
    resource_manager_endpoint_url: Optional[str] = Field(
        default=None, alias="resourceManagerEndpointUrl"
    )
    active_directory_graph_resource_id: Optional[str] = Field(
        default=None, alias="activeDirectoryGraphResourceId"
    )
    sql_management_endpoint_url: Optional[str] = Field(
        default=None, alias="sqlManagementEndpointUrl"
    )
    gallery_endpoint_url: Optional[str] = Field(default=None, alias="galleryEndpointUrl")
    management_endpoint_url: Optional[str] = Field(
        default=None, alias="managementEndpointUrl"
    )


def load_auth_info(path: Optional[str] = None) -> AzureAuthInfo:
    """Read the authentication file.

    Args:
        path: Optional file path. Falls back to the AZURE_AUTH_LOCATION env variable.

    Raises:
        AuthFailureError: If no path is configured or the file cannot be read or parsed.
    """
    auth_path = path or os.getenv(AUTH_LOCATION_ENV)
    if not auth_path:
        raise AuthFailureError(f"{AUTH_LOCATION_ENV} is not set")

    try:
        with open(auth_path, encoding="utf-8") as f:
            data = json.load(f)
    except OSError as exc:
        raise AuthFailureError(f"failed to read authentication file {auth_path}: {exc}") from exc
    except json.JSONDecodeError as exc:
        raise AuthFailureError(f"authentication file {auth_path} is not valid JSON: {exc}") from exc

    if not isinstance(data, dict):
        raise AuthFailureError(f"authentication file {auth_path} must contain a JSON object")

    try:
        return AzureAuthInfo.model_validate(data)
    except ValidationError as exc:
        raise AuthFailureError(f"authentication file {auth_path} is incomplete: {exc}") from exc


def get_credentials(path: Optional[str] = None) -> Tuple[ClientSecretCredential, str]:
    """Return a service principal credential and the subscription id it targets."""
    info = load_auth_info(path)
    kwargs = {}
    if info.active_directory_endpoint_url:
        kwargs["authority"] = info.active_directory_endpoint_url
    credential = ClientSecretCredential(
        tenant_id=info.tenant_id,
        client_id=info.client_id,
        client_secret=info.client_secret,
        **kwargs,
    )
    logger.debug(f"Loaded service principal credentials for subscription {info.subscription_id}")
    return credential, info.subscription_id
