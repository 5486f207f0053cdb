"""Credential loading for the Azure management clients."""

from .credentials import AzureAuthInfo, get_credentials, load_auth_info

__all__ = ["AzureAuthInfo", "get_credentials", "load_auth_info"]
