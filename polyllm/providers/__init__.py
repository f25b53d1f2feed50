"""Provider implementations.

This package contains the provider contract and its vendor implementations.
"""

from polyllm.providers.base import HttpProvider, Provider
from polyllm.providers.databricks import DatabricksProvider, DatabricksProviderConfig
from polyllm.providers.factory import available_providers, create_provider
from polyllm.providers.openai import OpenAIProvider, OpenAIProviderConfig

__all__ = [
    "Provider",
    "HttpProvider",
    "OpenAIProvider",
    "OpenAIProviderConfig",
    "DatabricksProvider",
    "DatabricksProviderConfig",
    "create_provider",
    "available_providers",
]
