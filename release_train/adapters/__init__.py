"""Adapters — bindings for the engine's external collaborators.

Public re-exports for convenient access.
"""

from release_train.adapters.authorization import RoleAuthorizer
from release_train.adapters.base import (
    Authorizer,
    ChartValuesProvider,
    ProductStore,
    RegistryClient,
    WebHookSender,
    WebHookStore,
)
from release_train.adapters.helm import HelmValuesProvider
from release_train.adapters.registry import DockerRegistryClient
from release_train.adapters.webhook import HttpWebHookSender

__all__ = [
    "Authorizer",
    "ChartValuesProvider",
    "DockerRegistryClient",
    "HelmValuesProvider",
    "HttpWebHookSender",
    "ProductStore",
    "RegistryClient",
    "RoleAuthorizer",
    "WebHookSender",
    "WebHookStore",
]
