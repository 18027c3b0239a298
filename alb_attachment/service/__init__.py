"""Attachment orchestration: declare the resources that route a hostname to a new service."""

from .construct import AttachmentHandle, LoadBalancedService, attach
from .factories import (
    AttachmentOptions,
    ServiceExtras,
    ServiceFactories,
    default_target_group_factory,
    default_target_group_props,
    fargate_service_factory,
    target_group_props_from_config,
)

__all__ = [
    "AttachmentHandle",
    "LoadBalancedService",
    "attach",
    "AttachmentOptions",
    "ServiceExtras",
    "ServiceFactories",
    "default_target_group_factory",
    "default_target_group_props",
    "fargate_service_factory",
    "target_group_props_from_config",
]
