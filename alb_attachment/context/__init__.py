"""Context resolution: read shared infrastructure state into a Context."""

from .models import (
    Context,
    HostedZoneLookup,
    HostedZoneReference,
    LoadBalancerAttributes,
    LoadBalancerContext,
    ResolutionRequest,
    ResolutionStrategy,
)
from .priority import ListenerRulePriorityAllocator, PriorityAllocator
from .resolver import (
    ContextResolver,
    derive_zone_name,
    load_balancer_arn_from_listener_arn,
)
from .store import ContextStore

__all__ = [
    "Context",
    "HostedZoneLookup",
    "HostedZoneReference",
    "LoadBalancerAttributes",
    "LoadBalancerContext",
    "ResolutionRequest",
    "ResolutionStrategy",
    "ListenerRulePriorityAllocator",
    "PriorityAllocator",
    "ContextResolver",
    "derive_zone_name",
    "load_balancer_arn_from_listener_arn",
    "ContextStore",
]
