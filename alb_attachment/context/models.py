"""
Data model for resolved attachment contexts.

A Context is the fully-resolved, immutable input to the attachment
orchestrator. It carries identifiers only (no clients, no constructs), so
it can be written to disk, cached and replayed across synth runs.
"""

import json
from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Sequence, Tuple, Union

from ..common.constants import (
    ROUTE_ZONE_LOOKUP,
    ROUTE_ZONE_REFERENCE,
    STRATEGY_BY_ATTRIBUTES,
    STRATEGY_BY_LOOKUP,
)
from ..common.exceptions import ValidationError
from ..common.validators import AWSResourceValidator


class ResolutionStrategy(Enum):
    """How load balancer attributes are obtained during resolution."""

    BY_ATTRIBUTES = STRATEGY_BY_ATTRIBUTES
    BY_LOOKUP = STRATEGY_BY_LOOKUP


@dataclass(frozen=True)
class HostedZoneReference:
    """An explicitly identified Route 53 hosted zone."""

    hosted_zone_id: str
    zone_name: str
    kind: str = field(default=ROUTE_ZONE_REFERENCE, init=False)


@dataclass(frozen=True)
class HostedZoneLookup:
    """A hosted zone to be found by name at synth time."""

    zone_name: str
    kind: str = field(default=ROUTE_ZONE_LOOKUP, init=False)


RouteZone = Union[HostedZoneReference, HostedZoneLookup]


def route_zone_from_dict(data: Dict[str, Any]) -> RouteZone:
    """Rebuild a route zone variant from its serialised form."""
    kind = data.get("kind")
    if kind == ROUTE_ZONE_REFERENCE:
        return HostedZoneReference(
            hosted_zone_id=data["hosted_zone_id"],
            zone_name=data["zone_name"],
        )
    if kind == ROUTE_ZONE_LOOKUP:
        return HostedZoneLookup(zone_name=data["zone_name"])
    raise ValidationError(
        f"Unknown route zone kind: {kind}",
        parameter_name="route_zone",
        provided_value=str(kind)
    )


@dataclass(frozen=True)
class LoadBalancerAttributes:
    """Load balancer attributes a caller already knows."""

    dns_name: str
    canonical_hosted_zone_id: str
    security_group_id: str


@dataclass(frozen=True)
class LoadBalancerContext:
    """
    The shared load balancer and the slot the new route occupies on it.

    ``security_group_id``, ``dns_name`` and ``canonical_hosted_zone_id`` are
    only known when they were resolved live or supplied by the caller. When
    any of them is missing the orchestrator references the load balancer
    and listener through CDK lookups instead of attributes.
    """

    load_balancer_arn: str
    listener_arn: str
    rule_priority: int
    security_group_id: Optional[str] = None
    dns_name: Optional[str] = None
    canonical_hosted_zone_id: Optional[str] = None

    def __post_init__(self):
        AWSResourceValidator.validate_arn(self.load_balancer_arn, service="elasticloadbalancing")
        AWSResourceValidator.validate_arn(self.listener_arn, service="elasticloadbalancing")
        AWSResourceValidator.validate_rule_priority(self.rule_priority)

    @property
    def strategy(self) -> ResolutionStrategy:
        if self.security_group_id and self.dns_name and self.canonical_hosted_zone_id:
            return ResolutionStrategy.BY_ATTRIBUTES
        return ResolutionStrategy.BY_LOOKUP


@dataclass(frozen=True)
class Context:
    """
    Resolved input to the attachment orchestrator.

    Attributes:
        domain_name: Hostname routed to the new service
        vpc_id: VPC of the existing cluster
        cluster_name: Name of the existing ECS cluster
        security_group_ids: Security groups of the cluster, in order
        route_zone: Zone that hosts the certificate validation and alias records
        load_balancer: Shared load balancer, HTTPS listener and rule priority
    """

    domain_name: str
    vpc_id: str
    cluster_name: str
    security_group_ids: Tuple[str, ...]
    route_zone: RouteZone
    load_balancer: LoadBalancerContext

    def __post_init__(self):
        # Lists from YAML/JSON are normalised so the value stays hashable
        object.__setattr__(self, "security_group_ids", tuple(self.security_group_ids))
        AWSResourceValidator.validate_domain_name(self.domain_name)
        AWSResourceValidator.validate_security_group_ids(self.security_group_ids)
        if not self.vpc_id:
            raise ValidationError("VPC id is required", parameter_name="vpc_id")
        if not self.cluster_name:
            raise ValidationError("Cluster name is required", parameter_name="cluster_name")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "domain_name": self.domain_name,
            "vpc_id": self.vpc_id,
            "cluster_name": self.cluster_name,
            "security_group_ids": list(self.security_group_ids),
            "route_zone": asdict(self.route_zone),
            "load_balancer": asdict(self.load_balancer),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Context":
        if not isinstance(data, dict):
            raise ValidationError(
                f"Context document must be a JSON object, got {type(data).__name__}",
                parameter_name="context",
                provided_value=type(data).__name__
            )
        try:
            return cls(
                domain_name=data["domain_name"],
                vpc_id=data["vpc_id"],
                cluster_name=data["cluster_name"],
                security_group_ids=tuple(data["security_group_ids"]),
                route_zone=route_zone_from_dict(data["route_zone"]),
                load_balancer=LoadBalancerContext(**data["load_balancer"]),
            )
        except (KeyError, TypeError, AttributeError) as e:
            raise ValidationError(
                f"Malformed context document: {e}",
                parameter_name="context",
                provided_value=str(sorted(data.keys()))
            ) from e

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), indent=2, sort_keys=True)

    @classmethod
    def from_json(cls, document: str) -> "Context":
        try:
            data = json.loads(document)
        except json.JSONDecodeError as e:
            raise ValidationError(
                f"Context document is not valid JSON: {e}",
                parameter_name="context"
            ) from e
        return cls.from_dict(data)


@dataclass(frozen=True)
class ResolutionRequest:
    """
    Minimal identifiers the resolver starts from.

    At least one of ``load_balancer_arn`` and ``listener_arn`` is required.
    Supplying ``listener_arn`` together with ``load_balancer_attributes``
    resolves without describing the load balancer at all.
    """

    domain_name: str
    vpc_id: str
    cluster_name: str
    security_group_ids: Sequence[str]
    load_balancer_arn: Optional[str] = None
    listener_arn: Optional[str] = None
    load_balancer_attributes: Optional[LoadBalancerAttributes] = None
    hosted_zone_id: Optional[str] = None
    zone_name: Optional[str] = None

    def __post_init__(self):
        object.__setattr__(self, "security_group_ids", tuple(self.security_group_ids))
        AWSResourceValidator.validate_domain_name(self.domain_name)
        AWSResourceValidator.validate_security_group_ids(self.security_group_ids)
        if not self.load_balancer_arn and not self.listener_arn:
            raise ValidationError(
                "Either a load balancer ARN or a listener ARN is required",
                parameter_name="load_balancer_arn"
            )
        if self.load_balancer_arn:
            AWSResourceValidator.validate_arn(self.load_balancer_arn, service="elasticloadbalancing")
        if self.listener_arn:
            AWSResourceValidator.validate_arn(self.listener_arn, service="elasticloadbalancing")

    @property
    def strategy(self) -> ResolutionStrategy:
        if self.listener_arn and self.load_balancer_attributes is not None:
            return ResolutionStrategy.BY_ATTRIBUTES
        return ResolutionStrategy.BY_LOOKUP
