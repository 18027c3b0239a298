"""
Factories and option types consumed by the attachment orchestrator.

The orchestrator never builds a target group or an ECS service itself. It
calls a target group factory with the VPC reference and a service factory
with the cluster reference plus ``ServiceExtras``. This module defines
those contracts and the defaults used when a caller supplies none.
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

import aws_cdk as cdk
from aws_cdk import (
    aws_ec2 as ec2,
    aws_ecs as ecs,
    aws_elasticloadbalancingv2 as elbv2,
    aws_logs as logs,
    aws_route53 as route53,
)
from constructs import Construct

from ..common.constants import (
    DEFAULT_CONTAINER_PORT,
    DEFAULT_CPU,
    DEFAULT_CREATE_ROUTE53_A_RECORD,
    DEFAULT_DEREGISTRATION_DELAY,
    DEFAULT_DESIRED_COUNT,
    DEFAULT_MEMORY,
    DEFAULT_STICKINESS_COOKIE_DURATION,
)
from ..common.exceptions import ValidationError
from ..common.validators import ConfigValidator


@dataclass
class ServiceExtras:
    """References handed to the service factory next to the cluster."""
    security_groups: List[ec2.ISecurityGroup]
    vpc: ec2.IVpc
    target_group: elbv2.ApplicationTargetGroup
    hosted_zone: route53.IHostedZone


TargetGroupFactory = Callable[[ec2.IVpc], elbv2.ApplicationTargetGroup]
ServiceFactory = Callable[[ecs.ICluster, ServiceExtras], ecs.BaseService]


@dataclass
class ServiceFactories:
    """
    Caller-supplied factories.

    Attributes:
        service_factory: Builds the ECS service inside the imported cluster
        target_group_factory: Builds the target group; when omitted the
            orchestrator uses ``default_target_group_factory`` with the
            attachment's ``target_group_props``
    """
    service_factory: ServiceFactory
    target_group_factory: Optional[TargetGroupFactory] = None


@dataclass
class AttachmentOptions:
    """Recognized attachment options."""
    create_route53_a_record: bool = DEFAULT_CREATE_ROUTE53_A_RECORD
    target_group_props: Dict[str, Any] = field(default_factory=dict)


def default_target_group_props() -> Dict[str, Any]:
    """HTTP, 15 second deregistration delay, one day stickiness cookie."""
    return {
        "protocol": elbv2.ApplicationProtocol.HTTP,
        "deregistration_delay": cdk.Duration.seconds(DEFAULT_DEREGISTRATION_DELAY),
        "stickiness_cookie_duration": cdk.Duration.days(DEFAULT_STICKINESS_COOKIE_DURATION),
    }


def default_target_group_factory(scope: Construct,
                                 construct_id: str = "TargetGroup",
                                 overrides: Optional[Dict[str, Any]] = None) -> TargetGroupFactory:
    """
    Build a target group factory that merges ``overrides`` over the defaults.

    Args:
        scope: Construct the target group is created in
        construct_id: Construct id of the target group
        overrides: ``ApplicationTargetGroup`` keyword arguments replacing
            any subset of the defaults

    Returns:
        A callable taking the VPC reference
    """
    props = default_target_group_props()
    props.update(overrides or {})

    def factory(vpc: ec2.IVpc) -> elbv2.ApplicationTargetGroup:
        return elbv2.ApplicationTargetGroup(scope, construct_id, vpc=vpc, **props)

    return factory


# YAML keys (as written under TargetGroupProps) to CDK keyword arguments
_TARGET_GROUP_PROP_CONVERTERS = {
    "Port": ("port", int),
    "Protocol": ("protocol", lambda value: elbv2.ApplicationProtocol[str(value).upper()]),
    "TargetType": ("target_type", lambda value: elbv2.TargetType[str(value).upper()]),
    "TargetGroupName": ("target_group_name", str),
    "DeregistrationDelay": ("deregistration_delay", lambda value: cdk.Duration.seconds(int(value))),
    "StickinessCookieDuration": ("stickiness_cookie_duration", lambda value: cdk.Duration.seconds(int(value))),
    "StickinessCookieName": ("stickiness_cookie_name", str),
    "SlowStart": ("slow_start", lambda value: cdk.Duration.seconds(int(value))),
}


def target_group_props_from_config(raw: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """
    Convert the ``TargetGroupProps`` configuration map into CDK keyword
    arguments. Durations are given in seconds.

    ``HealthCheckPath``, ``HealthCheckInterval`` (seconds) and
    ``HealthyHttpCodes`` are folded into a single ``elbv2.HealthCheck``.

    Raises:
        ValidationError: On an unknown key or unconvertible value
    """
    props: Dict[str, Any] = {}
    health_check: Dict[str, Any] = {}

    for key, value in (raw or {}).items():
        if key == "HealthCheckPath":
            health_check["path"] = str(value)
            continue
        if key == "HealthCheckInterval":
            health_check["interval"] = cdk.Duration.seconds(int(value))
            continue
        if key == "HealthyHttpCodes":
            health_check["healthy_http_codes"] = str(value)
            continue
        if key not in _TARGET_GROUP_PROP_CONVERTERS:
            raise ValidationError(
                f"Unsupported target group property: {key}",
                parameter_name="TargetGroupProps",
                provided_value=key
            )
        name, convert = _TARGET_GROUP_PROP_CONVERTERS[key]
        try:
            props[name] = convert(value)
        except (KeyError, TypeError, ValueError) as e:
            raise ValidationError(
                f"Invalid value for target group property {key}: {value}",
                parameter_name="TargetGroupProps",
                provided_value=str(value)
            ) from e

    if "port" in props:
        ConfigValidator.validate_port_range(props["port"])
    if health_check:
        props["health_check"] = elbv2.HealthCheck(**health_check)
    return props


def fargate_service_factory(service_name: str,
                            image: str,
                            *,
                            scope: Optional[Construct] = None,
                            container_port: int = DEFAULT_CONTAINER_PORT,
                            cpu: int = DEFAULT_CPU,
                            memory: int = DEFAULT_MEMORY,
                            desired_count: int = DEFAULT_DESIRED_COUNT,
                            environment_vars: Optional[Dict[str, str]] = None) -> ServiceFactory:
    """
    Build a service factory that runs ``image`` as a Fargate service.

    Args:
        service_name: Used for construct ids and the log stream prefix
        image: Container image reference (registry/repository:tag)
        container_port: Port the container listens on
        cpu: CPU units (1024 = 1 vCPU)
        memory: Memory in MiB
        desired_count: Number of tasks to run
        environment_vars: Environment variables for the container
        scope: Construct the task definition and service are created in,
            defaults to the construct holding the cluster reference

    Returns:
        A callable taking the cluster reference and ``ServiceExtras``
    """
    ConfigValidator.validate_resource_name(service_name)
    ConfigValidator.validate_port_range(container_port)

    def factory(cluster: ecs.ICluster, extras: ServiceExtras) -> ecs.FargateService:
        parent = scope or cluster.node.scope
        task_definition = ecs.FargateTaskDefinition(
            parent,
            f"{service_name}-task-definition",
            cpu=cpu,
            memory_limit_mib=memory,
        )

        container = task_definition.add_container(
            service_name,
            image=ecs.ContainerImage.from_registry(image),
            logging=ecs.LogDrivers.aws_logs(
                stream_prefix=service_name,
                log_retention=logs.RetentionDays.ONE_MONTH,
            ),
            environment=dict(environment_vars or {}),
        )
        container.add_port_mappings(ecs.PortMapping(container_port=container_port))

        return ecs.FargateService(
            parent,
            f"{service_name}-ecs-service",
            cluster=cluster,
            task_definition=task_definition,
            desired_count=desired_count,
            security_groups=extras.security_groups,
            assign_public_ip=False,
            circuit_breaker=ecs.DeploymentCircuitBreaker(rollback=True),
        )

    return factory
