"""
Attachment of a new ECS service to a shared ALB, cluster and hosted zone.

``LoadBalancedService`` declares, in dependency order, references to the
existing VPC, security groups, hosted zone, load balancer, listener and
cluster, then the new target group, certificate, host-header listener
rule, listener certificate binding, optional alias record and finally the
service produced by the caller's factory. Existing rules and certificates
on the shared listener are never modified.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional

import aws_cdk as cdk
from aws_cdk import (
    aws_certificatemanager as acm,
    aws_ec2 as ec2,
    aws_ecs as ecs,
    aws_elasticloadbalancingv2 as elbv2,
    aws_route53 as route53,
    aws_route53_targets as route53_targets,
)
from constructs import Construct

from ..common.exceptions import FactoryError, PriorityConflict, ReferenceNotFound
from ..context.models import (
    Context,
    HostedZoneReference,
    ResolutionStrategy,
)
from .factories import (
    AttachmentOptions,
    ServiceExtras,
    ServiceFactories,
    default_target_group_factory,
)

logger = logging.getLogger(__name__)

@dataclass
class AttachmentHandle:
    """Everything the orchestrator referenced or declared."""
    vpc: ec2.IVpc
    security_groups: List[ec2.ISecurityGroup]
    hosted_zone: route53.IHostedZone
    load_balancer: elbv2.IApplicationLoadBalancer
    listener: elbv2.IApplicationListener
    cluster: ecs.ICluster
    target_group: elbv2.ApplicationTargetGroup
    certificate: acm.Certificate
    listener_rule: elbv2.ApplicationListenerRule
    listener_certificate: elbv2.ApplicationListenerCertificate
    alias_record: Optional[route53.ARecord]
    service: ecs.BaseService


class LoadBalancedService(Construct):
    """
    Route ``context.domain_name`` through the shared HTTPS listener to a new
    ECS service.

    Usage:
        service = LoadBalancedService(
            stack, "Api",
            context=Context.from_json(document),
            factories=ServiceFactories(service_factory=my_factory),
        )
        service.handle.listener_rule
    """

    def __init__(self,
                 scope: Construct,
                 construct_id: str,
                 *,
                 context: Context,
                 factories: ServiceFactories,
                 options: Optional[AttachmentOptions] = None) -> None:
        """
        Declare the attachment graph.

        Args:
            scope: CDK scope, must live in a stack with a concrete
                account and region
            construct_id: Unique identifier for this construct
            context: Resolved context
            factories: Service factory and optional target group factory
            options: DNS alias toggle and target group overrides

        Raises:
            PriorityConflict: If another attachment in this app already
                claimed the listener priority or hostname
            ReferenceNotFound: If lookups are impossible for the stack
            FactoryError: If a factory raises or returns nothing
        """
        super().__init__(scope, construct_id)
        self.context = context
        self.options = options or AttachmentOptions()

        load_balancer_context = context.load_balancer
        self._ensure_lookup_environment()
        self._claim_route()

        vpc = ec2.Vpc.from_lookup(self, "Vpc", vpc_id=context.vpc_id)

        security_groups = [
            ec2.SecurityGroup.from_security_group_id(self, f"ClusterSecurityGroup{i}", security_group_id)
            for i, security_group_id in enumerate(context.security_group_ids)
        ]

        hosted_zone = self._reference_hosted_zone()
        load_balancer, listener = self._reference_load_balancer()

        self.cluster = ecs.Cluster.from_cluster_attributes(
            self,
            "Cluster",
            cluster_name=context.cluster_name,
            vpc=vpc,
            security_groups=security_groups,
        )

        if factories.target_group_factory and self.options.target_group_props:
            logger.warning(
                f"Ignoring target group props {sorted(self.options.target_group_props)} for "
                f"{context.domain_name}: a custom target group factory is set"
            )
        target_group_factory = factories.target_group_factory or default_target_group_factory(
            self, "TargetGroup", self.options.target_group_props
        )
        target_group = self._call_factory("target group", target_group_factory, vpc)

        certificate = acm.Certificate(
            self,
            "Certificate",
            domain_name=context.domain_name,
            validation=acm.CertificateValidation.from_dns(hosted_zone),
        )

        listener_rule = elbv2.ApplicationListenerRule(
            self,
            "ListenerRule",
            listener=listener,
            priority=load_balancer_context.rule_priority,
            conditions=[elbv2.ListenerCondition.host_headers([context.domain_name])],
            action=elbv2.ListenerAction.forward([target_group]),
        )

        listener_certificate = elbv2.ApplicationListenerCertificate(
            self,
            "ListenerCertificate",
            listener=listener,
            certificates=[elbv2.ListenerCertificate.from_certificate_manager(certificate)],
        )

        alias_record = None
        if self.options.create_route53_a_record:
            alias_record = route53.ARecord(
                self,
                "AliasRecord",
                record_name=context.domain_name,
                zone=hosted_zone,
                target=route53.RecordTarget.from_alias(
                    route53_targets.LoadBalancerTarget(load_balancer)
                ),
            )
        else:
            logger.info(f"Alias record creation disabled for {context.domain_name}")

        service = self._call_factory(
            "service",
            factories.service_factory,
            self.cluster,
            ServiceExtras(
                security_groups=security_groups,
                vpc=vpc,
                target_group=target_group,
                hosted_zone=hosted_zone,
            ),
        )
        target_group.add_target(service)

        self.handle = AttachmentHandle(
            vpc=vpc,
            security_groups=security_groups,
            hosted_zone=hosted_zone,
            load_balancer=load_balancer,
            listener=listener,
            cluster=self.cluster,
            target_group=target_group,
            certificate=certificate,
            listener_rule=listener_rule,
            listener_certificate=listener_certificate,
            alias_record=alias_record,
            service=service,
        )
        logger.info(
            f"Attached {context.domain_name} to listener {load_balancer_context.listener_arn} "
            f"at priority {load_balancer_context.rule_priority}"
        )

    def _ensure_lookup_environment(self) -> None:
        stack = cdk.Stack.of(self)
        if cdk.Token.is_unresolved(stack.account) or cdk.Token.is_unresolved(stack.region):
            raise ReferenceNotFound(
                f"Stack {stack.stack_name} needs an explicit account and region to "
                f"look up VPC {self.context.vpc_id}",
                identifier=self.context.vpc_id
            )

    def _claim_route(self) -> None:
        """Refuse a listener priority or hostname another attachment in this app holds."""
        load_balancer_context = self.context.load_balancer
        listener_arn = load_balancer_context.listener_arn

        for other in self.node.root.node.find_all():
            if other is self or not isinstance(other, LoadBalancedService):
                continue
            other_context = getattr(other, "context", None)
            if other_context is None or other_context.load_balancer.listener_arn != listener_arn:
                continue

            if other_context.load_balancer.rule_priority == load_balancer_context.rule_priority:
                description = f"priority {load_balancer_context.rule_priority}"
            elif other_context.domain_name.lower() == self.context.domain_name.lower():
                description = f"host {self.context.domain_name}"
            else:
                continue
            raise PriorityConflict(
                f"Listener {listener_arn} {description} is already claimed by {other.node.path}",
                identifier=listener_arn,
                priority=load_balancer_context.rule_priority
            )

    def _reference_hosted_zone(self) -> route53.IHostedZone:
        route_zone = self.context.route_zone
        if isinstance(route_zone, HostedZoneReference):
            return route53.HostedZone.from_hosted_zone_attributes(
                self,
                "Zone",
                hosted_zone_id=route_zone.hosted_zone_id,
                zone_name=route_zone.zone_name,
            )
        return route53.HostedZone.from_lookup(self, "Zone", domain_name=route_zone.zone_name)

    def _reference_load_balancer(self):
        load_balancer_context = self.context.load_balancer

        if load_balancer_context.strategy is ResolutionStrategy.BY_ATTRIBUTES:
            load_balancer_security_group = ec2.SecurityGroup.from_security_group_id(
                self, "LoadBalancerSecurityGroup", load_balancer_context.security_group_id
            )
            load_balancer = elbv2.ApplicationLoadBalancer.from_application_load_balancer_attributes(
                self,
                "LoadBalancer",
                load_balancer_arn=load_balancer_context.load_balancer_arn,
                security_group_id=load_balancer_context.security_group_id,
                load_balancer_dns_name=load_balancer_context.dns_name,
                load_balancer_canonical_hosted_zone_id=load_balancer_context.canonical_hosted_zone_id,
            )
            listener = elbv2.ApplicationListener.from_application_listener_attributes(
                self,
                "Listener",
                listener_arn=load_balancer_context.listener_arn,
                security_group=load_balancer_security_group,
            )
            return load_balancer, listener

        logger.info(
            f"Load balancer attributes incomplete, looking up {load_balancer_context.load_balancer_arn}"
        )
        load_balancer = elbv2.ApplicationLoadBalancer.from_lookup(
            self, "LoadBalancer", load_balancer_arn=load_balancer_context.load_balancer_arn
        )
        listener = elbv2.ApplicationListener.from_lookup(
            self, "Listener", listener_arn=load_balancer_context.listener_arn
        )
        return load_balancer, listener

    def _call_factory(self, kind: str, factory, *args):
        try:
            result = factory(*args)
        except Exception as e:
            raise FactoryError(
                f"The {kind} factory failed for {self.context.domain_name}: {e}",
                identifier=self.node.path
            ) from e
        if result is None:
            raise FactoryError(
                f"The {kind} factory returned nothing for {self.context.domain_name}",
                identifier=self.node.path
            )
        return result


def attach(scope: Construct,
           construct_id: str,
           context: Context,
           factories: ServiceFactories,
           options: Optional[AttachmentOptions] = None) -> AttachmentHandle:
    """Declare the attachment graph for ``context`` and return its handle."""
    return LoadBalancedService(
        scope, construct_id, context=context, factories=factories, options=options
    ).handle
