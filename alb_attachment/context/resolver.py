"""
Context resolution against live AWS state.

This module reads the shared load balancer, its listeners and the Route 53
zone, asks the priority allocator for a free rule priority and assembles a
``Context``. All calls are read-only and the resolver keeps no state
between calls, so an aborted resolution leaves nothing behind. Throttling
and network failures surface as botocore errors; retrying them is the
caller's job.
"""

import logging
from typing import Iterator, Optional

import boto3
from botocore.exceptions import ClientError

from ..common.constants import (
    HOSTED_ZONE_ID_PREFIX,
    HTTPS_PROTOCOL,
    ZONE_NAME_LABEL_COUNT,
)
from ..common.exceptions import (
    HostedZoneNotFound,
    LoadBalancerNotFound,
    NoHttpsListener,
)
from .models import (
    Context,
    HostedZoneLookup,
    HostedZoneReference,
    LoadBalancerAttributes,
    LoadBalancerContext,
    ResolutionRequest,
    RouteZone,
)
from .priority import ListenerRulePriorityAllocator, PriorityAllocator

logger = logging.getLogger(__name__)


def load_balancer_arn_from_listener_arn(listener_arn: str) -> str:
    """
    Derive the load balancer ARN from a listener ARN.

    The final ``/`` segment (the listener id) is dropped, together with a
    trailing ``listener`` marker. Real listener ARNs carry the resource type
    in front (``:listener/app/name/lb-id/listener-id``), which is rewritten
    to ``:loadbalancer/``.

    >>> load_balancer_arn_from_listener_arn(
    ...     "arn:aws:elasticloadbalancing:us-east-1:1:listener/app/my-lb/abc/xyz")
    'arn:aws:elasticloadbalancing:us-east-1:1:loadbalancer/app/my-lb/abc'
    """
    head, _, _ = listener_arn.rpartition('/')
    if head.endswith('/listener'):
        head = head[:-len('/listener')]
    return head.replace(':listener/', ':loadbalancer/', 1)


def derive_zone_name(domain_name: str) -> str:
    """
    Guess the hosted zone name by keeping the last two labels of a hostname.

    This is a heuristic, not a public suffix lookup: ``svc.example.co.uk``
    yields ``co.uk``. Set ``Route53ZoneName`` explicitly for such domains.
    """
    labels = domain_name.rstrip('.').split('.')
    return '.'.join(labels[-ZONE_NAME_LABEL_COUNT:])


def _normalise_zone(hosted_zone: dict) -> HostedZoneReference:
    hosted_zone_id = hosted_zone['Id']
    if hosted_zone_id.startswith(HOSTED_ZONE_ID_PREFIX):
        hosted_zone_id = hosted_zone_id[len(HOSTED_ZONE_ID_PREFIX):]
    return HostedZoneReference(
        hosted_zone_id=hosted_zone_id,
        zone_name=hosted_zone['Name'].rstrip('.'),
    )


def _error_code(error: ClientError) -> Optional[str]:
    return error.response.get('Error', {}).get('Code')


class ContextResolver:
    """Resolve a ``ResolutionRequest`` into a ``Context``."""

    def __init__(self,
                 elbv2_client=None,
                 route53_client=None,
                 priority_allocator: Optional[PriorityAllocator] = None,
                 region_name: Optional[str] = None) -> None:
        """
        Initialize the resolver.

        Args:
            elbv2_client: boto3 ``elbv2`` client, created when omitted
            route53_client: boto3 ``route53`` client, created lazily when a
                hosted zone id has to be looked up
            priority_allocator: Rule priority source, defaults to a
                ``ListenerRulePriorityAllocator`` on the same elbv2 client
            region_name: Region for clients created here
        """
        self.region_name = region_name
        self.elbv2 = elbv2_client or boto3.client('elbv2', region_name=region_name)
        self._route53 = route53_client
        self.priority_allocator = priority_allocator or ListenerRulePriorityAllocator(self.elbv2)

    @property
    def route53(self):
        if self._route53 is None:
            self._route53 = boto3.client('route53', region_name=self.region_name)
        return self._route53

    def resolve(self, request: ResolutionRequest) -> Context:
        """
        Resolve live infrastructure state into a Context.

        Args:
            request: Identifiers of the existing VPC, cluster, load balancer
                and zone

        Returns:
            The fully-resolved Context

        Raises:
            NoHttpsListener: If no HTTPS listener exists on the load balancer
            LoadBalancerNotFound: If the load balancer does not exist
            NoAvailablePriority: If the listener has no free rule priority
            HostedZoneNotFound: If the hosted zone id does not exist
        """
        logger.info(
            f"Resolving context for {request.domain_name} "
            f"using strategy {request.strategy.value}"
        )

        load_balancer_arn, listener_arn = self._resolve_listener(request)

        attributes = request.load_balancer_attributes
        if attributes is None:
            attributes = self._describe_load_balancer(load_balancer_arn)

        rule_priority = self.priority_allocator.find_priority(listener_arn, request.domain_name)

        context = Context(
            domain_name=request.domain_name,
            vpc_id=request.vpc_id,
            cluster_name=request.cluster_name,
            security_group_ids=tuple(request.security_group_ids),
            route_zone=self._resolve_zone(request),
            load_balancer=LoadBalancerContext(
                load_balancer_arn=load_balancer_arn,
                listener_arn=listener_arn,
                rule_priority=rule_priority,
                security_group_id=attributes.security_group_id,
                dns_name=attributes.dns_name,
                canonical_hosted_zone_id=attributes.canonical_hosted_zone_id,
            ),
        )
        logger.info(
            f"Resolved {request.domain_name} to listener {listener_arn} "
            f"at priority {rule_priority}"
        )
        return context

    def _resolve_listener(self, request: ResolutionRequest):
        """Return the (load balancer ARN, HTTPS listener ARN) pair."""
        if request.listener_arn:
            load_balancer_arn = request.load_balancer_arn or \
                load_balancer_arn_from_listener_arn(request.listener_arn)
            return load_balancer_arn, request.listener_arn

        listener_arn = self.find_https_listener(request.load_balancer_arn)
        return request.load_balancer_arn, listener_arn

    def _iter_listeners(self, load_balancer_arn: str) -> Iterator[dict]:
        kwargs = {'LoadBalancerArn': load_balancer_arn}
        while True:
            try:
                response = self.elbv2.describe_listeners(**kwargs)
            except ClientError as e:
                if _error_code(e) == 'LoadBalancerNotFound':
                    raise LoadBalancerNotFound(
                        f"Did not find load balancer with ARN: {load_balancer_arn}",
                        identifier=load_balancer_arn
                    ) from e
                raise
            yield from response.get('Listeners', [])
            marker = response.get('NextMarker')
            if not marker:
                return
            kwargs['Marker'] = marker

    def find_https_listener(self, load_balancer_arn: str) -> str:
        """
        Select the first HTTPS listener of a load balancer.

        Raises:
            NoHttpsListener: If the load balancer has no HTTPS listener
        """
        for listener in self._iter_listeners(load_balancer_arn):
            if listener.get('Protocol') == HTTPS_PROTOCOL:
                logger.info(f"Selected HTTPS listener {listener['ListenerArn']}")
                return listener['ListenerArn']

        logger.error(f"No HTTPS listener on load balancer {load_balancer_arn}")
        raise NoHttpsListener(
            f"Did not find an HTTPS listener on load balancer: {load_balancer_arn}",
            identifier=load_balancer_arn
        )

    def _describe_load_balancer(self, load_balancer_arn: str) -> LoadBalancerAttributes:
        try:
            response = self.elbv2.describe_load_balancers(LoadBalancerArns=[load_balancer_arn])
        except ClientError as e:
            if _error_code(e) == 'LoadBalancerNotFound':
                raise LoadBalancerNotFound(
                    f"Did not find load balancer with ARN: {load_balancer_arn}",
                    identifier=load_balancer_arn
                ) from e
            raise

        load_balancers = response.get('LoadBalancers', [])
        if not load_balancers:
            logger.error(f"Load balancer {load_balancer_arn} not found")
            raise LoadBalancerNotFound(
                f"Did not find load balancer with ARN: {load_balancer_arn}",
                identifier=load_balancer_arn
            )

        load_balancer = load_balancers[0]
        security_groups = load_balancer.get('SecurityGroups') or [None]
        return LoadBalancerAttributes(
            dns_name=load_balancer.get('DNSName'),
            canonical_hosted_zone_id=load_balancer.get('CanonicalHostedZoneId'),
            security_group_id=security_groups[0],
        )

    def _resolve_zone(self, request: ResolutionRequest) -> RouteZone:
        if request.hosted_zone_id and request.zone_name:
            return HostedZoneReference(
                hosted_zone_id=request.hosted_zone_id,
                zone_name=request.zone_name.rstrip('.'),
            )

        if request.hosted_zone_id:
            try:
                response = self.route53.get_hosted_zone(Id=request.hosted_zone_id)
            except ClientError as e:
                if _error_code(e) == 'NoSuchHostedZone':
                    raise HostedZoneNotFound(
                        f"Did not find hosted zone with id: {request.hosted_zone_id}",
                        identifier=request.hosted_zone_id
                    ) from e
                raise
            zone = _normalise_zone(response['HostedZone'])
            logger.info(f"Resolved hosted zone {zone.hosted_zone_id} ({zone.zone_name})")
            return zone

        if request.zone_name:
            return HostedZoneLookup(zone_name=request.zone_name.rstrip('.'))

        zone_name = derive_zone_name(request.domain_name)
        logger.warning(
            f"No hosted zone configured, derived zone name {zone_name} from {request.domain_name}"
        )
        return HostedZoneLookup(zone_name=zone_name)
