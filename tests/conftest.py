"""Shared fixtures for context resolution and attachment tests."""

import pytest

from alb_attachment.context.models import (
    Context,
    HostedZoneReference,
    LoadBalancerContext,
)
from tests.constants import LISTENER_ARN, LOAD_BALANCER_ARN


@pytest.fixture
def load_balancer_context():
    """Load balancer sub-record with every attribute known."""
    return LoadBalancerContext(
        load_balancer_arn=LOAD_BALANCER_ARN,
        listener_arn=LISTENER_ARN,
        rule_priority=7,
        security_group_id="sg-0fedcba9876543210",
        dns_name="shared-alb-1234567890.us-east-1.elb.amazonaws.com",
        canonical_hosted_zone_id="Z35SXDOTRQ7X7K",
    )


@pytest.fixture
def context(load_balancer_context):
    """Fully-resolved context for svc.example.com."""
    return Context(
        domain_name="svc.example.com",
        vpc_id="vpc-0a1b2c3d4e5f67890",
        cluster_name="shared-cluster",
        security_group_ids=("sg-0123456789abcdef0",),
        route_zone=HostedZoneReference(hosted_zone_id="Z0123456789ABCDEFGHIJ", zone_name="example.com"),
        load_balancer=load_balancer_context,
    )
