"""
Unit tests for the Context data model.

Covers validation of the invariants a resolved context must hold and the
stability of its serialised form.
"""

import json

import pytest

from alb_attachment.common.exceptions import ValidationError
from alb_attachment.context.models import (
    Context,
    HostedZoneLookup,
    HostedZoneReference,
    LoadBalancerAttributes,
    LoadBalancerContext,
    ResolutionRequest,
    ResolutionStrategy,
)
from tests.constants import LISTENER_ARN, LOAD_BALANCER_ARN


class TestLoadBalancerContext:
    """Test load balancer sub-record validation."""

    @pytest.mark.parametrize("priority", [0, 50001, -3])
    def test_priority_outside_alb_range_rejected(self, priority):
        """Test that priorities outside the ALB range are rejected."""
        with pytest.raises(ValidationError) as exc_info:
            LoadBalancerContext(
                load_balancer_arn=LOAD_BALANCER_ARN,
                listener_arn=LISTENER_ARN,
                rule_priority=priority,
            )
        assert exc_info.value.parameter_name == "rule_priority"

    def test_invalid_listener_arn_rejected(self):
        """Test that a malformed listener ARN is rejected."""
        with pytest.raises(ValidationError):
            LoadBalancerContext(
                load_balancer_arn=LOAD_BALANCER_ARN,
                listener_arn="not-an-arn",
                rule_priority=1,
            )

    def test_strategy_by_attributes_when_complete(self, load_balancer_context):
        """Test that complete attributes select the attribute strategy."""
        assert load_balancer_context.strategy is ResolutionStrategy.BY_ATTRIBUTES

    def test_strategy_by_lookup_when_attributes_missing(self):
        """Test that partial attributes fall back to the lookup strategy."""
        load_balancer = LoadBalancerContext(
            load_balancer_arn=LOAD_BALANCER_ARN,
            listener_arn=LISTENER_ARN,
            rule_priority=1,
            dns_name="shared-alb.elb.amazonaws.com",
        )
        assert load_balancer.strategy is ResolutionStrategy.BY_LOOKUP


class TestContext:
    """Test Context invariants and serialisation."""

    def test_security_groups_must_not_be_empty(self, load_balancer_context):
        """Test that a context needs at least one security group."""
        with pytest.raises(ValidationError) as exc_info:
            Context(
                domain_name="svc.example.com",
                vpc_id="vpc-1",
                cluster_name="cluster",
                security_group_ids=(),
                route_zone=HostedZoneLookup(zone_name="example.com"),
                load_balancer=load_balancer_context,
            )
        assert exc_info.value.parameter_name == "security_group_ids"

    def test_security_group_list_normalised_to_tuple(self, load_balancer_context):
        """Test that security group lists are stored as hashable tuples."""
        context = Context(
            domain_name="svc.example.com",
            vpc_id="vpc-1",
            cluster_name="cluster",
            security_group_ids=["sg-0123456789abcdef0", "sg-0fedcba9876543210"],
            route_zone=HostedZoneLookup(zone_name="example.com"),
            load_balancer=load_balancer_context,
        )
        assert context.security_group_ids == ("sg-0123456789abcdef0", "sg-0fedcba9876543210")
        assert hash(context)

    def test_invalid_domain_name_rejected(self, load_balancer_context):
        """Test that a single-label domain name is rejected."""
        with pytest.raises(ValidationError):
            Context(
                domain_name="localhost",
                vpc_id="vpc-1",
                cluster_name="cluster",
                security_group_ids=("sg-0123456789abcdef0",),
                route_zone=HostedZoneLookup(zone_name="example.com"),
                load_balancer=load_balancer_context,
            )

    def test_json_is_stable_and_replayable(self, context):
        """Test that serialised contexts load back equal and re-serialise identically."""
        document = context.to_json()

        assert Context.from_json(document) == context
        assert Context.from_json(document).to_json() == document

    def test_route_zone_kind_is_serialised(self, context):
        """Test that the route zone variant is recorded in the serialised form."""
        data = json.loads(context.to_json())
        assert data["route_zone"] == {
            "hosted_zone_id": "Z0123456789ABCDEFGHIJ",
            "zone_name": "example.com",
            "kind": "reference",
        }

    def test_lookup_zone_replays_as_lookup(self, context):
        """Test that a lookup route zone is restored as HostedZoneLookup."""
        data = context.to_dict()
        data["route_zone"] = {"zone_name": "example.com", "kind": "lookup"}

        restored = Context.from_dict(data)

        assert restored.route_zone == HostedZoneLookup(zone_name="example.com")

    def test_unknown_route_zone_kind_rejected(self, context):
        """Test that an unknown route zone kind is rejected."""
        data = context.to_dict()
        data["route_zone"] = {"zone_name": "example.com", "kind": "guess"}

        with pytest.raises(ValidationError):
            Context.from_dict(data)

    def test_lookup_zone_survives_json(self, context):
        """Test that a context with a lookup zone survives a JSON round trip."""
        lookup_context = Context(
            domain_name=context.domain_name,
            vpc_id=context.vpc_id,
            cluster_name=context.cluster_name,
            security_group_ids=context.security_group_ids,
            route_zone=HostedZoneLookup(zone_name="example.com"),
            load_balancer=context.load_balancer,
        )

        restored = Context.from_json(lookup_context.to_json())

        assert restored == lookup_context
        assert json.loads(lookup_context.to_json())["route_zone"]["kind"] == "lookup"

    def test_malformed_document_rejected(self, context):
        """Test that a document missing a section raises ValidationError."""
        data = context.to_dict()
        del data["load_balancer"]

        with pytest.raises(ValidationError) as exc_info:
            Context.from_dict(data)
        assert exc_info.value.parameter_name == "context"

    def test_invalid_json_rejected(self):
        """Test that unparseable JSON raises ValidationError."""
        with pytest.raises(ValidationError) as exc_info:
            Context.from_json('{"domain_name": ')
        assert exc_info.value.parameter_name == "context"

    @pytest.mark.parametrize("document", ["[]", '"svc.example.com"', "null"])
    def test_non_object_document_rejected(self, document):
        """Test that JSON documents other than objects raise ValidationError."""
        with pytest.raises(ValidationError) as exc_info:
            Context.from_json(document)
        assert exc_info.value.parameter_name == "context"

    def test_non_object_route_zone_rejected(self, context):
        """Test that a route zone that is not an object raises ValidationError."""
        data = context.to_dict()
        data["route_zone"] = "example.com"

        with pytest.raises(ValidationError):
            Context.from_dict(data)


class TestResolutionRequest:
    """Test resolver input validation and strategy selection."""

    def _request(self, **overrides):
        params = dict(
            domain_name="svc.example.com",
            vpc_id="vpc-1",
            cluster_name="cluster",
            security_group_ids=["sg-0123456789abcdef0"],
            load_balancer_arn=LOAD_BALANCER_ARN,
        )
        params.update(overrides)
        return ResolutionRequest(**params)

    def test_requires_load_balancer_or_listener(self):
        """Test that a request needs a load balancer or listener ARN."""
        with pytest.raises(ValidationError):
            self._request(load_balancer_arn=None)

    def test_lookup_strategy_without_attributes(self):
        """Test that a request without attributes uses the lookup strategy."""
        assert self._request(listener_arn=LISTENER_ARN).strategy is ResolutionStrategy.BY_LOOKUP

    def test_attribute_strategy_needs_listener_and_attributes(self):
        """Test that the attribute strategy needs both a listener ARN and attributes."""
        attributes = LoadBalancerAttributes(
            dns_name="shared-alb.elb.amazonaws.com",
            canonical_hosted_zone_id="Z35SXDOTRQ7X7K",
            security_group_id="sg-0fedcba9876543210",
        )
        assert self._request(load_balancer_attributes=attributes).strategy is ResolutionStrategy.BY_LOOKUP
        assert self._request(
            listener_arn=LISTENER_ARN, load_balancer_attributes=attributes
        ).strategy is ResolutionStrategy.BY_ATTRIBUTES

    def test_route_zone_variants_are_distinct(self):
        """Test that the two route zone variants never compare equal."""
        assert HostedZoneReference("Z1", "example.com") != HostedZoneLookup("example.com")
