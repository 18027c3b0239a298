"""
Unit tests for listener rule priority allocation.

The elbv2 client is mocked; each test shapes ``describe_rules`` responses
the way the ELBv2 API returns them.
"""

from unittest.mock import Mock

import pytest
from botocore.exceptions import ClientError

from alb_attachment.common.exceptions import NoAvailablePriority, NoHttpsListener
from alb_attachment.context import priority as priority_module
from alb_attachment.context.priority import ListenerRulePriorityAllocator, lowest_free_priority
from tests.constants import LISTENER_ARN


def _rule(priority, *hosts, legacy=False):
    if priority == "default":
        return {"Priority": "default", "IsDefault": True, "Conditions": []}
    conditions = []
    if hosts:
        if legacy:
            conditions.append({"Field": "host-header", "Values": list(hosts)})
        else:
            conditions.append({"Field": "host-header", "HostHeaderConfig": {"Values": list(hosts)}})
    return {"Priority": str(priority), "IsDefault": False, "Conditions": conditions}


@pytest.fixture
def elbv2():
    return Mock()


class TestLowestFreePriority:
    """Test the gap search over the ALB priority range."""

    def test_empty_listener_starts_at_one(self):
        """Test that an empty listener gets priority 1."""
        assert lowest_free_priority([]) == 1

    def test_fills_first_gap(self):
        """Test that the lowest unused priority is chosen."""
        assert lowest_free_priority([1, 2, 4, 5]) == 3

    def test_exhausted_range_returns_none(self, monkeypatch):
        """Test that a full priority range yields None."""
        monkeypatch.setattr(priority_module, "MAX_RULE_PRIORITY", 3)
        assert lowest_free_priority([1, 2, 3]) is None


class TestListenerRulePriorityAllocator:
    """Test priority selection against a listener's existing rules."""

    def test_skips_default_rule_and_returns_lowest_gap(self, elbv2):
        """Test that the default rule is ignored when finding a gap."""
        elbv2.describe_rules.return_value = {
            "Rules": [
                _rule("default"),
                _rule(1, "a.example.com"),
                _rule(2, "b.example.com"),
                _rule(4, "c.example.com"),
            ]
        }

        allocator = ListenerRulePriorityAllocator(elbv2)

        assert allocator.find_priority(LISTENER_ARN, "svc.example.com") == 3
        elbv2.describe_rules.assert_called_once_with(ListenerArn=LISTENER_ARN)

    def test_reuses_priority_of_existing_rule_for_hostname(self, elbv2):
        """Test that an existing rule for the hostname keeps its priority."""
        elbv2.describe_rules.return_value = {
            "Rules": [_rule(1, "a.example.com"), _rule(9, "svc.example.com")]
        }

        allocator = ListenerRulePriorityAllocator(elbv2)

        assert allocator.find_priority(LISTENER_ARN, "svc.example.com") == 9

    def test_hostname_match_ignores_case(self, elbv2):
        """Test that existing rules match the hostname regardless of case."""
        elbv2.describe_rules.return_value = {
            "Rules": [_rule(1, "a.example.com"), _rule(4, "Svc.Example.com")]
        }

        allocator = ListenerRulePriorityAllocator(elbv2)

        assert allocator.find_priority(LISTENER_ARN, "svc.example.com") == 4
        assert allocator.find_priority(LISTENER_ARN, "SVC.EXAMPLE.COM") == 4

    def test_reads_legacy_condition_values(self, elbv2):
        """Test that host values from the legacy Values field are read."""
        elbv2.describe_rules.return_value = {
            "Rules": [_rule(5, "svc.example.com", legacy=True)]
        }

        allocator = ListenerRulePriorityAllocator(elbv2)

        assert allocator.find_priority(LISTENER_ARN, "svc.example.com") == 5

    def test_follows_pagination_markers(self, elbv2):
        """Test that describe_rules is paged with NextMarker."""
        elbv2.describe_rules.side_effect = [
            {"Rules": [_rule(1, "a.example.com")], "NextMarker": "page-2"},
            {"Rules": [_rule(2, "b.example.com")]},
        ]

        allocator = ListenerRulePriorityAllocator(elbv2)

        assert allocator.find_priority(LISTENER_ARN, "svc.example.com") == 3
        assert elbv2.describe_rules.call_count == 2
        elbv2.describe_rules.assert_called_with(ListenerArn=LISTENER_ARN, Marker="page-2")

    def test_exhausted_listener_raises(self, elbv2, monkeypatch):
        """Test that a full listener raises NoAvailablePriority."""
        monkeypatch.setattr(priority_module, "MAX_RULE_PRIORITY", 2)
        elbv2.describe_rules.return_value = {
            "Rules": [_rule(1, "a.example.com"), _rule(2, "b.example.com")]
        }

        allocator = ListenerRulePriorityAllocator(elbv2)

        with pytest.raises(NoAvailablePriority) as exc_info:
            allocator.find_priority(LISTENER_ARN, "svc.example.com")
        assert exc_info.value.identifier == LISTENER_ARN
        assert exc_info.value.hostname == "svc.example.com"

    def test_missing_listener_raises_no_https_listener(self, elbv2):
        """Test that ListenerNotFound is mapped to NoHttpsListener."""
        elbv2.describe_rules.side_effect = ClientError(
            {"Error": {"Code": "ListenerNotFound", "Message": "One or more listeners not found"}},
            "DescribeRules",
        )

        allocator = ListenerRulePriorityAllocator(elbv2)

        with pytest.raises(NoHttpsListener):
            allocator.find_priority(LISTENER_ARN, "svc.example.com")

    def test_other_client_errors_propagate(self, elbv2):
        """Test that other client errors propagate unchanged."""
        elbv2.describe_rules.side_effect = ClientError(
            {"Error": {"Code": "Throttling", "Message": "Rate exceeded"}},
            "DescribeRules",
        )

        allocator = ListenerRulePriorityAllocator(elbv2)

        with pytest.raises(ClientError):
            allocator.find_priority(LISTENER_ARN, "svc.example.com")
