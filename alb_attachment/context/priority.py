"""
Listener rule priority allocation.

The resolver consumes any object with a ``find_priority(listener_arn,
hostname)`` method. ``ListenerRulePriorityAllocator`` is the boto3-backed
default: it scans the rules already on the listener and hands out the
lowest free priority, or the priority a rule for the same hostname
already holds.

The scan is not atomic with rule creation. Two attachments resolved
concurrently against one listener can be handed the same priority; the
deployment pipeline must serialise attachments per listener, and
CloudFormation rejects the loser with ``PriorityInUse``.
"""

import logging
from typing import Iterable, Iterator, Optional, Protocol, Set

from botocore.exceptions import ClientError

from ..common.constants import (
    DEFAULT_RULE_PRIORITY,
    MAX_RULE_PRIORITY,
    MIN_RULE_PRIORITY,
)
from ..common.exceptions import NoAvailablePriority, NoHttpsListener

logger = logging.getLogger(__name__)


class PriorityAllocator(Protocol):
    """Anything able to pick a rule priority for a hostname on a listener."""

    def find_priority(self, listener_arn: str, hostname: str) -> int:
        ...


def _host_header_values(rule: dict) -> Set[str]:
    values = set()
    for condition in rule.get('Conditions', []):
        if condition.get('Field') != 'host-header':
            continue
        values.update(condition.get('Values', []))
        values.update(condition.get('HostHeaderConfig', {}).get('Values', []))
    # Host header matching on the ALB ignores case
    return {value.lower() for value in values}


def lowest_free_priority(used: Iterable[int]) -> Optional[int]:
    """Return the lowest priority in the ALB range not in ``used``."""
    taken = set(used)
    for priority in range(MIN_RULE_PRIORITY, MAX_RULE_PRIORITY + 1):
        if priority not in taken:
            return priority
    return None


class ListenerRulePriorityAllocator:
    """Pick rule priorities by scanning a listener's existing rules."""

    def __init__(self, elbv2_client):
        """
        Initialize the allocator.

        Args:
            elbv2_client: boto3 ``elbv2`` client used for ``describe_rules``
        """
        self.client = elbv2_client

    def _iter_rules(self, listener_arn: str) -> Iterator[dict]:
        kwargs = {'ListenerArn': listener_arn}
        while True:
            response = self.client.describe_rules(**kwargs)
            yield from response.get('Rules', [])
            marker = response.get('NextMarker')
            if not marker:
                return
            kwargs['Marker'] = marker

    def find_priority(self, listener_arn: str, hostname: str) -> int:
        """
        Find the priority for a host-header rule on a listener.

        Args:
            listener_arn: HTTPS listener the rule will live on
            hostname: Host header the rule matches

        Returns:
            The priority of an existing rule for ``hostname``, otherwise the
            lowest unused priority

        Raises:
            NoHttpsListener: If the listener cannot be inspected
            NoAvailablePriority: If every priority is taken
        """
        used = set()
        try:
            for rule in self._iter_rules(listener_arn):
                priority = rule.get('Priority')
                if rule.get('IsDefault') or priority in (None, DEFAULT_RULE_PRIORITY):
                    continue
                priority = int(priority)
                if hostname.lower() in _host_header_values(rule):
                    logger.info(
                        f"Reusing priority {priority} of existing rule for {hostname} on {listener_arn}"
                    )
                    return priority
                used.add(priority)
        except ClientError as e:
            if e.response.get('Error', {}).get('Code') == 'ListenerNotFound':
                raise NoHttpsListener(
                    f"Cannot inspect rules of listener {listener_arn}: listener not found",
                    identifier=listener_arn
                ) from e
            raise

        priority = lowest_free_priority(used)
        if priority is None:
            logger.error(f"No free rule priority on listener {listener_arn} for {hostname}")
            raise NoAvailablePriority(
                f"No free rule priority on listener {listener_arn} for {hostname}",
                identifier=listener_arn,
                hostname=hostname
            )

        logger.info(f"Allocated priority {priority} for {hostname} on {listener_arn}")
        return priority
