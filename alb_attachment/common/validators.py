"""Validation utilities for context resolution and attachment."""

import re
from typing import Any, Dict, List, Sequence

from .constants import MAX_RULE_PRIORITY, MIN_RULE_PRIORITY
from .exceptions import ValidationError


def _is_token(value: Any) -> bool:
    """Return True for unresolved CDK tokens (CloudFormation references)."""
    return isinstance(value, str) and '${Token[' in value


class ConfigValidator:
    """Utility class for validating configuration parameters."""

    @staticmethod
    def validate_required_config(config: Dict[str, Any],
                                 required_keys: List[str]) -> None:
        """
        Validate that all required configuration keys are present.

        Args:
            config: Configuration dictionary to validate
            required_keys: List of required configuration keys

        Raises:
            ValidationError: If any required key is missing
        """
        missing_keys = [key for key in required_keys if config.get(key) in (None, "", [])]
        if missing_keys:
            raise ValidationError(
                f"Missing required configuration keys: {', '.join(missing_keys)}",
                parameter_name="config",
                provided_value=str(sorted(config.keys()))
            )

    @staticmethod
    def validate_port_range(port: int) -> None:
        """
        Validate that port number is within valid range.

        Args:
            port: Port number to validate

        Raises:
            ValidationError: If port is outside valid range
        """
        if not 1 <= port <= 65535:
            raise ValidationError(
                f"Port must be between 1 and 65535, got {port}",
                parameter_name="port",
                provided_value=str(port)
            )

    @staticmethod
    def validate_resource_name(name: str, max_length: int = 63) -> None:
        """
        Validate AWS resource name format.

        Args:
            name: Resource name to validate
            max_length: Maximum allowed length

        Raises:
            ValidationError: If name format is invalid
        """
        if _is_token(name):
            return

        if not name:
            raise ValidationError(
                "Resource name cannot be empty",
                parameter_name="name",
                provided_value=name
            )

        if len(name) > max_length:
            raise ValidationError(
                f"Resource name too long (max {max_length}): {name}",
                parameter_name="name",
                provided_value=name
            )

        if not re.match(r'^[a-zA-Z0-9-_]+$', name):
            raise ValidationError(
                f"Invalid resource name format: {name}. "
                f"Only alphanumeric characters, hyphens, and underscores allowed",
                parameter_name="name",
                provided_value=name
            )


class AWSResourceValidator:
    """Utility class for validating AWS resource identifiers."""

    @staticmethod
    def validate_arn(arn: str, service: str = None) -> None:
        """
        Validate AWS ARN format.

        Args:
            arn: ARN to validate
            service: Expected AWS service (optional)

        Raises:
            ValidationError: If ARN format is invalid
        """
        if _is_token(arn):
            return

        arn_pattern = re.compile(
            r'^arn:aws[a-zA-Z0-9-]*:[a-zA-Z0-9-]+:'
            r'[a-zA-Z0-9-]*:[0-9]*:[a-zA-Z0-9-/._]+$'
        )

        if not arn or not arn_pattern.match(arn):
            raise ValidationError(
                f"Invalid ARN format: {arn}",
                parameter_name="arn",
                provided_value=arn
            )

        actual_service = arn.split(':')[2]
        if service and actual_service != service:
            raise ValidationError(
                f"Expected {service} service ARN, got {actual_service}",
                parameter_name="arn",
                provided_value=arn
            )

    @staticmethod
    def validate_security_group_ids(security_group_ids: Sequence[str]) -> None:
        """
        Validate a non-empty collection of security group ids.

        Raises:
            ValidationError: If the collection is empty or an id is malformed
        """
        if not security_group_ids:
            raise ValidationError(
                "At least one security group id is required",
                parameter_name="security_group_ids",
                provided_value="[]"
            )

        for security_group_id in security_group_ids:
            if _is_token(security_group_id):
                continue
            if not re.match(r'^sg-[0-9a-f]+$', security_group_id or ""):
                raise ValidationError(
                    f"Invalid security group id: {security_group_id}",
                    parameter_name="security_group_ids",
                    provided_value=str(security_group_id)
                )

    @staticmethod
    def validate_domain_name(domain_name: str) -> None:
        """
        Validate a fully-qualified hostname.

        Raises:
            ValidationError: If the hostname has fewer than two labels or
                contains invalid characters
        """
        label = r'(?!-)[a-zA-Z0-9-]{1,63}(?<!-)'
        pattern = re.compile(rf'^({label}\.)+{label}$')
        if not domain_name or len(domain_name) > 253 or not pattern.match(domain_name):
            raise ValidationError(
                f"Invalid domain name: {domain_name}",
                parameter_name="domain_name",
                provided_value=domain_name
            )

    @staticmethod
    def validate_rule_priority(priority: int) -> None:
        """
        Validate a listener rule priority.

        Raises:
            ValidationError: If priority is outside the ALB range
        """
        if isinstance(priority, bool) or not isinstance(priority, int) \
                or not MIN_RULE_PRIORITY <= priority <= MAX_RULE_PRIORITY:
            raise ValidationError(
                f"Rule priority must be between {MIN_RULE_PRIORITY} and "
                f"{MAX_RULE_PRIORITY}, got {priority}",
                parameter_name="rule_priority",
                provided_value=str(priority)
            )
