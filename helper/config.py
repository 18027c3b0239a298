import os
import re
from typing import Any, Dict, List, Optional

import yaml
from yaml.loader import SafeLoader

from alb_attachment.common.constants import (
    DEFAULT_CONTAINER_PORT,
    DEFAULT_CONTEXT_DIRECTORY,
    DEFAULT_CREATE_ROUTE53_A_RECORD,
    DEFAULT_ENVIRONMENT,
)
from alb_attachment.common.exceptions import StackConfigurationError
from alb_attachment.common.validators import ConfigValidator
from alb_attachment.context.models import LoadBalancerAttributes, ResolutionRequest


class ProjectNameValidationError(Exception):
    """Raised when ProjectName validation fails."""
    pass


REQUIRED_KEYS = ['ProjectName', 'RegionName', 'DomainName', 'VpcId', 'ClusterName', 'SecurityGroupIds']


class Config:

    _environment = DEFAULT_ENVIRONMENT
    data = {}

    def __init__(self, environment, config_dir: str = 'config') -> None:
        self._environment = environment
        self._config_dir = config_dir
        self.load()
        self._validate_project_name()
        self._validate_required_keys()

    @property
    def environment(self) -> str:
        return self._environment

    def load(self) -> dict:
        with open(os.path.join(self._config_dir, f'{self._environment}.yaml'), encoding='utf-8') as f:
            self.data = yaml.load(f, Loader=SafeLoader) or {}
        return self.data

    def get(self, key):
        return self.data[key]

    def get_optional(self, key, default=None):
        value = self.data.get(key)
        return default if value is None else value

    def _validate_required_keys(self) -> None:
        try:
            ConfigValidator.validate_required_config(self.data, REQUIRED_KEYS)
        except Exception as e:
            raise StackConfigurationError(
                f"Invalid configuration in {self._environment}.yaml: {e}",
                config_key="config"
            ) from e

        if not self.data.get('LoadBalancerArn') and not self.data.get('ListenerArn'):
            raise StackConfigurationError(
                "Either LoadBalancerArn or ListenerArn must be configured",
                config_key="LoadBalancerArn"
            )

    def _validate_project_name(self) -> None:
        """
        Validate ProjectName against the naming constraints of the resources
        this project creates.

        Raises:
            ProjectNameValidationError: If ProjectName doesn't meet requirements
        """
        project_name = self.data.get('ProjectName')

        if not project_name:
            raise ProjectNameValidationError("ProjectName is required in configuration")

        if not isinstance(project_name, str):
            raise ProjectNameValidationError("ProjectName must be a string")

        project_name = project_name.strip()

        if not project_name:
            raise ProjectNameValidationError("ProjectName cannot be empty or whitespace only")

        # Target group names are limited to 32 chars; the longest suffix
        # used for construct-derived names is "-tg" plus a hash of 8
        MAX_LENGTH = 20

        if len(project_name) > MAX_LENGTH:
            raise ProjectNameValidationError(
                f"ProjectName must be {MAX_LENGTH} characters or less. "
                f"Current length: {len(project_name)}. "
                f"Constraint: target group names (32 chars)"
            )

        MIN_LENGTH = 3

        if len(project_name) < MIN_LENGTH:
            raise ProjectNameValidationError(
                f"ProjectName must be at least {MIN_LENGTH} characters long. "
                f"Current length: {len(project_name)}"
            )

        # CloudFormation stacks must start with a letter; ECS service and
        # log stream prefixes allow letters, numbers and hyphens
        pattern = r'^[a-z]([a-z0-9-]*[a-z0-9])?$'

        if not re.match(pattern, project_name):
            raise ProjectNameValidationError(
                f"ProjectName '{project_name}' contains invalid characters. "
                f"Must use only lowercase letters (a-z), numbers (0-9), and hyphens (-). "
                f"Must start with a letter and end with a letter or number"
            )

        if '--' in project_name:
            raise ProjectNameValidationError(
                f"ProjectName '{project_name}' contains consecutive hyphens"
            )

    def get_validated_project_name(self) -> str:
        """
        Get the validated project name.

        Raises:
            ProjectNameValidationError: If validation fails
        """
        self._validate_project_name()
        return self.data['ProjectName'].strip()

    def get_security_group_ids(self) -> List[str]:
        security_group_ids = self.get('SecurityGroupIds')
        if isinstance(security_group_ids, str):
            return [security_group_ids]
        return list(security_group_ids)

    def get_load_balancer_attributes(self) -> Optional[LoadBalancerAttributes]:
        """Get pre-supplied load balancer attributes, if all are configured."""
        attributes = self.get_optional('LoadBalancerAttributes', {})
        if not attributes:
            return None
        try:
            return LoadBalancerAttributes(
                dns_name=attributes['DnsName'],
                canonical_hosted_zone_id=attributes['CanonicalHostedZoneId'],
                security_group_id=attributes['SecurityGroupId'],
            )
        except KeyError as e:
            raise StackConfigurationError(
                f"LoadBalancerAttributes is missing {e}",
                config_key="LoadBalancerAttributes"
            ) from e

    def should_create_route53_a_record(self) -> bool:
        return bool(self.get_optional('CreateRoute53ARecord', DEFAULT_CREATE_ROUTE53_A_RECORD))

    def get_target_group_props(self) -> Dict[str, Any]:
        return dict(self.get_optional('TargetGroupProps', {}))

    def get_container_port(self) -> int:
        return int(self.get_optional('ContainerPort', DEFAULT_CONTAINER_PORT))

    def get_context_file(self) -> str:
        return self.get_optional(
            'ContextFile',
            os.path.join(DEFAULT_CONTEXT_DIRECTORY, f'{self._environment}.json')
        )

    def get_account(self) -> Optional[str]:
        return self.get_optional('AccountId', os.environ.get('CDK_DEFAULT_ACCOUNT'))

    def to_resolution_request(self) -> ResolutionRequest:
        """Build the resolver input from this configuration."""
        return ResolutionRequest(
            domain_name=self.get('DomainName'),
            vpc_id=self.get('VpcId'),
            cluster_name=self.get('ClusterName'),
            security_group_ids=self.get_security_group_ids(),
            load_balancer_arn=self.get_optional('LoadBalancerArn'),
            listener_arn=self.get_optional('ListenerArn'),
            load_balancer_attributes=self.get_load_balancer_attributes(),
            hosted_zone_id=self.get_optional('Route53ZoneId'),
            zone_name=self.get_optional('Route53ZoneName'),
        )
