"""
Service attachment stack.

Wraps ``LoadBalancedService`` in a stack, reads the attachment options
from the environment configuration and publishes the identifiers of the
new resources as outputs.
"""

from typing import Dict

import aws_cdk as cdk
from aws_cdk import Stack
from constructs import Construct

from helper.config import Config
from ..common.exceptions import StackConfigurationError
from ..context.models import Context
from .construct import LoadBalancedService
from .factories import AttachmentOptions, ServiceFactories, target_group_props_from_config


class ServiceAttachmentStack(Stack):
    """Stack attaching one service to the shared load balancer."""

    def __init__(self,
                 scope: Construct,
                 construct_id: str,
                 *,
                 config: Config,
                 context: Context,
                 factories: ServiceFactories,
                 **kwargs) -> None:
        """
        Initialize the stack.

        Args:
            scope: CDK scope
            construct_id: Stack ID
            config: Environment configuration
            context: Resolved context, usually loaded from the context store
            factories: Service factory and optional target group factory
            **kwargs: Additional keyword arguments for Stack (env is required
                for the VPC, zone and load balancer lookups)

        Raises:
            StackConfigurationError: If configuration is invalid
        """
        kwargs.setdefault(
            'description',
            f"Attaches {context.domain_name} to shared load balancer listener"
        )
        super().__init__(scope, construct_id, **kwargs)
        self.config = config
        self._validate_config()

        options = AttachmentOptions(
            create_route53_a_record=config.should_create_route53_a_record(),
            target_group_props=target_group_props_from_config(config.get_target_group_props()),
        )

        self.attachment = LoadBalancedService(
            self,
            "Service",
            context=context,
            factories=factories,
            options=options,
        )
        handle = self.attachment.handle

        self.add_common_tags(self.attachment, {"DomainName": context.domain_name})
        self._create_outputs(handle)

    def _validate_config(self) -> None:
        if not isinstance(self.config, Config):
            raise StackConfigurationError(
                "Configuration must be a Config instance",
                config_key="config"
            )

    def add_common_tags(self, resource, additional_tags: Dict[str, str] = None) -> None:
        common_tags = {
            "Environment": self.config.environment,
            "Project": self.config.get_optional("ProjectName", "default-project"),
            "ManagedBy": "CDK"
        }

        if additional_tags:
            common_tags.update(additional_tags)

        for key, value in common_tags.items():
            cdk.Tags.of(resource).add(key, value)

    def _create_outputs(self, handle) -> None:
        cdk.CfnOutput(
            self,
            "listener-rule-arn",
            description="ARN of the host-header rule on the shared listener",
            value=handle.listener_rule.listener_rule_arn
        )
        cdk.CfnOutput(
            self,
            "target-group-arn",
            description="ARN of the service target group",
            value=handle.target_group.target_group_arn
        )
        cdk.CfnOutput(
            self,
            "certificate-arn",
            description="ARN of the DNS-validated certificate",
            value=handle.certificate.certificate_arn
        )
        cdk.CfnOutput(
            self,
            "service-name",
            description="Name of the ECS service",
            value=handle.service.service_name
        )
