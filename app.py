#!/usr/bin/env python3

import aws_cdk as cdk
from cdk_nag import AwsSolutionsChecks, NagSuppressions

from helper import config
from alb_attachment.context import ContextStore
from alb_attachment.service import ServiceFactories, fargate_service_factory
from alb_attachment.service.stack import ServiceAttachmentStack

app = cdk.App()

conf = config.Config(app.node.try_get_context('environment') or 'development')

project_name = conf.get_validated_project_name()

# The context is resolved ahead of synth by resolve-context.py and replayed
# from disk so every synth sees the same rule priority
context = ContextStore(conf.get_context_file()).load()

factories = ServiceFactories(
    service_factory=fargate_service_factory(
        project_name,
        conf.get('ServiceImage'),
        container_port=conf.get_container_port(),
        environment_vars=conf.get_optional('EnvironmentVariables', {}),
    ),
)

attachment_stack = ServiceAttachmentStack(app, f"{project_name}-attachment",
                                          config=conf,
                                          context=context,
                                          factories=factories,
                                          env={
                                              "region": conf.get('RegionName'),
                                              "account": conf.get_account()
                                          })

cdk.Aspects.of(app).add(AwsSolutionsChecks())

NagSuppressions.add_stack_suppressions(attachment_stack, [
    {"id": "AwsSolutions-ECS2", "reason": "Environment variables contain non-sensitive configuration values only"},
    {"id": "AwsSolutions-IAM5", "reason": "Task execution role log permissions are scoped by the CDK log driver"},
    {"id": "CdkNagValidationFailure", "reason": "Imported security groups use intrinsic functions which cannot be validated at synth time"}
])

app.synth()
