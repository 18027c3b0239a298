"""
Attach a new ECS service to a shared Application Load Balancer.

The package has two halves:
- ``alb_attachment.context`` reads existing load balancer, listener and
  hosted zone state and produces a serialisable ``Context`` with a free
  listener rule priority
- ``alb_attachment.service`` turns a ``Context`` into CDK declarations:
  target group, certificate, host-header rule, certificate binding,
  alias record and the service itself

``alb_attachment.service.stack.ServiceAttachmentStack`` wires both to the
environment configuration in ``helper.config``.
"""

from .context import (
    Context,
    ContextResolver,
    ContextStore,
    ResolutionRequest,
)
from .service import (
    AttachmentOptions,
    LoadBalancedService,
    ServiceFactories,
    attach,
)

__all__ = [
    "Context",
    "ContextResolver",
    "ContextStore",
    "ResolutionRequest",
    "AttachmentOptions",
    "LoadBalancedService",
    "ServiceFactories",
    "attach",
]
