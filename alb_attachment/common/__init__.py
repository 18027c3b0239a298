"""
Common components shared by the context resolver and the attachment
orchestrator: exceptions, validators and constants.
"""

from .exceptions import (
    StackConfigurationError,
    ValidationError,
    ResolutionError,
    NoHttpsListener,
    LoadBalancerNotFound,
    NoAvailablePriority,
    HostedZoneNotFound,
    AttachmentError,
    FactoryError,
    PriorityConflict,
    ReferenceNotFound
)

from .validators import (
    ConfigValidator,
    AWSResourceValidator
)

from .constants import *

__all__ = [
    # Exceptions
    "StackConfigurationError",
    "ValidationError",
    "ResolutionError",
    "NoHttpsListener",
    "LoadBalancerNotFound",
    "NoAvailablePriority",
    "HostedZoneNotFound",
    "AttachmentError",
    "FactoryError",
    "PriorityConflict",
    "ReferenceNotFound",

    # Validators
    "ConfigValidator",
    "AWSResourceValidator",
]
