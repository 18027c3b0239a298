"""Custom exceptions for context resolution and service attachment."""

from typing import Optional


class StackConfigurationError(Exception):
    """
    Exception raised when stack configuration is invalid.

    Attributes:
        message: Human-readable error description
        config_key: The configuration key that caused the error
    """

    def __init__(self, message: str, config_key: Optional[str] = None) -> None:
        """
        Initialize the exception.

        Args:
            message: Human-readable error description
            config_key: The configuration key that caused the error
        """
        self.message = message
        self.config_key = config_key
        super().__init__(self.message)


class ValidationError(Exception):
    """
    Exception raised when parameter validation fails.

    Attributes:
        message: Human-readable error description
        parameter_name: The parameter that failed validation
        provided_value: The value that was provided
    """

    def __init__(
        self,
        message: str,
        parameter_name: Optional[str] = None,
        provided_value: Optional[str] = None
    ) -> None:
        """
        Initialize the exception.

        Args:
            message: Human-readable error description
            parameter_name: The parameter that failed validation
            provided_value: The value that was provided
        """
        self.message = message
        self.parameter_name = parameter_name
        self.provided_value = provided_value
        super().__init__(self.message)


class ResolutionError(Exception):
    """
    Exception raised when live infrastructure state cannot be resolved
    into a Context.

    Attributes:
        message: Human-readable error description
        identifier: The ARN, hostname or zone that could not be resolved
    """

    def __init__(self, message: str, identifier: Optional[str] = None) -> None:
        self.message = message
        self.identifier = identifier
        super().__init__(self.message)


class NoHttpsListener(ResolutionError):
    """The load balancer has no listener using the HTTPS protocol."""


class LoadBalancerNotFound(ResolutionError):
    """The load balancer ARN does not resolve to an existing load balancer."""


class NoAvailablePriority(ResolutionError):
    """
    The listener has no free rule priority left for the hostname.

    Attributes:
        hostname: The hostname a priority was requested for
    """

    def __init__(
        self,
        message: str,
        identifier: Optional[str] = None,
        hostname: Optional[str] = None
    ) -> None:
        self.hostname = hostname
        super().__init__(message, identifier)


class HostedZoneNotFound(ResolutionError):
    """The Route 53 hosted zone id does not exist."""


class AttachmentError(Exception):
    """
    Exception raised when the attachment graph cannot be declared.

    Attributes:
        message: Human-readable error description
        identifier: The construct, listener or resource involved
    """

    def __init__(self, message: str, identifier: Optional[str] = None) -> None:
        self.message = message
        self.identifier = identifier
        super().__init__(self.message)


class FactoryError(AttachmentError):
    """A caller-supplied target group or service factory failed."""


class PriorityConflict(AttachmentError):
    """
    A listener rule priority is already claimed on the listener.

    Attributes:
        priority: The conflicting rule priority
    """

    def __init__(
        self,
        message: str,
        identifier: Optional[str] = None,
        priority: Optional[int] = None
    ) -> None:
        self.priority = priority
        super().__init__(message, identifier)

    @classmethod
    def from_client_error(cls, error, listener_arn: str, priority: int) -> "PriorityConflict":
        """
        Map an apply-time ``PriorityInUse`` error to a PriorityConflict.

        Args:
            error: botocore ClientError raised by the ELBv2 API
            listener_arn: Listener the rule was being created on
            priority: Priority the rule was created with

        Returns:
            The equivalent PriorityConflict

        Raises:
            The original error if it is not a priority collision
        """
        code = getattr(error, "response", {}).get("Error", {}).get("Code")
        if code != "PriorityInUse":
            raise error
        return cls(
            f"Priority {priority} is already in use on listener {listener_arn}",
            identifier=listener_arn,
            priority=priority
        )


class ReferenceNotFound(AttachmentError):
    """An existing resource could not be referenced from the stack."""
