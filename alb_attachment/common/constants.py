"""
Constants used across context resolution and service attachment.
"""

# Listener Configuration
HTTPS_PROTOCOL = "HTTPS"

# ALB rule priorities are 1..50000; the default rule has no numeric priority
MIN_RULE_PRIORITY = 1
MAX_RULE_PRIORITY = 50000
DEFAULT_RULE_PRIORITY = "default"

# Target Group Defaults
DEFAULT_TARGET_GROUP_PROTOCOL = "HTTP"
DEFAULT_DEREGISTRATION_DELAY = 15  # seconds
DEFAULT_STICKINESS_COOKIE_DURATION = 1  # days

# Route 53
DEFAULT_CREATE_ROUTE53_A_RECORD = True
ZONE_NAME_LABEL_COUNT = 2  # "api.foo.example.com" -> "example.com"
HOSTED_ZONE_ID_PREFIX = "/hostedzone/"

# Service Configuration
DEFAULT_CPU = 256
DEFAULT_MEMORY = 512
DEFAULT_DESIRED_COUNT = 1
DEFAULT_CONTAINER_PORT = 8080

# Context Cache
DEFAULT_CONTEXT_DIRECTORY = "context"
DEFAULT_ENVIRONMENT = "development"

# Resolution strategies
STRATEGY_BY_ATTRIBUTES = "attributes"
STRATEGY_BY_LOOKUP = "lookup"

# Route zone variants
ROUTE_ZONE_REFERENCE = "reference"
ROUTE_ZONE_LOOKUP = "lookup"
