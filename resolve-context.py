#!/usr/bin/env python3
"""
Resolve the attachment context against live AWS state.

Runs before 'cdk synth' / 'cdk deploy'. It reads the environment
configuration, finds the HTTPS listener of the shared load balancer,
picks a free listener rule priority for the domain and writes the
resolved Context to the context file. app.py only ever reads that file,
so synth never talks to the ELB or Route 53 APIs directly.

A cached context is reused unless --refresh is given. Do not resolve two
attachments for the same listener concurrently: the priority scan is not
atomic with rule creation.
"""
import argparse
import logging
import sys

from alb_attachment.common.exceptions import ResolutionError, StackConfigurationError, ValidationError
from alb_attachment.context import ContextResolver, ContextStore
from helper.config import Config

logger = logging.getLogger(__name__)


def main(argv=None) -> bool:
    """Resolve and store the context. Returns False on failure."""
    parser = argparse.ArgumentParser(description='Resolve the shared load balancer attachment context')
    parser.add_argument('--environment', default='development',
                        help='Configuration environment (config/<environment>.yaml)')
    parser.add_argument('--refresh', action='store_true',
                        help='Re-resolve even if a cached context exists')
    parser.add_argument('--verbose', action='store_true', help='Enable debug logging')
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(asctime)s %(levelname)s %(name)s: %(message)s'
    )

    conf = Config(environment=args.environment)
    store = ContextStore(conf.get_context_file())

    if store.exists() and not args.refresh:
        context = store.load()
        logger.info(
            f"Using cached context for {context.domain_name} "
            f"(priority {context.load_balancer.rule_priority}) from {store.path}"
        )
        return True

    resolver = ContextResolver(region_name=conf.get('RegionName'))
    try:
        context = resolver.resolve(conf.to_resolution_request())
    except ResolutionError as e:
        logger.error(f"Context resolution failed for {e.identifier}: {e.message}")
        return False

    store.save(context)
    logger.info(
        f"Resolved {context.domain_name}: listener {context.load_balancer.listener_arn}, "
        f"priority {context.load_balancer.rule_priority}"
    )
    return True


if __name__ == "__main__":
    try:
        success = main()
    except StackConfigurationError as e:
        logger.error(f"Invalid configuration ({e.config_key}): {e.message}")
        success = False
    except ValidationError as e:
        logger.error(f"Invalid value for {e.parameter_name}: {e.message}")
        success = False
    sys.exit(0 if success else 1)
