"""File-backed cache for resolved contexts."""

import logging
from pathlib import Path
from typing import Union

from ..common.exceptions import StackConfigurationError, ValidationError
from .models import Context

logger = logging.getLogger(__name__)


class ContextStore:
    """
    Persist a resolved Context as JSON so synth runs replay it instead of
    re-querying AWS.

    Keys are sorted, so saving an unchanged Context rewrites the file with
    identical bytes.
    """

    def __init__(self, path: Union[str, Path]) -> None:
        self.path = Path(path)

    def exists(self) -> bool:
        return self.path.is_file()

    def save(self, context: Context) -> Path:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(context.to_json() + "\n", encoding='utf-8')
        logger.info(f"Saved context for {context.domain_name} to {self.path}")
        return self.path

    def load(self) -> Context:
        """
        Load the cached Context.

        Raises:
            StackConfigurationError: If no context has been resolved yet or
                the file does not hold a valid context
        """
        if not self.exists():
            raise StackConfigurationError(
                f"No resolved context at {self.path}; run resolve-context.py first",
                config_key="ContextFile"
            )
        try:
            return Context.from_json(self.path.read_text(encoding='utf-8'))
        except ValidationError as e:
            raise StackConfigurationError(
                f"Invalid context at {self.path}: {e.message}; re-run resolve-context.py --refresh",
                config_key="ContextFile"
            ) from e
