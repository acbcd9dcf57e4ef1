r"""Default options for validation calls.

`ValidationOptions` holds the defaults a `Validator` falls back to when a call
leaves an option unset. `ValidationOptions.from_env()` reads them from the
environment:

    VALIDGRAPH_RECURSE       (default: true)
    VALIDGRAPH_ALLOW_ASYNC   (default: false)

Values go through pydantic's bool parsing, so ``1/0``, ``true/false``,
``yes/no`` and ``on/off`` are all accepted.
"""

from __future__ import annotations

import logging
import os
from typing import Any, Dict, Mapping, Optional

from pydantic import BaseModel, ConfigDict

__all__ = ["ValidationOptions", "ENV_PREFIX"]

logger = logging.getLogger(__name__)

ENV_PREFIX = "VALIDGRAPH_"


class ValidationOptions(BaseModel):
    """Per-validator defaults for `recurse` and `allow_async`.

    Attributes:
        recurse: Visit nested members, self-validation and external validators.
        allow_async: Let synchronous calls block on asynchronous checks.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    recurse: bool = True
    allow_async: bool = False

    @classmethod
    def from_env(
        cls, environ: Optional[Mapping[str, str]] = None, prefix: str = ENV_PREFIX
    ) -> "ValidationOptions":
        """Build options from ``<prefix><FIELD>`` environment variables.

        Raises:
            pydantic.ValidationError: If a variable holds an unparsable value.
        """
        environ = os.environ if environ is None else environ
        values: Dict[str, Any] = {}
        for name in cls.model_fields:
            key = f"{prefix}{name.upper()}"
            if key in environ:
                values[name] = environ[key]
        if values and logger.isEnabledFor(logging.DEBUG):
            logger.debug("Validation options from environment: %s", values)
        return cls.model_validate(values)

    def resolve(
        self, recurse: Optional[bool] = None, allow_async: Optional[bool] = None
    ) -> "ValidationOptions":
        """Return options with explicitly passed call arguments applied."""
        update: Dict[str, Any] = {}
        if recurse is not None:
            update["recurse"] = recurse
        if allow_async is not None:
            update["allow_async"] = allow_async
        return self.model_copy(update=update) if update else self
