"""Lenient model construction for producer-supplied input.

Producers push events and breadcrumbs without any validation contract;
a malformed record is stored as-is instead of being rejected, so the
recording never stops because one message was bad.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any, TypeVar

from pydantic import BaseModel, ValidationError

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


def coerce_model(model_cls: type[ModelT], raw: Any) -> ModelT:
    """Validate raw input into model_cls, falling back to unvalidated construction.

    Every declared field is populated on the fallback path (missing required
    fields become None) so the instance still serializes.

    Args:
        model_cls: The pydantic model class to build.
        raw: A model_cls instance, a mapping, or anything else.

    Returns:
        A model_cls instance. Never raises for bad input.
    """
    if isinstance(raw, model_cls):
        return raw

    try:
        return model_cls.model_validate(raw)
    except ValidationError as exc:
        logger.debug(
            "Storing malformed %s unvalidated (%d errors)",
            model_cls.__name__,
            exc.error_count(),
        )

    source: Mapping[str, Any] = raw if isinstance(raw, Mapping) else {}
    values: dict[str, Any] = {}
    for name, field in model_cls.model_fields.items():
        if name in source:
            values[name] = source[name]
        elif field.alias and field.alias in source:
            values[name] = source[field.alias]
        elif field.is_required():
            values[name] = None
        else:
            values[name] = field.get_default(call_default_factory=True)
    return model_cls.model_construct(**values)
