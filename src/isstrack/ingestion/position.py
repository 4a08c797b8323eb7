"""Position payload parsing.

Turns a decoded endpoint response into a :class:`PositionSample` or
raises :class:`MalformedResponseError`.
"""

from __future__ import annotations

import logging
from typing import Any

from pydantic import ValidationError

from isstrack._constants import REQUIRED_FIELDS
from isstrack.exceptions import MalformedResponseError
from isstrack.ingestion.normalize import missing_numeric_fields
from isstrack.models.position import PositionSample

_logger = logging.getLogger(__name__)


def parse_position_payload(payload: Any, *, sequence: int) -> PositionSample:
    """Validate *payload* and build the sample for request *sequence*.

    Raises
    ------
    MalformedResponseError
        If the payload is not an object or any required field is
        missing or not a finite number.
    """
    if not isinstance(payload, dict):
        raise MalformedResponseError(f"Position payload is not an object: {type(payload).__name__}")

    missing = missing_numeric_fields(payload, REQUIRED_FIELDS)
    if missing:
        raise MalformedResponseError(
            f"Position payload missing numeric fields: {', '.join(missing)}",
            missing=missing,
        )

    try:
        # The whole upstream payload goes into `raw`, including any key of the same name.
        return PositionSample.model_validate({**payload, "sequence": sequence, "raw": dict(payload)})
    except ValidationError as exc:
        _logger.debug("Position payload failed validation: %s", exc)
        raise MalformedResponseError(f"Position payload failed validation: {exc.error_count()} error(s)") from exc
