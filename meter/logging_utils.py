"""
meter/logging_utils.py

JSON log lines for the meter pipeline.

Each milestone logs one line whose ``event`` names the stage and outcome:

    meter.decode.complete       sheet title, header names, decoded row count
    meter.aggregate.complete    kept, excluded and month-skipped rows, totals
    meter.indicators.complete   indicator id, grouping mode, regrouped totals
    meter.report.complete       file name, months, people total, warning count
    meter.export.complete       export format
    meter.export.failed         export format and the failure reason

Polish program names are kept readable in the output. Dates, paths and
other non-JSON values are rendered with ``str``.
"""

from __future__ import annotations

import json
import logging
from typing import Any


def log_event(
    logger: logging.Logger,
    level: int,
    event: str,
    **fields: Any,
) -> None:
    """
    Emit one meter milestone as a sorted JSON object, skipping the
    serialisation when ``level`` is disabled for ``logger``.
    """

    if not logger.isEnabledFor(level):
        return
    payload = {"event": event, **fields}
    logger.log(level, json.dumps(payload, default=str, sort_keys=True, ensure_ascii=False))
