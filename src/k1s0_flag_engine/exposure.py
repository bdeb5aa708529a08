"""Exposure event reporting."""

from __future__ import annotations

from datetime import timedelta
from typing import Any, Callable

import structlog

from .models import FlagContext, SelectedVariant
from .resolver import SUBJECT_KEY

logger = structlog.get_logger(__name__)

EXPOSURE_EVENT_NAME = "$experiment_started"
EXPERIMENT_TYPE = "feature_flag"
EVALUATION_MODE_LOCAL = "local"

Tracker = Callable[[str, str, dict[str, Any]], None]


class ExposureReporter:
    """Builds exposure events and hands them to the tracker.

    The tracker is called synchronously; asynchronous delivery is the
    tracker's concern.
    """

    def __init__(self, tracker: Tracker | None, evaluation_mode: str = EVALUATION_MODE_LOCAL) -> None:
        self._tracker = tracker
        self._evaluation_mode = evaluation_mode

    def report(
        self,
        flag_key: str,
        variant: SelectedVariant,
        flag_context: FlagContext,
        latency: timedelta | None = None,
    ) -> None:
        """Report an exposure; a missing distinct_id or tracker makes this a no-op."""
        distinct_id = flag_context.get(SUBJECT_KEY)
        if not isinstance(distinct_id, str):
            logger.debug("exposure not tracked, distinct_id missing or not a string", flag_key=flag_key)
            return
        if self._tracker is None:
            logger.debug("exposure not tracked, no tracker configured", flag_key=flag_key)
            return

        properties: dict[str, Any] = {
            "Experiment name": flag_key,
            "Variant name": variant.variant_key,
            "$experiment_type": EXPERIMENT_TYPE,
            "Flag evaluation mode": self._evaluation_mode,
        }
        if variant.experiment_id is not None:
            properties["$experiment_id"] = variant.experiment_id
        if variant.is_experiment_active is not None:
            properties["$is_experiment_active"] = variant.is_experiment_active
        if variant.is_qa_tester is not None:
            properties["$is_qa_tester"] = variant.is_qa_tester
        if latency is not None:
            properties["Variant fetch latency (ms)"] = float(latency // timedelta(milliseconds=1))

        self._tracker(distinct_id, EXPOSURE_EVENT_NAME, properties)
