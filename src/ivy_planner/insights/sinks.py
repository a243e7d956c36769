# src/ivy_planner/insights/sinks.py

from __future__ import annotations

import logging

from ..planner.models import Insight

logger = logging.getLogger(__name__)


class LoggingInsightSink:
    """Default InsightSink: notifiable insights go to the log."""

    def notify(self, insight: Insight) -> None:
        logger.info(
            "Insight [%s %.0f%%]: %s",
            insight.type.value,
            insight.confidence * 100,
            insight.text,
        )
