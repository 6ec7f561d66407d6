"""Escalation Monitor -- promote stale, unattended high-severity alerts.

An alert is escalated when all of the following hold:

    status == New
    severity in {Critical, High}
    now - timestamp > threshold

Critical alerts become ``Active Threat``; High alerts become
``Under Investigation``.  The escalated status no longer matches the
selection, so running the monitor again never escalates the same alert
twice.
"""

from __future__ import annotations

import dataclasses
import logging
from datetime import datetime, timedelta

from src.contracts import Alert, AlertStatus, Severity
from src.shared.timeutil import parse_ts

log = logging.getLogger(__name__)

ESCALATION_NOTE = " - ESCALATED: Alert auto-escalated due to age and severity"

ESCALATION_TARGET: dict[Severity, AlertStatus] = {
    Severity.CRITICAL: AlertStatus.ACTIVE_THREAT,
    Severity.HIGH: AlertStatus.UNDER_INVESTIGATION,
}


def is_escalation_candidate(alert: Alert, now: datetime, threshold_ms: int) -> bool:
    if alert.status is not AlertStatus.NEW or alert.severity not in ESCALATION_TARGET:
        return False
    try:
        created = parse_ts(alert.timestamp)
    except (TypeError, ValueError):
        log.warning("Alert %s has unparsable timestamp %r; not escalated",
                    alert.id, alert.timestamp)
        return False
    return now - created > timedelta(milliseconds=threshold_ms)


def escalate(alerts: list[Alert] | tuple[Alert, ...], now: datetime,
             threshold_ms: int) -> list[Alert]:
    """Return escalated copies of every matching alert; inputs are untouched."""
    escalated: list[Alert] = []
    for alert in alerts:
        if not is_escalation_candidate(alert, now, threshold_ms):
            continue
        escalated.append(dataclasses.replace(
            alert,
            status=ESCALATION_TARGET[alert.severity],
            ai_analysis=f"{alert.ai_analysis}{ESCALATION_NOTE}",
            artifacts=list(alert.artifacts),
            recommended_actions=list(alert.recommended_actions),
        ))
    if escalated:
        log.info("Escalated %d alert(s) older than %d ms", len(escalated), threshold_ms)
    return escalated
