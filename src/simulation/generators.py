"""Synthetic record generators: alerts, hunt results, sync times.

Every generator takes the caller's ``random.Random`` so a seeded engine
is fully reproducible.
"""

from __future__ import annotations

import logging
import random as _random_mod
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timedelta

from src.contracts import (
    SEVERITY_ORDER,
    Alert,
    AlertStatus,
    HuntExecution,
    HuntResult,
    IntegrationStatus,
    Severity,
)
from src.shared.ids import IdFactory
from src.shared.timeutil import format_ts, utc_now

log = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _pick(rng: _random_mod.Random, seq: list | tuple):
    return seq[rng.randint(0, len(seq) - 1)]


def _now(now: datetime | None) -> datetime:
    return now if now is not None else utc_now()


# ---------------------------------------------------------------------------
# Alert templates
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class AlertTemplate:
    title: str
    source: str
    description: str
    category: str
    artifacts: tuple[str, ...] = ()


ALERT_TEMPLATES: tuple[AlertTemplate, ...] = (
    AlertTemplate(
        "Suspicious Network Activity", "Network Monitor",
        "Unusual network traffic patterns detected from internal host",
        "Network Security",
        ("192.168.1.0/24", "Port scanning detected", "Multiple connection attempts"),
    ),
    AlertTemplate(
        "Failed Authentication Attempts", "Active Directory",
        "Multiple failed login attempts detected from single IP address",
        "Identity & Access",
        ("user.account@company.com", "Source IP: 203.45.67.89", "Failed attempts: 52"),
    ),
    AlertTemplate(
        "Malware Signature Detected", "Endpoint Protection",
        "Known malware signature found on endpoint device",
        "Malware",
        ("LAPTOP-USER-123", "trojan.exe", "Quarantined successfully"),
    ),
    AlertTemplate(
        "Data Exfiltration Attempt", "DLP System",
        "Large volume data transfer to external destination detected",
        "Data Loss Prevention",
        ("External IP: 185.220.101.42", "1.2GB transferred", "Sensitive data detected"),
    ),
    AlertTemplate(
        "Privilege Escalation", "Windows Event Logs",
        "User account gained elevated privileges unexpectedly",
        "Privilege Management",
        ("SVC-DATABASE", "Admin privileges requested", "No change request found"),
    ),
    AlertTemplate(
        "Unusual File Access", "File System Monitor",
        "Access to sensitive files detected outside business hours",
        "File Security",
        ("sensitive_data.xlsx", "Off-hours access", "Unusual file path"),
    ),
    AlertTemplate(
        "Phishing Email Detected", "Email Security Gateway",
        "Suspicious email with potential phishing indicators",
        "Email Security",
        ("invoice_update.html", "Spoofed sender domain", "Credential harvesting link"),
    ),
    AlertTemplate(
        "Unauthorized USB Device", "Device Control",
        "Unknown USB device connected to corporate workstation",
        "Device Security",
        ("WKS-FIN-042", "USB VID_0781", "Mass storage class"),
    ),
    AlertTemplate(
        "SQL Injection Attempt", "Web Application Firewall",
        "Potential SQL injection attack detected on web application",
        "Web Security",
        ("/api/v1/orders?id=1' OR '1'='1", "Source IP: 45.33.12.7", "WAF rule 942100"),
    ),
    AlertTemplate(
        "Anomalous User Behavior", "UEBA System",
        "User behavior deviates significantly from established baseline",
        "User Behavior Analytics",
        ("jane.doe@company.com", "Risk score delta: +38", "New geolocation"),
    ),
)

AI_ANALYSIS: dict[Severity, tuple[str, ...]] = {
    Severity.CRITICAL: (
        "IMMEDIATE ACTION REQUIRED: High-confidence threat detected",
        "Critical threat indicators match known attack patterns",
        "Automated containment initiated - manual review required",
    ),
    Severity.HIGH: (
        "Potential threat detected - investigating correlations",
        "Behavioral analysis indicates suspicious activity",
        "Threat intelligence correlation in progress",
    ),
    Severity.MEDIUM: (
        "Anomaly detected - analyzing context",
        "Pattern recognition flagged unusual behavior",
        "Baseline deviation requires investigation",
    ),
    Severity.LOW: (
        "Minor anomaly detected - monitoring for escalation",
        "Informational alert - no immediate action required",
        "Routine security event logged for analysis",
    ),
}

ACTIONS_BY_CATEGORY: dict[str, tuple[str, ...]] = {
    "Network Security": ("Review network logs", "Check firewall rules", "Analyze traffic patterns"),
    "Identity & Access": (
        "Review authentication logs", "Check user permissions", "Verify account status",
    ),
    "Malware": ("Isolate affected endpoint", "Run full system scan", "Update threat signatures"),
    "Data Loss Prevention": (
        "Review data access logs", "Check file permissions", "Verify data classification",
    ),
    "Email Security": (
        "Quarantine suspicious emails", "Review email headers", "Check sender reputation",
    ),
}
DEFAULT_ACTIONS: tuple[str, ...] = ("Investigate immediately", "Review logs", "Check for correlation")

RISK_BANDS: dict[Severity, tuple[float, float]] = {
    Severity.CRITICAL: (8.0, 10.0),
    Severity.HIGH: (6.0, 8.0),
    Severity.MEDIUM: (3.0, 6.0),
    Severity.LOW: (1.0, 3.0),
}

# Freshly generated alerts are never pre-resolved
INITIAL_STATUSES: tuple[AlertStatus, ...] = (
    AlertStatus.NEW,
    AlertStatus.UNDER_INVESTIGATION,
    AlertStatus.ACTIVE_THREAT,
    AlertStatus.AUTO_CONTAINED,
)


# ---------------------------------------------------------------------------
# Alert generation
# ---------------------------------------------------------------------------

def pick_severity(weights: dict[Severity, float], rng: _random_mod.Random) -> Severity:
    """Weighted draw walking Critical → High → Medium → Low.

    Returns the first severity whose cumulative weight reaches the uniform
    sample; ``Medium`` when rounding leaves the sample unmatched.
    """
    u = rng.random()
    cumulative = 0.0
    for sev in SEVERITY_ORDER:
        cumulative += weights.get(sev, 0.0)
        if u <= cumulative:
            return sev
    return Severity.MEDIUM


def risk_score_for(severity: Severity, rng: _random_mod.Random) -> float:
    lo, hi = RISK_BANDS[severity]
    return round(min(10.0, max(0.0, rng.uniform(lo, hi))), 2)


def generate_alert(weights: dict[Severity, float], rng: _random_mod.Random,
                   now: datetime | None = None, new_id: Callable[[], str] | None = None) -> Alert:
    """One randomised alert drawn from :data:`ALERT_TEMPLATES`."""
    new_id = new_id or IdFactory("ALT", rng)
    tpl = _pick(rng, ALERT_TEMPLATES)
    severity = pick_severity(weights, rng)
    actions = ACTIONS_BY_CATEGORY.get(tpl.category, DEFAULT_ACTIONS)
    return Alert(
        id=new_id(),
        title=tpl.title,
        severity=severity,
        status=_pick(rng, INITIAL_STATUSES),
        source=tpl.source,
        timestamp=format_ts(_now(now)),
        description=tpl.description,
        ai_analysis=_pick(rng, AI_ANALYSIS[severity]),
        risk_score=risk_score_for(severity, rng),
        artifacts=list(tpl.artifacts),
        recommended_actions=list(actions),
    )


class AlertGenerator:
    """Stateful wrapper holding the rng and the id sequence."""

    def __init__(self, rng: _random_mod.Random, id_factory: IdFactory | None = None) -> None:
        self.rng = rng
        self.next_id = id_factory or IdFactory("ALT", rng)

    def generate(self, weights: dict[Severity, float], now: datetime | None = None) -> Alert:
        return generate_alert(weights, self.rng, now, self.next_id)

    def generate_batch(self, weights: dict[Severity, float], max_per_interval: int,
                       now: datetime | None = None) -> list[Alert]:
        """Between 1 and *max_per_interval* alerts (inclusive)."""
        count = self.rng.randint(1, max(1, max_per_interval))
        return [self.generate(weights, now) for _ in range(count)]


# ---------------------------------------------------------------------------
# Hunt results
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class HuntTemplate:
    title: str
    description: str
    confidence: int
    severity: Severity
    artifacts: tuple[str, ...]


HUNT_TEMPLATES: tuple[HuntTemplate, ...] = (
    HuntTemplate(
        "Suspicious PowerShell Activity", "Encoded PowerShell commands detected", 88,
        Severity.HIGH, ("Base64 encoded commands", "PowerShell.exe", "Suspicious parameters"),
    ),
    HuntTemplate(
        "Unusual DNS Queries", "DNS queries to suspicious domains", 75,
        Severity.MEDIUM, ("malicious-domain.com", "DNS tunneling patterns", "High query frequency"),
    ),
    HuntTemplate(
        "Registry Modification", "Suspicious registry changes detected", 92,
        Severity.CRITICAL,
        (
            "HKLM\\Software\\Microsoft\\Windows\\CurrentVersion\\Run",
            "Persistence mechanism",
            "Unknown executable",
        ),
    ),
)

# (keywords, template): a query matching any keyword yields the template
QUERY_MATCHES: tuple[tuple[tuple[str, ...], HuntTemplate], ...] = (
    (
        ("login", "authentication"),
        HuntTemplate(
            "Suspicious Login Pattern", "Multiple failed attempts from IP 192.168.1.100", 85,
            Severity.HIGH,
            ("192.168.1.100", "user.account@company.com", "Failed login attempts: 47"),
        ),
    ),
    (
        ("lateral", "movement"),
        HuntTemplate(
            "Lateral Movement Detected", "Service account accessing multiple systems", 92,
            Severity.CRITICAL,
            ("SVC-BACKUP", "Multiple system access", "Privilege escalation"),
        ),
    ),
    (
        ("data", "transfer", "exfiltration"),
        HuntTemplate(
            "Data Transfer Anomaly", "Large file transfer during off-hours", 78,
            Severity.MEDIUM,
            ("2.3GB transfer", "External IP: 203.45.67.89", "Off-hours activity"),
        ),
    ),
    (
        ("privilege", "escalation"),
        HuntTemplate(
            "Privilege Escalation Detected",
            "Service account gained unexpected administrative privileges", 88,
            Severity.HIGH, ("SVC-BACKUP", "Domain Admins", "DC-01"),
        ),
    ),
    (
        ("malware", "suspicious", "process"),
        HuntTemplate(
            "Suspicious Process Activity",
            "Unknown process with network connections to external IPs", 76,
            Severity.MEDIUM,
            ("unknown_process.exe", "External connections", "Process hash: abc123"),
        ),
    ),
    (
        ("russia", "geographic", "location"),
        HuntTemplate(
            "Geographic Anomaly", "Login attempts from high-risk geographical locations", 91,
            Severity.HIGH, ("185.220.101.42", "Russia", "john.smith@company.com"),
        ),
    ),
)

EMPTY_HUNT_CHANCE = 0.2


def _hunt_result(tpl: HuntTemplate, now: datetime, new_id: Callable[[], str],
                 confidence: int | None = None) -> HuntResult:
    return HuntResult(
        id=new_id(),
        title=tpl.title,
        description=tpl.description,
        confidence=tpl.confidence if confidence is None else confidence,
        timestamp=format_ts(now),
        severity=tpl.severity,
        artifacts=list(tpl.artifacts),
    )


def generate_hunt_result(rng: _random_mod.Random, now: datetime | None = None,
                         new_id: Callable[[], str] | None = None) -> HuntResult:
    """A background hunt finding with ±5 confidence jitter, clamped to 0..100."""
    tpl = _pick(rng, HUNT_TEMPLATES)
    confidence = max(0, min(100, tpl.confidence + rng.randint(-5, 5)))
    return _hunt_result(tpl, _now(now), new_id or IdFactory("HR", rng), confidence)


def run_hunt_query(query: str, rng: _random_mod.Random, now: datetime | None = None,
                   new_id: Callable[[], str] | None = None) -> HuntExecution:
    """Execute a hunt query against the keyword table.

    Unmatched queries return a random 1..3 subset of the background
    templates; one run in five comes back empty.  A blank query fails
    without touching the rng.
    """
    new_id = new_id or IdFactory("HR", rng)
    start = _now(now)
    execution = HuntExecution(
        id=f"exec-{int(start.timestamp() * 1000)}",
        query_id=f"query-{int(start.timestamp() * 1000)}",
        query=query,
        status="Running",
        start_time=format_ts(start),
    )
    if not query or not query.strip():
        execution.status = "Failed"
        execution.end_time = format_ts(start)
        execution.error = "Hunt query is empty"
        log.warning("Hunt %s failed: empty query", execution.id)
        return execution

    q = query.lower()
    results = [
        _hunt_result(tpl, start, new_id)
        for keywords, tpl in QUERY_MATCHES
        if any(k in q for k in keywords)
    ]
    if not results:
        n = rng.randint(1, len(HUNT_TEMPLATES))
        results = [_hunt_result(tpl, start, new_id) for tpl in rng.sample(HUNT_TEMPLATES, n)]
    if rng.random() < EMPTY_HUNT_CHANCE:
        results = []

    execution.status = "Completed"
    execution.execution_time = round(rng.uniform(1.0, 4.0), 2)
    execution.end_time = format_ts(start + timedelta(seconds=execution.execution_time))
    execution.results = results
    log.info("Hunt %s completed: %d results for %r", execution.id, len(results), query)
    return execution


# ---------------------------------------------------------------------------
# Sync times
# ---------------------------------------------------------------------------

_RECENT_SYNC = (
    "Just now", "15 seconds ago", "30 seconds ago", "45 seconds ago",
    "1 minute ago", "1.5 minutes ago",
)
_SLOW_SYNC = ("2 minutes ago", "3 minutes ago", "4 minutes ago", "5 minutes ago", "6 minutes ago")
_STALE_SYNC = (
    "5 minutes ago", "10 minutes ago", "15 minutes ago", "30 minutes ago",
    "1 hour ago", "2 hours ago",
)

SYNC_TIME_BANDS: dict[IntegrationStatus, tuple[str, ...]] = {
    IntegrationStatus.CONNECTED: _RECENT_SYNC,
    IntegrationStatus.DEGRADED: _SLOW_SYNC,
    IntegrationStatus.DISCONNECTED: _STALE_SYNC,
}


def generate_sync_time(status: IntegrationStatus, rng: _random_mod.Random) -> str:
    """Relative "last sync" string consistent with *status*."""
    return _pick(rng, SYNC_TIME_BANDS[status])
