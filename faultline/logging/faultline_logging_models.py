"""
Logging models for the harness components.

Each model carries the context that identifies the component emitting it:
- The signing proxy (listen and upstream socket paths)
- A managed process (command and pid)
- The conductor admin session (admin url)
- The scenario driver (scenario and step name)
"""

from .models import Entry, LogLevel


# =============================================================================
# Signing Proxy Logging Models
# =============================================================================

class ProxyDebug(Entry, kw_only=True):
    listen_address: str
    upstream_address: str
    level: LogLevel = LogLevel.DEBUG


class ProxyInfo(Entry, kw_only=True):
    listen_address: str
    upstream_address: str
    level: LogLevel = LogLevel.INFO


class ProxyError(Entry, kw_only=True):
    listen_address: str
    upstream_address: str
    level: LogLevel = LogLevel.ERROR


# =============================================================================
# Managed Process Logging Models
# =============================================================================

class ProcessDebug(Entry, kw_only=True):
    command: str
    pid: int | None = None
    level: LogLevel = LogLevel.DEBUG


class ProcessInfo(Entry, kw_only=True):
    command: str
    pid: int | None = None
    level: LogLevel = LogLevel.INFO


class ProcessWarning(Entry, kw_only=True):
    command: str
    pid: int | None = None
    return_code: int | None = None
    level: LogLevel = LogLevel.WARN


# =============================================================================
# Conductor Admin Logging Models
# =============================================================================

class ConductorDebug(Entry, kw_only=True):
    admin_url: str
    level: LogLevel = LogLevel.DEBUG


class ConductorError(Entry, kw_only=True):
    admin_url: str
    level: LogLevel = LogLevel.ERROR


# =============================================================================
# Scenario Logging Models
# =============================================================================

class ScenarioDebug(Entry, kw_only=True):
    scenario: str
    step: str
    level: LogLevel = LogLevel.DEBUG


class ScenarioInfo(Entry, kw_only=True):
    scenario: str
    step: str
    level: LogLevel = LogLevel.INFO


class ScenarioWarning(Entry, kw_only=True):
    scenario: str
    step: str
    level: LogLevel = LogLevel.WARN


class ScenarioError(Entry, kw_only=True):
    scenario: str
    step: str
    level: LogLevel = LogLevel.ERROR
