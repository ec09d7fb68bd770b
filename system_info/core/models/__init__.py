"""
Domain models — Pydantic types and declarations for the report.

All models are re-exported here for convenient access:

    from system_info.core.models import Capability, Invocation, InvokeResult, Settings
"""

from system_info.core.models.capability import (
    Capability,
    CapabilityKind,
    Check,
    CheckKind,
    ProbeResult,
)
from system_info.core.models.inspection import Inspection
from system_info.core.models.invocation import Invocation, InvokeResult
from system_info.core.models.preferences import Preferences
from system_info.core.models.settings import Settings

__all__ = [
    # capability.py
    "Capability",
    "CapabilityKind",
    "Check",
    "CheckKind",
    # inspection.py
    "Inspection",
    # invocation.py
    "Invocation",
    "InvokeResult",
    # preferences.py
    "Preferences",
    "ProbeResult",
    # settings.py
    "Settings",
]
