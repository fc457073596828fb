"""
Domain models — Pydantic types for the generator.

    from shimgen.core.models import ScriptSpec, GeneratedHeader, RunReport
"""

from shimgen.core.models.header import GeneratedHeader
from shimgen.core.models.report import ArtifactFailure, PlannedMove, RunReport
from shimgen.core.models.spec import (
    AutoConnectSpec,
    ExportHint,
    ExportMember,
    ScriptSpec,
    SignalParam,
    SignalSpec,
    WiringMember,
)

__all__ = [
    # report.py
    "ArtifactFailure",
    # spec.py
    "AutoConnectSpec",
    "ExportHint",
    "ExportMember",
    # header.py
    "GeneratedHeader",
    "PlannedMove",
    "RunReport",
    "ScriptSpec",
    "SignalParam",
    "SignalSpec",
    "WiringMember",
]
