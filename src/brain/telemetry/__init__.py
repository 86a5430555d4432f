from __future__ import annotations

from .emitter import IntentIssue, TelemetryEmitter, redact_pii

_emitter: TelemetryEmitter | None = None


def get_telemetry_emitter() -> TelemetryEmitter:
    global _emitter
    if _emitter is None:
        _emitter = TelemetryEmitter()
    return _emitter


__all__ = ["IntentIssue", "TelemetryEmitter", "get_telemetry_emitter", "redact_pii"]
