"""Safety gate: the end-to-end conversion with a pass/warn/block verdict."""

from flowbridge.gate.engine import (
    GateInput,
    GateResult,
    GateState,
    SafetyGate,
    decide_verdict,
)

__all__ = ["GateInput", "GateResult", "GateState", "SafetyGate", "decide_verdict"]
