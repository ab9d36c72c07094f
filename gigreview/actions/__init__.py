from .gate import GateResult, ModerationGate

__all__ = ["GateResult", "ModerationGate"]
