"""
dbfload: stream dBase (.dbf) tables into PostgreSQL over COPY.
"""

from .core.errors import TransferFailed
from .core.orchestrator import TransferOrchestrator, transfer
from .core.schemas import TransferResult
from .core.stats import StatsAccumulator
from .database.sink import PostgresSink, ScriptSink

__all__ = [
    "transfer",
    "TransferOrchestrator",
    "TransferResult",
    "TransferFailed",
    "StatsAccumulator",
    "PostgresSink",
    "ScriptSink",
]
