"""
Loop machinery for TDP: configuration, immutable state, events and the orchestrator.
"""

from .artifacts import TDPArtifactPaths, prepare_artifacts, write_json
from .config import TDPConfig
from .events import (
    CycleStarted,
    DiagnosesComputed,
    EventRecorder,
    JsonlEventWriter,
    LoggingObserver,
    Observer,
    RunFinished,
    TDPEvent,
    TestExecuted,
    TestSelected,
)
from .orchestrator import OracleTimeout, TDPOrchestrator, TDPOutcome
from .state import DiagnoseResult, TDPState, apply_test_result, diagnose, initial_state, plan
from .utils import parse_selection, setup_logging

__all__ = [
    'TDPConfig', 'TDPState', 'TDPOrchestrator', 'TDPOutcome', 'OracleTimeout',
    'DiagnoseResult', 'initial_state', 'diagnose', 'plan', 'apply_test_result',
    'TDPEvent', 'Observer', 'CycleStarted', 'DiagnosesComputed', 'TestSelected', 'TestExecuted', 'RunFinished',
    'EventRecorder', 'JsonlEventWriter', 'LoggingObserver',
    'TDPArtifactPaths', 'prepare_artifacts', 'write_json',
    'parse_selection', 'setup_logging',
]
