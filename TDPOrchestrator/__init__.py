"""
TDPOrchestrator: Test, Diagnose, Plan.

Spectrum-based fault diagnosis that keeps choosing the next most informative
test. Coverage and outcomes of a Java test suite (GZoltar format) are turned
into minimal-hitting-set diagnoses; an entropy planner then asks a test oracle
for one more outcome at a time until a single diagnosis dominates.
"""

from .core.config import TDPConfig
from .core.orchestrator import TDPOrchestrator, TDPOutcome
from .core.state import TDPState, initial_state
from .coverage import CoverageConfigError, CoverageSuite, load_gzoltar
from .diagnosis import Diagnosis, compute_diagnoses, extract_conflicts, goodness
from .planning import DiagnosisStatistics, EntropyTestPlanner, entropy, select_best_test

__version__ = "0.1.0"
__all__ = [
    'TDPConfig', 'TDPOrchestrator', 'TDPOutcome', 'TDPState', 'initial_state',
    'CoverageConfigError', 'CoverageSuite', 'load_gzoltar',
    'Diagnosis', 'compute_diagnoses', 'extract_conflicts', 'goodness',
    'DiagnosisStatistics', 'EntropyTestPlanner', 'entropy', 'select_best_test',
    '__version__'
]
