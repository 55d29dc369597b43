"""
Request passed to a text generation backend.
"""

from dataclasses import dataclass, field
from typing import Any, Dict


@dataclass(frozen=True)
class GenerationRequest:
    """
    Everything a backend needs to produce one structured result.

    ``context`` carries the same facts as ``prompt`` in structured form, and
    ``response_schema`` is the JSON schema the result must satisfy.
    """
    task: str
    prompt: str
    response_schema: Dict[str, Any]
    context: Dict[str, Any] = field(default_factory=dict)


SCHEDULE_OPTIMIZATION_TASK = "schedule_optimization"
THERAPY_REPORT_TASK = "therapy_report"
THERAPY_ADJUSTMENT_TASK = "therapy_adjustment"
