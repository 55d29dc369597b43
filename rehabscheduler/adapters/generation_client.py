"""
Text generation backends used by the assistant workflows.
"""

import json
import logging
from typing import Any, Callable, Dict, List, Optional

import requests

from ..domain.exceptions import GenerationError
from ..domain.generation import (
    SCHEDULE_OPTIMIZATION_TASK,
    THERAPY_ADJUSTMENT_TASK,
    THERAPY_REPORT_TASK,
    GenerationRequest,
)

logger = logging.getLogger(__name__)


class HttpTextGenerator:
    """
    Client for a JSON-over-HTTP text generation endpoint.

    Request body::

        {"model": "...", "task": "...", "prompt": "...", "response_schema": {...}}

    The endpoint answers with ``{"output": {...}}``; ``output`` may also be a
    JSON-encoded string.
    """

    def __init__(
        self,
        endpoint: str,
        model: str,
        api_key: Optional[str] = None,
        timeout_seconds: float = 30.0,
    ):
        """
        Initialize the generation client.

        Args:
            endpoint: Full URL of the generation endpoint
            model: Model identifier sent with every request
            api_key: Optional bearer token
            timeout_seconds: Per-request timeout
        """
        if not endpoint:
            raise GenerationError("No generation endpoint configured.")

        self.endpoint = endpoint
        self.model = model
        self.timeout_seconds = timeout_seconds
        self.headers = {"Content-Type": "application/json"}
        if api_key:
            self.headers["Authorization"] = f"Bearer {api_key}"

    def generate(self, request: GenerationRequest) -> Dict[str, Any]:
        """
        Send one generation request and return the structured output.

        Raises:
            GenerationError: On timeout, HTTP failure or malformed output
        """
        payload = {
            "model": self.model,
            "task": request.task,
            "prompt": request.prompt,
            "response_schema": request.response_schema,
        }

        logger.debug("Requesting %s from %s", request.task, self.endpoint)
        try:
            response = requests.post(
                self.endpoint,
                headers=self.headers,
                json=payload,
                timeout=self.timeout_seconds,
            )
            response.raise_for_status()
            data = response.json()

        except requests.exceptions.Timeout as exc:
            raise GenerationError(
                f"Generation request timed out after {self.timeout_seconds}s"
            ) from exc
        except requests.exceptions.RequestException as exc:
            raise GenerationError(f"Generation request failed: {exc}") from exc
        except ValueError as exc:
            raise GenerationError(f"Generation endpoint returned invalid JSON: {exc}") from exc

        return self._extract_output(data)

    @staticmethod
    def _extract_output(data: Any) -> Dict[str, Any]:
        if not isinstance(data, dict) or "output" not in data:
            raise GenerationError("Generation response is missing the 'output' field.")

        output = data["output"]
        if isinstance(output, str):
            try:
                output = json.loads(output)
            except json.JSONDecodeError as exc:
                raise GenerationError(f"Generation output is not valid JSON: {exc}") from exc

        if not isinstance(output, dict):
            raise GenerationError("Generation output must be a JSON object.")

        return output


class MockTextGenerator:
    """
    Deterministic stand-in for the generation backend.

    Builds plausible results from the structured request context, which makes
    the assistant workflows usable offline and in tests. Handlers can be
    overridden per task.
    """

    def __init__(self, handlers: Optional[Dict[str, Callable[[Dict[str, Any]], Dict[str, Any]]]] = None):
        self.handlers: Dict[str, Callable[[Dict[str, Any]], Dict[str, Any]]] = {
            SCHEDULE_OPTIMIZATION_TASK: _mock_schedule,
            THERAPY_REPORT_TASK: _mock_report,
            THERAPY_ADJUSTMENT_TASK: _mock_adjustment,
        }
        self.handlers.update(handlers or {})
        self.requests: List[GenerationRequest] = []

    def generate(self, request: GenerationRequest) -> Dict[str, Any]:
        self.requests.append(request)
        handler = self.handlers.get(request.task)
        if handler is None:
            raise GenerationError(f"Mock generator has no handler for task {request.task!r}")
        return handler(request.context)


def _mock_schedule(context: Dict[str, Any]) -> Dict[str, Any]:
    """Earliest candidate on each distinct day, up to the requested count."""
    wanted = int(context.get("sessionsRequested", 1))
    chosen: List[Dict[str, Any]] = []
    used_dates = set()
    for slot in context.get("candidateSlots", []):
        if len(chosen) >= wanted:
            break
        if slot["date"] in used_dates:
            continue
        used_dates.add(slot["date"])
        chosen.append(
            {
                "patientName": context.get("patientId", ""),
                "therapistId": context.get("therapistId", ""),
                "date": slot["date"],
                "startTime": slot["startTime"],
                "endTime": slot["endTime"],
            }
        )

    return {
        "suggestedSlots": chosen,
        "justification": (
            "Selected the earliest conflict-free slot on separate days so that "
            "sessions are spread out and no existing appointment is affected."
        ),
    }


def _mock_report(context: Dict[str, Any]) -> Dict[str, Any]:
    patient = context.get("patient", {})
    sessions = context.get("sessions", [])
    peaks = [session["peakRangeOfMotion"] for session in sessions]
    if len(peaks) >= 2:
        trend = f"Peak range of motion moved from {peaks[0]:g} to {peaks[-1]:g} degrees."
    elif peaks:
        trend = f"Peak range of motion in the only recorded session was {peaks[0]:g} degrees."
    else:
        trend = "No session data has been recorded yet."

    return {
        "executiveSummary": (
            f"{patient.get('name', 'The patient')} ({patient.get('condition', 'unknown condition')}) "
            f"has completed {len(sessions)} session(s)."
        ),
        "progressAnalysis": trend,
        "futureRecommendations": "Continue the current protocol and reassess after the next two sessions.",
    }


def _mock_adjustment(context: Dict[str, Any]) -> Dict[str, Any]:
    resistance = float(context.get("robotResistance", 0))
    range_of_motion = float(context.get("rangeOfMotion", 0))
    overexerted = context.get("heartRate", 0) > 120 or context.get("muscleLoad", 0) > 80

    if overexerted:
        return {
            "adjustedRobotResistance": max(0.0, resistance - 10),
            "adjustedRangeOfMotion": range_of_motion,
            "recommendation": "Signs of overexertion: reduce resistance and monitor heart rate closely.",
        }
    return {
        "adjustedRobotResistance": min(100.0, resistance + 5),
        "adjustedRangeOfMotion": range_of_motion + 5,
        "recommendation": "Vitals are within range: increase resistance and target range gradually.",
    }
