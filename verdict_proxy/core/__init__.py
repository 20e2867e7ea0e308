from .backend_client import BackendClient
from .normalizer import LenientVerdictParser, PayloadShape, extract_candidate, normalize_response
from .observability import get_metrics
from .request_queue import SerialRequestQueue
from .types import InferenceRequest, QueuedTask, Verdict, VerdictLabel

__all__ = [
    "BackendClient",
    "SerialRequestQueue",
    "InferenceRequest",
    "QueuedTask",
    "Verdict",
    "VerdictLabel",
    "LenientVerdictParser",
    "PayloadShape",
    "extract_candidate",
    "normalize_response",
    "get_metrics",
]
