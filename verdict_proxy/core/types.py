import asyncio
from dataclasses import dataclass, field
from enum import Enum
import itertools
import time
from types import MappingProxyType
from typing import Any, Mapping

_task_ids = itertools.count(1)


class VerdictLabel(str, Enum):
    PASS = "PASS"
    FAIL = "FAIL"


@dataclass(frozen=True)
class InferenceRequest:
    """One generate call as submitted by a caller"""

    model: str
    prompt: str
    images: tuple[str, ...]
    stream: bool = False
    # Backend options forwarded verbatim (options, format, system, ...)
    extra: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))

    def __post_init__(self):
        if not self.images:
            raise ValueError("InferenceRequest needs at least one image")
        object.__setattr__(self, "images", tuple(self.images))
        object.__setattr__(self, "extra", MappingProxyType(dict(self.extra)))

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "InferenceRequest":
        known = {"model", "prompt", "images", "stream"}
        return cls(
            model=payload["model"],
            prompt=payload["prompt"],
            images=tuple(payload["images"]),
            stream=bool(payload.get("stream", False)),
            extra={k: v for k, v in payload.items() if k not in known},
        )

    def to_payload(self) -> dict[str, Any]:
        """Wire body for the backend generate endpoint"""
        payload = dict(self.extra)
        payload.update(model=self.model, prompt=self.prompt, images=list(self.images), stream=self.stream)
        return payload

    @property
    def image_bytes_total(self) -> int:
        return sum(len(image) for image in self.images)


@dataclass(eq=False)
class QueuedTask:
    """An admitted request and the future its caller awaits"""

    request: InferenceRequest
    future: asyncio.Future
    task_id: int = field(default_factory=lambda: next(_task_ids))
    enqueued_at: float = field(default_factory=time.monotonic)
    started_at: float | None = None

    def describe(self) -> dict[str, Any]:
        now = time.monotonic()
        return {
            "task_id": self.task_id,
            "model": self.request.model,
            "images": len(self.request.images),
            "waited_s": round((self.started_at or now) - self.enqueued_at, 3),
            "running_s": round(now - self.started_at, 3) if self.started_at is not None else None,
        }


@dataclass
class Verdict:
    """Structured judgement surfaced to the end user"""

    verdict: str
    rating: int
    explanation: str

    def to_dict(self) -> dict[str, Any]:
        return {"verdict": self.verdict, "rating": self.rating, "explanation": self.explanation}

    @classmethod
    def failure(cls, explanation: str) -> "Verdict":
        return cls(verdict=VerdictLabel.FAIL.value, rating=0, explanation=explanation)
