"""Registry and timing of the state machine's per-mode steps.

Each mode of :class:`~headtrack.facetracker.FaceTrackingStateMachine` is
handled by one method tagged with :func:`processing_step`. The tag records
which mode the method serves and which steps must have run before it; the
wrapper stores the call's duration in the owner's ``_step_timings`` dict.
"""

from dataclasses import dataclass
import functools
import time
from typing import Dict, List, Optional, Sequence, Tuple

from headtrack.types import DetectionMode

_STEP_ATTR = "__headtrack_step__"


@dataclass(frozen=True)
class ProcessingStep:
    """One registered step.

    Attributes:
        name: Key used in step timings ("whitebalance", "detection", ...).
        mode: State machine mode the step runs in.
        summary: One-line description, shown by ``headtrack info``.
        algorithm: Algorithm behind the step, if any.
        after: Names of the steps that precede this one.
        method: Name of the decorated method.
    """

    name: str
    mode: DetectionMode
    summary: str = ""
    algorithm: Optional[str] = None
    after: Tuple[str, ...] = ()
    method: str = ""

    def __str__(self) -> str:
        text = f"[{self.mode.value}] {self.name}"
        if self.summary:
            text += f": {self.summary}"
        if self.algorithm:
            text += f" ({self.algorithm})"
        return text


def processing_step(
    name: str,
    mode: DetectionMode,
    summary: str = "",
    algorithm: Optional[str] = None,
    after: Sequence[str] = (),
):
    """Tag a state machine method as the step for ``mode`` and time it.

    Example:
        @processing_step("camshift", DetectionMode.CS, after=["detection"])
        def _track_camshift(self, frame):
            ...
    """

    def decorate(method):
        step = ProcessingStep(
            name=name,
            mode=mode,
            summary=summary,
            algorithm=algorithm,
            after=tuple(after),
            method=method.__name__,
        )

        @functools.wraps(method)
        def timed(self, *args, **kwargs):
            timings = getattr(self, "_step_timings", None)
            started = time.perf_counter()
            try:
                return method(self, *args, **kwargs)
            finally:
                if timings is not None:
                    timings[name] = (time.perf_counter() - started) * 1000

        setattr(timed, _STEP_ATTR, step)
        return timed

    return decorate


def get_processing_steps(owner) -> List[ProcessingStep]:
    """Steps declared on a class (or an instance's class), predecessors first.

    Raises:
        ValueError: If the ``after`` declarations form a cycle.
    """
    cls = owner if isinstance(owner, type) else type(owner)
    declared: Dict[str, ProcessingStep] = {}
    for klass in reversed(cls.__mro__):
        for value in vars(klass).values():
            step = getattr(value, _STEP_ATTR, None)
            if step is not None:
                declared[step.name] = step

    ordered: List[ProcessingStep] = []
    state: Dict[str, str] = {}

    def place(step: ProcessingStep) -> None:
        mark = state.get(step.name)
        if mark == "done":
            return
        if mark == "active":
            raise ValueError(f"Step order has a cycle through '{step.name}'")
        state[step.name] = "active"
        for previous in step.after:
            if previous in declared:
                place(declared[previous])
        state[step.name] = "done"
        ordered.append(step)

    for step in declared.values():
        place(step)
    return ordered


__all__ = ["ProcessingStep", "processing_step", "get_processing_steps"]
