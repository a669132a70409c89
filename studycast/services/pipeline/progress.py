"""
Progress Tracking Module

Transitions are async generators that yield ``ProgressEvent`` objects at each
sub-step. The orchestrator consumes them, remembers the latest event per
project and forwards every event to registered observers.

Progress is advisory state only. Nothing in the pipeline reads it back to
make a decision.
"""

from dataclasses import asdict, dataclass, field
from datetime import datetime
from threading import RLock
from typing import Any, Callable, Dict, List, Optional

from studycast.core import get_logger

logger = get_logger(__name__, component="progress_tracker")

ProgressObserver = Callable[["ProgressEvent"], None]


@dataclass(frozen=True)
class ProgressEvent:
    """
    One sub-step of a transition.

    Attributes:
        project_id: Project being processed (None until the outline stage creates it)
        stage: Transition name (outline, summaries, script, audio)
        item_index: Items finished so far in this transition
        item_total: Items this transition will process
        message: Human-readable status line
        done: True on the last event of a successful transition
    """
    project_id: Optional[int]
    stage: str
    item_index: int
    item_total: int
    message: str
    done: bool = False
    timestamp: str = field(default_factory=lambda: datetime.now().isoformat())

    @property
    def fraction(self) -> float:
        if self.item_total <= 0:
            return 1.0 if self.done else 0.0
        return min(self.item_index / self.item_total, 1.0)

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["fraction"] = self.fraction
        return data


class ProgressTracker:
    """Latest event per project plus fan-out to observers."""

    def __init__(self):
        self._latest: Dict[int, ProgressEvent] = {}
        self._observers: List[ProgressObserver] = []
        self._lock = RLock()

    def subscribe(self, observer: ProgressObserver) -> Callable[[], None]:
        """Register an observer; returns a callable that unregisters it."""
        with self._lock:
            self._observers.append(observer)

        def _unsubscribe() -> None:
            with self._lock:
                if observer in self._observers:
                    self._observers.remove(observer)

        return _unsubscribe

    def publish(self, event: ProgressEvent) -> None:
        with self._lock:
            if event.project_id is not None:
                self._latest[event.project_id] = event
            observers = list(self._observers)

        logger.info(
            event.message,
            extra={
                "progress_stage": event.stage,
                "item_index": event.item_index,
                "item_total": event.item_total,
            },
        )
        for observer in observers:
            try:
                observer(event)
            except Exception as e:
                # Observer failures never abort a transition
                logger.warning("Progress observer failed", extra={"error": str(e)})

    def latest(self, project_id: int) -> Optional[ProgressEvent]:
        with self._lock:
            return self._latest.get(project_id)

    def forget(self, project_id: int) -> None:
        with self._lock:
            self._latest.pop(project_id, None)
