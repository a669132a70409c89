"""
Pipeline stage enumeration.

A project's stage is never stored. It is derived from which artifacts the
project record holds (see ``Project.derive_stage``).
"""

from enum import Enum
from typing import Optional


class Stage(Enum):
    """Pipeline stages in strict forward order."""

    EMPTY = 0
    OUTLINE_READY = 1
    SUMMARIES_READY = 2
    SCRIPT_AND_STUDY_AIDS_READY = 3
    AUDIO_READY = 4

    def __lt__(self, other: "Stage") -> bool:
        if not isinstance(other, Stage):
            return NotImplemented
        return self.value < other.value

    def __le__(self, other: "Stage") -> bool:
        if not isinstance(other, Stage):
            return NotImplemented
        return self.value <= other.value

    @property
    def label(self) -> str:
        return STAGE_LABELS[self]

    @property
    def slug(self) -> str:
        return self.name.lower()

    @property
    def transition(self) -> Optional[str]:
        """Name of the transition that starts from this stage."""
        return TRANSITION_FROM_STAGE.get(self)

    def is_terminal(self) -> bool:
        return self is Stage.AUDIO_READY

    @classmethod
    def from_slug(cls, value: str) -> "Stage":
        try:
            return cls[value.upper()]
        except KeyError:
            raise ValueError(f"Unknown stage: {value}") from None


# Human-readable status shown in project listings
STAGE_LABELS = {
    Stage.EMPTY: "New",
    Stage.OUTLINE_READY: "Outline Generated",
    Stage.SUMMARIES_READY: "Summaries Generated",
    Stage.SCRIPT_AND_STUDY_AIDS_READY: "Script Generated",
    Stage.AUDIO_READY: "Completed",
}

# Transition name used in progress events and error reports
TRANSITION_FROM_STAGE = {
    Stage.EMPTY: "outline",
    Stage.OUTLINE_READY: "summaries",
    Stage.SUMMARIES_READY: "script",
    Stage.SCRIPT_AND_STUDY_AIDS_READY: "audio",
}


__all__ = [
    "Stage",
    "STAGE_LABELS",
    "TRANSITION_FROM_STAGE",
]
