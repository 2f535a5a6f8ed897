"""Per-stage failure policy.

Which stages abort the run and which recover locally is declared here as data
so it can be audited and tested on its own.
"""

from __future__ import annotations

from enum import Enum


class OnFailure(str, Enum):
    FATAL = "fatal"  # abort the run, surface the error
    FALLBACK = "fallback"  # substitute a deterministic result, keep going
    ADVISORY = "advisory"  # log and ignore


STAGE_POLICIES: dict[str, OnFailure] = {
    "validate": OnFailure.FATAL,
    "overlay": OnFailure.FATAL,
    "transform": OnFailure.FATAL,
    "caption": OnFailure.FALLBACK,
    "finalize": OnFailure.FATAL,
    "cleanup": OnFailure.ADVISORY,
}

STAGE_ORDER: tuple[str, ...] = ("validate", "overlay", "transform", "caption", "finalize")


def policy_for(stage: str) -> OnFailure:
    """Return the failure policy for ``stage``; unknown stages are fatal."""
    return STAGE_POLICIES.get(stage, OnFailure.FATAL)


def recovers_locally(stage: str) -> bool:
    return policy_for(stage) is not OnFailure.FATAL
