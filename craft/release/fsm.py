"""Linear checkpoint state machine.

Each handler receives the current session and either advances to a new
session (whose step names the next handler) or finishes. Every advanced
session passes through `save_state`; `CheckpointLog.save` is the usual one.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass

from craft.core.errors import ConfigurationError, CraftError
from craft.core.result import Err, Ok, Result
from craft.output.console import ConsoleProtocol, Style

__all__ = [
    "FINISH",
    "CheckpointLog",
    "StepAdvance",
    "StepFinish",
    "StepHandler",
    "StepOutcome",
    "advance",
    "run_state_machine",
]


@dataclass(frozen=True, slots=True)
class StepAdvance[S]:
    session: S


@dataclass(frozen=True, slots=True)
class StepFinish:
    pass


type StepOutcome[S] = StepAdvance[S] | StepFinish
type StepHandler[S] = Callable[[S], Result[StepOutcome[S], CraftError]]
type SaveState[S] = Callable[[S], Result[S, CraftError]]
type GetStep[S] = Callable[[S], str]


FINISH = StepFinish()


def advance[S](session: S) -> StepAdvance[S]:
    return StepAdvance(session=session)


class CheckpointLog[S]:
    """Records the step of every saved session and echoes it dimmed."""

    def __init__(self, console: ConsoleProtocol, get_step: GetStep[S]) -> None:
        self._console = console
        self._get_step = get_step
        self.steps: list[str] = []

    def save(self, session: S) -> Result[S, CraftError]:
        step = self._get_step(session)
        self.steps.append(step)
        self._console.print(f"checkpoint: {step}", Style.DIM)
        return Ok(session)


def run_state_machine[S](
    *,
    initial_state: S,
    get_step: GetStep[S],
    handlers: Mapping[str, StepHandler[S]],
    save_state: SaveState[S],
) -> Result[S, CraftError]:
    """Run handlers until one finishes; returns the last session.

    A step with no handler is a `ConfigurationError`; handler and
    `save_state` errors stop the run as they are.
    """
    session = initial_state
    while True:
        step = get_step(session)
        handler = handlers.get(step)
        if handler is None:
            return Err(ConfigurationError(message=f"unknown release step: {step}"))

        match handler(session):
            case Err() as failed:
                return failed
            case Ok(StepFinish()):
                return Ok(session)
            case Ok(StepAdvance(session=following)):
                saved = save_state(following)
                if isinstance(saved, Err):
                    return saved
                session = saved.value
