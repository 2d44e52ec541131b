from __future__ import annotations

from dataclasses import dataclass, replace

from craft.core.errors import ConfigurationError, CraftError, RepositoryStateError
from craft.core.result import Err, Ok, Result
from craft.output.console import MockConsole, Style
from craft.release.fsm import FINISH, CheckpointLog, StepOutcome, advance, run_state_machine


@dataclass(frozen=True, slots=True)
class _State:
    step: str
    counter: int


def test_run_state_machine_advances_and_saves() -> None:
    saved: list[_State] = []

    def save_state(s: _State) -> Result[_State, CraftError]:
        saved.append(s)
        return Ok(s)

    def step_a(s: _State) -> Result[StepOutcome[_State], CraftError]:
        return Ok(advance(replace(s, step="b", counter=s.counter + 1)))

    def step_b(s: _State) -> Result[StepOutcome[_State], CraftError]:
        return Ok(FINISH)

    result = run_state_machine(
        initial_state=_State(step="a", counter=0),
        get_step=lambda s: s.step,
        handlers={"a": step_a, "b": step_b},
        save_state=save_state,
    )

    assert result == Ok(_State(step="b", counter=1))
    assert saved == [_State(step="b", counter=1)]


def test_run_state_machine_unknown_step_fails() -> None:
    result = run_state_machine(
        initial_state=_State(step="missing", counter=0),
        get_step=lambda s: s.step,
        handlers={},
        save_state=lambda s: Ok(s),
    )

    assert isinstance(result, Err)
    assert isinstance(result.error, ConfigurationError)
    assert "missing" in result.error.message


def test_run_state_machine_propagates_handler_error() -> None:
    def bad_step(_: _State) -> Result[StepOutcome[_State], CraftError]:
        return Err(RepositoryStateError(message="boom"))

    result = run_state_machine(
        initial_state=_State(step="a", counter=0),
        get_step=lambda s: s.step,
        handlers={"a": bad_step},
        save_state=lambda s: Ok(s),
    )

    assert result == Err(RepositoryStateError(message="boom"))


def test_run_state_machine_stops_when_save_fails() -> None:
    calls: list[str] = []

    def step_a(s: _State) -> Result[StepOutcome[_State], CraftError]:
        calls.append("a")
        return Ok(advance(replace(s, step="b")))

    def step_b(s: _State) -> Result[StepOutcome[_State], CraftError]:
        calls.append("b")
        return Ok(FINISH)

    result = run_state_machine(
        initial_state=_State(step="a", counter=0),
        get_step=lambda s: s.step,
        handlers={"a": step_a, "b": step_b},
        save_state=lambda s: Err(RepositoryStateError(message="disk full")),
    )

    assert isinstance(result, Err)
    assert calls == ["a"]


def test_checkpoint_log_records_saved_steps() -> None:
    console = MockConsole()
    log = CheckpointLog[_State](console, lambda s: s.step)

    def step_a(s: _State) -> Result[StepOutcome[_State], CraftError]:
        return Ok(advance(replace(s, step="b")))

    def step_b(s: _State) -> Result[StepOutcome[_State], CraftError]:
        return Ok(advance(replace(s, step="c")))

    result = run_state_machine(
        initial_state=_State(step="a", counter=0),
        get_step=lambda s: s.step,
        handlers={"a": step_a, "b": step_b, "c": lambda _: Ok(FINISH)},
        save_state=log.save,
    )

    assert result == Ok(_State(step="c", counter=0))
    assert log.steps == ["b", "c"]
    assert console.messages == ["checkpoint: b", "checkpoint: c"]
    assert all(o.style is Style.DIM for o in console.outputs)
