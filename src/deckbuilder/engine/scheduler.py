"""Drives one autonomous turn as a sequence of single-command steps.

The scheduler never touches `MatchState` directly. Every step asks the
decision policy for a command and hands it to `submit`, the same validated
entry point human commands go through. Steps are pulled from a generator, so
the host decides when each one runs: `tick(dt)` honours the presentation
delay, `run_to_completion()` ignores it.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator
from dataclasses import dataclass

from .actions import AdvancePhase, Command
from .ai import AISpec, decide
from .match import MatchState, StepResult

logger = logging.getLogger(__name__)

Submit = Callable[[Command], StepResult]


@dataclass(frozen=True)
class SchedulerConfig:
    step_delay: float = 0.6
    # Run autonomous turns to completion as soon as they start (headless/tests).
    inline: bool = False


class TurnScheduler:
    def __init__(
        self,
        state: MatchState,
        player_id: str,
        submit: Submit,
        spec: AISpec | None = None,
        config: SchedulerConfig | None = None,
    ) -> None:
        self.state = state
        self.player_id = player_id
        self.spec = spec or AISpec()
        self.config = config or SchedulerConfig()
        self._submit = submit
        self._elapsed = 0.0
        self._cancelled = False
        self._done = False
        self.aborted = False
        self.results: list[StepResult] = []
        self._steps = self._run()

    @property
    def done(self) -> bool:
        return self._done

    def _owns_turn(self) -> bool:
        s = self.state
        return not (self._cancelled or s.ended or s.retired) and s.current.id == self.player_id

    def _run(self) -> Iterator[StepResult]:
        rejected: set[Command] = set()
        phase = self.state.phase
        while self._owns_turn():
            if self.state.phase != phase:
                phase = self.state.phase
                rejected.clear()
            command = decide(self.state, self.player_id, self.spec, rejected)
            if command is None:
                command = AdvancePhase(player=self.player_id)
            result = self._submit(command)
            yield result
            if not result.ok:
                rejected.add(command)
                logger.warning(
                    "Autonomous step rejected for %s (%s: %s); abandoning turn",
                    self.player_id,
                    result.error_kind,
                    result.error,
                )
                self.aborted = True
                break

        # Abandoned turn: force the phases forward until the turn passes.
        while self.aborted and self._owns_turn():
            result = self._submit(AdvancePhase(player=self.player_id))
            yield result
            if not result.ok:
                logger.error("Could not force-advance %s: %s", self.player_id, result.error)
                break

    def step(self) -> StepResult | None:
        """Run exactly one step. Returns None once the turn is over."""
        if self._done:
            return None
        if not self._owns_turn():
            self._finish()
            return None
        try:
            result = next(self._steps)
        except StopIteration:
            self._finish()
            return None
        self.results.append(result)
        if self._done:
            # cancelled from inside the submit callback
            self._steps.close()
        return result

    def tick(self, dt: float) -> list[StepResult]:
        """Advance the presentation clock and run every step that is due."""
        out: list[StepResult] = []
        self._elapsed += dt
        while not self._done and self._elapsed >= self.config.step_delay:
            self._elapsed -= self.config.step_delay
            r = self.step()
            if r is not None:
                out.append(r)
        return out

    def run_to_completion(self) -> list[StepResult]:
        out: list[StepResult] = []
        while not self._done:
            r = self.step()
            if r is not None:
                out.append(r)
        return out

    def cancel(self) -> None:
        """Abandon pending steps; nothing further is submitted."""
        self._cancelled = True
        self._finish()

    def _finish(self) -> None:
        self._done = True
        # A running generator cannot close itself; step() closes it once it yields.
        if not self._steps.gi_running:
            self._steps.close()
