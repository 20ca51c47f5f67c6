from __future__ import annotations

from dataclasses import dataclass


@dataclass(slots=True)
class ScoringGuard:
    """Rising-edge latch around the score counter.

    The handoff condition can hold for several consecutive ticks while the
    dog lingers near the hand. Only the first completion after :meth:`arm`
    is allowed to score; the latch then stays closed until the next throw.
    """

    just_scored: bool = False

    def arm(self) -> None:
        self.just_scored = False

    def try_score(self) -> bool:
        if self.just_scored:
            return False
        self.just_scored = True
        return True
