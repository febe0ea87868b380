"""Detect and repair broken rating chains in a user's match history.

Within one rating group, each settled match must start from the rating the
previous match ended on. Stale reads during live play break that chain; this
module replays the history in ``(created_at, id)`` order, finds the first
record whose stored "before" snapshot disagrees with the running chain, and
recomputes every record from there until the stored values agree again.

Records without an opponent snapshot predate snapshots and cannot be
recomputed. They are trusted as-is and act as anchors for the running chain.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field, replace
from enum import Enum

from domain.ratings.common import GlickoRating, MatchRecord, MatchStatus
from domain.ratings.errors import MissingSnapshotError, RatingError
from domain.ratings.glicko2.calculator import GlickoEngine

logger = logging.getLogger(__name__)

TOLERANCE = 0.001


class ChainPhase(str, Enum):
    UNANCHORED = "unanchored"
    ANCHORED = "anchored"
    FIXING = "fixing"


@dataclass(frozen=True)
class RatingSnapshot:
    user_rating_before: float
    user_rating_after: float | None
    user_rd_before: float | None
    user_rd_after: float | None
    user_vol_before: float | None
    user_vol_after: float | None
    rating_change: float | None


@dataclass(frozen=True)
class ChainCorrection:
    record_id: int
    session_id: str
    status: MatchStatus
    rating_group: str
    old: RatingSnapshot
    new: RatingSnapshot

    @property
    def after_delta(self) -> float:
        return (self.new.user_rating_after or 0.0) - (self.old.user_rating_after or 0.0)


@dataclass(frozen=True)
class DivergenceWarning:
    """A chain break: the stored before snapshot disagrees with the chain."""

    record_id: int
    session_id: str
    status: MatchStatus
    rating_group: str
    expected_rating: float
    expected_rd: float
    actual_rating: float
    actual_rd: float | None


@dataclass(frozen=True)
class WalkerState:
    rating_group: str
    running: GlickoRating | None = None
    rd_estimated: bool = False
    fixing: bool = False
    just_left_anchor: bool = False
    scanned: int = 0
    anchors: int = 0
    breaks: int = 0
    anomalies: int = 0

    @property
    def phase(self) -> ChainPhase:
        if self.running is None:
            return ChainPhase.UNANCHORED
        if self.fixing:
            return ChainPhase.FIXING
        return ChainPhase.ANCHORED


@dataclass(frozen=True)
class WalkStep:
    state: WalkerState
    correction: ChainCorrection | None = None
    divergence: DivergenceWarning | None = None


@dataclass(frozen=True)
class ChainRepairReport:
    corrections: tuple[ChainCorrection, ...]
    divergences: tuple[DivergenceWarning, ...]
    states: dict[str, WalkerState] = field(default_factory=dict)
    skipped_pending: int = 0

    @property
    def final_ratings(self) -> dict[str, GlickoRating]:
        """Authoritative summary rating per group, to be written back to the user."""
        return {
            group: state.running
            for group, state in self.states.items()
            if state.running is not None
        }

    def final_rating(self, rating_group: str) -> GlickoRating | None:
        state = self.states.get(rating_group)
        return None if state is None else state.running

    @property
    def scanned(self) -> int:
        return sum(state.scanned for state in self.states.values())

    @property
    def anchors(self) -> int:
        return sum(state.anchors for state in self.states.values())

    @property
    def breaks(self) -> int:
        return sum(state.breaks for state in self.states.values())

    @property
    def anomalies(self) -> int:
        return sum(state.anomalies for state in self.states.values())


def _snapshot_of(record: MatchRecord) -> RatingSnapshot:
    return RatingSnapshot(
        user_rating_before=record.user_rating_before,
        user_rating_after=record.user_rating_after,
        user_rd_before=record.user_rd_before,
        user_rd_after=record.user_rd_after,
        user_vol_before=record.user_vol_before,
        user_vol_after=record.user_vol_after,
        rating_change=record.rating_change,
    )


def order_history(records: Iterable[MatchRecord]) -> list[MatchRecord]:
    """Chronological order with the record id breaking created_at ties."""
    return sorted(records, key=lambda record: record.sort_key)


class RatingChainWalker:
    """Single-pass chain replay over one user's match history."""

    def __init__(self, engine: GlickoEngine | None = None, *, tolerance: float = TOLERANCE) -> None:
        self.engine = engine or GlickoEngine()
        self.tolerance = tolerance

    def walk(self, records: Iterable[MatchRecord]) -> ChainRepairReport:
        states: dict[str, WalkerState] = {}
        corrections: list[ChainCorrection] = []
        divergences: list[DivergenceWarning] = []
        skipped_pending = 0

        for record in order_history(records):
            if record.status == MatchStatus.PENDING:
                skipped_pending += 1
                continue

            group = record.rating_group
            state = states.get(group) or WalkerState(rating_group=group)
            step = self.step(state, record)
            states[group] = step.state
            if step.correction is not None:
                corrections.append(step.correction)
            if step.divergence is not None:
                divergences.append(step.divergence)

        return ChainRepairReport(
            corrections=tuple(corrections),
            divergences=tuple(divergences),
            states=states,
            skipped_pending=skipped_pending,
        )

    def step(self, state: WalkerState, record: MatchRecord) -> WalkStep:
        """Advance one rating group's state past one settled record."""
        state = replace(state, scanned=state.scanned + 1)

        try:
            opponent = record.opponent_snapshot()
        except MissingSnapshotError as exc:
            logger.warning("treating id=%s [%s] as anchor: %s", record.id, state.rating_group, exc)
            return WalkStep(state=self._anchor(replace(state, anomalies=state.anomalies + 1), record))

        if opponent is None:
            return WalkStep(state=self._anchor(state, record))

        if not record.has_before_snapshot():
            logger.warning(
                "treating id=%s [%s] as anchor: opponent snapshot without rd/vol before",
                record.id,
                state.rating_group,
            )
            return WalkStep(state=self._anchor(replace(state, anomalies=state.anomalies + 1), record))

        state, running = self._enter_snapshot_region(state, record)

        if self._is_intact(record, running) and not state.fixing:
            after = record.after_rating()
            if after is not None:
                state = replace(state, running=after)
            return WalkStep(state=state)

        divergence: DivergenceWarning | None = None
        if not state.fixing:
            divergence = DivergenceWarning(
                record_id=record.id,
                session_id=record.session_id,
                status=record.status,
                rating_group=state.rating_group,
                expected_rating=running.rating,
                expected_rd=running.rd,
                actual_rating=record.user_rating_before,
                actual_rd=record.user_rd_before,
            )
            logger.warning(
                "chain break #%d at id=%s [%s] session=%s status=%s: "
                "expected before rating=%.5f rd=%.5f, stored rating=%.5f rd=%s",
                state.breaks + 1,
                record.id,
                state.rating_group,
                record.session_id,
                record.status.value,
                running.rating,
                running.rd,
                record.user_rating_before,
                "None" if record.user_rd_before is None else f"{record.user_rd_before:.5f}",
            )
            state = replace(state, fixing=True, breaks=state.breaks + 1)

        try:
            recomputed = self.engine.update_against(running, opponent, record.score)
        except RatingError as exc:
            logger.warning("cannot recompute id=%s [%s], anchoring: %s", record.id, state.rating_group, exc)
            anchored = self._anchor(replace(state, anomalies=state.anomalies + 1), record)
            return WalkStep(state=anchored, divergence=divergence)

        correction: ChainCorrection | None = None
        if self._needs_update(record, running, recomputed):
            correction = ChainCorrection(
                record_id=record.id,
                session_id=record.session_id,
                status=record.status,
                rating_group=state.rating_group,
                old=_snapshot_of(record),
                new=RatingSnapshot(
                    user_rating_before=running.rating,
                    user_rating_after=recomputed.rating,
                    user_rd_before=running.rd,
                    user_rd_after=recomputed.rd,
                    user_vol_before=running.vol,
                    user_vol_after=recomputed.vol,
                    rating_change=recomputed.rating - running.rating,
                ),
            )
        else:
            logger.info("chain healed at id=%s [%s]", record.id, state.rating_group)
            state = replace(state, fixing=False)

        return WalkStep(
            state=replace(state, running=recomputed),
            correction=correction,
            divergence=divergence,
        )

    def _anchor(self, state: WalkerState, record: MatchRecord) -> WalkerState:
        after = record.after_rating()
        if after is not None:
            running: GlickoRating | None = after
            rd_estimated = False
        elif record.user_rating_after is not None:
            # Rating survived without rd/vol; carry them until a snapshot supplies real ones.
            previous = state.running
            running = GlickoRating(
                rating=record.user_rating_after,
                rd=previous.rd if previous is not None else self.engine.params.initial_rd,
                vol=previous.vol if previous is not None else self.engine.params.initial_volatility,
            )
            rd_estimated = True
        else:
            running = None
            rd_estimated = False

        if state.fixing:
            logger.info("anchor at id=%s [%s] pauses chain fix", record.id, state.rating_group)

        return replace(
            state,
            running=running,
            rd_estimated=rd_estimated,
            fixing=False,
            just_left_anchor=True,
            anchors=state.anchors + 1,
        )

    def _enter_snapshot_region(
        self,
        state: WalkerState,
        record: MatchRecord,
    ) -> tuple[WalkerState, GlickoRating]:
        """Return the state and the rating this snapshot record must start from."""
        before = record.before_rating()
        running = state.running
        if running is None:
            return replace(state, running=before, rd_estimated=False, just_left_anchor=False), before
        if not state.just_left_anchor:
            return state, running

        if abs(record.user_rating_before - running.rating) >= self.tolerance:
            logger.info(
                "anchor->snapshot transition at id=%s [%s]: anchor rating=%.5f, adopting stored before=%.5f",
                record.id,
                state.rating_group,
                running.rating,
                record.user_rating_before,
            )
            running = before
        elif state.rd_estimated:
            running = GlickoRating(rating=running.rating, rd=before.rd, vol=before.vol)

        return replace(state, running=running, rd_estimated=False, just_left_anchor=False), running

    def _is_intact(self, record: MatchRecord, running: GlickoRating) -> bool:
        rd_before = record.user_rd_before if record.user_rd_before is not None else 0.0
        return (
            abs(record.user_rating_before - running.rating) < self.tolerance
            and abs(rd_before - running.rd) < self.tolerance
        )

    def _needs_update(self, record: MatchRecord, running: GlickoRating, recomputed: GlickoRating) -> bool:
        def differs(stored: float | None, expected: float) -> bool:
            return abs((stored if stored is not None else 0.0) - expected) > self.tolerance

        return (
            differs(record.user_rating_before, running.rating)
            or differs(record.user_rating_after, recomputed.rating)
            or differs(record.user_rd_before, running.rd)
            or differs(record.user_rd_after, recomputed.rd)
        )


def apply_corrections(
    records: Sequence[MatchRecord],
    corrections: Iterable[ChainCorrection],
) -> list[MatchRecord]:
    """Return ``records`` with every correction written over its stored values."""
    by_id = {correction.record_id: correction for correction in corrections}
    corrected: list[MatchRecord] = []
    for record in records:
        correction = by_id.get(record.id)
        if correction is None:
            corrected.append(record)
            continue
        new = correction.new
        corrected.append(
            replace(
                record,
                user_rating_before=new.user_rating_before,
                user_rating_after=new.user_rating_after,
                user_rd_before=new.user_rd_before,
                user_rd_after=new.user_rd_after,
                user_vol_before=new.user_vol_before,
                user_vol_after=new.user_vol_after,
                rating_change=new.rating_change,
            )
        )
    return corrected


__all__ = [
    "ChainCorrection",
    "ChainPhase",
    "ChainRepairReport",
    "DivergenceWarning",
    "RatingChainWalker",
    "RatingSnapshot",
    "TOLERANCE",
    "WalkStep",
    "WalkerState",
    "apply_corrections",
    "order_history",
]
