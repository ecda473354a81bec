"""
Vote engine for definitions and comments.

Every change to a target's upvote/downvote counters goes through this module.
A vote is a single transaction that:
- locks the target row (SELECT ... FOR UPDATE; BEGIN IMMEDIATE on SQLite)
- reads the actor's current ledger row for the target
- applies one transition of the vote state machine to the ledger
- moves the counters with an in-database increment

A unique-constraint violation on the ledger means another request from the
same actor won the race; the transaction is retried and finally reported as
a Conflict.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from typing import Iterable, Optional

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError

import slangdict.config as config
from slangdict.context import require_actor_id
from slangdict.db import new_session
from slangdict.errors import AuthenticationRequired, Conflict, InvalidArgument, NotFound
from slangdict.models import (
    Comment,
    CommentVote,
    Definition,
    DefinitionVote,
    User,
    VoteDirection,
)
from slangdict.services.shared import (
    _validate_id,
    MAX_RESULT_LIMIT,
    service_op,
    logger,
)


ACTION_UP = "up"
ACTION_DOWN = "down"
ACTION_REMOVE = "remove"
VOTE_ACTIONS = (ACTION_UP, ACTION_DOWN, ACTION_REMOVE)

LEDGER_NOOP = "noop"
LEDGER_INSERT = "insert"
LEDGER_DELETE = "delete"
LEDGER_UPDATE = "update"


@dataclass(frozen=True)
class VoteTransition:
    ledger_op: str
    new_vote: Optional[VoteDirection]
    up_delta: int = 0
    down_delta: int = 0

    @property
    def changed(self) -> bool:
        return self.ledger_op != LEDGER_NOOP


@dataclass(frozen=True)
class VoteLedger:
    """Binds a votable model to its ledger table."""

    target_type: str
    target_model: type
    vote_model: type
    target_column: str

    @property
    def target_fk(self):
        return getattr(self.vote_model, self.target_column)


VOTE_LEDGERS: dict[str, VoteLedger] = {
    "definition": VoteLedger("definition", Definition, DefinitionVote, "definition_id"),
    "comment": VoteLedger("comment", Comment, CommentVote, "comment_id"),
}


def _counter_deltas(direction: VoteDirection, sign: int) -> tuple[int, int]:
    if direction == VoteDirection.up:
        return sign, 0
    return 0, sign


def resolve_transition(existing: Optional[VoteDirection], action: str) -> VoteTransition:
    """
    Decide the ledger operation and counter deltas for one vote request.

    existing is the actor's current vote (None when there is no ledger row).
    """
    if action == ACTION_REMOVE:
        if existing is None:
            return VoteTransition(LEDGER_NOOP, None)
        up_delta, down_delta = _counter_deltas(existing, -1)
        return VoteTransition(LEDGER_DELETE, None, up_delta, down_delta)

    requested = VoteDirection(action)
    if existing is None:
        up_delta, down_delta = _counter_deltas(requested, 1)
        return VoteTransition(LEDGER_INSERT, requested, up_delta, down_delta)
    if existing == requested:
        return VoteTransition(LEDGER_NOOP, existing)

    old_up, old_down = _counter_deltas(existing, -1)
    new_up, new_down = _counter_deltas(requested, 1)
    return VoteTransition(LEDGER_UPDATE, requested, old_up + new_up, old_down + new_down)


def _normalize_action(action) -> str:
    if not isinstance(action, str):
        raise InvalidArgument(
            "action must be one of: up|down|remove",
            field="action",
            error_type="invalid_type",
        )
    value = action.strip().lower()
    if value not in VOTE_ACTIONS:
        raise InvalidArgument(
            "action must be one of: up|down|remove",
            field="action",
            error_type="invalid_value",
        )
    return value


def _resolve_ledger(target_type: str) -> VoteLedger:
    ledger = VOTE_LEDGERS.get(target_type)
    if ledger is None:
        raise InvalidArgument(
            f"Unsupported vote target type: {target_type}",
            field="target_type",
            error_type="invalid_value",
        )
    return ledger


def _lock_target(db, ledger: VoteLedger, target_id: int):
    model = ledger.target_model
    return (
        db.query(model)
        .filter(model.id == target_id)
        .with_for_update()
        .first()
    )


def _apply_vote(db, ledger: VoteLedger, actor_id: str, target_id: int, action: str) -> dict:
    target = _lock_target(db, ledger, target_id)
    if target is None:
        raise NotFound(
            f"{ledger.target_type.capitalize()} not found",
            field=f"{ledger.target_type}_id",
        )
    if db.get(User, actor_id) is None:
        raise AuthenticationRequired(
            "Unknown user",
            field="actor_id",
            error_type="unknown_user",
        )

    vote_model = ledger.vote_model
    existing = (
        db.query(vote_model)
        .filter(ledger.target_fk == target_id)
        .filter(vote_model.user_id == actor_id)
        .first()
    )
    previous = existing.vote_type if existing else None
    transition = resolve_transition(previous, action)

    if transition.ledger_op == LEDGER_INSERT:
        db.add(
            vote_model(
                **{ledger.target_column: target_id},
                user_id=actor_id,
                vote_type=transition.new_vote,
            )
        )
        db.flush()
    elif transition.ledger_op == LEDGER_DELETE:
        db.delete(existing)
    elif transition.ledger_op == LEDGER_UPDATE:
        existing.vote_type = transition.new_vote

    if transition.up_delta or transition.down_delta:
        model = ledger.target_model
        db.query(model).filter(model.id == target_id).update(
            {
                model.upvotes: model.upvotes + transition.up_delta,
                model.downvotes: model.downvotes + transition.down_delta,
            },
            synchronize_session=False,
        )
        db.refresh(target)

    # Counters as seen inside this transaction, not after commit.
    upvotes, downvotes = target.upvotes, target.downvotes
    db.commit()

    return {
        "status": "ok",
        "target_type": ledger.target_type,
        "target_id": target_id,
        "action": action,
        "previous_vote": previous.value if previous else None,
        "current_vote": transition.new_vote.value if transition.new_vote else None,
        "changed": transition.changed,
        "upvotes": upvotes,
        "downvotes": downvotes,
    }


@service_op
def cast_vote(
    actor_id: Optional[str],
    target_id: int,
    action: str,
    target_type: str = "definition",
) -> dict:
    """Apply an up/down/remove vote from actor_id to a definition or comment."""
    actor_id = require_actor_id(actor_id)
    ledger = _resolve_ledger(target_type)
    target_id = _validate_id(target_id, f"{target_type}_id")
    action = _normalize_action(action)

    attempts = max(0, config.VOTE_CONFLICT_RETRIES) + 1
    last_exc: Optional[IntegrityError] = None
    for attempt in range(1, attempts + 1):
        db = new_session()
        try:
            return _apply_vote(db, ledger, actor_id, target_id, action)
        except IntegrityError as exc:
            db.rollback()
            last_exc = exc
            logger.warning(
                "vote_conflict",
                extra={
                    "target_type": target_type,
                    "target_id": target_id,
                    "attempt": attempt,
                },
            )
        finally:
            db.close()

    raise Conflict(
        "Concurrent vote on the same target; retry the request",
        field=f"{target_type}_id",
    ) from last_exc


def cast_definition_vote(actor_id: Optional[str], definition_id: int, action: str) -> dict:
    return cast_vote(actor_id, definition_id, action, target_type="definition")


def cast_comment_vote(actor_id: Optional[str], comment_id: int, action: str) -> dict:
    return cast_vote(actor_id, comment_id, action, target_type="comment")


@service_op
def get_user_votes(
    actor_id: Optional[str],
    target_ids: Iterable[int],
    target_type: str = "definition",
) -> dict[int, str]:
    """Return {target_id: "up"|"down"} for the targets the actor has voted on."""
    ledger = _resolve_ledger(target_type)
    ids = sorted({_validate_id(value, f"{target_type}_id") for value in target_ids})
    if not actor_id or not ids:
        return {}

    db = new_session()
    try:
        rows = (
            db.query(ledger.target_fk, ledger.vote_model.vote_type)
            .filter(ledger.vote_model.user_id == actor_id)
            .filter(ledger.target_fk.in_(ids))
            .all()
        )
        return {target_id: vote_type.value for target_id, vote_type in rows}
    finally:
        db.close()


@service_op
def recount_votes(target_type: str = "definition") -> dict:
    """
    Compare every target's counters with its ledger rows and report drift.

    Read-only; counters are only ever written by cast_vote.
    """
    ledger = _resolve_ledger(target_type)
    model = ledger.target_model

    db = new_session()
    try:
        rows = (
            db.query(ledger.target_fk, ledger.vote_model.vote_type, func.count(ledger.vote_model.id))
            .group_by(ledger.target_fk, ledger.vote_model.vote_type)
            .all()
        )
        tally: dict[int, dict[VoteDirection, int]] = defaultdict(dict)
        for target_id, vote_type, count in rows:
            tally[target_id][vote_type] = count

        checked = 0
        drift: list[dict] = []
        for target in db.query(model).order_by(model.id).all():
            checked += 1
            expected_up = tally.get(target.id, {}).get(VoteDirection.up, 0)
            expected_down = tally.get(target.id, {}).get(VoteDirection.down, 0)
            if target.upvotes == expected_up and target.downvotes == expected_down:
                continue
            drift.append(
                {
                    "target_id": target.id,
                    "upvotes": target.upvotes,
                    "downvotes": target.downvotes,
                    "ledger_up": expected_up,
                    "ledger_down": expected_down,
                }
            )

        if drift:
            logger.warning(
                "vote_counter_drift",
                extra={"target_type": target_type, "drifted": len(drift)},
            )

        return {
            "status": "ok",
            "target_type": target_type,
            "checked": checked,
            "drifted": len(drift),
            "drift": drift[:MAX_RESULT_LIMIT],
        }
    finally:
        db.close()


__all__ = [
    "VOTE_ACTIONS",
    "VOTE_LEDGERS",
    "VoteLedger",
    "VoteTransition",
    "resolve_transition",
    "cast_vote",
    "cast_definition_vote",
    "cast_comment_vote",
    "get_user_votes",
    "recount_votes",
]
