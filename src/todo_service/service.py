"""
Todo lifecycle rules.

Status transitions:

    NOT_DONE <-> DONE        user driven (mark_done / mark_not_done)
    NOT_DONE  -> PAST_DUE    system driven, one way (lazy on read, or sweep)

A PAST_DUE todo is frozen: every mutation is rejected. Both the read path
and the periodic sweep decide the PAST_DUE transition through ``recompute``.
"""
from __future__ import annotations

import logging
import uuid
from datetime import datetime
from typing import Callable, List, Optional, Tuple

from .errors import InvalidArgumentError, NotFoundError
from .models import TodoEntity, TodoStatus
from .repositories import ListQuery, Repository
from .utils import as_utc, utc_now

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


# PUBLIC_INTERFACE
def recompute(todo: TodoEntity, now: datetime) -> Tuple[TodoStatus, bool]:
    """
    Decide the status a todo should have at ``now``.

    Returns ``(PAST_DUE, True)`` when the todo is NOT_DONE and its due time is
    strictly before ``now``; otherwise the current status and ``False``.
    """
    status = TodoStatus(todo["status"])
    if status is TodoStatus.NOT_DONE and todo["due_datetime"] < now:
        return TodoStatus.PAST_DUE, True
    return status, False


class TodoService:
    """Create, read and mutate todos while keeping the past-due rule applied."""

    def __init__(self, repo: Repository, clock: Clock = utc_now) -> None:
        self.repo = repo
        self._clock = clock

    def _now(self) -> datetime:
        return as_utc(self._clock())

    def create(self, description: str, due_datetime: datetime) -> TodoEntity:
        if not isinstance(due_datetime, datetime):
            raise InvalidArgumentError("Invalid dueDatetime")
        try:
            due = as_utc(due_datetime)
        except OverflowError:
            raise InvalidArgumentError("dueDatetime is out of the supported range") from None
        text = (description or "").strip()
        if not text:
            raise InvalidArgumentError("description must not be empty")

        entity: TodoEntity = {
            "id": str(uuid.uuid4()),
            "description": text,
            "status": TodoStatus.NOT_DONE,
            "creation_datetime": self._now(),
            "due_datetime": due,
            "done_datetime": None,
        }
        try:
            return self.repo.save(entity)
        except Exception:
            logger.exception('Failed to add todo "%s"', text)
            raise

    def get(self, todo_id: str) -> TodoEntity:
        try:
            todo = self.repo.get(todo_id)
        except Exception:
            logger.exception("Failed to load todo %s", todo_id)
            raise
        if todo is None:
            logger.debug("Todo %s not found", todo_id)
            raise NotFoundError(todo_id)
        return self._apply_past_due([todo])[0]

    def list(self, include_all: bool = False) -> List[TodoEntity]:
        query = ListQuery() if include_all else ListQuery(status=TodoStatus.NOT_DONE)
        try:
            todos = self.repo.list(query)
        except Exception:
            logger.exception("Failed to list todos")
            raise
        return self._apply_past_due(todos)

    def update_description(self, todo_id: str, description: str) -> TodoEntity:
        text = (description or "").strip()
        if not text:
            raise InvalidArgumentError("description must not be empty")
        todo = self._get_mutable(todo_id)
        todo["description"] = text
        return self._save(todo, f"Failed to update description for todo {todo_id}")

    def mark_done(self, todo_id: str) -> TodoEntity:
        todo = self._get_mutable(todo_id)
        todo["status"] = TodoStatus.DONE
        todo["done_datetime"] = self._now()
        return self._save(todo, f"Failed to mark todo {todo_id} as done")

    def mark_not_done(self, todo_id: str) -> TodoEntity:
        todo = self._get_mutable(todo_id)
        todo["status"] = TodoStatus.NOT_DONE
        todo["done_datetime"] = None
        return self._save(todo, f"Failed to mark todo {todo_id} as not done")

    def run_past_due_sweep(self, now: Optional[datetime] = None) -> int:
        """
        Flip every overdue NOT_DONE todo to PAST_DUE in one batch write.

        Returns the number of todos changed; a repeat call with nothing newly
        overdue returns 0 without writing.
        """
        at = as_utc(now) if now is not None else self._now()
        try:
            candidates = self.repo.list(ListQuery(status=TodoStatus.NOT_DONE, due_before=at))
        except Exception:
            logger.exception("Failed to load overdue todos")
            raise

        changed = []
        for todo in candidates:
            status, flipped = recompute(todo, at)
            if flipped:
                changed.append({**todo, "status": status})

        if not changed:
            logger.debug("Past-due sweep ran, 0 updates")
            return 0

        self._save_past_due(changed)  # type: ignore[arg-type]
        logger.debug("Past-due sweep updated %d todo(s)", len(changed))
        return len(changed)

    def _get_mutable(self, todo_id: str) -> TodoEntity:
        # Recalculation runs first so a todo that just went past due is protected
        todo = self.get(todo_id)
        if todo["status"] == TodoStatus.PAST_DUE:
            logger.debug("Mutation blocked for past-due todo %s", todo_id)
            raise InvalidArgumentError(f"Todo {todo_id} is past due and cannot be modified")
        return todo

    def _save(self, todo: TodoEntity, failure_message: str) -> TodoEntity:
        try:
            return self.repo.save(todo)
        except Exception:
            logger.exception(failure_message)
            raise

    def _save_past_due(self, todos: List[TodoEntity]) -> None:
        try:
            self.repo.save_many(todos)
        except Exception:
            logger.exception("Failed to mark %d todo(s) as past due", len(todos))
            raise

    def _apply_past_due(self, todos: List[TodoEntity]) -> List[TodoEntity]:
        now = self._now()
        result: List[TodoEntity] = []
        changed: List[TodoEntity] = []
        for todo in todos:
            status, flipped = recompute(todo, now)
            if flipped:
                todo = {**todo, "status": status}  # type: ignore[assignment]
                changed.append(todo)
            result.append(todo)

        if changed:
            self._save_past_due(changed)
        return result
