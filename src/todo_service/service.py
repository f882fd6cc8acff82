"""
ToDo service: the five CRUD operations over the ToDo table.

Every operation checks the caller's API version first, then runs exactly one
parameterized statement on a connection of its own and classifies the outcome
into one of the ``errors`` types.
"""
from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, List

from .errors import (
    InvalidArgumentError,
    NotFoundError,
    UnknownError,
    UnsupportedVersionError,
)
from .schemas import (
    CreateRequest,
    CreateResponse,
    DeleteRequest,
    DeleteResponse,
    ReadAllRequest,
    ReadAllResponse,
    ReadRequest,
    ReadResponse,
    Timestamp,
    ToDo,
    UpdateRequest,
    UpdateResponse,
)
from .store import Connection, ExecResult, Row, Store, StoreError

logger = logging.getLogger(__name__)

# API version implemented by this service
API_VERSION = "v1"

_INSERT = "INSERT INTO ToDo(Title, Description, Reminder) VALUES(?, ?, ?)"
_SELECT_ONE = "SELECT ID, Title, Description, Reminder FROM ToDo WHERE ID=?"
_SELECT_ALL = "SELECT ID, Title, Description, Reminder FROM ToDo"
_UPDATE = "UPDATE ToDo SET Title=?, Description=?, Reminder=? WHERE ID=?"
_DELETE = "DELETE FROM ToDo WHERE ID=?"


def _unknown(message: str, cause: BaseException) -> UnknownError:
    logger.warning("%s: %s", message, cause)
    return UnknownError(message, cause)


def _decode_reminder(reminder: Timestamp) -> datetime:
    try:
        return reminder.to_datetime()
    except ValueError as exc:
        logger.debug("rejected reminder: %s", exc)
        raise InvalidArgumentError(f"reminder field has invalid format-> {exc}") from exc


def _parse_stored_reminder(value: Any) -> Timestamp:
    if isinstance(value, str):
        value = datetime.fromisoformat(value)
    if not isinstance(value, datetime):
        raise ValueError(f"unexpected reminder value {value!r}")
    return Timestamp.from_datetime(value)


def _row_to_todo(row: Row) -> ToDo:
    try:
        todo_id, title, description, stored_reminder = row
        todo_id = int(todo_id)
    except (TypeError, ValueError) as exc:
        raise _unknown("failed to retrieve field values from ToDo row", exc) from exc
    try:
        reminder = _parse_stored_reminder(stored_reminder)
    except ValueError as exc:
        raise _unknown("reminder field has invalid format", exc) from exc
    return ToDo(
        id=todo_id,
        title=str(title),
        description="" if description is None else str(description),
        reminder=reminder,
    )


# PUBLIC_INTERFACE
class ToDoService:
    """
    Stateless ToDo service.

    Holds a non-owning reference to the store; the store's lifetime is managed
    by whoever created it (the application lifespan in production).
    """

    def __init__(self, store: Store) -> None:
        self._store = store

    # PUBLIC_INTERFACE
    def check_api(self, api: str) -> None:
        """
        Check that the API version requested by the client is supported.

        An empty string skips the check.
        """
        if api and api != API_VERSION:
            logger.debug("rejected API version %r", api)
            raise UnsupportedVersionError(API_VERSION, api)

    async def _query(self, conn: Connection, query: str, *params: Any) -> List[Row]:
        try:
            stmt = await conn.prepare(query)
            return await stmt.query(*params)
        except StoreError as exc:
            raise _unknown("failed to select from ToDo", exc) from exc

    async def _execute(self, conn: Connection, query: str, action: str, *params: Any) -> ExecResult:
        try:
            stmt = await conn.prepare(query)
            return await stmt.execute(*params)
        except StoreError as exc:
            raise _unknown(f"failed to {action} ToDo", exc) from exc

    # PUBLIC_INTERFACE
    async def create(self, request: CreateRequest) -> CreateResponse:
        """Create a new task; the store assigns its id."""
        self.check_api(request.api)
        todo = request.todo
        reminder = _decode_reminder(todo.reminder)

        async with self._store.connection() as conn:
            try:
                stmt = await conn.prepare(_INSERT)
            except StoreError as exc:
                logger.warning("cannot prepare insert statement: %s", exc)
                raise InvalidArgumentError(
                    f"cannot prepare insert statement-> {exc}", recoverable=False
                ) from exc
            try:
                result = await stmt.execute(todo.title, todo.description, reminder)
            except StoreError as exc:
                raise _unknown("failed to insert into ToDo", exc) from exc

        if result.last_insert_id is None:
            raise UnknownError("cannot retrieve id for created ToDo")
        return CreateResponse(api=API_VERSION, id=result.last_insert_id)

    # PUBLIC_INTERFACE
    async def read(self, request: ReadRequest) -> ReadResponse:
        """Read a task by id."""
        self.check_api(request.api)

        async with self._store.connection() as conn:
            rows = await self._query(conn, _SELECT_ONE, request.id)

        if not rows:
            logger.debug("ToDo %s not found", request.id)
            raise NotFoundError(request.id)
        if len(rows) > 1:
            logger.warning("found %d ToDo rows with ID=%s", len(rows), request.id)
            raise UnknownError(f"found multiple ToDo rows with ID='{request.id}'")
        return ReadResponse(api=API_VERSION, todo=_row_to_todo(rows[0]))

    # PUBLIC_INTERFACE
    async def read_all(self, request: ReadAllRequest) -> ReadAllResponse:
        """Read every task, in the store's scan order."""
        self.check_api(request.api)

        async with self._store.connection() as conn:
            rows = await self._query(conn, _SELECT_ALL)

        return ReadAllResponse(api=API_VERSION, todos=[_row_to_todo(r) for r in rows])

    # PUBLIC_INTERFACE
    async def update(self, request: UpdateRequest) -> UpdateResponse:
        """Overwrite title, description and reminder of the task with ``request.todo.id``."""
        self.check_api(request.api)
        todo = request.todo
        reminder = _decode_reminder(todo.reminder)

        async with self._store.connection() as conn:
            result = await self._execute(
                conn, _UPDATE, "update", todo.title, todo.description, reminder, todo.id
            )

        if result.rows_affected == 0:
            logger.debug("ToDo %s not found", todo.id)
            raise NotFoundError(todo.id)
        return UpdateResponse(api=API_VERSION, updated=result.rows_affected)

    # PUBLIC_INTERFACE
    async def delete(self, request: DeleteRequest) -> DeleteResponse:
        """Delete a task by id."""
        self.check_api(request.api)

        async with self._store.connection() as conn:
            result = await self._execute(conn, _DELETE, "delete", request.id)

        if result.rows_affected == 0:
            logger.debug("ToDo %s not found", request.id)
            raise NotFoundError(request.id)
        return DeleteResponse(api=API_VERSION, deleted=result.rows_affected)
