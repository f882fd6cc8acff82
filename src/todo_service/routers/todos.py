from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Path, Query, Request

from ..schemas import (
    CreateRequest,
    CreateResponse,
    DeleteRequest,
    DeleteResponse,
    MAX_ID,
    MIN_ID,
    ReadAllRequest,
    ReadAllResponse,
    ReadRequest,
    ReadResponse,
    UpdateRequest,
    UpdateResponse,
)
from ..service import ToDoService

router = APIRouter(
    prefix="/v1/todo",
    tags=["todo"],
)

ApiVersion = Annotated[str, Query(description="API version requested by the client; empty skips the check")]
ToDoId = Annotated[int, Path(ge=MIN_ID, le=MAX_ID, description="Identifier of the task")]

_ERRORS = {
    400: {"description": "Invalid argument"},
    404: {"description": "ToDo not found"},
    500: {"description": "Unknown store failure"},
    501: {"description": "Unsupported API version"},
    503: {"description": "Store connection failure"},
}


def get_service(request: Request) -> ToDoService:
    """
    Dependency returning the process-wide service built in the app lifespan.
    """
    return request.app.state.service


# PUBLIC_INTERFACE
@router.post(
    "",
    response_model=CreateResponse,
    summary="Create ToDo",
    description="Create a new ToDo task and return its store-assigned id.",
    responses=_ERRORS,
)
async def create_todo(payload: CreateRequest, service: ToDoService = Depends(get_service)) -> CreateResponse:
    """
    Create a new ToDo.
    """
    return await service.create(payload)


# PUBLIC_INTERFACE
@router.get(
    "/all",
    response_model=ReadAllResponse,
    summary="Read all ToDos",
    description="Read every ToDo task. An empty table yields an empty list.",
    responses=_ERRORS,
)
async def read_all_todos(api: ApiVersion = "", service: ToDoService = Depends(get_service)) -> ReadAllResponse:
    """
    Read all ToDos.
    """
    return await service.read_all(ReadAllRequest(api=api))


# PUBLIC_INTERFACE
@router.get(
    "/{todo_id}",
    response_model=ReadResponse,
    summary="Read ToDo",
    description="Read a single ToDo task by id.",
    responses=_ERRORS,
)
async def read_todo(
    todo_id: ToDoId, api: ApiVersion = "", service: ToDoService = Depends(get_service)
) -> ReadResponse:
    """
    Retrieve a single ToDo by its id.
    """
    return await service.read(ReadRequest(api=api, id=todo_id))


# PUBLIC_INTERFACE
@router.put(
    "/{todo_id}",
    response_model=UpdateResponse,
    summary="Update ToDo",
    description=(
        "Overwrite title, description and reminder of an existing ToDo task. "
        "The id in the path takes precedence over any id in the body."
    ),
    responses=_ERRORS,
)
async def update_todo(
    todo_id: ToDoId, payload: UpdateRequest, service: ToDoService = Depends(get_service)
) -> UpdateResponse:
    """
    Full update of a ToDo.
    """
    todo = payload.todo.model_copy(update={"id": todo_id})
    return await service.update(UpdateRequest(api=payload.api, todo=todo))


# PUBLIC_INTERFACE
@router.delete(
    "/{todo_id}",
    response_model=DeleteResponse,
    summary="Delete ToDo",
    description="Delete a ToDo task by id.",
    responses=_ERRORS,
)
async def delete_todo(
    todo_id: ToDoId, api: ApiVersion = "", service: ToDoService = Depends(get_service)
) -> DeleteResponse:
    """
    Delete a ToDo.
    """
    return await service.delete(DeleteRequest(api=api, id=todo_id))
