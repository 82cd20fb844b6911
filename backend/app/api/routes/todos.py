from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field, field_serializer
from datetime import datetime
from app.core.database import get_db
from app.api.dependencies import AuthenticatedUser, get_current_identity
from app.services.todo_service import todo_service

router = APIRouter(prefix="/todos", tags=["todos"])

# Constants
TODO_DELETED_MESSAGE = "Deleted"


class TodoCreate(BaseModel):
    title: str


class TodoUpdate(BaseModel):
    title: Optional[str] = None
    completed: Optional[bool] = None


class TodoResponse(BaseModel):
    id: int
    title: str
    completed: bool
    owner_id: int = Field(serialization_alias="ownerId")
    created_at: Optional[datetime] = Field(default=None, serialization_alias="createdAt")
    updated_at: Optional[datetime] = Field(default=None, serialization_alias="updatedAt")

    model_config = ConfigDict(from_attributes=True)

    @field_serializer('created_at')
    def serialize_created_at(self, value: Optional[datetime], _info):
        return value.isoformat() if value else None

    @field_serializer('updated_at')
    def serialize_updated_at(self, value: Optional[datetime], _info):
        return value.isoformat() if value else None


class MessageResponse(BaseModel):
    message: str


@router.get("", response_model=List[TodoResponse])
async def list_todos(
    completed: Optional[bool] = None,
    identity: AuthenticatedUser = Depends(get_current_identity),
    db: Session = Depends(get_db)
):
    """List all todos for current user, optionally only (un)completed ones"""
    return todo_service.list_todos(db, identity.user_id, completed=completed)


@router.post("", response_model=TodoResponse)
async def create_todo(
    todo: TodoCreate,
    identity: AuthenticatedUser = Depends(get_current_identity),
    db: Session = Depends(get_db)
):
    """Create a new todo"""
    return todo_service.create_todo(db, identity.user_id, todo.title)


# todo_id stays a string: a malformed id must behave like a missing todo (403),
# not fail path validation
@router.get("/{todo_id}", response_model=TodoResponse)
async def get_todo(
    todo_id: str,
    identity: AuthenticatedUser = Depends(get_current_identity),
    db: Session = Depends(get_db)
):
    """Get a specific todo"""
    return todo_service.get_owned_todo(db, identity.user_id, todo_id)


@router.put("/{todo_id}", response_model=TodoResponse)
async def update_todo(
    todo_id: str,
    todo_update: TodoUpdate,
    identity: AuthenticatedUser = Depends(get_current_identity),
    db: Session = Depends(get_db)
):
    """Update a todo's title and/or completed flag"""
    return todo_service.update_todo(
        db,
        identity.user_id,
        todo_id,
        title=todo_update.title,
        completed=todo_update.completed,
    )


@router.delete("/{todo_id}", response_model=MessageResponse)
async def delete_todo(
    todo_id: str,
    identity: AuthenticatedUser = Depends(get_current_identity),
    db: Session = Depends(get_db)
):
    """Delete a todo"""
    todo_service.delete_todo(db, identity.user_id, todo_id)
    return {"message": TODO_DELETED_MESSAGE}
