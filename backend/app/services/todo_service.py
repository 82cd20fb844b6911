import logging
from typing import List, Optional, Union
from sqlalchemy.orm import Session
from app.core.exceptions import AuthenticationError, NotAuthorizedError, ValidationError
from app.models.todo import Todo
from app.models.user import User

logger = logging.getLogger(__name__)

MAX_TITLE_LENGTH = 255
# Largest value a 64-bit INTEGER column can hold
MAX_TODO_ID = 2**63 - 1


def parse_todo_id(raw_id: Union[str, int]) -> Optional[int]:
    """
    Parse a path id into an integer.

    Returns None for anything that is not a positive integer. Callers treat
    None as "no such todo", which ends in the same NotAuthorizedError as a
    todo owned by someone else.
    """
    if isinstance(raw_id, bool):
        return None
    if isinstance(raw_id, int):
        todo_id = raw_id
    else:
        # Plain ASCII digits only: int() would also take "1_0", "+5" and non-ASCII digits
        digits = raw_id.strip()
        if not (digits.isascii() and digits.isdigit()):
            return None
        todo_id = int(digits)
    if todo_id < 1 or todo_id > MAX_TODO_ID:
        return None
    return todo_id


def validate_title(title: str) -> str:
    """Strip a title and reject empty or overlong ones"""
    cleaned = title.strip()
    if not cleaned:
        raise ValidationError("Title must not be empty")
    if len(cleaned) > MAX_TITLE_LENGTH:
        raise ValidationError(f"Title must be at most {MAX_TITLE_LENGTH} characters")
    return cleaned


class TodoService:
    """Todo CRUD scoped to a single owner"""

    @staticmethod
    def _require_owner(owner_id: Optional[int]) -> int:
        # The auth gate always supplies an id; reaching here without one is a wiring bug
        if owner_id is None:
            raise AuthenticationError("Unauthorized")
        return owner_id

    @staticmethod
    def list_todos(db: Session, owner_id: Optional[int], completed: Optional[bool] = None) -> List[Todo]:
        """List the owner's todos, oldest first"""
        owner_id = TodoService._require_owner(owner_id)
        query = db.query(Todo).filter(Todo.owner_id == owner_id)
        if completed is not None:
            query = query.filter(Todo.completed == completed)
        return query.order_by(Todo.id).all()

    @staticmethod
    def create_todo(db: Session, owner_id: Optional[int], title: str) -> Todo:
        owner_id = TodoService._require_owner(owner_id)
        title = validate_title(title)

        # A signed token can outlive its user if the store was reset
        if db.get(User, owner_id) is None:
            raise AuthenticationError("Unauthorized")

        db_todo = Todo(title=title, completed=False, owner_id=owner_id)
        db.add(db_todo)
        db.commit()
        db.refresh(db_todo)

        logger.info(f"User {owner_id} created todo {db_todo.id}")
        return db_todo

    @staticmethod
    def get_owned_todo(db: Session, owner_id: Optional[int], raw_id: Union[str, int]) -> Todo:
        """
        Fetch a todo the caller owns.

        Missing, malformed and foreign ids all raise the same NotAuthorizedError
        so the response never reveals whether another user's todo exists.
        """
        owner_id = TodoService._require_owner(owner_id)
        todo_id = parse_todo_id(raw_id)
        todo = db.get(Todo, todo_id) if todo_id is not None else None

        if todo is None or todo.owner_id != owner_id:
            raise NotAuthorizedError()
        return todo

    @staticmethod
    def update_todo(
        db: Session,
        owner_id: Optional[int],
        raw_id: Union[str, int],
        title: Optional[str] = None,
        completed: Optional[bool] = None,
    ) -> Todo:
        """Apply a partial update; fields left as None keep their value"""
        todo = TodoService.get_owned_todo(db, owner_id, raw_id)

        if title is not None:
            todo.title = validate_title(title)
        if completed is not None:
            todo.completed = completed

        db.commit()
        db.refresh(todo)

        logger.info(f"User {owner_id} updated todo {todo.id}")
        return todo

    @staticmethod
    def delete_todo(db: Session, owner_id: Optional[int], raw_id: Union[str, int]) -> None:
        todo = TodoService.get_owned_todo(db, owner_id, raw_id)
        todo_id = todo.id

        db.delete(todo)
        db.commit()

        logger.info(f"User {owner_id} deleted todo {todo_id}")


todo_service = TodoService()
