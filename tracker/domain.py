"""Core concepts of the project tracker."""

from typing import Any, Optional, NamedTuple, FrozenSet, Dict
from datetime import date, datetime
from enum import Enum


class Capability(Enum):
    """Things a role is allowed to do beyond handling its own records."""

    ACCESS_UNOWNED = 'access_unowned'
    """Read and modify legacy records that have no owner."""


class Role(Enum):
    """The closed set of roles a :class:`.User` may hold."""

    USER = 'USER'
    ADMIN = 'ADMIN'

    @classmethod
    def parse(cls, value: Optional[str]) -> 'Role':
        """
        Get a :class:`.Role` from its stored representation.

        Blank or missing values fall back to :attr:`Role.USER`.

        Raises
        ------
        ValueError
            If ``value`` does not name a known role.

        """
        if value is None or not value.strip():
            return cls.USER
        return cls(value.strip().upper())

    @property
    def capabilities(self) -> FrozenSet[Capability]:
        """Capabilities granted to this role."""
        return CAPABILITIES[self]

    def can(self, capability: Capability) -> bool:
        """Determine whether this role grants ``capability``."""
        return capability in self.capabilities


CAPABILITIES: Dict[Role, FrozenSet[Capability]] = {
    Role.USER: frozenset(),
    Role.ADMIN: frozenset({Capability.ACCESS_UNOWNED}),
}


class User(NamedTuple):
    """An account that can log in to the tracker."""

    username: str
    role: Role = Role.USER
    user_id: Optional[int] = None


class Session(NamedTuple):
    """The authenticated identity of a caller, derived from a bearer token."""

    user: User
    token: str
    expires: datetime

    @property
    def username(self) -> str:
        """Username of the authenticated user."""
        return self.user.username

    @property
    def role(self) -> Role:
        """Role of the authenticated user."""
        return self.user.role


class Visibility(NamedTuple):
    """Which owned records a caller may see in a listing."""

    owner: str
    """Records owned by this username are visible."""
    include_unowned: bool = False
    """Records with no owner are visible as well."""


class Project(NamedTuple):
    """A project under which students and tasks are tracked."""

    name: str
    start_date: Optional[date] = None
    description: Optional[str] = None
    owner: Optional[str] = None
    """Username of the owner; ``None`` for legacy records."""
    project_id: Optional[int] = None
    created_at: Optional[datetime] = None


class Student(NamedTuple):
    """A student enrolled in a :class:`.Project`."""

    code_number: str
    first_name: str
    last_name: str
    title: str
    project_id: int
    date_of_birth: Optional[date] = None
    description: Optional[str] = None
    project_name: Optional[str] = None
    owner: Optional[str] = None
    student_id: Optional[int] = None
    created_at: Optional[datetime] = None


class Task(NamedTuple):
    """A unit of work tracked under a :class:`.Project`."""

    title: str
    status: str
    project_id: int
    code_number: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    date_of_birth: Optional[date] = None
    description: Optional[str] = None
    priority: Optional[str] = None
    due_date: Optional[date] = None
    project_name: Optional[str] = None
    owner: Optional[str] = None
    task_id: Optional[int] = None
    created_at: Optional[datetime] = None


def _cast(value: Any) -> Any:
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    if isinstance(value, Enum):
        return value.value
    if hasattr(value, '_asdict'):
        return to_dict(value)
    return value


def to_dict(obj: tuple) -> dict:
    """Generate a JSON-friendly dict representation of a domain object."""
    return {key: _cast(value) for key, value in obj._asdict().items()}
