"""
Database integration for users, projects, students and tasks.

This is the credential store consulted by :mod:`tracker.auth`, and the data
store behind the CRUD controllers. Functions here take and return
:mod:`tracker.domain` objects; callers never see the ORM models.
"""

import logging
from typing import List, Optional, Tuple, Any

from sqlalchemy import or_, false, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm.session import Session

from . import util, models
from ... import domain

logger = logging.getLogger(__name__)


class NoSuchUser(RuntimeError):
    """A user was requested that does not exist."""


class NoSuchProject(RuntimeError):
    """A project was requested that does not exist."""


class NoSuchStudent(RuntimeError):
    """A student was requested that does not exist."""


class NoSuchTask(RuntimeError):
    """A task was requested that does not exist."""


class DuplicateName(RuntimeError):
    """A record collides with a unique name or code of another record."""


init_app = util.init_app
create_all = util.create_all
drop_all = util.drop_all
transaction = util.transaction


# Users

def _to_user(db_user: models.DBUser) -> domain.User:
    try:
        role = domain.Role.parse(db_user.role)
    except ValueError:
        # Unknown roles get no privileges.
        logger.warning('User %s has unknown role %r; treating as USER',
                       db_user.username, db_user.role)
        role = domain.Role.USER
    return domain.User(username=db_user.username, role=role,
                       user_id=db_user.user_id)


def _load_dbuser(username: str, dbsession: Session) -> models.DBUser:
    db_user: Optional[models.DBUser] = dbsession.query(models.DBUser) \
        .filter(models.DBUser.username == username) \
        .first()
    if db_user is None:
        raise NoSuchUser(f'No user with username {username}')
    return db_user


def find_user(username: str) -> Optional[domain.User]:
    """Get a :class:`domain.User` by username, or ``None``."""
    try:
        return _to_user(_load_dbuser(username, models.db.session))
    except NoSuchUser:
        return None


def get_credentials(username: str) -> Tuple[domain.User, str]:
    """
    Get a user and their password hash.

    Raises
    ------
    :class:`NoSuchUser`

    """
    db_user = _load_dbuser(username, models.db.session)
    return _to_user(db_user), db_user.password


def create_user(username: str, password_hash: str,
                role: domain.Role = domain.Role.USER) -> domain.User:
    """
    Persist a new user.

    Raises
    ------
    :class:`DuplicateName`
        If the username is already taken.

    """
    if find_user(username) is not None:
        raise DuplicateName('Username is already taken')
    try:
        with util.transaction() as dbsession:
            db_user = models.DBUser(username=username, password=password_hash,
                                    role=role.value)
            dbsession.add(db_user)
    except IntegrityError as e:
        raise DuplicateName('Username is already taken') from e
    return _to_user(db_user)


def set_password(username: str, password_hash: str,
                 role: Optional[domain.Role] = None) -> domain.User:
    """Update the password hash (and optionally the role) of a user."""
    db_user = _load_dbuser(username, models.db.session)
    with util.transaction() as dbsession:
        db_user.password = password_hash
        if role is not None:
            db_user.role = role.value
        dbsession.add(db_user)
    return _to_user(db_user)


def delete_user(username: str) -> None:
    """
    Delete a user. Records they owned are left without an owner.

    Raises
    ------
    :class:`NoSuchUser`

    """
    db_user = _load_dbuser(username, models.db.session)
    with util.transaction() as dbsession:
        for model in (models.DBProject, models.DBStudent, models.DBTask):
            dbsession.query(model) \
                .filter(model.owner_id == db_user.user_id) \
                .update({model.owner_id: None}, synchronize_session=False)
        dbsession.delete(db_user)


# Ownership helpers

def _owner_id(username: Optional[str], dbsession: Session) -> Optional[int]:
    if username is None:
        return None
    try:
        return _load_dbuser(username, dbsession).user_id
    except NoSuchUser:
        return None


def _visible(model: Any, visibility: domain.Visibility,
             dbsession: Session) -> Any:
    """Build a filter clause matching records within ``visibility``."""
    owner_id = _owner_id(visibility.owner, dbsession)
    condition = false() if owner_id is None else model.owner_id == owner_id
    if visibility.include_unowned:
        condition = or_(condition, model.owner_id.is_(None))
    return condition


def _owner_name(record: Any) -> Optional[str]:
    return record.owner.username if record.owner is not None else None


# Projects

def _to_project(db_project: models.DBProject) -> domain.Project:
    return domain.Project(
        project_id=db_project.project_id,
        name=db_project.name,
        description=db_project.description,
        start_date=db_project.start_date,
        created_at=db_project.created_at,
        owner=_owner_name(db_project)
    )


def _load_dbproject(project_id: int,
                    dbsession: Session) -> models.DBProject:
    db_project: Optional[models.DBProject] = \
        dbsession.get(models.DBProject, project_id)
    if db_project is None:
        raise NoSuchProject('Project not found')
    return db_project


def list_projects(visibility: domain.Visibility) -> List[domain.Project]:
    """Get all projects within ``visibility``."""
    dbsession = models.db.session
    return [_to_project(db_project) for db_project
            in dbsession.query(models.DBProject)
            .filter(_visible(models.DBProject, visibility, dbsession))
            .order_by(models.DBProject.project_id)]


def load_project(project_id: int) -> domain.Project:
    """
    Load a :class:`domain.Project` by ID.

    Raises
    ------
    :class:`NoSuchProject`

    """
    return _to_project(_load_dbproject(project_id, models.db.session))


def save_project(project: domain.Project) -> domain.Project:
    """
    Persist a new or updated :class:`domain.Project`.

    If ``project.project_id`` is set, the existing project is updated and
    its owner is left unchanged. Otherwise a project owned by
    ``project.owner`` is created.

    Raises
    ------
    :class:`NoSuchProject`
        If updating a project that does not exist.
    :class:`DuplicateName`
        If another project has the same name.

    """
    dbsession = models.db.session
    taken = dbsession.query(models.DBProject) \
        .filter(models.DBProject.name == project.name)
    if project.project_id:
        taken = taken.filter(models.DBProject.project_id != project.project_id)
    if taken.first() is not None:
        raise DuplicateName('Project with this name already exists')

    if project.project_id:
        db_project = _load_dbproject(project.project_id, dbsession)
    else:
        db_project = models.DBProject(
            owner_id=_owner_id(project.owner, dbsession)
        )
    try:
        with util.transaction() as dbsession:
            db_project.name = project.name
            db_project.description = project.description
            db_project.start_date = project.start_date
            dbsession.add(db_project)
    except IntegrityError as e:
        raise DuplicateName('This project name is already taken') from e
    return _to_project(db_project)


def delete_project(project_id: int) -> None:
    """Delete a project along with its students and tasks."""
    db_project = _load_dbproject(project_id, models.db.session)
    with util.transaction() as dbsession:
        dbsession.delete(db_project)


def assign_unowned_projects(username: str) -> int:
    """
    Give every project without an owner to ``username``.

    Returns
    -------
    int
        The number of projects that were updated.

    """
    db_user = _load_dbuser(username, models.db.session)
    with util.transaction() as dbsession:
        count: int = dbsession.query(models.DBProject) \
            .filter(models.DBProject.owner_id.is_(None)) \
            .update({models.DBProject.owner_id: db_user.user_id},
                    synchronize_session=False)
        dbsession.commit()
    return count


# Students

def _to_student(db_student: models.DBStudent) -> domain.Student:
    return domain.Student(
        student_id=db_student.student_id,
        code_number=db_student.code_number,
        first_name=db_student.first_name,
        last_name=db_student.last_name,
        date_of_birth=db_student.date_of_birth,
        title=db_student.title,
        description=db_student.description,
        project_id=db_student.project_id,
        project_name=db_student.project.name,
        created_at=db_student.created_at,
        owner=_owner_name(db_student)
    )


def _load_dbstudent(student_id: int,
                    dbsession: Session) -> models.DBStudent:
    db_student: Optional[models.DBStudent] = \
        dbsession.get(models.DBStudent, student_id)
    if db_student is None:
        raise NoSuchStudent('Student not found')
    return db_student


def _students(visibility: domain.Visibility, dbsession: Session) -> Any:
    return dbsession.query(models.DBStudent) \
        .filter(_visible(models.DBStudent, visibility, dbsession))


def list_students(visibility: domain.Visibility,
                  project_id: Optional[int] = None) -> List[domain.Student]:
    """Get students within ``visibility``, optionally for one project."""
    query = _students(visibility, models.db.session)
    if project_id is not None:
        query = query.filter(models.DBStudent.project_id == project_id)
    return [_to_student(db_student) for db_student
            in query.order_by(models.DBStudent.student_id)]


def search_students(visibility: domain.Visibility, text: str,
                    project_id: Optional[int] = None) -> List[domain.Student]:
    """Find students whose first or last name contains ``text``."""
    pattern = f'%{text.strip().lower()}%'
    query = _students(visibility, models.db.session) \
        .filter(or_(func.lower(models.DBStudent.first_name).like(pattern),
                    func.lower(models.DBStudent.last_name).like(pattern)))
    if project_id is not None:
        query = query.filter(models.DBStudent.project_id == project_id)
    return [_to_student(db_student) for db_student
            in query.order_by(models.DBStudent.student_id)]


def find_students_by_name(visibility: domain.Visibility,
                          name: str) -> List[domain.Student]:
    """Find students whose first or last name is ``name``, ignoring case."""
    name = name.strip().lower()
    query = _students(visibility, models.db.session) \
        .filter(or_(func.lower(models.DBStudent.first_name) == name,
                    func.lower(models.DBStudent.last_name) == name))
    return [_to_student(db_student) for db_student
            in query.order_by(models.DBStudent.student_id)]


def load_student(student_id: int) -> domain.Student:
    """
    Load a :class:`domain.Student` by ID.

    Raises
    ------
    :class:`NoSuchStudent`

    """
    return _to_student(_load_dbstudent(student_id, models.db.session))


def load_student_by_code(code_number: str) -> domain.Student:
    """Load a :class:`domain.Student` by code number."""
    db_student = models.db.session.query(models.DBStudent) \
        .filter(models.DBStudent.code_number == code_number.strip()) \
        .first()
    if db_student is None:
        raise NoSuchStudent('Student not found')
    return _to_student(db_student)


def save_student(student: domain.Student) -> domain.Student:
    """
    Persist a new or updated :class:`domain.Student`.

    Raises
    ------
    :class:`NoSuchStudent`
    :class:`NoSuchProject`
    :class:`DuplicateName`
        If the code number or the first/last name pair is taken.

    """
    dbsession = models.db.session
    others = dbsession.query(models.DBStudent)
    if student.student_id:
        others = others.filter(
            models.DBStudent.student_id != student.student_id
        )
    if others.filter(models.DBStudent.code_number
                     == student.code_number).first():
        raise DuplicateName('This student ID is already taken')
    if others.filter(models.DBStudent.first_name == student.first_name,
                     models.DBStudent.last_name == student.last_name).first():
        raise DuplicateName('A student with this name already exists')

    db_project = _load_dbproject(student.project_id, dbsession)
    if student.student_id:
        db_student = _load_dbstudent(student.student_id, dbsession)
    else:
        db_student = models.DBStudent(
            owner_id=_owner_id(student.owner, dbsession)
        )
    try:
        with util.transaction() as dbsession:
            db_student.code_number = student.code_number
            db_student.first_name = student.first_name
            db_student.last_name = student.last_name
            db_student.date_of_birth = student.date_of_birth
            db_student.title = student.title
            db_student.description = student.description
            db_student.project = db_project
            dbsession.add(db_student)
    except IntegrityError as e:
        raise DuplicateName('This student ID is already taken') from e
    return _to_student(db_student)


def delete_student(student_id: int) -> None:
    """Delete a student."""
    db_student = _load_dbstudent(student_id, models.db.session)
    with util.transaction() as dbsession:
        dbsession.delete(db_student)


# Tasks

def _to_task(db_task: models.DBTask) -> domain.Task:
    return domain.Task(
        task_id=db_task.task_id,
        code_number=db_task.code_number,
        first_name=db_task.first_name,
        last_name=db_task.last_name,
        date_of_birth=db_task.date_of_birth,
        title=db_task.title,
        description=db_task.description,
        status=db_task.status,
        priority=db_task.priority,
        due_date=db_task.due_date,
        project_id=db_task.project_id,
        project_name=db_task.project.name,
        created_at=db_task.created_at,
        owner=_owner_name(db_task)
    )


def _load_dbtask(task_id: int, dbsession: Session) -> models.DBTask:
    db_task: Optional[models.DBTask] = dbsession.get(models.DBTask, task_id)
    if db_task is None:
        raise NoSuchTask('Task not found')
    return db_task


def list_tasks(visibility: domain.Visibility,
               project_id: Optional[int] = None) -> List[domain.Task]:
    """Get tasks within ``visibility``, optionally for one project."""
    dbsession = models.db.session
    query = dbsession.query(models.DBTask) \
        .filter(_visible(models.DBTask, visibility, dbsession))
    if project_id is not None:
        query = query.filter(models.DBTask.project_id == project_id)
    return [_to_task(db_task) for db_task
            in query.order_by(models.DBTask.task_id)]


def find_tasks_by_name(visibility: domain.Visibility,
                       name: str) -> List[domain.Task]:
    """Find tasks whose first or last name is ``name``, ignoring case."""
    name = name.strip().lower()
    dbsession = models.db.session
    query = dbsession.query(models.DBTask) \
        .filter(_visible(models.DBTask, visibility, dbsession)) \
        .filter(or_(func.lower(models.DBTask.first_name) == name,
                    func.lower(models.DBTask.last_name) == name))
    return [_to_task(db_task) for db_task
            in query.order_by(models.DBTask.task_id)]


def load_task(task_id: int) -> domain.Task:
    """
    Load a :class:`domain.Task` by ID.

    Raises
    ------
    :class:`NoSuchTask`

    """
    return _to_task(_load_dbtask(task_id, models.db.session))


def load_task_by_code(code_number: str) -> domain.Task:
    """Load a :class:`domain.Task` by code number."""
    db_task = models.db.session.query(models.DBTask) \
        .filter(models.DBTask.code_number == code_number.strip()) \
        .first()
    if db_task is None:
        raise NoSuchTask('Task not found')
    return _to_task(db_task)


def save_task(task: domain.Task) -> domain.Task:
    """
    Persist a new or updated :class:`domain.Task`.

    Raises
    ------
    :class:`NoSuchTask`
    :class:`NoSuchProject`
    :class:`DuplicateName`
        If the code number is taken.

    """
    dbsession = models.db.session
    if task.code_number:
        taken = dbsession.query(models.DBTask) \
            .filter(models.DBTask.code_number == task.code_number)
        if task.task_id:
            taken = taken.filter(models.DBTask.task_id != task.task_id)
        if taken.first() is not None:
            raise DuplicateName('This task code is already taken')

    db_project = _load_dbproject(task.project_id, dbsession)
    if task.task_id:
        db_task = _load_dbtask(task.task_id, dbsession)
    else:
        db_task = models.DBTask(
            owner_id=_owner_id(task.owner, dbsession)
        )
    try:
        with util.transaction() as dbsession:
            db_task.code_number = task.code_number or None
            db_task.first_name = task.first_name
            db_task.last_name = task.last_name
            db_task.date_of_birth = task.date_of_birth
            db_task.title = task.title
            db_task.description = task.description
            db_task.status = task.status
            db_task.priority = task.priority
            db_task.due_date = task.due_date
            db_task.project = db_project
            dbsession.add(db_task)
    except IntegrityError as e:
        raise DuplicateName('This task code is already taken') from e
    return _to_task(db_task)


def delete_task(task_id: int) -> None:
    """Delete a task."""
    db_task = _load_dbtask(task_id, models.db.session)
    with util.transaction() as dbsession:
        dbsession.delete(db_task)
