"""Controllers for tasks."""

import logging
from http import HTTPStatus
from typing import Optional

from werkzeug.datastructures import MultiDict
from werkzeug.exceptions import BadRequest, Conflict, NotFound
from wtforms import Form, IntegerField, StringField
from wtforms import validators

from .. import domain
from ..auth import ownership
from ..services import datastore
from .projects import load_visible_project
from .util import ResponseData, ISODateField, InPast, DIGITS, response, \
    strip, validate, with_alias

logger = logging.getLogger(__name__)


class TaskForm(Form):
    """Create or update a task."""

    code_number = StringField('Code number', filters=[strip], validators=[
        validators.Optional(),
        validators.Length(max=20,
                          message='Code number must be at most 20 characters'),
        validators.Regexp(DIGITS,
                          message='Code number must contain only numbers')
    ])
    first_name = StringField('First name', filters=[strip], validators=[
        validators.Optional(),
        validators.Length(max=100,
                          message='First name must be at most 100 characters')
    ])
    last_name = StringField('Last name', filters=[strip], validators=[
        validators.Optional(),
        validators.Length(max=100,
                          message='Last name must be at most 100 characters')
    ])
    date_of_birth = ISODateField('Date of birth', validators=[
        validators.Optional(),
        InPast('Date of birth must be in the past')
    ])
    title = StringField('Title', filters=[strip], validators=[
        validators.InputRequired('Title is required'),
        validators.Length(max=200,
                          message='Title must be at most 200 characters')
    ])
    description = StringField('Description', validators=[validators.Optional()])
    status = StringField('Status', filters=[strip], validators=[
        validators.InputRequired('Status is required'),
        validators.Length(max=50, message='Status must be at most 50 characters')
    ])
    priority = StringField('Priority', filters=[strip], validators=[
        validators.Optional(),
        validators.Length(max=50,
                          message='Priority must be at most 50 characters')
    ])
    due_date = ISODateField('Due date', validators=[validators.Optional()])
    project_id = IntegerField('Project', validators=[
        validators.InputRequired('Project is required')
    ])


def _to_dicts(tasks: list) -> list:
    return [domain.to_dict(task) for task in tasks]


def load_visible_task(session: domain.Session, task_id: int) -> domain.Task:
    """
    Load a task the caller may access.

    Raises
    ------
    :class:`NotFound`

    """
    try:
        task = datastore.load_task(task_id)
    except datastore.NoSuchTask as e:
        raise NotFound('Task not found') from e
    if not ownership.is_owner_or_admin_override(task.owner, session):
        raise NotFound('Task not found')
    return task


def list_tasks(session: domain.Session,
               project_id: Optional[int] = None) -> ResponseData:
    """List visible tasks, optionally only those of one project."""
    if project_id is not None:
        load_visible_project(session, project_id)
    tasks = datastore.list_tasks(ownership.visibility(session),
                                 project_id=project_id)
    return response(_to_dicts(tasks)), HTTPStatus.OK, {}


def find_by_code(session: domain.Session,
                 code: Optional[str]) -> ResponseData:
    """Get the visible task with a code number."""
    if not code or not code.strip():
        raise BadRequest('Provide ?code= or ?am=')
    try:
        task = datastore.load_task_by_code(code)
    except datastore.NoSuchTask as e:
        raise NotFound('Task not found') from e
    if not ownership.is_owner_or_admin_override(task.owner, session):
        raise NotFound('Task not found')
    return response(domain.to_dict(task)), HTTPStatus.OK, {}


def find_by_name(session: domain.Session,
                 name: Optional[str]) -> ResponseData:
    """Find visible tasks whose first or last name is exactly ``name``."""
    if not name or not name.strip():
        raise BadRequest('name parameter is required')
    tasks = datastore.find_tasks_by_name(ownership.visibility(session), name)
    return response(_to_dicts(tasks)), HTTPStatus.OK, {}


def get_task(session: domain.Session, task_id: int) -> ResponseData:
    """Get a single task."""
    task = load_visible_task(session, task_id)
    return response(domain.to_dict(task)), HTTPStatus.OK, {}


def _save(task: domain.Task) -> domain.Task:
    try:
        return datastore.save_task(task)
    except datastore.DuplicateName as e:
        raise Conflict(str(e)) from e
    except datastore.NoSuchProject as e:
        raise NotFound('Project not found') from e


def _fields(form: TaskForm) -> dict:
    return {
        'code_number': form.code_number.data or None,
        'first_name': form.first_name.data or None,
        'last_name': form.last_name.data or None,
        'date_of_birth': form.date_of_birth.data,
        'title': form.title.data,
        'description': form.description.data or None,
        'status': form.status.data,
        'priority': form.priority.data or None,
        'due_date': form.due_date.data
    }


def create_task(session: domain.Session,
                form_data: MultiDict) -> ResponseData:
    """Add a task to a project the caller may access."""
    form = TaskForm(with_alias(form_data, 'am', 'code_number'))
    validate(form)
    project = load_visible_project(session, form.project_id.data)
    task = _save(domain.Task(
        project_id=project.project_id,
        owner=ownership.owner_for_new_record(session),
        **_fields(form)
    ))
    logger.info('%s created task %s', session.username, task.task_id)
    data = response(domain.to_dict(task), message='Task created successfully')
    return data, HTTPStatus.CREATED, {}


def update_task(session: domain.Session, task_id: int,
                form_data: MultiDict) -> ResponseData:
    """Update a task; a new project must also be accessible."""
    existing = load_visible_task(session, task_id)
    form = TaskForm(with_alias(form_data, 'am', 'code_number'))
    validate(form)
    project = load_visible_project(session, form.project_id.data)
    task = _save(existing._replace(project_id=project.project_id,
                                   **_fields(form)))
    data = response(domain.to_dict(task), message='Task updated successfully')
    return data, HTTPStatus.OK, {}


def delete_task(session: domain.Session, task_id: int) -> ResponseData:
    """Delete a task."""
    load_visible_task(session, task_id)
    try:
        datastore.delete_task(task_id)
    except datastore.NoSuchTask as e:
        raise NotFound('Task not found') from e
    logger.info('%s deleted task %s', session.username, task_id)
    return response(message='Task deleted successfully'), HTTPStatus.OK, {}
