"""
Controllers for students.

Students belong to a project, and are owned by the user who created them. A
student can only be filed under a project the caller may access.
"""

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
from .util import ResponseData, ISODateField, InPast, LETTERS, DIGITS, \
    response, strip, validate, with_alias

logger = logging.getLogger(__name__)


class StudentForm(Form):
    """Create or update a student."""

    code_number = StringField('Code number', filters=[strip], validators=[
        validators.InputRequired('Student ID is required'),
        validators.Length(max=20,
                          message='Student ID must be at most 20 characters'),
        validators.Regexp(DIGITS,
                          message='Student ID must contain only numbers')
    ])
    first_name = StringField('First name', filters=[strip], validators=[
        validators.InputRequired('First name is required'),
        validators.Length(max=100,
                          message='First name must be at most 100 characters'),
        validators.Regexp(LETTERS,
                          message='First name must contain only letters')
    ])
    last_name = StringField('Last name', filters=[strip], validators=[
        validators.InputRequired('Last name is required'),
        validators.Length(max=100,
                          message='Last name must be at most 100 characters'),
        validators.Regexp(LETTERS,
                          message='Last name must contain only letters')
    ])
    date_of_birth = ISODateField('Date of birth', validators=[
        validators.Optional(),
        InPast('Date of birth must be in the past')
    ])
    title = StringField('Title', filters=[strip], validators=[
        validators.InputRequired('Title is required'),
        validators.Length(max=200,
                          message='Title must be at most 200 characters'),
        validators.Regexp(LETTERS,
                          message='Job title must contain only letters')
    ])
    description = StringField('Description', validators=[
        validators.Optional(),
        validators.Length(max=1000,
                          message='Description must be at most 1000 characters')
    ])
    project_id = IntegerField('Project', validators=[
        validators.InputRequired('Project is required')
    ])


def _to_dicts(students: list) -> list:
    return [domain.to_dict(student) for student in students]


def load_visible_student(session: domain.Session,
                         student_id: int) -> domain.Student:
    """
    Load a student the caller may access.

    Raises
    ------
    :class:`NotFound`

    """
    try:
        student = datastore.load_student(student_id)
    except datastore.NoSuchStudent as e:
        raise NotFound('Student not found') from e
    if not ownership.is_owner_or_admin_override(student.owner, session):
        raise NotFound('Student not found')
    return student


def list_students(session: domain.Session,
                  project_id: Optional[int] = None) -> ResponseData:
    """List visible students, optionally only those of one project."""
    if project_id is not None:
        load_visible_project(session, project_id)
    students = datastore.list_students(ownership.visibility(session),
                                       project_id=project_id)
    return response(_to_dicts(students)), HTTPStatus.OK, {}


def search_students(session: domain.Session, query: Optional[str],
                    project_id: Optional[int] = None) -> ResponseData:
    """Find visible students whose first or last name contains ``query``."""
    if not query or not query.strip():
        raise BadRequest('query parameter is required')
    if project_id is not None:
        load_visible_project(session, project_id)
    students = datastore.search_students(ownership.visibility(session),
                                         query, project_id=project_id)
    return response(_to_dicts(students)), HTTPStatus.OK, {}


def find_by_code(session: domain.Session,
                 code: Optional[str]) -> ResponseData:
    """Get the visible student with a code number."""
    if not code or not code.strip():
        raise BadRequest('Provide ?code= or ?am=')
    try:
        student = datastore.load_student_by_code(code)
    except datastore.NoSuchStudent as e:
        raise NotFound('Student not found') from e
    if not ownership.is_owner_or_admin_override(student.owner, session):
        raise NotFound('Student not found')
    return response(domain.to_dict(student)), HTTPStatus.OK, {}


def find_by_name(session: domain.Session,
                 name: Optional[str]) -> ResponseData:
    """Find visible students whose first or last name is exactly ``name``."""
    if not name or not name.strip():
        raise BadRequest('name parameter is required')
    students = datastore.find_students_by_name(ownership.visibility(session),
                                               name)
    return response(_to_dicts(students)), HTTPStatus.OK, {}


def get_student(session: domain.Session, student_id: int) -> ResponseData:
    """Get a single student."""
    student = load_visible_student(session, student_id)
    return response(domain.to_dict(student)), HTTPStatus.OK, {}


def _save(student: domain.Student) -> domain.Student:
    try:
        return datastore.save_student(student)
    except datastore.DuplicateName as e:
        raise Conflict(str(e)) from e
    except datastore.NoSuchProject as e:
        raise NotFound('Project not found') from e


def create_student(session: domain.Session,
                   form_data: MultiDict) -> ResponseData:
    """Add a student to a project the caller may access."""
    form = StudentForm(with_alias(form_data, 'am', 'code_number'))
    validate(form)
    project = load_visible_project(session, form.project_id.data)
    student = _save(domain.Student(
        code_number=form.code_number.data,
        first_name=form.first_name.data,
        last_name=form.last_name.data,
        date_of_birth=form.date_of_birth.data,
        title=form.title.data,
        description=form.description.data or None,
        project_id=project.project_id,
        owner=ownership.owner_for_new_record(session)
    ))
    logger.info('%s created student %s', session.username, student.student_id)
    data = response(domain.to_dict(student),
                    message='Student created successfully')
    return data, HTTPStatus.CREATED, {}


def update_student(session: domain.Session, student_id: int,
                   form_data: MultiDict) -> ResponseData:
    """Update a student; a new project must also be accessible."""
    existing = load_visible_student(session, student_id)
    form = StudentForm(with_alias(form_data, 'am', 'code_number'))
    validate(form)
    project = load_visible_project(session, form.project_id.data)
    student = _save(existing._replace(
        code_number=form.code_number.data,
        first_name=form.first_name.data,
        last_name=form.last_name.data,
        date_of_birth=form.date_of_birth.data,
        title=form.title.data,
        description=form.description.data or None,
        project_id=project.project_id
    ))
    data = response(domain.to_dict(student),
                    message='Student updated successfully')
    return data, HTTPStatus.OK, {}


def delete_student(session: domain.Session, student_id: int) -> ResponseData:
    """Delete a student."""
    load_visible_student(session, student_id)
    try:
        datastore.delete_student(student_id)
    except datastore.NoSuchStudent as e:
        raise NotFound('Student not found') from e
    logger.info('%s deleted student %s', session.username, student_id)
    return response(message='Student deleted successfully'), \
        HTTPStatus.OK, {}
