"""
Controllers for projects.

Projects are owned by the user who created them. Projects the caller may not
access are reported as not found, whether or not they exist.
"""

import logging
from http import HTTPStatus

from werkzeug.datastructures import MultiDict
from werkzeug.exceptions import Conflict, NotFound
from wtforms import Form, StringField
from wtforms.validators import InputRequired, Length, Optional

from .. import domain
from ..auth import ownership
from ..services import datastore
from .util import ResponseData, ISODateField, InPast, response, strip, \
    validate

logger = logging.getLogger(__name__)


class ProjectForm(Form):
    """Create or update a project."""

    name = StringField('Name', filters=[strip], validators=[
        InputRequired('Project name is required'),
        Length(min=3, max=100,
               message='Project name must be between 3 and 100 characters')
    ])
    description = StringField('Description', validators=[
        Optional(),
        Length(max=500, message='Description must be at most 500 characters')
    ])
    start_date = ISODateField('Start date', validators=[
        InputRequired('Start date is required'),
        InPast('Start date cannot be in the future', inclusive=True)
    ])


def load_visible_project(session: domain.Session,
                         project_id: int) -> domain.Project:
    """
    Load a project the caller may access.

    Raises
    ------
    :class:`NotFound`
        If the project does not exist or belongs to someone else.

    """
    try:
        project = datastore.load_project(project_id)
    except datastore.NoSuchProject as e:
        raise NotFound('Project not found') from e
    if not ownership.is_owner_or_admin_override(project.owner, session):
        logger.debug('%s may not access project %s', session.username,
                     project_id)
        raise NotFound('Project not found')
    return project


def list_projects(session: domain.Session) -> ResponseData:
    """List the projects the caller may access."""
    projects = datastore.list_projects(ownership.visibility(session))
    data = response([domain.to_dict(project) for project in projects])
    return data, HTTPStatus.OK, {}


def get_project(session: domain.Session, project_id: int) -> ResponseData:
    """Get a single project."""
    project = load_visible_project(session, project_id)
    return response(domain.to_dict(project)), HTTPStatus.OK, {}


def create_project(session: domain.Session,
                   form_data: MultiDict) -> ResponseData:
    """Create a project owned by the caller."""
    form = ProjectForm(form_data)
    validate(form)
    project = domain.Project(
        name=form.name.data,
        description=form.description.data or None,
        start_date=form.start_date.data,
        owner=ownership.owner_for_new_record(session)
    )
    try:
        project = datastore.save_project(project)
    except datastore.DuplicateName as e:
        raise Conflict(str(e)) from e
    logger.info('%s created project %s', session.username, project.project_id)
    data = response(domain.to_dict(project),
                    message='Project created successfully')
    return data, HTTPStatus.CREATED, {}


def update_project(session: domain.Session, project_id: int,
                   form_data: MultiDict) -> ResponseData:
    """Update the name, description and start date of a project."""
    existing = load_visible_project(session, project_id)
    form = ProjectForm(form_data)
    validate(form)
    project = existing._replace(
        name=form.name.data,
        description=form.description.data or None,
        start_date=form.start_date.data
    )
    try:
        project = datastore.save_project(project)
    except datastore.DuplicateName as e:
        raise Conflict(str(e)) from e
    data = response(domain.to_dict(project),
                    message='Project updated successfully')
    return data, HTTPStatus.OK, {}


def delete_project(session: domain.Session, project_id: int) -> ResponseData:
    """Delete a project, along with its students and tasks."""
    load_visible_project(session, project_id)
    try:
        datastore.delete_project(project_id)
    except datastore.NoSuchProject as e:
        raise NotFound('Project not found') from e
    logger.info('%s deleted project %s', session.username, project_id)
    return response(message='Project deleted successfully'), \
        HTTPStatus.OK, {}
