"""Provides the JSON REST API."""

from typing import Optional

from flask import Blueprint, Response, jsonify, make_response, request
from werkzeug.datastructures import MultiDict
from werkzeug.exceptions import BadRequest

from .auth import tokens
from .auth.decorators import authenticated
from .controllers import authentication, projects, students, tasks, users
from .controllers.util import ResponseData, to_multidict

blueprint = Blueprint('api', __name__, url_prefix='/api')


def _payload() -> MultiDict:
    """Get submitted data from a JSON body or a form post."""
    if request.is_json:
        return to_multidict(request.get_json(silent=True))
    return request.form


def _render(result: ResponseData) -> Response:
    data, code, headers = result
    response: Response = make_response(jsonify(data), code)
    response.headers.extend(headers)
    return response


def _project_id() -> Optional[int]:
    """The optional ``projectId`` (or ``project_id``) query parameter."""
    value = request.args.get('projectId') or request.args.get('project_id')
    if not value:
        return None
    try:
        return int(value)
    except ValueError as e:
        raise BadRequest('projectId must be an integer') from e


# Authentication

@blueprint.route('/auth/login', methods=['POST'])
def login() -> Response:
    """Exchange a username and password for a bearer token."""
    return _render(authentication.login(_payload()))


@blueprint.route('/auth/register', methods=['POST'])
def register() -> Response:
    """Create a new user account."""
    return _render(authentication.register(_payload()))


@blueprint.route('/auth/logout', methods=['POST'])
def logout() -> Response:
    """Revoke the presented bearer token."""
    token = tokens.extract_bearer(request.headers.get('Authorization'))
    return _render(authentication.logout(token))


# The current user

@blueprint.route('/users/me', methods=['GET'])
@authenticated
def get_current_user() -> Response:
    """Describe the authenticated user."""
    return _render(users.get_current_user(request.auth))


@blueprint.route('/users/me/password', methods=['PUT'])
@authenticated
def change_password() -> Response:
    """Change the authenticated user's password."""
    return _render(users.change_password(request.auth, _payload()))


@blueprint.route('/users/me', methods=['DELETE'])
@authenticated
def delete_current_user() -> Response:
    """Delete the authenticated user's account."""
    return _render(users.delete_account(request.auth))


# Projects

@blueprint.route('/projects', methods=['GET'])
@authenticated
def list_projects() -> Response:
    """List the caller's projects."""
    return _render(projects.list_projects(request.auth))


@blueprint.route('/projects/<int:project_id>', methods=['GET'])
@authenticated
def get_project(project_id: int) -> Response:
    """Get a project."""
    return _render(projects.get_project(request.auth, project_id))


@blueprint.route('/projects', methods=['POST'])
@authenticated
def create_project() -> Response:
    """Create a project."""
    return _render(projects.create_project(request.auth, _payload()))


@blueprint.route('/projects/<int:project_id>', methods=['PUT'])
@authenticated
def update_project(project_id: int) -> Response:
    """Update a project."""
    return _render(projects.update_project(request.auth, project_id,
                                           _payload()))


@blueprint.route('/projects/<int:project_id>', methods=['DELETE'])
@authenticated
def delete_project(project_id: int) -> Response:
    """Delete a project."""
    return _render(projects.delete_project(request.auth, project_id))


# Students

@blueprint.route('/students', methods=['GET'])
@authenticated
def list_students() -> Response:
    """List students, optionally filtered by ``projectId``."""
    return _render(students.list_students(request.auth, _project_id()))


@blueprint.route('/students/search', methods=['GET'])
@authenticated
def search_students() -> Response:
    """Search students by part of their first or last name."""
    return _render(students.search_students(request.auth,
                                            request.args.get('query'),
                                            _project_id()))


@blueprint.route('/students/search/code', methods=['GET'])
@authenticated
def find_student_by_code() -> Response:
    """Get a student by code number (``code`` or ``am``)."""
    code = request.args.get('code') or request.args.get('am')
    return _render(students.find_by_code(request.auth, code))


@blueprint.route('/students/search/name', methods=['GET'])
@authenticated
def find_students_by_name() -> Response:
    """Find students by exact first or last name."""
    return _render(students.find_by_name(request.auth,
                                         request.args.get('name')))


@blueprint.route('/students/project/<int:project_id>', methods=['GET'])
@authenticated
def list_project_students(project_id: int) -> Response:
    """List the students of a project."""
    return _render(students.list_students(request.auth, project_id))


@blueprint.route('/students/<int:student_id>', methods=['GET'])
@authenticated
def get_student(student_id: int) -> Response:
    """Get a student."""
    return _render(students.get_student(request.auth, student_id))


@blueprint.route('/students', methods=['POST'])
@authenticated
def create_student() -> Response:
    """Create a student."""
    return _render(students.create_student(request.auth, _payload()))


@blueprint.route('/students/<int:student_id>', methods=['PUT'])
@authenticated
def update_student(student_id: int) -> Response:
    """Update a student."""
    return _render(students.update_student(request.auth, student_id,
                                           _payload()))


@blueprint.route('/students/<int:student_id>', methods=['DELETE'])
@authenticated
def delete_student(student_id: int) -> Response:
    """Delete a student."""
    return _render(students.delete_student(request.auth, student_id))


# Tasks

@blueprint.route('/tasks', methods=['GET'])
@authenticated
def list_tasks() -> Response:
    """List tasks, optionally filtered by ``projectId``."""
    return _render(tasks.list_tasks(request.auth, _project_id()))


@blueprint.route('/tasks/search/code', methods=['GET'])
@authenticated
def find_task_by_code() -> Response:
    """Get a task by code number (``code`` or ``am``)."""
    code = request.args.get('code') or request.args.get('am')
    return _render(tasks.find_by_code(request.auth, code))


@blueprint.route('/tasks/search/name', methods=['GET'])
@authenticated
def find_tasks_by_name() -> Response:
    """Find tasks by exact first or last name."""
    return _render(tasks.find_by_name(request.auth, request.args.get('name')))


@blueprint.route('/tasks/project/<int:project_id>', methods=['GET'])
@authenticated
def list_project_tasks(project_id: int) -> Response:
    """List the tasks of a project."""
    return _render(tasks.list_tasks(request.auth, project_id))


@blueprint.route('/tasks/<int:task_id>', methods=['GET'])
@authenticated
def get_task(task_id: int) -> Response:
    """Get a task."""
    return _render(tasks.get_task(request.auth, task_id))


@blueprint.route('/tasks', methods=['POST'])
@authenticated
def create_task() -> Response:
    """Create a task."""
    return _render(tasks.create_task(request.auth, _payload()))


@blueprint.route('/tasks/<int:task_id>', methods=['PUT'])
@authenticated
def update_task(task_id: int) -> Response:
    """Update a task."""
    return _render(tasks.update_task(request.auth, task_id, _payload()))


@blueprint.route('/tasks/<int:task_id>', methods=['DELETE'])
@authenticated
def delete_task(task_id: int) -> Response:
    """Delete a task."""
    return _render(tasks.delete_task(request.auth, task_id))
