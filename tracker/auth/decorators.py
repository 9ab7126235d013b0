"""
Route guards.

Use :func:`authenticated` on any route that must not be served to anonymous
callers. The :class:`tracker.auth.Auth` extension must be installed, so that
``request.auth`` is set before the route is called.

.. code-block:: python

   @blueprint.route('/api/projects', methods=['GET'])
   @authenticated
   def list_projects() -> Response:
       data, code, headers = projects.list_projects(request.auth)
       return jsonify(data), code, headers

"""

import logging
from typing import Any, Callable
from functools import wraps

from flask import request
from werkzeug.exceptions import Unauthorized

logger = logging.getLogger(__name__)


def authenticated(func: Callable) -> Callable:
    """Reject anonymous requests with 401 Unauthorized."""
    @wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        if getattr(request, 'auth', None) is None:
            logger.debug('No authenticated identity; aborting')
            raise Unauthorized('Authentication required')
        return func(*args, **kwargs)
    return wrapper
