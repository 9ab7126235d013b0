"""
Request controllers for the tracker API.

Controllers validate request data, call the auth and datastore services, and
return ``(data, status code, headers)`` tuples for the routes to render.
Failures are raised as :mod:`werkzeug.exceptions` HTTP exceptions.
"""
