"""Web Server Gateway Interface entry-point."""

from tracker.factory import create_web_app

application = create_web_app()
