"""Web Server Gateway Interface entry-point."""

import os

from waitlist_auth.factory import create_web_app

__flask_app__ = None


def application(environ, start_response):
    """WSGI application factory."""
    global __flask_app__
    if __flask_app__ is None:
        for key, value in environ.items():
            if key != 'SERVER_NAME' and type(value) is str:
                os.environ[key] = value
        __flask_app__ = create_web_app()
    return __flask_app__(environ, start_response)
