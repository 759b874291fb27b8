"""
Todo lifecycle service.

A FastAPI application managing todo items that move between NOT_DONE, DONE
and PAST_DUE. Build an app with ``todo_service.main.create_app``; the
default instance lives at ``todo_service.main.app``.
"""

__version__ = "1.0.0"
