"""Browser-facing JSON API for memsim.

This package provides a Flask application that exposes both
simulators over HTTP.  It is an **optional** extra: install with::

    pip install memsim[web]

The ``create_app`` factory in ``app.py`` serves:

- ``GET /``: HTML landing page describing the scenario.
- ``GET /api/config``: the active configuration.
- ``POST /api/partition``: replay a partition script, return every state.
- ``POST /api/paging``: simulate page replacement, return the trace.
"""
