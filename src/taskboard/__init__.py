"""Taskboard — multi-tenant project and task tracker.

Projects, tasks and their audit history behind bearer-token
authentication and role-based access control. The interesting part
lives in ``taskboard.auth`` and ``taskboard.policy``: who is calling,
what role they hold, and which records they are allowed to see.
"""

__version__ = "0.1.0"
