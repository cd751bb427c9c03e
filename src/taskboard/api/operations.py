"""Per-operation role requirements.

One OperationPolicy per protected route, attached at registration time
with Depends(role_gate(...)). Operations with an empty role set are
open to any authenticated identity; record-level rules still apply
inside the services.
"""

from taskboard.auth.roles import ADMIN_ONLY, ANY_ROLE, OperationPolicy

# Users
LIST_USERS = OperationPolicy("users.list", ADMIN_ONLY)
GET_USER = OperationPolicy("users.get", ANY_ROLE)
UPDATE_USER = OperationPolicy("users.update", ANY_ROLE)

# Projects
CREATE_PROJECT = OperationPolicy("projects.create", ADMIN_ONLY)
LIST_PROJECTS = OperationPolicy("projects.list", ANY_ROLE)
GET_PROJECT = OperationPolicy("projects.get", ANY_ROLE)
UPDATE_PROJECT = OperationPolicy("projects.update", ADMIN_ONLY)
DELETE_PROJECT = OperationPolicy("projects.delete", ADMIN_ONLY)
ASSIGN_PROJECT_USERS = OperationPolicy("projects.assign_users", ADMIN_ONLY)
REMOVE_PROJECT_USERS = OperationPolicy("projects.remove_users", ADMIN_ONLY)

# Tasks
CREATE_TASK = OperationPolicy("tasks.create", ADMIN_ONLY)
LIST_TASKS = OperationPolicy("tasks.list", ANY_ROLE)
GET_TASK = OperationPolicy("tasks.get", ANY_ROLE)
UPDATE_TASK = OperationPolicy("tasks.update", ANY_ROLE)
DELETE_TASK = OperationPolicy("tasks.delete", ADMIN_ONLY)

# Dashboard
DASHBOARD_STATS = OperationPolicy("dashboard.stats", ANY_ROLE)
