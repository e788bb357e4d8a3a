"""API routers for the church administration service."""

from church_admin.routers import auth, events, leaders, ministries, people  # noqa: F401
