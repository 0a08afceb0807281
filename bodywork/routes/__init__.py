"""
FastAPI routers for all API endpoints.

Each module defines a router for one area (admin portal, impersonation,
auth, effective-user data, health).
"""
