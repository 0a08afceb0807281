"""
Pydantic request/response models for all API endpoints.
"""
