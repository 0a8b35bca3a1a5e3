from sakila_admin.api.auth import APIKeyAuth
from sakila_admin.api.server import create_app, get_services

__all__ = ["APIKeyAuth", "create_app", "get_services"]
