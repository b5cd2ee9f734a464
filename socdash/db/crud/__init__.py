"""CRUD operations for database models"""
from . import alert
from . import incident
from . import aggregation
from . import inventory
from . import user

__all__ = ["alert", "incident", "aggregation", "inventory", "user"]
