"""Persistence layer: models plus the DBStorage singleton used across the app."""
from models.db_storage import DBStorage

storage = DBStorage()
