# app/models/__init__.py
from app.models.base import Base, VersionedMixin

# Import every module that defines mapped classes here so Base.metadata is populated
