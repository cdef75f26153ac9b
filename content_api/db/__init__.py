"""Database connection collaborator."""

from content_api.db.mongo import MongoConnection

__all__ = ["MongoConnection"]
