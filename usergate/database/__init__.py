from usergate.database.backends.mongo_odm import MongoODM, UserGateDocument
from usergate.database.core.exceptions import DocumentNotFoundError, DuplicateInsertError, PersistenceError
from usergate.database.core.types import Page, PaginateParams, QueryOptions
from usergate.database.repository import EntityRepository

__all__ = [
    "DocumentNotFoundError",
    "DuplicateInsertError",
    "EntityRepository",
    "MongoODM",
    "Page",
    "PaginateParams",
    "PersistenceError",
    "QueryOptions",
    "UserGateDocument",
]
