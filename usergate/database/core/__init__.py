from usergate.database.core.exceptions import DocumentNotFoundError, DuplicateInsertError, PersistenceError
from usergate.database.core.types import Page, PaginateParams, QueryOptions

__all__ = ["DocumentNotFoundError", "DuplicateInsertError", "Page", "PaginateParams", "PersistenceError", "QueryOptions"]
