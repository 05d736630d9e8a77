"""Generic repository over a Beanie document model."""

from typing import Any, Dict, Generic, List, Optional, Type, TypeVar

from beanie import UpdateResponse
from pymongo.errors import DuplicateKeyError, PyMongoError

from usergate.core import UserGate, ifnone
from usergate.database.backends.mongo_odm import UserGateDocument
from usergate.database.core.exceptions import DuplicateInsertError, PersistenceError
from usergate.database.core.types import Page, PaginateParams, QueryOptions

T = TypeVar("T", bound=UserGateDocument)

Filter = Dict[str, Any]


class EntityRepository(UserGate, Generic[T]):
    """Query helpers shared by every repository.

    Subclasses set `model_cls` (or pass it to the constructor) and add methods with explicit parameters that build
    the Mongo filters. Raw dict filters are not meant to leak out of the repository layer.

    Example:
        .. code-block:: python

            class ArticleRepository(EntityRepository[Article]):
                model_cls = Article

                async def find_by_title(self, title: str) -> Article | None:
                    return await self.find_one({"title": title})
    """

    model_cls: Type[T]

    def __init__(self, model_cls: Optional[Type[T]] = None, **kwargs):
        super().__init__(**kwargs)
        if model_cls is not None:
            self.model_cls = model_cls

    async def find_one(self, filter: Optional[Filter] = None, options: Optional[QueryOptions] = None) -> Optional[T]:
        filter = ifnone(filter, default={})
        if options is not None and (options.sort or options.skip):
            found = await self.model_cls.find(filter, sort=options.sort, skip=options.skip, limit=1).to_list()
            return found[0] if found else None
        return await self.model_cls.find_one(filter)

    async def find(self, filter: Optional[Filter] = None, options: Optional[QueryOptions] = None) -> List[T]:
        options = ifnone(options, default=QueryOptions())
        return await self.model_cls.find(
            ifnone(filter, default={}), sort=options.sort, skip=options.skip, limit=options.limit
        ).to_list()

    async def find_with_pagination(
        self,
        filter: Optional[Filter] = None,
        options: Optional[QueryOptions] = None,
        paginate: Optional[PaginateParams] = None,
    ) -> Page[T]:
        """Return one page of matching documents and the total number of matches.

        The page slice comes from `paginate` when a page number or page size was supplied, otherwise from the
        `skip` and `limit` of `options`. The count always covers every document matching the filter.
        """
        filter = ifnone(filter, default={})
        options = ifnone(options, default=QueryOptions())
        paginate = ifnone(paginate, default=PaginateParams())

        if paginate.is_requested:
            skip, limit = paginate.bounds()
        else:
            skip, limit = options.skip, options.limit

        data = await self.model_cls.find(filter, sort=options.sort, skip=skip, limit=limit).to_list()
        count = await self.model_cls.find(filter).count()
        return Page(data=data, count=count)

    async def create(self, data: Dict[str, Any]) -> T:
        """Insert a new document.

        Raises:
            DuplicateInsertError: If the document violates a unique index.
            PersistenceError: If the database rejects the write for any other reason.
        """
        document = self.model_cls(**data)
        try:
            return await document.insert()
        except DuplicateKeyError as e:
            self.logger.warning(f"Duplicate key on insert into {self.model_cls.__name__}")
            raise DuplicateInsertError("Duplicate key error. Document already exists!") from e
        except PyMongoError as e:
            self.logger.error(f"Insert into {self.model_cls.__name__} failed: {e}")
            raise PersistenceError(str(e)) from e

    async def find_one_and_update(
        self,
        filter: Filter,
        update: Dict[str, Any],
        upsert: Optional[Dict[str, Any]] = None,
    ) -> Optional[T]:
        """Apply `update` to the first match and return the updated document.

        Plain field mappings are wrapped in ``$set``. When `upsert` is given, the server inserts it atomically if
        nothing matches the filter (fields not already written by `update` go into ``$setOnInsert``), and the
        inserted document is returned. An upsert that loses a race on a unique index is retried once, at which point
        it matches the document inserted by the winner.
        """
        if not any(key.startswith("$") for key in update):
            update = {"$set": update}
        kwargs: Dict[str, Any] = {}
        if upsert is not None:
            written = {field for fields in update.values() for field in fields}
            on_insert = {key: value for key, value in upsert.items() if key not in written}
            if on_insert:
                update = {**update, "$setOnInsert": on_insert}
            kwargs["upsert"] = True

        attempts = 2 if upsert is not None else 1
        for attempt in range(1, attempts + 1):
            try:
                return await self.model_cls.find_one(filter).update(
                    update, response_type=UpdateResponse.NEW_DOCUMENT, **kwargs
                )
            except DuplicateKeyError as e:
                if attempt < attempts:
                    self.logger.debug(f"Concurrent upsert into {self.model_cls.__name__}, retrying")
                    continue
                raise DuplicateInsertError("Duplicate key error. Document already exists!") from e
            except PyMongoError as e:
                self.logger.error(f"Update of {self.model_cls.__name__} failed: {e}")
                raise PersistenceError(str(e)) from e
        return None

    async def delete_many(self, filter: Filter) -> bool:
        """Delete every matching document. Returns True if at least one was removed."""
        result = await self.model_cls.find(filter).delete()
        return bool(result is not None and result.deleted_count >= 1)
