from typing import Dict, List, Type

from beanie import Document, init_beanie
from motor.motor_asyncio import AsyncIOMotorClient

from usergate.core import UserGate


class UserGateDocument(Document):
    """
    Base document class for MongoDB collections in usergate.

    Example:
        .. code-block:: python

            from usergate.database import UserGateDocument

            class Article(UserGateDocument):
                title: str

                class Settings:
                    name = "articles"
    """

    class Settings:
        use_cache = False


class MongoODM(UserGate):
    """
    Multi-model MongoDB connection built on Motor and Beanie.

    All registered document models share one client and one database. Models are reachable by the name they were
    registered under, e.g. ``odm.user`` returns the ``UserDocument`` class.

    Args:
        models: Mapping of short names to document classes.
        db_uri: MongoDB connection URI string.
        db_name: Name of the MongoDB database to use.

    Example:
        .. code-block:: python

            odm = MongoODM(models={"article": Article}, db_uri="mongodb://localhost:27017", db_name="blog")
            await odm.initialize()
            await odm.article.find_one({"title": "Hello"})
    """

    def __init__(self, models: Dict[str, Type[UserGateDocument]], db_uri: str, db_name: str, **kwargs):
        super().__init__(**kwargs)
        self.models: Dict[str, Type[UserGateDocument]] = dict(models)
        self.client = AsyncIOMotorClient(db_uri)
        self.db_name = db_name
        self._is_initialized = False

    @property
    def is_initialized(self) -> bool:
        return self._is_initialized

    async def initialize(self):
        """Register the document models with Beanie and create their indexes.

        Safe to call more than once; only the first call talks to the server.
        """
        if not self._is_initialized:
            await init_beanie(database=self.client[self.db_name], document_models=self.document_models())
            self._is_initialized = True
            self.logger.info(f"Initialized database {self.db_name} with models: {', '.join(self.models)}")

    def document_models(self) -> List[Type[UserGateDocument]]:
        return list(self.models.values())

    def close(self):
        self.client.close()
        self._is_initialized = False

    def __getattr__(self, name: str):
        models = self.__dict__.get("models", {})
        if name in models:
            return models[name]
        raise AttributeError(f"{type(self).__name__} has no model named '{name}'")
