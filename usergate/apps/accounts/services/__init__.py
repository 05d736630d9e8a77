from .auth_service import AuthService
from .image_storage import IMAGE_EXTENSIONS, ImageStorage
from .users_service import UsersService

__all__ = ["AuthService", "IMAGE_EXTENSIONS", "ImageStorage", "UsersService"]
