from .code_repository import CodeRepository, generate_otp
from .refresh_token_repository import RefreshTokenRepository
from .user_repository import UsersRepository, to_object_id

__all__ = ["CodeRepository", "generate_otp", "RefreshTokenRepository", "to_object_id", "UsersRepository"]
