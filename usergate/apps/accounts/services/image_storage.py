import asyncio
import uuid
from pathlib import Path
from typing import Optional

from fastapi import HTTPException, UploadFile, status

from usergate.apps.accounts.core import get_accounts_config
from usergate.core import UserGate

IMAGE_EXTENSIONS = {
    "image/jpeg": "jpg",
    "image/png": "png",
    "image/webp": "webp",
    "image/gif": "gif",
}


class ImageStorage(UserGate):
    """Stores uploaded profile images on the local filesystem under the media directory."""

    def __init__(self, media_dir: Optional[str] = None, max_bytes: Optional[int] = None, **kwargs):
        super().__init__(**kwargs)
        config = get_accounts_config().ACCOUNTS
        self.media_dir = Path(media_dir or config.MEDIA_DIR).expanduser()
        self.max_bytes = int(max_bytes or config.MAX_IMAGE_BYTES)

    async def save_user_image(self, user_id: str, upload: UploadFile) -> str:
        """Validate and store the image. Returns the stored path relative to the media directory."""
        extension = IMAGE_EXTENSIONS.get(upload.content_type or "")
        if extension is None:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Unsupported image type. Allowed: {', '.join(sorted(IMAGE_EXTENSIONS))}",
            )

        content = await upload.read()
        if not content:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Image file is empty.")
        if len(content) > self.max_bytes:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Image exceeds the maximum size of {self.max_bytes} bytes.",
            )

        relative = Path("users") / user_id / f"{uuid.uuid4().hex}.{extension}"
        target = self.media_dir / relative
        await asyncio.to_thread(self._write, target, content)
        self.logger.debug(f"Stored image for user {user_id} at {target}")
        return relative.as_posix()

    @staticmethod
    def _write(target: Path, content: bytes):
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(content)
