import logging
import os
import uuid
from pathlib import Path

logger = logging.getLogger(__name__)

ALLOWED_EXTENSIONS = {".jpg", ".jpeg", ".png", ".webp", ".gif", ".svg"}
MAX_FILE_SIZE = 5 * 1024 * 1024  # 5 MB
MOVIES_SUBFOLDER = "movies"


class ImageUploadError(ValueError):
    pass


def _file_size(file) -> int:
    stream = file.stream
    position = stream.tell()
    stream.seek(0, os.SEEK_END)
    size = stream.tell()
    stream.seek(position)
    return size


class ImageService:
    """Stores uploaded movie images under the uploads folder"""

    def __init__(self, upload_root):
        self.upload_root = Path(upload_root)

    def save_image(self, file) -> str:
        """
        Save an uploaded file (werkzeug FileStorage) and return its public path,
        e.g. /uploads/movies/<generated-name>.png
        """
        if file is None or not file.filename:
            raise ImageUploadError("No image file provided.")

        size = _file_size(file)
        if size == 0:
            raise ImageUploadError("No image file provided.")
        if size > MAX_FILE_SIZE:
            raise ImageUploadError(
                f"File size exceeds the limit of {MAX_FILE_SIZE // 1024 // 1024} MB"
            )

        extension = Path(file.filename).suffix.lower()
        if extension not in ALLOWED_EXTENSIONS:
            raise ImageUploadError(
                "Invalid file type. Allowed types: " + ", ".join(sorted(ALLOWED_EXTENSIONS))
            )

        folder = self.upload_root / MOVIES_SUBFOLDER
        folder.mkdir(parents=True, exist_ok=True)

        file_name = f"{uuid.uuid4().hex}{extension}"
        file.save(str(folder / file_name))
        logger.info(f"Saved image {file_name} ({size} bytes)")

        return f"/uploads/{MOVIES_SUBFOLDER}/{file_name}"

    def delete_image(self, image_path: str) -> bool:
        if not image_path:
            return False

        relative = image_path.lstrip("/")
        if relative.startswith("uploads/"):
            relative = relative[len("uploads/"):]

        root = self.upload_root.resolve()
        full_path = (root / relative).resolve()
        if root not in full_path.parents:
            logger.warning(f"Refusing to delete path outside uploads: {image_path}")
            return False

        if not full_path.is_file():
            return False

        full_path.unlink()
        logger.info(f"Deleted image {image_path}")
        return True
