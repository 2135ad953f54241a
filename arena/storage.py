import os
import logging
import uuid
from typing import Optional

from werkzeug.datastructures import FileStorage
from werkzeug.utils import secure_filename

logger = logging.getLogger(__name__)

ALLOWED_LOGO_EXTENSIONS = {'.png', '.jpg', '.jpeg', '.gif', '.svg', '.webp'}
URL_PREFIX = '/uploads/'


class AssetStorage:
    """Team logo files kept in a local folder and served under /uploads/."""

    def __init__(self, folder: str):
        self.folder = folder

    def save(self, upload: FileStorage) -> str:
        """Store an uploaded logo and return its public URL."""
        filename = secure_filename(upload.filename or '')
        ext = os.path.splitext(filename)[1].lower()
        if ext not in ALLOWED_LOGO_EXTENSIONS:
            raise ValueError(f"Unsupported logo type '{ext or filename}'")

        os.makedirs(self.folder, exist_ok=True)
        name = f"{uuid.uuid4().hex}{ext}"
        upload.save(os.path.join(self.folder, name))
        return URL_PREFIX + name

    def path_for(self, url: Optional[str]) -> Optional[str]:
        """Local path of a managed asset, or None for external URLs."""
        if not url or not url.startswith(URL_PREFIX):
            return None
        name = secure_filename(url[len(URL_PREFIX):])
        if not name:
            return None
        return os.path.join(self.folder, name)

    def delete(self, url: Optional[str]) -> bool:
        path = self.path_for(url)
        if path is None or not os.path.exists(path):
            return False
        try:
            os.remove(path)
        except OSError as e:
            logger.warning("Could not delete asset %s: %s", path, e)
            return False
        logger.info("Deleted asset %s", path)
        return True
