import logging
import os
import threading
import time
import uuid
from typing import Dict

from markova.core.ports.outbound import MediaStorePort

logger = logging.getLogger(__name__)


class LocalMediaStore(MediaStorePort):
    """Rehosted media on local disk, removed after a time-to-live"""

    def __init__(self, directory: str, ttl_seconds: int = 3600):
        self.directory = directory
        self.ttl_seconds = ttl_seconds
        self._timestamps: Dict[str, float] = {}
        self._lock = threading.Lock()
        os.makedirs(self.directory, exist_ok=True)
        logger.info("Media directory ready", extra={"directory": directory, "ttl_seconds": ttl_seconds})

    def _path(self, filename: str) -> str:
        if not filename or os.path.basename(filename) != filename or filename.startswith("."):
            raise FileNotFoundError(filename)
        return os.path.join(self.directory, filename)

    def save(self, content: bytes, suffix: str = ".mp4") -> str:
        filename = f"{uuid.uuid4()}{suffix}"
        path = self._path(filename)
        with open(path, "wb") as f:
            f.write(content)

        with self._lock:
            self._timestamps[filename] = time.time()
        if self.ttl_seconds > 0:
            self._schedule_cleanup(filename)
        return filename

    def read(self, filename: str) -> bytes:
        path = self._path(filename)
        if self._expired(filename):
            self.remove(filename)
        if not os.path.exists(path):
            raise FileNotFoundError(filename)
        with open(path, "rb") as f:
            return f.read()

    def remove(self, filename: str) -> None:
        path = self._path(filename)
        try:
            if os.path.exists(path):
                os.remove(path)
                logger.info("Media cleaned up", extra={"video_filename": filename})
        except OSError as e:
            logger.error("Error cleaning up media", extra={
                "video_filename": filename,
                "error": str(e)
            })
        with self._lock:
            self._timestamps.pop(filename, None)

    def _expired(self, filename: str) -> bool:
        if self.ttl_seconds <= 0:
            return False
        with self._lock:
            created = self._timestamps.get(filename)
        return created is not None and time.time() - created > self.ttl_seconds

    def _schedule_cleanup(self, filename: str) -> None:
        timer = threading.Timer(self.ttl_seconds, self.remove, args=(filename,))
        timer.daemon = True
        timer.start()
        logger.info("Media cleanup scheduled", extra={
            "video_filename": filename,
            "cleanup_in_seconds": self.ttl_seconds
        })
