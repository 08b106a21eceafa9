# certiai/services/storage.py
import random
import time
from abc import ABC, abstractmethod
from pathlib import Path, PurePath
from typing import BinaryIO

from certiai.core.logging_config import logger


def _safe_suffix(filename: str) -> str:
    """Extensie van de originele naam, FS-safe gemaakt."""
    suffix = PurePath(filename).suffix.lower()
    return "".join(ch for ch in suffix if ch.isalnum() or ch == ".")[:10]


def make_stored_name(filename: str) -> str:
    """Unieke bestandsnaam: '<epoch-ms>-<random>.<ext>'."""
    unique = f"{int(time.time() * 1000)}-{random.randint(0, 10**9 - 1)}"
    return f"{unique}{_safe_suffix(filename)}"


class Storage(ABC):
    """Abstracte Storage interface voor geüploade certificaten."""

    @abstractmethod
    def save_bytes(self, filename: str, data: bytes) -> str:
        """Sla bytes op; retourneert de locatie die in `file_url` belandt."""

    @abstractmethod
    def open(self, location: str) -> BinaryIO:
        """Open een opgeslagen bestand om te lezen."""

    @abstractmethod
    def delete(self, location: str) -> bool:
        """Verwijder een bestand. Best-effort: fouten worden gelogd, niet gegooid."""


class LocalStorage(Storage):
    """Lokale bestandsopslag onder `base_path`, geserveerd via /uploads/."""

    def __init__(self, base_path: str = "uploads"):
        self.base_path = Path(base_path)
        self.base_path.mkdir(parents=True, exist_ok=True)

    def save_bytes(self, filename: str, data: bytes) -> str:
        file_path = self.base_path / make_stored_name(filename)
        with open(file_path, "wb") as f:
            f.write(data)
        logger.info("file_stored", path=str(file_path), size=len(data))
        return str(file_path)

    def open(self, location: str) -> BinaryIO:
        return open(location, "rb")

    def delete(self, location: str) -> bool:
        try:
            Path(location).unlink()
        except OSError as e:
            logger.error("file_delete_failed", path=location, error=repr(e))
            return False
        logger.info("file_deleted", path=location)
        return True
