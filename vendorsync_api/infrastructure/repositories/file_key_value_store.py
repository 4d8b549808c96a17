import json
import os
import tempfile

from shared.config.settings import settings
from shared.utils.exceptions import StorageException
from shared.utils.logging_config import get_logger
from vendorsync_api.application.interfaces.service_interfaces import KeyValueStoreInterface

logger = get_logger(__name__)


class FileKeyValueStore(KeyValueStoreInterface):
    """
    Key/value store persisted as a flat JSON object on disk.

    Values are strings, the same contract as browser local storage.
    Every write rewrites the file through a temporary file and an atomic
    rename so a crash never leaves a truncated document behind.
    """

    def __init__(self, file_path: str = None):
        self.file_path = file_path or settings.store_file_path

    def _load(self) -> dict[str, str]:
        if not os.path.exists(self.file_path):
            return {}
        try:
            with open(self.file_path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.error(f"Error reading key/value store: {e}", extra={"file_path": self.file_path})
            return {}
        return data if isinstance(data, dict) else {}

    def _save(self, data: dict[str, str]) -> None:
        directory = os.path.dirname(os.path.abspath(self.file_path))
        tmp_path = None
        try:
            os.makedirs(directory, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(dir=directory, suffix=".tmp")
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f)
            os.replace(tmp_path, self.file_path)
            tmp_path = None
        except (OSError, TypeError, ValueError) as e:
            logger.error(f"Error writing key/value store: {e}", extra={"file_path": self.file_path})
            raise StorageException(f"Could not write {self.file_path}: {e}") from e
        finally:
            if tmp_path is not None and os.path.exists(tmp_path):
                os.remove(tmp_path)

    def get_item(self, key: str) -> str | None:
        value = self._load().get(key)
        return None if value is None else str(value)

    def set_item(self, key: str, value: str) -> None:
        data = self._load()
        data[key] = str(value)
        self._save(data)

    def remove_item(self, key: str) -> None:
        data = self._load()
        if data.pop(key, None) is not None:
            self._save(data)
