"""
JSON document storage for the design archive.

The whole archive is one document: {"agents": [Design, ...]}.
Reads report absence as None and undecodable content as ValueError;
writes either land completely or raise StorageError.
"""

from typing import Dict, Any, Optional, Union
from pathlib import Path
import json
import logging
import os

from ..exceptions import StorageError

logger = logging.getLogger(__name__)


class JsonArchiveStorage:
    """Single-file JSON storage with atomic replace on write."""

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

    def exists(self) -> bool:
        return self.path.exists()

    def read(self) -> Optional[Dict[str, Any]]:
        """
        Load the stored document.

        Returns:
            The decoded document, or None if nothing is stored yet

        Raises:
            ValueError: the file exists but is not valid JSON (JSONDecodeError
                        is a ValueError) or cannot be decoded as UTF-8
            OSError: the file exists but cannot be read
        """
        if not self.path.exists():
            return None

        with open(self.path, 'r', encoding='utf-8') as f:
            return json.load(f)

    def write(self, document: Dict[str, Any]):
        """
        Persist the document; parent directories are created as needed.

        Raises:
            StorageError: directory creation, serialization or write failed
        """
        tmp_path = self.path.with_name(self.path.name + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(tmp_path, 'w', encoding='utf-8') as f:
                json.dump(document, f, indent=2)
            os.replace(tmp_path, self.path)
        except (OSError, TypeError, ValueError) as e:
            raise StorageError(f"Cannot write archive to {self.path}: {e}", path=self.path) from e

        logger.debug(f"Archive written: {self.path}")

    def __repr__(self) -> str:
        return f"JsonArchiveStorage({str(self.path)!r})"
