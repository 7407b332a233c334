# stores/local.py

"""
Local filesystem artifact store
"""

import logging
import os
from pathlib import Path
from typing import Optional
from urllib.parse import quote

from scan_worker.core.errors import StorageError, UrlResolutionError
from scan_worker.stores.base import ArtifactStore

logger = logging.getLogger(__name__)


class LocalArtifactStore(ArtifactStore):
    def __init__(self, root: str = "reports", public_base_url: Optional[str] = None):
        self.root = Path(root).resolve()
        self.public_base_url = public_base_url.rstrip("/") if public_base_url else None

    def _target(self, path: str) -> Path:
        target = (self.root / path).resolve()
        if target == self.root or self.root not in target.parents:
            raise StorageError(f"Refusing to write outside the artifact root: {path}")
        return target

    async def upload(self, path: str, data: bytes, content_type: str, overwrite: bool = True) -> str:
        target = self._target(path)
        logger.info(f"Writing {content_type} artifact to {target}")

        if target.exists() and not overwrite:
            raise StorageError(f"Artifact already exists: {path}")
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            tmp = target.with_name(target.name + ".tmp")
            with open(tmp, 'wb') as f:
                f.write(data)
            os.replace(tmp, target)
        except OSError as e:
            raise StorageError(f"Failed to write artifact {path}: {e}") from e

        return self.public_url(path)

    def public_url(self, path: str) -> str:
        if self.public_base_url:
            return f"{self.public_base_url}/{quote(path)}"
        target = self._target(path)
        if not target.exists():
            raise UrlResolutionError(f"No artifact stored at {path}")
        return target.as_uri()
