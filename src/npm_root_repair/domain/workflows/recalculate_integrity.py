from __future__ import annotations

import base64
import hashlib
import logging
from typing import final

from npm_root_repair.domain.models.asset import Asset
from npm_root_repair.domain.models.blob import Blob

_CHUNK_SIZE = 64 * 1024
SHA1 = "sha1"
SHA512 = "sha512"


@final
class RecalculateIntegrity:
    """Recompute an npm ``integrity`` string from blob content.

    ``sha1`` tags are honoured; anything else is hashed with sha512. The tag
    is written back exactly as stored. Read failures are logged and produce
    an empty string so the batch carries on.
    """

    def __init__(self, logger: logging.Logger) -> None:
        self._logger = logger

    @staticmethod
    def select_algorithm(algorithm: str) -> str:
        return SHA1 if str(algorithm or "").strip().lower() == SHA1 else SHA512

    def __call__(self, asset: Asset, blob: Blob, algorithm: str) -> str:
        name = self.select_algorithm(algorithm)
        digest = hashlib.new(name)
        try:
            with blob.open_stream() as stream:
                for chunk in iter(lambda: stream.read(_CHUNK_SIZE), b""):
                    digest.update(chunk)
        except OSError as exc:
            self._logger.error(
                "Failed to calculate hash for asset %s: %s", asset.name, exc, exc_info=True
            )
            return ""

        return f"{algorithm}-{base64.b64encode(digest.digest()).decode('ascii')}"
