"""
object_store.py — Filesystem-backed object store for page images.

Keys are opaque strings that may contain "/". Bodies live under
<root>/blobs/<key>; the content type lives in <root>/meta/<key>.json.
Keys that would resolve outside the root are treated as absent on read and
rejected on write.
"""

from __future__ import annotations

import json
import mimetypes
from dataclasses import dataclass
from pathlib import Path

DEFAULT_CONTENT_TYPE = "application/octet-stream"


@dataclass(frozen=True)
class ObjectInfo:
    key: str
    content_type: str
    size: int


@dataclass(frozen=True)
class StoredBlob:
    info: ObjectInfo
    body: bytes


class InvalidObjectKey(ValueError):
    pass


class LocalObjectStore:

    def __init__(self, root: str | Path) -> None:
        self.root = Path(root).resolve()
        self._blobs = self.root / "blobs"
        self._meta = self.root / "meta"

    def _resolve(self, base: Path, key: str, suffix: str = "") -> Path:
        if not key or key.startswith("/") or "\x00" in key:
            raise InvalidObjectKey(key)
        path = (base / (key + suffix)).resolve()
        if base.resolve() not in path.parents:
            raise InvalidObjectKey(key)
        return path

    def head(self, key: str) -> ObjectInfo | None:
        try:
            blob_path = self._resolve(self._blobs, key)
            meta_path = self._resolve(self._meta, key, ".json")
        except InvalidObjectKey:
            return None
        if not blob_path.is_file():
            return None

        content_type = DEFAULT_CONTENT_TYPE
        if meta_path.is_file():
            meta = json.loads(meta_path.read_text(encoding="utf-8"))
            content_type = meta.get("content_type") or DEFAULT_CONTENT_TYPE
        return ObjectInfo(key=key, content_type=content_type, size=blob_path.stat().st_size)

    def get(self, key: str) -> StoredBlob | None:
        info = self.head(key)
        if info is None:
            return None
        body = self._resolve(self._blobs, key).read_bytes()
        return StoredBlob(info=info, body=body)

    def put(self, key: str, body: bytes, content_type: str | None = None) -> ObjectInfo:
        """
        Writes `body` under `key`, replacing any existing object.

        The content type is guessed from the key when not given.
        """
        blob_path = self._resolve(self._blobs, key)
        meta_path = self._resolve(self._meta, key, ".json")
        if content_type is None:
            content_type = mimetypes.guess_type(key)[0] or DEFAULT_CONTENT_TYPE

        blob_path.parent.mkdir(parents=True, exist_ok=True)
        meta_path.parent.mkdir(parents=True, exist_ok=True)
        blob_path.write_bytes(body)
        meta_path.write_text(json.dumps({"content_type": content_type}), encoding="utf-8")
        return ObjectInfo(key=key, content_type=content_type, size=len(body))
