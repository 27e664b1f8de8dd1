"""File-backed secrets store.

Values are encrypted with AES-256-GCM under a per-installation key kept next
to the store. Each value is bound to its key name through the associated
data, so ciphertexts cannot be swapped between entries. Every mutation
rewrites the whole store through a temporary file and ``os.replace``.
"""

from __future__ import annotations

import base64
import json
import os
import tempfile
from pathlib import Path
from typing import Dict, List

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

STORE_VERSION = 1
_NONCE_SIZE = 12


class SecretsStoreError(RuntimeError):
    """Raised when the persisted store or its key cannot be used."""


class SecretsManager:
    def __init__(self, store_path: Path, key_path: Path | None = None) -> None:
        self._path = store_path
        self._key_path = key_path or store_path.with_suffix(".key")

    @property
    def path(self) -> Path:
        return self._path

    def set(self, key: str, value: str) -> None:
        entries = self._read()
        cipher = AESGCM(self._load_key(create=not entries))
        nonce = os.urandom(_NONCE_SIZE)
        blob = nonce + cipher.encrypt(nonce, value.encode("utf-8"), key.encode("utf-8"))
        entries[key] = base64.b64encode(blob).decode("ascii")
        self._write(entries)

    def get(self, key: str) -> str | None:
        entries = self._read()
        encoded = entries.get(key)
        if encoded is None:
            return None
        cipher = AESGCM(self._load_key(create=False))
        try:
            blob = base64.b64decode(encoded, validate=True)
            plain = cipher.decrypt(blob[:_NONCE_SIZE], blob[_NONCE_SIZE:], key.encode("utf-8"))
        except (ValueError, InvalidTag) as exc:
            raise SecretsStoreError(f"secret '{key}' in {self._path} cannot be decrypted") from exc
        return plain.decode("utf-8")

    def list(self) -> List[str]:
        return list(self._read())

    def delete(self, key: str) -> bool:
        entries = self._read()
        if key not in entries:
            return False
        del entries[key]
        self._write(entries)
        return True

    def _read(self) -> Dict[str, str]:
        if not self._path.exists():
            return {}
        try:
            payload = json.loads(self._path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as exc:
            raise SecretsStoreError(f"secrets store {self._path} is not valid JSON") from exc
        secrets = payload.get("secrets", {}) if isinstance(payload, dict) else {}
        if not isinstance(secrets, dict):
            raise SecretsStoreError(f"secrets store {self._path} has an invalid layout")
        return {str(k): str(v) for k, v in secrets.items()}

    def _write(self, entries: Dict[str, str]) -> None:
        payload = {"version": STORE_VERSION, "secrets": entries}
        self._atomic_write(self._path, json.dumps(payload, indent=2, sort_keys=True) + "\n")

    def _load_key(self, *, create: bool) -> bytes:
        if self._key_path.exists():
            try:
                key = base64.b64decode(self._key_path.read_text(encoding="ascii").strip(), validate=True)
            except ValueError as exc:
                raise SecretsStoreError(f"secrets key {self._key_path} is corrupted") from exc
            if len(key) != 32:
                raise SecretsStoreError(f"secrets key {self._key_path} must be 32 bytes")
            return key
        if not create:
            raise SecretsStoreError(f"secrets key {self._key_path} is missing")
        key = AESGCM.generate_key(bit_length=256)
        self._atomic_write(self._key_path, base64.b64encode(key).decode("ascii") + "\n")
        return key

    @staticmethod
    def _atomic_write(path: Path, content: str) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", dir=path.parent)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(content)
            os.chmod(tmp_name, 0o600)
            os.replace(tmp_name, path)
        except BaseException:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise


__all__ = ["SecretsManager", "SecretsStoreError"]
