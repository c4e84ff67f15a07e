#!filepath: autoperf/utils/filesystem.py
import os
from pathlib import Path

from autoperf import logs


class FileSystem:
    """
    File helpers shared by the file-backed connectors
    - create parent directories on demand
    - atomic write (tmp file -> rename)
    - text read with a missing-file default
    """

    @staticmethod
    def ensure_dir(path: str | Path) -> Path:
        """
        Create the directory if it does not exist.
        """
        p = Path(path)
        if not p.exists():
            p.mkdir(parents=True, exist_ok=True)
            logs.debug(f"[FS] created directory: {p}")
        return p

    @staticmethod
    def file_exists(path: str | Path) -> bool:
        return Path(path).exists()

    @staticmethod
    def read_text(path: str | Path, default: str | None = None) -> str | None:
        """
        Return the file content, or `default` when the file is missing.
        """
        p = Path(path)
        if not p.exists():
            return default
        return p.read_text(encoding="utf-8")

    @staticmethod
    def safe_write(path: str | Path, data: bytes | str) -> None:
        """
        Atomic write (a crash never leaves a half-written store):
            1) write the tmp file
            2) rename -> final file
        """
        path = Path(path)
        FileSystem.ensure_dir(path.parent)

        if isinstance(data, str):
            data = data.encode("utf-8")

        tmp_path = path.with_suffix(path.suffix + ".tmp")

        with open(tmp_path, "wb") as f:
            f.write(data)
            logs.debug(f"[FS] wrote tmp file: {tmp_path}")

        os.replace(tmp_path, path)
        logs.debug(f"[FS] atomic write done: {path}")
