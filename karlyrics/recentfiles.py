"""Most-recently-used file list kept in a settings mapping."""

from __future__ import annotations

import os
from typing import List, MutableMapping, Optional, Tuple


class RecentFiles:
    """Keeps up to ``max_files`` recent paths under one key of ``store``."""

    def __init__(
        self,
        store: MutableMapping,
        max_files: int = 5,
        settings_name: Optional[str] = None,
    ) -> None:
        if max_files < 1:
            raise ValueError(f"max_files ({max_files}) is < 1")
        self._store = store
        self._max_files = max_files
        self._name = settings_name or "recentFileList"

    def _load(self) -> List[str]:
        return [str(item) for item in self._store.get(self._name, [])]

    def _save(self, files: List[str]) -> None:
        self._store[self._name] = list(files)

    def set_current_file(self, file: str) -> None:
        """Move ``file`` to the top of the list, dropping the oldest entries."""
        files = [f for f in self._load() if f != file]
        files.insert(0, file)
        self._save(files[: self._max_files])

    def remove_recent_file(self, file: str) -> None:
        self._save([f for f in self._load() if f != file])

    def latest_file(self) -> Optional[str]:
        files = self._load()
        return files[0] if files else None

    def files(self) -> List[str]:
        return self._load()

    def menu_entries(self) -> List[Tuple[str, str]]:
        """Return (label, path) pairs for the visible menu entries."""
        return [
            (f"&{number} {os.path.basename(path)}", path)
            for number, path in enumerate(self._load()[: self._max_files], start=1)
        ]