"""JSON file persistence for circulation snapshots.

The engine never touches disk itself; callers that want state to survive a
restart save the exported snapshot here and feed the loaded one back through
``LibrarySystem.import_snapshot``, which re-validates it.
"""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Optional, Union

from .errors import SnapshotIntegrityError
from .snapshot import Snapshot


def save_snapshot(path: Union[str, Path], snapshot: Snapshot) -> None:
    """Write the snapshot as JSON, replacing the target atomically."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = path.with_suffix(".tmp")
    try:
        with open(tmp_path, "w", encoding="utf-8") as f:
            json.dump(snapshot.to_dict(), f, ensure_ascii=False, indent=2)
        os.replace(tmp_path, path)
    except BaseException:
        tmp_path.unlink(missing_ok=True)
        raise


def load_snapshot(path: Union[str, Path]) -> Optional[Snapshot]:
    """Return the stored snapshot, or None when nothing has been saved yet."""
    path = Path(path)
    if not path.exists():
        return None
    with open(path, "r", encoding="utf-8") as f:
        try:
            raw = json.load(f)
        except json.JSONDecodeError as exc:
            raise SnapshotIntegrityError(f"Corrupt snapshot file {path}: {exc}") from exc
    return Snapshot.from_dict(raw)
