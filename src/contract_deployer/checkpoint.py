# checkpoint.py
# Durable record of what has been deployed on a network.
#
#   <state_dir>/<network>/address.json   {tag: checksummed address}
#   <state_dir>/<network>/progress.json  {tag: true}
#
# Both files are rewritten in full on every save. Deleting progress.json is
# the manual reset: steps re-run, but deploy steps whose address is still in
# address.json are reused instead of redeployed.

import json
import os
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterator

from pydantic import ValidationError

from contract_deployer.errors import CheckpointCorrupted, CheckpointLocked, PersistenceFailed
from contract_deployer.models import Checkpoint

ADDRESS_FILE = "address.json"
PROGRESS_FILE = "progress.json"
LOCK_FILE = ".deploy.lock"


def _read_table(path: Path) -> dict[str, Any]:
    if not path.exists():
        return {}
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise CheckpointCorrupted(f"Cannot read {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise CheckpointCorrupted(f"{path} must contain a JSON object.")
    return data


def _write_table(path: Path, table: dict[str, Any]) -> None:
    """Replace `path` atomically: write a sibling temp file, then rename over it."""
    tmp_path = path.with_suffix(path.suffix + ".tmp")
    tmp_path.write_text(json.dumps(table, indent=2) + "\n", encoding="utf-8")
    os.replace(tmp_path, path)


class FileCheckpointStore:
    """JSON checkpoint files for one network, plus a run-level advisory lock."""

    def __init__(self, state_dir: Path | str, network: str) -> None:
        self.network = network
        self.root = Path(state_dir) / network

    @property
    def address_path(self) -> Path:
        return self.root / ADDRESS_FILE

    @property
    def progress_path(self) -> Path:
        return self.root / PROGRESS_FILE

    @property
    def lock_path(self) -> Path:
        return self.root / LOCK_FILE

    # ------------------------------------------------------------------
    # Load / save
    # ------------------------------------------------------------------

    def load(self) -> Checkpoint:
        """Read both tables. Missing files are empty tables, not errors."""
        addresses = _read_table(self.address_path)
        progress = _read_table(self.progress_path)
        try:
            return Checkpoint(addresses=addresses, progress=progress)
        except ValidationError as exc:
            raise CheckpointCorrupted(f"Checkpoint for '{self.network}' is invalid: {exc}") from exc

    def save(self, checkpoint: Checkpoint) -> None:
        """
        Persist both tables, fully overwriting previous content.

        Any filesystem error is fatal: the caller has just changed chain
        state and must not continue without a durable record of it.
        """
        try:
            self.root.mkdir(parents=True, exist_ok=True)
            _write_table(self.address_path, checkpoint.addresses)
            _write_table(self.progress_path, checkpoint.progress)
        except OSError as exc:
            raise PersistenceFailed(
                f"Could not write checkpoint for '{self.network}' to {self.root}: {exc}"
            ) from exc

    # ------------------------------------------------------------------
    # Run lock
    # ------------------------------------------------------------------

    @contextmanager
    def lock(self) -> Iterator[None]:
        """
        Hold an exclusive lock file for the duration of a run.

        A stale lock left by a killed process must be removed by hand after
        confirming no other run is active.
        """
        self.root.mkdir(parents=True, exist_ok=True)
        try:
            fd = os.open(self.lock_path, os.O_CREAT | os.O_EXCL | os.O_WRONLY)
        except FileExistsError as exc:
            holder = self.lock_path.read_text(encoding="utf-8").strip() or "unknown"
            raise CheckpointLocked(
                f"Another run holds {self.lock_path} (pid {holder}). "
                "Remove the file if that process is gone."
            ) from exc
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            handle.write(str(os.getpid()))
        try:
            yield
        finally:
            self.lock_path.unlink(missing_ok=True)
