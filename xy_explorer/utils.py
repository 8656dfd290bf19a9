from __future__ import annotations

import dataclasses
import datetime as _dt
import hashlib
import json
import logging
import time
from enum import Enum
from pathlib import Path
from typing import Any, Dict

import numpy as np

logger = logging.getLogger(__name__)


# -------------------------
# Path utilities
# -------------------------
def normalize_abs_posix(path: str | Path) -> str:
    """
    Absolute POSIX-style path string, identical across platforms.
    """
    return Path(path).resolve().as_posix()


# -------------------------
# Hashing utilities
# -------------------------
def canonical_json_dumps(payload: dict[str, Any]) -> str:
    """
    Sorted-key, compact, non-ASCII-preserving JSON used for hashing.
    """
    return json.dumps(
        payload, ensure_ascii=False, separators=(",", ":"), sort_keys=True
    )


def canonical_json_hash(payload: dict[str, Any]) -> tuple[str, str]:
    """
    Return (short_hash8, full_hash_hex) of the canonical JSON bytes (UTF-8).
    """
    digest = hashlib.sha256(canonical_json_dumps(payload).encode("utf-8")).hexdigest()
    return digest[:8], digest


# -------------------------
# Manifest helpers
# -------------------------
def to_jsonable(obj: Any) -> Any:
    """
    Recursively convert parameter objects into JSON primitives.

    - Path -> absolute POSIX string
    - IntFlag/Enum -> member name ('|'-joined for combined flags)
    - dataclasses and NamedTuples -> dicts
    - numpy scalars/arrays -> Python numbers/lists
    - tuples/lists/sets -> lists, dict keys -> str
    """
    if obj is None or isinstance(obj, (bool, str)):
        return obj
    if isinstance(obj, Enum):
        if obj.name is not None:
            return obj.name
        return "|".join(m.name for m in type(obj) if m.value and (obj & m) == m)
    if isinstance(obj, (int, float)):
        return obj
    if isinstance(obj, Path):
        return normalize_abs_posix(obj)
    if isinstance(obj, _dt.datetime):
        return obj.isoformat()
    if isinstance(obj, np.generic):
        return obj.item()
    if isinstance(obj, np.ndarray):
        return obj.tolist()
    if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
        return {f.name: to_jsonable(getattr(obj, f.name)) for f in dataclasses.fields(obj)}
    if isinstance(obj, tuple) and hasattr(obj, "_asdict"):
        return {k: to_jsonable(v) for k, v in obj._asdict().items()}
    if isinstance(obj, dict):
        return {str(k): to_jsonable(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple, set)):
        return [to_jsonable(x) for x in obj]
    return str(obj)


def build_effective_parameters(load: Any, view: Any) -> dict[str, Any]:
    """
    JSON-serializable {"load": {...}, "view": {...}} mapping of the effective
    LoadParams and ViewParams, used for run hashing and the manifest.
    """
    return {"load": to_jsonable(load), "view": to_jsonable(view)}


def write_manifest(path: str | Path, manifest: Dict[str, Any]) -> None:
    """
    Write manifest JSON as UTF-8 with indent=2.
    """
    Path(path).write_text(
        json.dumps(manifest, ensure_ascii=False, indent=2), encoding="utf-8"
    )


def utc_timestamp_seconds() -> str:
    """
    ISO-8601 UTC timestamp with seconds precision and Z suffix.
    """
    now = _dt.datetime.now(_dt.timezone.utc).replace(tzinfo=None)
    return now.isoformat(timespec="seconds") + "Z"


# -------------------------
# Run directory helpers (CLI)
# -------------------------
def ensure_run_dir(base: Path | str = ".", prefix: str = "output") -> Path:
    """
    Create and return a fresh `base`/`prefix`/<YYYYmmddTHHMMSS> directory.

    Runs started within the same second get a -1, -2, ... suffix instead of sharing
    (and overwriting) one directory.
    """
    run_ts = time.strftime("%Y%m%dT%H%M%S", time.localtime())
    parent = Path(base) / prefix
    parent.mkdir(parents=True, exist_ok=True)
    run_dir = parent / run_ts
    attempt = 0
    while True:
        try:
            run_dir.mkdir()
            break
        except FileExistsError:
            attempt += 1
            run_dir = parent / f"{run_ts}-{attempt}"
    logger.debug("Ensured run_dir=%s", str(run_dir))
    return run_dir


def write_text_report(report_text: str, run_dir: Path, short_hash: str) -> Path:
    """
    Write the report to run_dir/report-<short_hash>.txt (UTF-8).

    Best-effort: an IO failure is logged and the intended path is still returned.
    """
    target = Path(run_dir) / f"report-{short_hash}.txt"
    try:
        target.write_text(report_text, encoding="utf-8")
        logger.debug("Wrote textual report to %s", str(target))
    except OSError as e:
        logger.warning("Failed to write textual report to %s: %s", str(target), e)
    return target
