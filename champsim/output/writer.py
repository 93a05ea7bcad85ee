"""
Atomic, versioned result writer.

Provides safe result writes with:
- Atomic temp file + rename to prevent half-written files
- Versioned file names so earlier runs are never overwritten
- TSV (classic column layout) or JSON (results plus run metadata)
"""
import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Sequence

import polars as pl

from champsim.engine.summary import CompetitorResult, results_to_frame

logger = logging.getLogger(__name__)


@dataclass
class WriteResult:
    """Result of a write operation."""
    success: bool
    path: Path
    rows_written: int
    version: int = 1
    error: Optional[str] = None


def next_version_path(path: Path) -> tuple:
    """
    First free versioned variant of `path`.

    results.tsv -> results.tsv if free, else results-v2.tsv, results-v3.tsv, ...

    Returns:
        (path, version number)
    """
    path = Path(path)
    if not path.exists():
        return path, 1
    version = 2
    while True:
        candidate = path.with_name(f"{path.stem}-v{version}{path.suffix}")
        if not candidate.exists():
            return candidate, version
        version += 1


@dataclass
class ResultWriter:
    """
    Writes simulation results.

    Example:
        writer = ResultWriter()
        result = writer.write(results, Path("results/open.tsv"), metadata=run.metadata())
    """
    temp_suffix: str = ".tmp"
    versioned: bool = True

    def render(
        self,
        results: Sequence[CompetitorResult],
        fmt: str = "tsv",
        metadata: Optional[Dict[str, Any]] = None,
    ) -> str:
        """Render results as TSV or JSON text."""
        if fmt == "tsv":
            return results_to_frame(results).write_csv(separator="\t")
        if fmt == "json":
            payload = {
                "metadata": metadata or {},
                "results": [r.to_dict() for r in results],
            }
            return json.dumps(payload, indent=2) + "\n"
        raise ValueError(f"Unknown output format '{fmt}', expected 'tsv' or 'json'")

    def write(
        self,
        results: Sequence[CompetitorResult],
        path: Path,
        fmt: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> WriteResult:
        """
        Atomic write of rendered results.

        Process:
        1. Pick the target (next free version when versioning is on)
        2. Write to temp file
        3. Atomically rename temp to target

        Args:
            results: Summarized results
            path: Requested target path
            fmt: 'tsv' or 'json'; inferred from the suffix when omitted
            metadata: Run metadata included in JSON output

        Returns:
            WriteResult with success status and the path actually written
        """
        path = Path(path)
        fmt = fmt or ("json" if path.suffix.lower() == ".json" else "tsv")
        text = self.render(results, fmt, metadata)

        if self.versioned:
            target, version = next_version_path(path)
        else:
            target, version = path, 1
        temp_path = target.with_suffix(target.suffix + self.temp_suffix)

        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            temp_path.write_text(text, encoding="utf-8")
            os.replace(temp_path, target)
        except OSError as e:
            logger.error(f"Result write failed: {e}")
            if temp_path.exists():
                temp_path.unlink()
            return WriteResult(success=False, path=target, rows_written=0, version=version, error=str(e))

        logger.info(f"Wrote {len(results)} rows to {target}")
        return WriteResult(success=True, path=target, rows_written=len(results), version=version)
