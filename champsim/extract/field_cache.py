"""
Tournament Field Cache Module.
Keeps fetched tournament fields on disk with a Time-To-Live (TTL), so
repeated simulations of the same event don't hit the rating service.
"""
import json
import time
from pathlib import Path
from typing import List, Optional, Union

from champsim.schema import Competitor
from champsim.utils.observability import Logger, get_metrics

logger = Logger(__name__)


class FieldCache:
    """
    File-based cache of tournament fields, one JSON file per tournament:

        {"timestamp": <epoch ms>, "field": [{"name", "seed", "rating", "rd"}, ...]}
    """

    def __init__(self, cache_dir: Union[str, Path] = ".cache", ttl_hours: float = 24.0):
        self.cache_dir = Path(cache_dir)
        self.ttl_hours = ttl_hours

    def path_for(self, tournament_id: int) -> Path:
        return self.cache_dir / f"tournament-{tournament_id}.json"

    def get(self, tournament_id: int) -> Optional[List[Competitor]]:
        """
        Cached field if present and younger than the TTL.

        Unreadable cache files are logged and treated as a miss.
        """
        metrics = get_metrics()
        path = self.path_for(tournament_id)
        if not path.exists():
            metrics.cache_events.labels(event="miss").inc()
            return None

        try:
            data = json.loads(path.read_text(encoding="utf-8"))
            age_hours = (time.time() * 1000 - data["timestamp"]) / 3_600_000

            if age_hours > self.ttl_hours:
                metrics.cache_events.labels(event="stale").inc()
                logger.log_event("cache_expired", tournament_id=tournament_id, age_hours=round(age_hours, 1))
                return None

            field = [
                Competitor(
                    seed=int(p["seed"]),
                    name=p["name"],
                    rating=float(p["rating"]),
                    rd=float(p["rd"]),
                )
                for p in data["field"]
            ]
            metrics.cache_events.labels(event="hit").inc()
            logger.log_event("cache_hit", tournament_id=tournament_id, age_minutes=round(age_hours * 60))
            return field

        except (OSError, ValueError, KeyError, TypeError) as e:
            logger.log_error("cache_read_failed", tournament_id=tournament_id, error=str(e))
            return None

    def save(self, tournament_id: int, field: List[Competitor]) -> Optional[Path]:
        """Write a field to the cache; failures are logged, not raised."""
        path = self.path_for(tournament_id)
        try:
            self.cache_dir.mkdir(parents=True, exist_ok=True)
            data = {
                "timestamp": int(time.time() * 1000),
                "field": [c.to_dict() for c in field],
            }
            path.write_text(json.dumps(data, indent=2), encoding="utf-8")
            get_metrics().cache_events.labels(event="write").inc()
            logger.log_event("cache_save_success", tournament_id=tournament_id, count=len(field))
            return path
        except OSError as e:
            logger.log_error("cache_save_failed", tournament_id=tournament_id, error=str(e))
            return None

    def clear(self, tournament_id: Optional[int] = None) -> int:
        """
        Remove one tournament's cache file, or every cache file.

        Returns:
            Number of files removed
        """
        removed = 0
        try:
            if tournament_id is not None:
                path = self.path_for(tournament_id)
                if path.exists():
                    path.unlink()
                    removed = 1
            elif self.cache_dir.exists():
                for path in self.cache_dir.glob("tournament-*.json"):
                    path.unlink()
                    removed += 1
            logger.log_event("cache_cleared", tournament_id=tournament_id, removed=removed)
        except OSError as e:
            logger.log_error("cache_clear_failed", tournament_id=tournament_id, error=str(e))
        return removed
