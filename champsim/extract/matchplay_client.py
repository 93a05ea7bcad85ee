"""
Matchplay Events API client.
Fetches tournament fields and Glicko ratings for simulation input.
"""
import time
from typing import Any, Dict, List, Optional

import httpx

from champsim.exceptions import RatingServiceError
from champsim.schema import Competitor
from champsim.utils.observability import Logger, get_metrics
from .field_cache import FieldCache

logger = Logger(__name__)


class MatchplayClient:
    """
    Bearer-token client for app.matchplay.events.

    Ratings are looked up one player at a time, with a pause between
    players to stay well under the service's rate limit.
    """

    BASE_URL = "https://app.matchplay.events/api/"

    def __init__(
        self,
        api_token: Optional[str],
        base_url: str = BASE_URL,
        request_delay_s: float = 0.6,
        timeout_s: float = 30.0,
        cache: Optional[FieldCache] = None,
        default_rating: float = 1500.0,
        default_rd: float = 350.0,
        client: Optional[httpx.Client] = None,
    ):
        """
        Initialize client.

        Args:
            api_token: Matchplay API token
            base_url: API root, must end with '/'
            request_delay_s: Pause before each per-player rating request
            timeout_s: HTTP timeout
            cache: Field cache; no caching when None
            default_rating: Rating for players Matchplay has no rating for
            default_rd: Rating deviation for unrated players
            client: Preconfigured httpx.Client (tests inject a mock transport)
        """
        self.api_token = api_token
        self.base_url = base_url if base_url.endswith("/") else base_url + "/"
        self.request_delay_s = request_delay_s
        self.cache = cache
        self.default_rating = default_rating
        self.default_rd = default_rd
        self.session = client or httpx.Client(timeout=timeout_s)

    @classmethod
    def from_settings(cls, settings) -> "MatchplayClient":
        """Build a client from MatchplaySettings."""
        return cls(
            api_token=settings.api_token,
            base_url=settings.url,
            request_delay_s=settings.request_delay_s,
            timeout_s=settings.timeout_s,
            cache=FieldCache(settings.cache_dir, settings.cache_ttl_hours),
            default_rating=settings.default_rating,
            default_rd=settings.default_rd,
        )

    def close(self) -> None:
        self.session.close()

    def __enter__(self) -> "MatchplayClient":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def _get(self, endpoint: str, params: Optional[Dict[str, Any]] = None) -> Dict:
        """
        GET an API endpoint and return its JSON body.

        Raises:
            RatingServiceError: no token configured, transport failure,
                a non-2xx response, or a body that is not a JSON object
        """
        if not self.api_token:
            raise RatingServiceError("MATCHPLAY_API_TOKEN not configured in environment")

        url = self.base_url + endpoint
        headers = {
            "Authorization": f"Bearer {self.api_token}",
            "Content-Type": "application/json",
            "Accept": "application/json",
        }
        logger.log_event("api_call", method="GET", url=url, params=params)

        try:
            response = self.session.get(url, params=params, headers=headers)
        except httpx.HTTPError as e:
            raise RatingServiceError(f"Matchplay request failed: {e}") from e

        if not response.is_success:
            raise RatingServiceError(
                f"Matchplay API error ({response.status_code}): {response.text}",
                status_code=response.status_code,
            )
        try:
            payload = response.json()
        except ValueError as e:
            raise RatingServiceError(f"Matchplay returned invalid JSON from {endpoint}: {e}") from e
        if not isinstance(payload, dict):
            raise RatingServiceError(f"Matchplay returned an unexpected payload from {endpoint}")
        return payload

    def search_users(self, query: str) -> Dict:
        """Search Matchplay users by name."""
        return self._get("search", {"query": query, "type": "users"})

    def get_user_rating(self, user_id: int) -> Dict:
        """User profile including rating and IFPA data."""
        return self._get(f"users/{user_id}", {"includeIfpa": 1, "includeCounts": 0})

    def get_rating_by_ifpa_id(self, ifpa_id: int) -> Dict:
        """Rating looked up by IFPA id."""
        return self._get(f"ratings/ifpa/{ifpa_id}")

    def get_tournament(self, tournament_id: int, include_players: bool = False) -> Dict:
        """Tournament details, optionally with its players."""
        params = {"includePlayers": 1} if include_players else None
        return self._get(f"tournaments/{tournament_id}", params)

    def _lookup_rating(self, player: Dict) -> Optional[Dict]:
        """Rating block for a player: claimed Matchplay account first, then IFPA id."""
        if player.get("claimedBy"):
            return self.get_user_rating(player["claimedBy"]).get("rating")
        if player.get("ifpaId"):
            return self.get_rating_by_ifpa_id(player["ifpaId"]).get("rating")
        return None

    def get_tournament_field(self, tournament_id: int, skip_cache: bool = False) -> List[Competitor]:
        """
        Tournament field with ratings, seed 1 first.

        Players whose rating cannot be fetched get the default rating and
        rating deviation. The result is cached unless caching is disabled.
        """
        if self.cache is not None and not skip_cache:
            cached = self.cache.get(tournament_id)
            if cached:
                return cached

        metrics = get_metrics()
        tournament = self.get_tournament(tournament_id, include_players=True)
        players = tournament.get("data", {}).get("players", [])

        field = []
        for player in players:
            name = player.get("name", "Unknown")
            seed = int(player["tournamentPlayer"]["seed"]) + 1

            time.sleep(self.request_delay_s)

            rating = rd = None
            try:
                block = self._lookup_rating(player)
                if isinstance(block, dict):
                    rating = block.get("rating")
                    rd = block.get("rd")
            except RatingServiceError as e:
                metrics.rating_requests.labels(outcome="error").inc()
                logger.log_warning("rating_fetch_failed", player=name, error=str(e))

            if rating is None or rd is None:
                metrics.rating_requests.labels(outcome="default").inc()
                logger.log_warning("rating_missing_using_default", player=name)
                rating, rd = self.default_rating, self.default_rd
            else:
                metrics.rating_requests.labels(outcome="rated").inc()

            field.append(Competitor(seed=seed, name=name, rating=float(rating), rd=float(rd)))
            logger.log_event("player_loaded", player=name, seed=seed, rating=rating, rd=rd)

        field.sort(key=lambda c: c.seed)

        if self.cache is not None:
            self.cache.save(tournament_id, field)
        return field
