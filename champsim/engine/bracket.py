"""
Single-elimination bracket templates.

A template is an immutable graph of matches. Each match slot holds either a
literal seed or the winner of an earlier match, and each match except the
championship feeds its winner into one slot of a later match. Match ids embed
a sequence number (w1, w2, ...) and ascending sequence order is always a
valid order in which to play the bracket.

Templates are read from and written to bracket JSON files:

    {
        "w1":  {"round": 1, "players": [1, 16], "feeds": ["w9", 0]},
        ...
        "w15": {"round": 4, "players": [null, null], "feeds": ["w16", 0]},
        "w16": {"round": 5, "players": [null, null], "final": true}
    }

The `final: true` entry is a placeholder that only receives the champion; it
is not a match. The match feeding it is the championship.
"""
import json
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple
import logging

from champsim.exceptions import BracketShapeError

logger = logging.getLogger(__name__)


# match count -> (field size, rounds)
SUPPORTED_SHAPES = {
    15: (16, 4),
    23: (24, 5),
}

# First-round order for a 16 field; adjacent pairs meet in round 1.
BRACKET_SLOT_ORDER = [1, 16, 8, 9, 5, 12, 4, 13, 6, 11, 3, 14, 7, 10, 2, 15]

# Order the top 8 seeds appear in a 24 field once byes are played out.
BYE_SEED_ORDER = [1, 8, 5, 4, 6, 3, 7, 2]

_SEQUENCE_RE = re.compile(r"(\d+)$")


@dataclass(frozen=True)
class Slot:
    """One side of a match: a literal seed or the winner of another match."""
    seed: Optional[int] = None
    source: Optional[str] = None

    @property
    def is_empty(self) -> bool:
        return self.seed is None and self.source is None

    def __str__(self) -> str:
        if self.seed is not None:
            return f"seed {self.seed}"
        if self.source is not None:
            return f"winner of {self.source}"
        return "TBD"


@dataclass(frozen=True)
class Match:
    """A single bracket match."""
    match_id: str
    sequence: int
    round_num: int
    slots: Tuple[Slot, Slot]
    feeds: Optional[Tuple[str, int]] = None   # (destination match id, slot index)


def match_sequence(match_id: str) -> int:
    """Sequence number embedded at the end of a match id ('w12' -> 12)."""
    found = _SEQUENCE_RE.search(str(match_id))
    if not found:
        raise BracketShapeError(f"Match id '{match_id}' has no sequence number")
    return int(found.group(1))


@dataclass(frozen=True)
class BracketTemplate:
    """
    Immutable single-elimination bracket.

    Matches are stored in ascending sequence order. `final_match_id` is the
    championship; `semifinal_ids` are the two matches whose losers play for
    third place.
    """
    matches: Tuple[Match, ...]
    final_match_id: str
    semifinal_ids: Tuple[str, ...] = field(default=())

    @property
    def match_count(self) -> int:
        return len(self.matches)

    @property
    def rounds(self) -> int:
        return max(m.round_num for m in self.matches)

    @property
    def seeds(self) -> List[int]:
        return sorted(s.seed for m in self.matches for s in m.slots if s.seed is not None)

    @property
    def field_size(self) -> int:
        return len(self.seeds)

    def get_match(self, match_id: str) -> Match:
        for match in self.matches:
            if match.match_id == match_id:
                return match
        raise BracketShapeError(f"Bracket has no match {match_id}", match_count=self.match_count)

    def get_round_matches(self, round_num: int) -> List[Match]:
        return [m for m in self.matches if m.round_num == round_num]

    def validate(self, field_size: Optional[int] = None) -> None:
        """
        Check the resolved shape against the supported brackets.

        Raises:
            BracketShapeError: unsupported match/round count, wrong field
                size, or a slot that cannot be resolved in sequence order
        """
        count = self.match_count
        if count not in SUPPORTED_SHAPES:
            raise BracketShapeError(
                f"Expected a single-elimination bracket with a field of 16 or 24, not: {count + 1}",
                match_count=count,
            )
        expected_field, expected_rounds = SUPPORTED_SHAPES[count]

        if self.rounds != expected_rounds:
            raise BracketShapeError(
                f"A {count}-match bracket must have {expected_rounds} rounds, found {self.rounds}",
                match_count=count,
            )
        if self.seeds != list(range(1, expected_field + 1)):
            raise BracketShapeError(
                f"Bracket must seat seeds 1..{expected_field} exactly once",
                match_count=count,
            )
        if field_size is not None and field_size != expected_field:
            raise BracketShapeError(
                f"Bracket is for {expected_field} players but the field has {field_size}",
                match_count=count,
                field_size=field_size,
            )

        final = self.get_match(self.final_match_id)
        if final.round_num != expected_rounds or final.feeds is not None:
            raise BracketShapeError(f"{self.final_match_id} is not the championship match")

        semifinals = self.get_round_matches(expected_rounds - 1)
        if sorted(m.match_id for m in semifinals) != sorted(self.semifinal_ids) or len(semifinals) != 2:
            raise BracketShapeError("Bracket must have exactly two semifinal matches")

        played = set()
        for match in self.matches:
            for slot in match.slots:
                if slot.is_empty:
                    raise BracketShapeError(f"{match.match_id} has an unfilled slot")
                if slot.source is not None and slot.source not in played:
                    raise BracketShapeError(
                        f"{match.match_id} depends on the {slot}, which is not played before it"
                    )
            if match.match_id != self.final_match_id and match.feeds is None:
                raise BracketShapeError(f"{match.match_id} does not feed any later match")
            played.add(match.match_id)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BracketTemplate":
        """
        Build a template from the bracket JSON layout.

        Raises:
            BracketShapeError: feeds that point at unknown matches or slots,
                or no championship match
        """
        placeholders = {k for k, v in data.items() if v.get("final")}
        entries = {k: v for k, v in data.items() if k not in placeholders}

        slots: Dict[str, List[Slot]] = {}
        for match_id, entry in entries.items():
            if "round" not in entry:
                raise BracketShapeError(f"{match_id} has no round number")
            players = list(entry.get("players") or [None, None])
            if len(players) != 2:
                raise BracketShapeError(f"{match_id} must have exactly two player slots")
            slots[match_id] = [
                Slot(seed=int(p)) if isinstance(p, int) and not isinstance(p, bool) and p > 0 else Slot()
                for p in players
            ]

        feeds: Dict[str, Optional[Tuple[str, int]]] = {}
        champions = []
        for match_id, entry in entries.items():
            target = entry.get("feeds")
            if not target:
                feeds[match_id] = None
                continue
            dest, index = target[0], int(target[1])
            if dest in placeholders:
                feeds[match_id] = None
                champions.append(match_id)
                continue
            if dest not in slots or index not in (0, 1):
                raise BracketShapeError(f"{match_id} feeds unknown slot {dest}[{index}]")
            if not slots[dest][index].is_empty:
                raise BracketShapeError(f"{match_id} feeds {dest}[{index}], which is already filled")
            slots[dest][index] = Slot(source=match_id)
            feeds[match_id] = (dest, index)

        if not champions:
            # Accept templates without a placeholder entry: the championship
            # is then the only match that feeds nothing.
            champions = [m for m, f in feeds.items() if f is None]
        if len(champions) != 1:
            raise BracketShapeError(
                f"Expected exactly one championship match, found {len(champions)}"
            )

        matches = sorted(
            (
                Match(
                    match_id=match_id,
                    sequence=match_sequence(match_id),
                    round_num=int(entry["round"]),
                    slots=tuple(slots[match_id]),
                    feeds=feeds[match_id],
                )
                for match_id, entry in entries.items()
            ),
            key=lambda m: m.sequence,
        )

        final = next(m for m in matches if m.match_id == champions[0])
        semifinal_ids = tuple(
            s.source for s in final.slots
            if s.source is not None
        )
        return cls(matches=tuple(matches), final_match_id=final.match_id, semifinal_ids=semifinal_ids)

    @classmethod
    def from_json(cls, path: Path) -> "BracketTemplate":
        """Load a bracket JSON file."""
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Bracket file not found: {path}")
        template = cls.from_dict(json.loads(path.read_text(encoding="utf-8")))
        logger.info(f"Loaded bracket with {template.match_count} matches across {template.rounds} rounds from {path}")
        return template

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to the bracket JSON layout, including the placeholder."""
        last = max(m.sequence for m in self.matches)
        placeholder = f"w{last + 1}"
        data: Dict[str, Any] = {}
        for m in self.matches:
            feeds = m.feeds if m.feeds is not None else (placeholder, 0)
            data[m.match_id] = {
                "round": m.round_num,
                "players": [s.seed for s in m.slots],
                "feeds": [feeds[0], feeds[1]],
            }
        data[placeholder] = {
            "round": self.rounds + 1,
            "players": [None, None],
            "final": True,
        }
        return data


def _pair_up(sources: List[Any], round_num: int, data: Dict[str, Dict]) -> List[str]:
    """Create one round of matches from adjacent sources; returns the new match ids."""
    created = []
    for i in range(0, len(sources), 2):
        match_id = f"w{len(data) + 1}"
        players = []
        for position, source in enumerate(sources[i:i + 2]):
            if isinstance(source, int):
                players.append(source)
            else:
                players.append(None)
                data[source]["feeds"] = [match_id, position]
        data[match_id] = {"round": round_num, "players": players}
        created.append(match_id)
    return created


def standard_bracket(field_size: int) -> BracketTemplate:
    """
    Built-in bracket for a 16 or 24 player field.

    16: four rounds, 1v16, 8v9, 5v12, ... in the first round.
    24: seeds 9-24 play an opening round; seeds 1-8 enter in round 2
    against the winner of (17 - s) v (16 + s).
    """
    data: Dict[str, Dict] = {}
    if field_size == 16:
        sources: List[Any] = list(BRACKET_SLOT_ORDER)
        round_num = 1
    elif field_size == 24:
        openers = _pair_up(
            [seed for s in BYE_SEED_ORDER for seed in (17 - s, 16 + s)], 1, data
        )
        sources = [x for s, opener in zip(BYE_SEED_ORDER, openers) for x in (s, opener)]
        round_num = 2
    else:
        raise BracketShapeError(
            f"No built-in bracket for a field of {field_size}", field_size=field_size
        )

    while len(sources) > 1:
        sources = _pair_up(sources, round_num, data)
        round_num += 1

    data[f"w{len(data) + 1}"] = {"round": round_num, "players": [None, None], "final": True}
    data[sources[0]]["feeds"] = [f"w{len(data)}", 0]
    return BracketTemplate.from_dict(data)
