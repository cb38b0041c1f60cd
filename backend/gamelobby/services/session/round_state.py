from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Dict, List, Mapping, Optional, Tuple

MIN_PICK = 1
MAX_PICK = 10


class RoundStatus(str, Enum):
    PENDING = 'pending'
    OPEN = 'open'
    RESOLVING = 'resolving'
    COOLDOWN = 'cooldown'


def compute_winners(players: Mapping[str, Optional[int]], winning_number: int) -> Tuple[str, ...]:
    """Return the identities whose pick equals the winning number.

    Players that never picked hold ``None`` and can never match.
    Order follows join order so responses are deterministic.
    """
    return tuple(name for name, pick in players.items() if pick is not None and pick == winning_number)


@dataclass
class Round:
    """The single mutable record for the current (or last resolved) round.

    Only the session engine touches this, and only while holding its lock.
    ``deadline`` is on the scheduler clock; ``opened_at``/``closes_at`` are
    wall-clock epoch seconds for clients and history.
    """
    round_id: str
    opened_at: float
    closes_at: float
    deadline: float
    status: RoundStatus = RoundStatus.OPEN
    players: Dict[str, Optional[int]] = field(default_factory=dict)
    winning_number: Optional[int] = None
    winners: Tuple[str, ...] = ()
    closed_at: Optional[float] = None

    @property
    def is_open(self) -> bool:
        return self.status == RoundStatus.OPEN

    def freeze(self) -> None:
        """Swap ``players`` for a read-only view once the round stops accepting input.

        After this, item assignment on ``players`` raises ``TypeError``.
        """
        self.players = MappingProxyType(dict(self.players))  # type: ignore[assignment]

    def player_list(self) -> List[Dict[str, Optional[int]]]:
        return [{'username': name, 'pick': pick} for name, pick in self.players.items()]

    def results(self) -> Dict[str, object]:
        winners = set(self.winners)
        return {
            'roundId': self.round_id,
            'winningNumber': self.winning_number,
            'players': self.player_list(),
            'winners': [p for p in self.player_list() if p['username'] in winners],
        }

    def to_record(self) -> Dict[str, object]:
        """Detached copy handed to collaborators outside the engine lock."""
        return {
            'round_id': self.round_id,
            'opened_at': self.opened_at,
            'closed_at': self.closed_at,
            'winning_number': self.winning_number,
            'players': self.player_list(),
            'winners': list(self.winners),
        }
