from __future__ import annotations

from dataclasses import dataclass
from typing import Union, get_args

from .world_config import GameSpeed


# Control intents change the clock rather than the world contents.


@dataclass(frozen=True)
class Pause:
    player_id: str


@dataclass(frozen=True)
class Resume:
    player_id: str


@dataclass(frozen=True)
class SetSpeed:
    player_id: str
    speed: GameSpeed


# Player intents, applied in submission order at the start of a tick.


@dataclass(frozen=True)
class ClaimNode:
    player_id: str
    node_id: str


@dataclass(frozen=True)
class AbandonNode:
    player_id: str
    node_id: str


@dataclass(frozen=True)
class OfferAlliance:
    player_id: str
    target_player_id: str


@dataclass(frozen=True)
class AcceptAlliance:
    player_id: str
    target_player_id: str  # the player who made the offer


@dataclass(frozen=True)
class RejectAlliance:
    player_id: str
    target_player_id: str


@dataclass(frozen=True)
class DeclareWar:
    player_id: str
    target_player_id: str


@dataclass(frozen=True)
class ProposePeace:
    player_id: str
    target_player_id: str


@dataclass(frozen=True)
class AcceptPeace:
    player_id: str
    target_player_id: str


@dataclass(frozen=True)
class ActivateGateway:
    player_id: str
    connection_id: str


ControlIntent = Union[Pause, Resume, SetSpeed]
DiplomaticIntent = Union[
    OfferAlliance,
    AcceptAlliance,
    RejectAlliance,
    DeclareWar,
    ProposePeace,
    AcceptPeace,
]
Intent = Union[
    Pause,
    Resume,
    SetSpeed,
    ClaimNode,
    AbandonNode,
    OfferAlliance,
    AcceptAlliance,
    RejectAlliance,
    DeclareWar,
    ProposePeace,
    AcceptPeace,
    ActivateGateway,
]

INTENT_TYPES = get_args(Intent)
CONTROL_INTENTS = (Pause, Resume, SetSpeed)
DIPLOMATIC_INTENTS = (
    OfferAlliance,
    AcceptAlliance,
    RejectAlliance,
    DeclareWar,
    ProposePeace,
    AcceptPeace,
)


def is_intent(intent: object) -> bool:
    return isinstance(intent, INTENT_TYPES)


def is_control_intent(intent: object) -> bool:
    return isinstance(intent, CONTROL_INTENTS)
