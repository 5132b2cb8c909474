#!/usr/bin/env python3
"""
Diplomacy: pairwise relation state machine between players.

    neutral -> allied            (offer + accept)
    neutral/allied -> war        (declare, no acceptance needed)
    war -> neutral               (propose + accept peace)

Invalid requests never raise; validate_diplomatic_action explains why and
apply_diplomatic_action hands back the world untouched.
"""
from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import Dict, List, Optional, Tuple

from nexus.models import (
    DiplomaticRelation,
    DiplomaticStatus,
    OfferType,
    PendingOffer,
    ValidationResult,
    World,
)
from nexus.models.events import (
    AllianceFormed,
    AllianceOffered,
    AllianceRejected,
    GameEvent,
    PeaceMade,
    PeaceProposed,
    WarDeclared,
    create_event,
)


class DiplomaticAction(str, Enum):
    OFFER_ALLIANCE = "offer_alliance"
    ACCEPT_ALLIANCE = "accept_alliance"
    REJECT_ALLIANCE = "reject_alliance"
    DECLARE_WAR = "declare_war"
    PROPOSE_PEACE = "propose_peace"
    ACCEPT_PEACE = "accept_peace"


@dataclass(frozen=True)
class DiplomaticActionRequest:
    player_id: str
    target_player_id: str
    action: DiplomaticAction
    tick: int


@dataclass(frozen=True)
class DiplomacyResult:
    world: World
    events: Tuple[GameEvent, ...]


def relation_key(player_a: str, player_b: str) -> Tuple[str, str]:
    return (player_a, player_b) if player_a < player_b else (player_b, player_a)


# ---------- Queries ----------


def get_diplomatic_status(world: World, player_a: str, player_b: str) -> DiplomaticStatus:
    if player_a == player_b:
        return DiplomaticStatus.NEUTRAL
    relation = world.relations.get(relation_key(player_a, player_b))
    return relation.status if relation is not None else DiplomaticStatus.NEUTRAL


def get_all_relations(world: World, player_id: str) -> List[DiplomaticRelation]:
    return [
        relation
        for key, relation in sorted(world.relations.items())
        if player_id in key
    ]


def get_pending_offers_for(world: World, player_id: str) -> List[PendingOffer]:
    return [o for o in world.pending_offers if o.to_player_id == player_id]


def are_allied(world: World, player_a: str, player_b: str) -> bool:
    return get_diplomatic_status(world, player_a, player_b) == DiplomaticStatus.ALLIED


def are_at_war(world: World, player_a: str, player_b: str) -> bool:
    return get_diplomatic_status(world, player_a, player_b) == DiplomaticStatus.WAR


def _owns_any_node(world: World, player_id: str) -> bool:
    return any(node.owner_id == player_id for node in world.nodes.values())


def _find_offer(
    world: World, from_player: str, to_player: str, offer_type: OfferType
) -> Optional[PendingOffer]:
    for offer in world.pending_offers:
        if (
            offer.from_player_id == from_player
            and offer.to_player_id == to_player
            and offer.type == offer_type
        ):
            return offer
    return None


def is_known_player(world: World, player_id: str) -> bool:
    return not world.players or player_id in world.players


# ---------- Validation ----------


def validate_diplomatic_action(
    world: World, request: DiplomaticActionRequest
) -> ValidationResult:
    actor = request.player_id
    target = request.target_player_id

    if actor == target:
        return ValidationResult.reject("Cannot perform diplomatic action with yourself")
    if not is_known_player(world, actor) or not is_known_player(world, target):
        return ValidationResult.reject("Unknown player")

    status = get_diplomatic_status(world, actor, target)
    action = request.action

    if action == DiplomaticAction.OFFER_ALLIANCE:
        if status == DiplomaticStatus.ALLIED:
            return ValidationResult.reject("Already allied with this player")
        if status == DiplomaticStatus.WAR:
            return ValidationResult.reject("Cannot offer alliance while at war")
        if _find_offer(world, actor, target, OfferType.ALLIANCE):
            return ValidationResult.reject("Alliance offer already pending")
    elif action in (DiplomaticAction.ACCEPT_ALLIANCE, DiplomaticAction.REJECT_ALLIANCE):
        if not _find_offer(world, target, actor, OfferType.ALLIANCE):
            return ValidationResult.reject("No pending alliance offer from this player")
    elif action == DiplomaticAction.DECLARE_WAR:
        if status == DiplomaticStatus.WAR:
            return ValidationResult.reject("Already at war with this player")
        if not _owns_any_node(world, actor):
            return ValidationResult.reject(
                "You must control at least one node to declare war"
            )
        if not _owns_any_node(world, target):
            return ValidationResult.reject("Target player must control at least one node")
    elif action == DiplomaticAction.PROPOSE_PEACE:
        if status != DiplomaticStatus.WAR:
            return ValidationResult.reject("Can only propose peace during war")
        if _find_offer(world, actor, target, OfferType.PEACE):
            return ValidationResult.reject("Peace proposal already pending")
    elif action == DiplomaticAction.ACCEPT_PEACE:
        if not _find_offer(world, target, actor, OfferType.PEACE):
            return ValidationResult.reject("No pending peace proposal from this player")
    else:
        return ValidationResult.reject("Unknown diplomatic action")

    return ValidationResult.ok()


# ---------- Application ----------


def apply_diplomatic_action(
    world: World, request: DiplomaticActionRequest
) -> DiplomacyResult:
    if not validate_diplomatic_action(world, request):
        return DiplomacyResult(world=world, events=())

    actor = request.player_id
    target = request.target_player_id
    tick = request.tick
    key = relation_key(actor, target)
    relations: Dict[Tuple[str, str], DiplomaticRelation] = dict(world.relations)
    offers = list(world.pending_offers)
    action = request.action

    def set_status(status: DiplomaticStatus) -> None:
        relations[key] = DiplomaticRelation(
            player1_id=key[0], player2_id=key[1], status=status, established_tick=tick
        )

    def drop_offer(from_player: str, to_player: str, offer_type: OfferType) -> None:
        offers[:] = [
            o
            for o in offers
            if not (
                o.from_player_id == from_player
                and o.to_player_id == to_player
                and o.type == offer_type
            )
        ]

    if action == DiplomaticAction.OFFER_ALLIANCE:
        offers.append(PendingOffer(actor, target, OfferType.ALLIANCE, tick))
        payload = AllianceOffered(from_player_id=actor, to_player_id=target)
    elif action == DiplomaticAction.ACCEPT_ALLIANCE:
        drop_offer(target, actor, OfferType.ALLIANCE)
        set_status(DiplomaticStatus.ALLIED)
        payload = AllianceFormed(player1_id=actor, player2_id=target)
    elif action == DiplomaticAction.REJECT_ALLIANCE:
        drop_offer(target, actor, OfferType.ALLIANCE)
        payload = AllianceRejected(from_player_id=target, to_player_id=actor)
    elif action == DiplomaticAction.DECLARE_WAR:
        set_status(DiplomaticStatus.WAR)
        offers = [
            o
            for o in offers
            if relation_key(o.from_player_id, o.to_player_id) != key
        ]
        payload = WarDeclared(declarer_id=actor, target_id=target)
    elif action == DiplomaticAction.PROPOSE_PEACE:
        offers.append(PendingOffer(actor, target, OfferType.PEACE, tick))
        payload = PeaceProposed(from_player_id=actor, to_player_id=target)
    else:
        drop_offer(target, actor, OfferType.PEACE)
        set_status(DiplomaticStatus.NEUTRAL)
        payload = PeaceMade(player1_id=actor, player2_id=target)

    new_world = replace(world, relations=relations, pending_offers=tuple(offers))
    return DiplomacyResult(world=new_world, events=(create_event(tick, actor, payload),))
