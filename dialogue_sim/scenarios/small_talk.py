"""
Small-talk scenario.

Two characters, Alice and Bob, greet each other and make small talk about
their favourite genre of music. Each learns the other's genre from what
they are told; nobody mentions hair colour, so that stays unknown.
"""

from dataclasses import dataclass
from typing import List, Optional

from ..dialog.conversation import Conversation
from ..dialog.goals import GoalMove, PerformGoalMove, RepeatGoalMove
from ..dialog.history import HistoricalMove
from ..dialog.manager import DialogConfig, DialogManager
from ..dialog.moves import MoveDefinition, literal
from ..knowledge.entity import Entity
from ..knowledge.evidence import EvidenceItem
from ..knowledge.facets import FacetCatalog
from ..knowledge.model import EvidenceModel, ReflexiveModel

MUSIC_FACET = "favorite music genre"
HAIR_FACET = "hair color"
MUSIC_TOPIC = "fav music genre"

MUSIC_GENRES = ["jazz", "rock", "metal", "calypso"]
HAIR_COLORS = ["black", "brown", "blonde", "red"]

FEELINGS = ["happy", "sad", "angry", "upset", "ecstatic", "excited"]

GREET_URGENCY = 1000000
GREET_TIME_TO_LIVE = 5
STATEMENT_STRENGTH = 100
SMALL_TALK_ROUNDS = 2


def build_catalog() -> FacetCatalog:
    catalog = FacetCatalog()
    catalog.add_facet(MUSIC_FACET, MUSIC_GENRES)
    catalog.add_facet(HAIR_FACET, HAIR_COLORS)
    return catalog


def create_character(catalog: FacetCatalog, name: str, genre: str, hair: str) -> Entity:
    return Entity(name, {
        catalog.get_facet(MUSIC_FACET): catalog.value(MUSIC_FACET, genre),
        catalog.get_facet(HAIR_FACET): catalog.value(HAIR_FACET, hair),
    })


def introduce_characters(first: Entity, second: Entity):
    """Give both characters a seeded self-model and an empty model of the other."""
    for holder, other in ((first, second), (second, first)):
        reflexive = ReflexiveModel(holder)
        reflexive.seed_truths()
        holder.add_model(reflexive)
        holder.add_model(EvidenceModel(holder, other))


# ----------------------------------------------------------------------
# Move effects
# ----------------------------------------------------------------------

def _speaker_genre(conversation: Conversation):
    return conversation.get_my_state().character.truths[MUSIC_FACET]


def _knows_others_genre(conversation: Conversation) -> bool:
    me = conversation.get_my_state().character
    other = conversation.get_others_state().character
    model = me.get_model(other.name)
    if model is None:
        return False
    facet = next(f for f in other.relevant_facets() if f.name == MUSIC_FACET)
    return model.get_strongest_belief(facet) is not None


def can_state_genre(conversation: Conversation) -> bool:
    me = conversation.get_my_state()
    if me.obligations.is_obligated("state fav music genre"):
        return True
    return (
        conversation.topic_state.is_introduced(MUSIC_TOPIC)
        and me.topics.get(MUSIC_TOPIC).times_addressed == 0
    )


def state_genre(conversation: Conversation, hmove: HistoricalMove):
    source = conversation.get_speaker_state(hmove.speaker).character
    listener_state = conversation.get_speaker_state(hmove.speaker.other)
    listener = listener_state.character

    model = listener.get_model(source.name)
    model.insert(EvidenceItem.statement(
        source.truths[MUSIC_FACET], STATEMENT_STRENGTH, source=source, data=hmove.turn,
    ))
    model.recompute_total_strengths()
    model.recompute_strongest()

    if listener_state.topics.get(MUSIC_TOPIC).times_addressed == 0:
        hmove.get_others_obligations().push("state fav music genre", 0, 3)


def can_ask_genre(conversation: Conversation) -> bool:
    return not _knows_others_genre(conversation)


def ask_genre(conversation: Conversation, hmove: HistoricalMove):
    hmove.get_others_obligations().push("state fav music genre", 0, 3)
    if conversation.topic_state.can_be_introduced(MUSIC_TOPIC):
        hmove.topic_state.introduce(MUSIC_TOPIC)


def ask_feelings(conversation: Conversation, hmove: HistoricalMove):
    hmove.get_others_obligations().push("state feelings", 0, 3)


def format_feelings(conversation: Conversation, parts: List[str]) -> str:
    return f"I feel {conversation.rng.choice(FEELINGS)}."


def build_moves() -> List[MoveDefinition]:
    return [
        MoveDefinition("hello", formatter=literal("Hello")),
        MoveDefinition("hi", formatter=literal("Hi")),
        MoveDefinition(
            "simple_greet",
            formatter=lambda conversation, parts: "".join(parts) + ".",
            dialog_moves=["greet"],
            parts=[["hello", "hi"]],
        ),
        MoveDefinition(
            "raw_fav_music_genre",
            formatter=lambda conversation, parts: _speaker_genre(conversation).text,
            dialog_moves=["raw fav music genre"],
        ),
        MoveDefinition(
            "state_fav_music_genre",
            formatter=lambda conversation, parts: (
                f"My favorite genre of music is {''.join(parts)}."
            ),
            dialog_moves=["state fav music genre", "make small talk"],
            addressed_topics=[MUSIC_TOPIC],
            precondition=can_state_genre,
            edit_historical_move=state_genre,
            parts=[["raw_fav_music_genre"]],
        ),
        MoveDefinition(
            "ask_fav_music_genre",
            formatter=literal("What's your favorite genre of music?"),
            dialog_moves=["ask fav music genre", "make small talk"],
            precondition=can_ask_genre,
            edit_historical_move=ask_genre,
        ),
        MoveDefinition(
            "state_feelings",
            formatter=format_feelings,
            dialog_moves=["state feelings", "make small talk"],
        ),
        MoveDefinition(
            "ask_feelings",
            formatter=literal("How are you feeling?"),
            dialog_moves=["ask feelings", "make small talk"],
            edit_historical_move=ask_feelings,
        ),
    ]


def initialize(conversation: Conversation):
    """Mutual greetings, one question about music, then small talk."""
    for participant in (conversation.person0, conversation.person1):
        participant.obligations.insert_obligation(
            "greet", urgency=GREET_URGENCY, time_to_live=GREET_TIME_TO_LIVE,
        )
    conversation.insert_goal(PerformGoalMove(GoalMove("ask fav music genre")))
    conversation.insert_goal(RepeatGoalMove(GoalMove("make small talk"), SMALL_TALK_ROUNDS))


@dataclass
class SmallTalkWorld:
    """Everything needed to run the scenario."""
    catalog: FacetCatalog
    alice: Entity
    bob: Entity
    manager: DialogManager


def create_world(config: Optional[DialogConfig] = None) -> SmallTalkWorld:
    catalog = build_catalog()
    alice = create_character(catalog, "Alice", "jazz", "brown")
    bob = create_character(catalog, "Bob", "metal", "black")
    introduce_characters(alice, bob)
    manager = DialogManager(build_moves(), [initialize], config)
    return SmallTalkWorld(catalog, alice, bob, manager)
