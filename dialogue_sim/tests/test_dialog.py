"""Tests for obligations, topics, goals and the move graph."""

import random

import pytest

from dialogue_sim.dialog.conversation import Conversation, Speaker
from dialogue_sim.dialog.goals import (
    ConcatGoals,
    EagerGoalSequence,
    GoalMove,
    GoalSequence,
    PerformGoalMove,
    RepeatGoalMove,
)
from dialogue_sim.dialog.history import HistoricalMove
from dialogue_sim.dialog.moves import MoveDefinition, MoveGraph, literal
from dialogue_sim.dialog.obligations import MoveObligations, ObligationQueue
from dialogue_sim.dialog.topics import TopicCounters, TopicState
from dialogue_sim.errors import ConfigurationError, MoveCycleError
from dialogue_sim.knowledge.entity import Entity


def make_conversation(seed=0):
    return Conversation(
        Speaker.PERSON0, 0.2, Entity("A", {}), Entity("B", {}), random.Random(seed),
    )


def made(speaker, *tags):
    """A historical move in which ``speaker`` addressed ``tags``."""
    hmove = HistoricalMove(speaker=speaker, move_id="test")
    for tag in tags:
        hmove.get_my_obligations().address(tag)
    return hmove


class TestObligationQueue:
    """Tests for ObligationQueue."""

    @pytest.fixture
    def queue(self):
        return ObligationQueue()

    def test_insert_and_get(self, queue):
        queue.insert_obligation("greet", urgency=5, time_to_live=2)

        obligation = queue.get_obligation("greet")
        assert obligation.urgency == 5
        assert obligation.time_to_live == 2
        assert obligation.times_pushed == 0

    def test_insert_replaces(self, queue):
        queue.insert_obligation("greet", urgency=5, time_to_live=2, times_pushed=4)
        queue.insert_obligation("greet", urgency=1, time_to_live=7)

        obligation = queue.get_obligation("greet")
        assert (obligation.urgency, obligation.time_to_live, obligation.times_pushed) == (1, 7, 0)
        assert len(queue) == 1

    def test_missing_obligation_is_none(self, queue):
        assert queue.get_obligation("greet") is None
        assert not queue.address("greet")

    def test_push_creates_then_accumulates(self, queue):
        queue.push("answer", times_pushed=1, time_to_live=3)
        queue.timestep()
        queue.push("answer", times_pushed=2, time_to_live=3, urgency=4)

        obligation = queue.get_obligation("answer")
        assert obligation.times_pushed == 3
        assert obligation.time_to_live == 3
        assert obligation.urgency == 4

    def test_push_never_lowers_urgency(self, queue):
        queue.insert_obligation("answer", urgency=10)
        queue.push("answer", urgency=2)

        assert queue.get_obligation("answer").urgency == 10

    def test_expires_after_time_to_live_turns(self, queue):
        queue.insert_obligation("greet", time_to_live=3)

        present = []
        for _ in range(5):
            present.append(queue.get_obligation("greet") is not None)
            queue.timestep()

        assert present == [True, True, True, False, False]

    def test_address_removes_immediately(self, queue):
        queue.insert_obligation("greet", time_to_live=100)

        assert queue.address("greet")
        assert queue.get_obligation("greet") is None

    def test_timestep_only_named_tags(self, queue):
        queue.insert_obligation("old", time_to_live=1)
        queue.insert_obligation("new", time_to_live=1)

        expired = queue.timestep(["old"])

        assert expired == ["old"]
        assert queue.tags() == ["new"]

    def test_ordered_by_urgency_then_insertion(self, queue):
        queue.insert_obligation("a", urgency=1)
        queue.insert_obligation("b", urgency=5)
        queue.insert_obligation("c", urgency=1)

        assert [o.tag for o in queue.ordered()] == ["b", "a", "c"]

    def test_merge_addresses_then_pushes(self, queue):
        queue.insert_obligation("greet")
        record = MoveObligations()
        record.address("greet")
        record.push("answer", 1, 3)

        queue.merge(record)

        assert "greet" not in queue
        assert queue.get_obligation("answer").times_pushed == 1

    def test_reinserted_tag_keeps_its_position(self, queue):
        queue.insert_obligation("a", urgency=1)
        queue.insert_obligation("b", urgency=1)
        queue.insert_obligation("a", urgency=1, time_to_live=9)

        assert [o.tag for o in queue.ordered()] == ["a", "b"]

        queue.address("a")
        queue.insert_obligation("a", urgency=1)

        assert [o.tag for o in queue.ordered()] == ["b", "a"]

    def test_zero_time_to_live_is_never_stored(self, queue):
        queue.insert_obligation("special", urgency=10, time_to_live=0)
        queue.push("answer", time_to_live=0)

        assert queue.get_obligation("special") is None
        assert queue.get_obligation("answer") is None
        assert len(queue) == 0

    def test_zero_time_to_live_expires_live_obligation(self, queue):
        queue.insert_obligation("greet", time_to_live=5)
        queue.insert_obligation("answer", time_to_live=5)

        queue.insert_obligation("greet", time_to_live=0)
        queue.push("answer", time_to_live=-1)

        assert queue.tags() == []

    def test_merged_zero_time_to_live_is_dropped(self, queue):
        record = MoveObligations()
        record.push("answer", 1, 0)

        queue.merge(record)

        assert "answer" not in queue

    def test_queue_defaults_fill_missing_values(self):
        queue = ObligationQueue(default_urgency=2, default_time_to_live=5)
        record = MoveObligations()
        record.push("answer")

        queue.insert_obligation("greet")
        queue.merge(record)

        greet = queue.get_obligation("greet")
        answer = queue.get_obligation("answer")
        assert (greet.urgency, greet.time_to_live) == (2, 5)
        assert (answer.urgency, answer.time_to_live) == (2, 5)

    def test_record_push_keeps_longest_time_to_live(self):
        record = MoveObligations()
        record.push("answer")
        record.push("answer", time_to_live=4)
        record.push("answer", time_to_live=2)

        assert record.pushed["answer"].time_to_live == 4
        assert record.pushed["answer"].times_pushed == 3


class TestTopicState:
    """Tests for TopicState and per-participant counters."""

    def test_lifecycle(self):
        topics = TopicState()

        assert topics.can_be_introduced("fav music genre")
        assert not topics.can_be_addressed("fav music genre")

        topics.introduce("fav music genre")
        assert not topics.can_be_introduced("fav music genre")
        assert topics.can_be_addressed("fav music genre")
        assert topics.pending_topics() == ["fav music genre"]

        topics.address("fav music genre")
        assert not topics.can_be_addressed("fav music genre")
        assert topics.pending_topics() == []

    def test_address_without_introduce(self):
        topics = TopicState()
        topics.address("weather")

        assert topics.can_be_introduced("weather")
        assert not topics.can_be_addressed("weather")

    def test_reintroduce_warns(self, caplog):
        topics = TopicState()
        topics.introduce("weather")

        with caplog.at_level("WARNING"):
            topics.introduce("weather")

        assert "already introduced" in caplog.text
        assert topics.is_introduced("weather")

    def test_merge(self):
        topics = TopicState()
        delta = TopicState()
        delta.introduce("weather")
        delta.address("news")

        topics.merge(delta)

        assert topics.is_introduced("weather")
        assert topics.is_addressed("news")

    def test_counters(self):
        counters = TopicCounters()
        counters.record(["weather"], ["weather", "news"])

        assert counters.get("weather").times_introduced == 1
        assert counters.get("news").times_addressed == 1
        assert counters.get("sport").times_addressed == 0


class TestGoals:
    """Tests for the stock goals."""

    def test_perform_goal_move(self):
        goal = PerformGoalMove(GoalMove("ask"))

        assert goal.next_step(None) == GoalMove("ask")
        goal.made_move(None, made(Speaker.PERSON0, "greet"))
        assert not goal.is_satisfied()
        goal.made_move(None, made(Speaker.PERSON1, "ask"))
        assert goal.is_satisfied()
        assert goal.next_step(None) is None

    def test_pursuer_restriction(self):
        goal = PerformGoalMove(GoalMove("ask", pursuer=Speaker.PERSON1))

        goal.made_move(None, made(Speaker.PERSON0, "ask"))
        assert not goal.is_satisfied()
        goal.made_move(None, made(Speaker.PERSON1, "ask"))
        assert goal.is_satisfied()

    def test_satisfied_by_other_participants_record(self):
        goal = PerformGoalMove(GoalMove("answer"))
        hmove = HistoricalMove(speaker=Speaker.PERSON0, move_id="test")
        hmove.get_others_obligations().address("answer")

        goal.made_move(None, hmove)

        assert goal.is_satisfied()

    def test_repeat_needs_one_more_than_max_reps(self):
        goal = RepeatGoalMove(GoalMove("make small talk"), 2)

        completions = 0
        while not goal.is_satisfied():
            assert goal.next_step(None) == GoalMove("make small talk")
            goal.made_move(None, made(Speaker.PERSON0, "make small talk"))
            completions += 1

        assert completions == 3
        assert goal.next_step(None) is None

    def test_repeat_ignores_other_moves(self):
        goal = RepeatGoalMove(GoalMove("make small talk"), 0)

        goal.made_move(None, made(Speaker.PERSON0, "greet"))

        assert goal.reps == 0
        assert not goal.is_satisfied()

    def test_sequence_strikes_out_any_member(self):
        goal = GoalSequence([GoalMove("a"), GoalMove("b"), GoalMove("c")])

        goal.made_move(None, made(Speaker.PERSON0, "b"))
        assert goal.next_step(None) == GoalMove("a")
        goal.made_move(None, made(Speaker.PERSON0, "a"))
        assert goal.next_step(None) == GoalMove("c")
        goal.made_move(None, made(Speaker.PERSON0, "c"))
        assert goal.is_satisfied()

    def test_eager_sequence_finishes_on_last_move(self):
        goal = EagerGoalSequence([GoalMove("a"), GoalMove("b"), GoalMove("c")])

        goal.made_move(None, made(Speaker.PERSON0, "c"))

        assert goal.is_satisfied()
        assert goal.next_step(None) is None

    def test_concat(self):
        goal = ConcatGoals(PerformGoalMove(GoalMove("a")), PerformGoalMove(GoalMove("b")))

        assert goal.next_step(None) == GoalMove("a")
        goal.made_move(None, made(Speaker.PERSON0, "a"))
        assert goal.next_step(None) == GoalMove("b")
        assert not goal.is_satisfied()
        goal.made_move(None, made(Speaker.PERSON1, "b"))
        assert goal.is_satisfied()


class TestMoveGraph:
    """Tests for MoveGraph validation, expansion and rendering."""

    @pytest.fixture
    def graph(self):
        return MoveGraph([
            MoveDefinition("hello", formatter=literal("Hello")),
            MoveDefinition("hi", formatter=literal("Hi")),
            MoveDefinition(
                "greet",
                formatter=lambda conversation, parts: "".join(parts) + ".",
                dialog_moves=["greet"],
                parts=[["hello", "hi"]],
            ),
            MoveDefinition(
                "raw_name",
                formatter=lambda conversation, parts: conversation.get_my_state().name,
                dialog_moves=["say name"],
            ),
            MoveDefinition(
                "introduce",
                formatter=lambda conversation, parts: f"I am {parts[0]}.",
                dialog_moves=["introduce"],
                addressed_topics=["names"],
                parts=[["raw_name"]],
            ),
        ])

    def test_missing_reference_rejected(self):
        with pytest.raises(ConfigurationError):
            MoveGraph([MoveDefinition("greet", parts=[["hello"]])])

    def test_empty_alternatives_rejected(self):
        with pytest.raises(ConfigurationError):
            MoveGraph([MoveDefinition("greet", parts=[[]])])

    def test_cycle_rejected(self):
        with pytest.raises(ConfigurationError, match="cyclic"):
            MoveGraph([
                MoveDefinition("a", parts=[["b"]]),
                MoveDefinition("b", parts=[["c"]]),
                MoveDefinition("c", parts=[["a"]]),
            ])

    def test_duplicate_name_rejected(self):
        with pytest.raises(ConfigurationError):
            MoveGraph([MoveDefinition("a"), MoveDefinition("a")])

    def test_indexes(self, graph):
        assert graph.addressing_move("greet") == ["greet"]
        assert graph.addressing_topic("names") == ["introduce"]
        assert graph.parents_of("hello") == ["greet"]
        assert graph.is_top_level("greet")
        assert not graph.is_top_level("raw_name")
        assert [d.name for d in graph.top_level_moves()] == ["greet", "introduce"]

    def test_insert_invalid_is_rolled_back(self, graph):
        with pytest.raises(ConfigurationError):
            graph.insert(MoveDefinition("broken", parts=[["nowhere"]]))

        assert "broken" not in graph
        assert graph.get("greet") is not None

    def test_remove_referenced_move_is_rolled_back(self, graph):
        with pytest.raises(ConfigurationError):
            graph.remove("hello")

        assert "hello" in graph

    def test_remove_missing_is_none(self, graph):
        assert graph.remove("nothing") is None

    def test_forward_chain_renders_alternative(self, graph):
        conversation = make_conversation()

        tree = graph.expand_dialog_move(conversation, "greet")

        assert tree.name == "greet"
        assert tree.create_utterance(conversation) in ("Hello.", "Hi.")

    def test_precondition_filters_alternatives(self, graph):
        graph.insert(MoveDefinition(
            "hi", formatter=literal("Hi"), precondition=lambda conversation: False,
        ))
        conversation = make_conversation()

        for _ in range(10):
            tree = graph.expand_dialog_move(conversation, "greet")
            assert tree.create_utterance(conversation) == "Hello."

    def test_no_admissible_alternative_is_none(self, graph):
        blocked = lambda conversation: False
        graph.insert(MoveDefinition("hi", formatter=literal("Hi"), precondition=blocked))
        graph.insert(MoveDefinition("hello", formatter=literal("Hello"), precondition=blocked))

        assert graph.expand_dialog_move(make_conversation(), "greet") is None

    def test_unknown_tag_is_none(self, graph):
        assert graph.expand_dialog_move(make_conversation(), "dance") is None

    def test_backward_chain_wraps_part(self, graph):
        conversation = make_conversation()

        tree = graph.expand_dialog_move(conversation, "say name")

        assert tree.name == "introduce"
        assert [part.name for part in tree.parts] == ["raw_name"]
        assert tree.create_utterance(conversation) == "I am A."

    def test_create_historical_addresses_whole_tree(self, graph):
        conversation = make_conversation()
        tree = graph.expand_dialog_move(conversation, "introduce")
        hmove = HistoricalMove(speaker=conversation.speaker, move_id=tree.name)

        tree.create_historical(conversation, hmove)

        assert hmove.realized_moves == ["raw_name", "introduce"]
        assert hmove.person0_obligations.addressed == {"say name", "introduce"}
        assert hmove.topic_state.is_addressed("names")
        assert hmove.was_move_satisfied("introduce")

    def test_cycle_at_expansion_time(self, graph):
        # Edit definitions in place, skipping validation.
        graph.get("greet").parts[0] = ["hello"]
        graph.get("hello").parts.append(["greet"])
        conversation = make_conversation()

        with pytest.raises(MoveCycleError):
            graph.expand_move(conversation, "greet")
