"""Tests for metrics, plotting data and the CLI."""

import json
import os

import pytest

from dialogue_sim import __version__
from dialogue_sim.analysis.metrics import MetricsCollector, belief_accuracy
from dialogue_sim.cli import main
from dialogue_sim.dialog.conversation import Speaker
from dialogue_sim.dialog.manager import DialogConfig
from dialogue_sim.knowledge.model import EvidenceModel
from dialogue_sim.scenarios.small_talk import MUSIC_FACET, MUSIC_TOPIC, create_world
from dialogue_sim.visualization.plots import BeliefPlotter


@pytest.fixture
def finished():
    """A small-talk world whose conversation has been run with metrics attached."""
    world = create_world(DialogConfig(seed=21))
    collector = MetricsCollector("test")
    world.manager.on_move(collector.record_move)
    conversation = world.manager.new_conversation(Speaker.PERSON0, 0.2, world.alice, world.bob)
    world.manager.run_conversation(conversation)
    return world, conversation, collector


def music_facet(entity):
    return next(f for f in entity.relevant_facets() if f.name == MUSIC_FACET)


class TestMetrics:
    """Tests for MetricsCollector and belief_accuracy."""

    def test_finalize(self, finished):
        world, conversation, collector = finished

        metrics = collector.finalize(conversation)

        assert metrics.conversation_id == "test"
        assert metrics.participants == ["Alice", "Bob"]
        assert metrics.total_turns == 5
        assert metrics.finished
        assert metrics.moves_per_speaker == {"Alice": 3, "Bob": 2}
        assert metrics.moves_per_definition["simple_greet"] == 2
        assert metrics.tags_addressed["make small talk"] == 3
        assert metrics.obligations_pushed == 2
        assert metrics.topics_introduced == [MUSIC_TOPIC]
        assert metrics.topics_addressed == [MUSIC_TOPIC]
        assert metrics.belief_accuracy == {"Alice->Bob": 0.5, "Bob->Alice": 0.5}

    def test_to_json(self, finished):
        world, conversation, collector = finished

        data = json.loads(collector.finalize(conversation).to_json())

        assert data["total_turns"] == 5
        assert data["end_time"] is not None

    def test_timeline(self, finished):
        world, conversation, collector = finished

        timeline = collector.get_timeline()

        assert [entry["turn"] for entry in timeline] == [0, 1, 2, 3, 4]
        assert timeline[2]["move"] == "ask_fav_music_genre"
        assert collector.get_top_moves(1)[0][1] == 2

    def test_export_to_csv(self, finished, tmp_path):
        world, conversation, collector = finished
        path = tmp_path / "timeline.csv"

        collector.export_to_csv(str(path))

        assert path.read_text().splitlines()[0] == "turn,speaker,move,utterance"

    def test_belief_accuracy_of_empty_model(self):
        world = create_world()

        assert belief_accuracy(EvidenceModel(world.alice, world.bob)) == 0.0

    def test_belief_accuracy_of_reflexive_model(self):
        world = create_world()

        assert belief_accuracy(world.alice.get_model("Alice")) == 1.0


class TestBeliefPlotter:
    """Tests for BeliefPlotter without matplotlib."""

    @pytest.fixture
    def plotter(self, tmp_path):
        plotter = BeliefPlotter(str(tmp_path))
        plotter._has_matplotlib = False
        return plotter

    def test_plot_belief_returns_data(self, plotter, finished):
        world, conversation, collector = finished
        model = world.alice.get_model("Bob")

        data = plotter.plot_belief(model, music_facet(world.bob))

        assert data["values"] == ["jazz", "rock", "metal", "calypso"]
        assert data["strengths"] == [0.0, 0.0, 100.0, 0.0]
        assert data["strongest"] == "metal"
        assert data["truth"] == "metal"

    def test_infinite_strength_is_exported_as_none(self, plotter):
        world = create_world()
        model = world.alice.get_model("Alice")

        data = plotter.belief_data(model, music_facet(world.alice))

        assert data["strengths"] == [None, 0.0, 0.0, 0.0]

    def test_plot_timeline_returns_data(self, plotter, finished):
        world, conversation, collector = finished

        data = plotter.plot_timeline(collector.get_timeline())

        assert data["speakers"] == ["Alice", "Bob"]
        assert data["speaker_index"] == [0, 1, 0, 1, 0]

    def test_export_plot_data(self, plotter, tmp_path):
        path = tmp_path / "data.json"

        plotter.export_plot_data({"a": 1}, str(path))

        assert json.loads(path.read_text()) == {"a": 1}

    def test_summary_report(self, plotter, finished, tmp_path):
        world, conversation, collector = finished
        beliefs = [
            plotter.belief_data(world.alice.get_model("Bob"), facet)
            for facet in world.bob.relevant_facets()
        ]
        path = tmp_path / "report.txt"

        report = plotter.create_summary_report(
            collector.finalize(conversation).to_dict(), beliefs, str(path),
        )

        assert "DIALOGUE SIMULATION REPORT" in report
        assert "Alice thinks Bob's favorite music genre is metal (actually metal)" in report
        assert "doesn't know" in report
        assert path.read_text() == report


class TestCli:
    """Tests for the command-line interface."""

    def test_version(self, capsys):
        assert main(["-v"]) == 0
        assert __version__ in capsys.readouterr().out

    def test_no_command_prints_help(self, capsys):
        assert main([]) == 0
        assert "demo" in capsys.readouterr().out

    def test_demo(self, capsys):
        assert main(["demo", "-s", "4"]) == 0

        out = capsys.readouterr().out
        assert "Transcript:" in out
        assert "favorite music genre: metal (actually metal)" in out
        assert "hair color: doesn't know" in out

    def test_demo_writes_outputs(self, tmp_path, capsys):
        output_dir = str(tmp_path / "out")

        assert main(["demo", "-s", "4", "--initiator", "1", "-o", output_dir]) == 0

        assert os.path.exists(os.path.join(output_dir, "conversation_report.txt"))
        assert os.path.exists(os.path.join(output_dir, "beliefs.json"))
        with open(os.path.join(output_dir, "metrics.json")) as f:
            assert json.load(f)["finished"] is True
