"""
Command-line interface for the dialogue simulator.

Runs the small-talk scenario and reports the transcript, what each
participant came to believe, and conversation metrics.
"""

import argparse
import logging
import os
import sys
from typing import List, Optional

from .dialog.conversation import Speaker
from .dialog.manager import DialogConfig
from .analysis.metrics import MetricsCollector
from .scenarios.small_talk import create_world
from .visualization.plots import BeliefPlotter


def run_demo_conversation(args):
    """Run a demonstration conversation."""
    print("=" * 60)
    print("Dialogue Simulator - Demo Conversation")
    print("=" * 60)
    print()

    config = DialogConfig(seed=args.seed, default_threshold=args.threshold)
    world = create_world(config)
    manager = world.manager

    initiator = Speaker(args.initiator)
    conversation = manager.new_conversation(
        initiator, config.default_threshold, world.alice, world.bob,
    )
    print(f"{conversation.get_my_state().name} starts the conversation.")
    print()

    metrics_collector = MetricsCollector()
    manager.on_move(metrics_collector.record_move)

    manager.run_conversation(conversation, max_turns=args.max_turns)

    print("Transcript:")
    for hmove in conversation.history_iter():
        name = conversation.get_speaker_state(hmove.speaker).name
        print(f"  {name}: {hmove.utterance}")
    print()

    plotter = BeliefPlotter(args.output_dir or ".")
    beliefs = []
    for holder, other in ((world.alice, world.bob), (world.bob, world.alice)):
        model = holder.get_model(other.name)
        print(f"What {holder.name} thinks of {other.name}:")
        for facet, summary in model.iter_facets():
            strongest = summary.strongest.text if summary.strongest else "doesn't know"
            truth = model.truth(facet)
            print(f"  {facet.name}: {strongest} (actually {truth.text})")
            beliefs.append(plotter.belief_data(model, facet))
        print()

    final_metrics = metrics_collector.finalize(conversation)
    report = plotter.create_summary_report(final_metrics.to_dict(), beliefs)

    print(report)

    # Save outputs if requested
    if args.output_dir:
        os.makedirs(args.output_dir, exist_ok=True)

        report_path = os.path.join(args.output_dir, "conversation_report.txt")
        with open(report_path, 'w') as f:
            f.write(report)
        print(f"\nReport saved to: {report_path}")

        metrics_path = os.path.join(args.output_dir, "metrics.json")
        with open(metrics_path, 'w') as f:
            f.write(final_metrics.to_json())
        print(f"Metrics saved to: {metrics_path}")

        beliefs_path = os.path.join(args.output_dir, "beliefs.json")
        plotter.export_plot_data({"beliefs": beliefs}, beliefs_path)
        print(f"Beliefs saved to: {beliefs_path}")

    return 0 if conversation.done else 1


def main(argv: Optional[List[str]] = None):
    """Main entry point for CLI."""
    parser = argparse.ArgumentParser(
        prog="dialogue_sim",
        description="""
Dialogue Simulator - turn-based conversations between agents with beliefs

Two characters greet each other and make small talk; what they say is
recorded as evidence in their models of each other.
        """,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Demo command
    demo_parser = subparsers.add_parser(
        "demo",
        help="Run a demonstration conversation",
    )
    demo_parser.add_argument(
        "-s", "--seed",
        type=int,
        default=None,
        help="Random seed for reproducibility",
    )
    demo_parser.add_argument(
        "-t", "--threshold",
        type=float,
        default=0.2,
        help="Weight of free moves that were not requested (default: 0.2)",
    )
    demo_parser.add_argument(
        "--initiator",
        type=int,
        choices=[0, 1],
        default=0,
        help="Which participant speaks first (default: 0)",
    )
    demo_parser.add_argument(
        "--max-turns",
        type=int,
        default=50,
        help="Give up after this many turns (default: 50)",
    )
    demo_parser.add_argument(
        "-o", "--output-dir",
        type=str,
        default=None,
        help="Directory for output files",
    )
    demo_parser.add_argument(
        "--verbose",
        action="store_true",
        help="Log engine decisions to stderr",
    )

    # Version command
    parser.add_argument(
        "-v", "--version",
        action="store_true",
        help="Show version information",
    )

    args = parser.parse_args(argv)

    if args.version:
        from . import __version__
        print(f"Dialogue Simulator v{__version__}")
        return 0

    if args.command == "demo":
        if args.verbose:
            logging.basicConfig(
                level=logging.DEBUG,
                format="%(levelname)s %(name)s: %(message)s",
            )
        return run_demo_conversation(args)
    else:
        parser.print_help()
        return 0


if __name__ == "__main__":
    sys.exit(main())
