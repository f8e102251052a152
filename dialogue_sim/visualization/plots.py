"""
Plotting utilities for conversation and belief visualization.

Generates visualizations for:
- Per-value evidence strength of one belief
- Turn timelines of a conversation
"""

import json
import math
from typing import Any, Dict, List, Optional

from ..knowledge.facets import Facet
from ..knowledge.model import BeliefModel


def _finite(value: float) -> Optional[float]:
    return value if math.isfinite(value) else None


class BeliefPlotter:
    """
    Creates visualizations for belief models and conversations.

    Every plot method builds a plain data dict first. When matplotlib is
    not installed that dict is returned instead of a figure.
    """

    def __init__(self, output_dir: str = "."):
        """Initialize the belief plotter.

        Args:
            output_dir: Directory path for saving output files. Defaults to
                current directory.
        """
        self.output_dir = output_dir
        self._has_matplotlib = self._check_matplotlib()

    def _check_matplotlib(self) -> bool:
        """Check if matplotlib is available.

        Returns:
            True if matplotlib can be imported, False otherwise.
        """
        try:
            import matplotlib  # noqa: F401
            return True
        except ImportError:
            return False

    def belief_data(self, model: BeliefModel, facet: Facet) -> Dict[str, Any]:
        """Total strength of every value of ``facet`` in ``model``."""
        evidence_set = model.get_evidence(facet)
        totals = evidence_set.total_strength if evidence_set is not None else {}
        strongest = model.get_strongest_belief(facet)
        truth = model.truth(facet)
        return {
            "holder": model.holder.name,
            "regarding": model.regarding.name,
            "facet": facet.name,
            "values": [value.label for value in facet],
            "strengths": [_finite(totals.get(value, 0.0)) for value in facet],
            "strongest": strongest.label if strongest is not None else None,
            "truth": truth.label if truth is not None else None,
        }

    def plot_belief(
        self,
        model: BeliefModel,
        facet: Facet,
        save_path: Optional[str] = None,
    ) -> Optional[Any]:
        """Bar chart of the evidence for each value of a facet.

        Args:
            model: The belief model to plot.
            facet: The facet whose values are plotted.
            save_path: Optional file path to save the plot image.

        Returns:
            The matplotlib figure if matplotlib is available, otherwise
            returns the data as a dict for external plotting.
        """
        data = self.belief_data(model, facet)

        if not self._has_matplotlib:
            return data

        import matplotlib.pyplot as plt

        fig, ax = plt.subplots(figsize=(8, 5))

        heights = [s if s is not None else 0.0 for s in data["strengths"]]
        colors = [
            'tab:green' if label == data["truth"] else 'tab:blue'
            for label in data["values"]
        ]
        ax.bar(data["values"], heights, color=colors)
        ax.set_xlabel('Value')
        ax.set_ylabel('Total Strength')
        ax.set_title(f'{data["holder"]} on {data["regarding"]}: {data["facet"]}')
        ax.grid(True, axis='y', alpha=0.3)

        plt.tight_layout()

        if save_path:
            plt.savefig(save_path, dpi=150, bbox_inches='tight')

        return fig

    def plot_timeline(
        self,
        timeline: List[Dict[str, Any]],
        save_path: Optional[str] = None,
    ) -> Optional[Any]:
        """Plot which participant spoke on each turn.

        Args:
            timeline: Per-turn entries as produced by MetricsCollector.
            save_path: Optional file path to save the plot image.

        Returns:
            The matplotlib figure if matplotlib is available, otherwise
            returns the data as a dict for external plotting.
        """
        speakers: List[str] = []
        for entry in timeline:
            if entry["speaker"] not in speakers:
                speakers.append(entry["speaker"])
        data = {
            "turns": [entry["turn"] for entry in timeline],
            "speakers": speakers,
            "speaker_index": [speakers.index(entry["speaker"]) for entry in timeline],
            "moves": [entry["move"] for entry in timeline],
        }

        if not self._has_matplotlib:
            return data

        import matplotlib.pyplot as plt

        fig, ax = plt.subplots(figsize=(12, 4))

        ax.scatter(data["turns"], data["speaker_index"], s=80)
        for turn, index, move in zip(data["turns"], data["speaker_index"], data["moves"]):
            ax.annotate(move, (turn, index), textcoords="offset points",
                        xytext=(0, 8), ha='center', fontsize=8)
        ax.set_yticks(range(len(speakers)))
        ax.set_yticklabels(speakers)
        ax.set_xlabel('Turn')
        ax.set_title('Conversation Timeline')
        ax.grid(True, alpha=0.3)

        plt.tight_layout()

        if save_path:
            plt.savefig(save_path, dpi=150, bbox_inches='tight')

        return fig

    def export_plot_data(
        self,
        data: Dict[str, Any],
        filepath: str,
    ) -> None:
        """Export plot data to JSON for external visualization.

        Args:
            data: Dictionary containing plot data to export.
            filepath: Path to the output JSON file.
        """
        with open(filepath, 'w') as f:
            json.dump(data, f, indent=2, default=str)

    def create_summary_report(
        self,
        metrics: Dict[str, Any],
        beliefs: List[Dict[str, Any]],
        save_path: Optional[str] = None,
    ) -> str:
        """Create a text summary report of a conversation.

        Args:
            metrics: Dictionary from ConversationMetrics.to_dict().
            beliefs: Belief rows as produced by ``belief_data``.
            save_path: Optional file path to save the text report.

        Returns:
            The formatted report as a string.
        """
        lines = [
            "=" * 60,
            "DIALOGUE SIMULATION REPORT",
            "=" * 60,
            "",
            "CONVERSATION OVERVIEW",
            "-" * 40,
            f"Conversation ID: {metrics.get('conversation_id', 'N/A')}",
            f"Participants: {', '.join(metrics.get('participants', []))}",
            f"Total Turns: {metrics.get('total_turns', 0)}",
            f"Finished: {'yes' if metrics.get('finished') else 'no'}",
            "",
            "OBLIGATIONS AND TOPICS",
            "-" * 40,
            f"Obligations Pushed: {metrics.get('obligations_pushed', 0)}",
            f"Obligations Addressed: {metrics.get('obligations_addressed', 0)}",
            f"Topics Introduced: {', '.join(metrics.get('topics_introduced', [])) or 'none'}",
            f"Topics Addressed: {', '.join(metrics.get('topics_addressed', [])) or 'none'}",
            "",
        ]

        moves_per_speaker = metrics.get('moves_per_speaker', {})
        if moves_per_speaker:
            lines.append("Moves by Speaker:")
            for name, count in moves_per_speaker.items():
                lines.append(f"  - {name}: {count}")

        lines.extend([
            "",
            "BELIEFS",
            "-" * 40,
        ])

        for row in beliefs:
            strongest = row.get('strongest') or "doesn't know"
            lines.append(
                f"  - {row.get('holder')} thinks {row.get('regarding')}'s "
                f"{row.get('facet')} is {strongest} (actually {row.get('truth')})"
            )

        accuracy = metrics.get('belief_accuracy', {})
        if accuracy:
            lines.append("")
            lines.append("Belief Accuracy:")
            for pair, value in accuracy.items():
                lines.append(f"  - {pair}: {value:.2f}")

        lines.extend([
            "",
            "=" * 60,
            "END OF REPORT",
            "=" * 60,
        ])

        report = "\n".join(lines)

        if save_path:
            with open(save_path, 'w') as f:
                f.write(report)

        return report

    def __repr__(self) -> str:
        """Return string representation of the plotter.

        Returns:
            String indicating matplotlib availability status.
        """
        return f"BeliefPlotter(matplotlib={'available' if self._has_matplotlib else 'not available'})"
