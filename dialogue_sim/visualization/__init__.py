"""Visualization module - belief plots and text reports."""

from .plots import BeliefPlotter

__all__ = ["BeliefPlotter"]
