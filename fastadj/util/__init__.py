"""Combinatorial utilities."""

from .combinatorics import ChoiceGenerator, SelectionGenerator, choose

__all__ = ["ChoiceGenerator", "SelectionGenerator", "choose"]
