"""Retention run: decision engine, output sink and statistics."""

from angrr.run.engine import Action, Interactive, RunEngine, RunOptions
from angrr.run.output import OutputSink
from angrr.run.statistics import Counter, Statistics

__all__ = [
    "Action",
    "Counter",
    "Interactive",
    "OutputSink",
    "RunEngine",
    "RunOptions",
    "Statistics",
]
