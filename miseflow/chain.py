"""Ordered fallback chains.

A chain is a list of named strategies tried in order. The first one that
returns data wins; each attempt leaves a provenance note either way.
"""
import logging
from typing import Any, Callable, List, NamedTuple, Optional, Sequence

logger = logging.getLogger(__name__)


class Strategy(NamedTuple):
    label: str
    run: Callable[[], Any]


class ChainOutcome(NamedTuple):
    value: Any
    label: Optional[str]
    attempted: List[str]


def run_chain(topic: str, strategies: Sequence[Strategy], notes: Optional[List[str]] = None,
              empty: Any = None) -> ChainOutcome:
    attempted = []
    for strategy in strategies:
        attempted.append(strategy.label)
        value = strategy.run()
        if value:
            logger.debug("%s: %s matched", topic, strategy.label)
            if notes is not None:
                notes.append(f"{topic.capitalize()} taken from {strategy.label}.")
            return ChainOutcome(value, strategy.label, attempted)
        if notes is not None:
            notes.append(f"{topic.capitalize()}: {strategy.label} found nothing.")
    logger.debug("%s: no strategy matched (%s)", topic, ", ".join(attempted))
    return ChainOutcome(empty, None, attempted)
