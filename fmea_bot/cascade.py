"""
Tiered lookup of FMEA records for a free-text query.

Tiers run in a fixed order and the first one that returns anything wins:

1. phrase    - Atlas Search phrase match, narrowed to exact field equality
2. collated  - exact equality ignoring case and diacritics
3. substring - case-insensitive literal containment

A tier that errors or runs past its deadline counts as empty, so the next
tier still gets a chance.
"""
from typing import Callable, List, NamedTuple, Sequence

from fmea_bot.constants import (
    COLLATED_SEARCH_DEADLINE_SECONDS,
    MAX_RESULTS,
    PHRASE_SEARCH_DEADLINE_SECONDS,
    SUBSTRING_SEARCH_DEADLINE_SECONDS,
)
from fmea_bot.db import KnowledgeStore
from fmea_bot.logger import logger
from fmea_bot.models import Record, ResolutionResult
from fmea_bot.utils import describe_store_error, run_with_deadline


class Strategy(NamedTuple):
    name: str
    deadline: float
    search: Callable[[KnowledgeStore, str, int], List[Record]]


def phrase_search(store: KnowledgeStore, query: str, limit: int) -> List[Record]:
    return store.phrase_search(query, limit)


def collated_search(store: KnowledgeStore, query: str, limit: int) -> List[Record]:
    return store.find_exact(query, limit)


def substring_search(store: KnowledgeStore, query: str, limit: int) -> List[Record]:
    return store.find_substring(query, limit)


DEFAULT_STRATEGIES = (
    Strategy("phrase", PHRASE_SEARCH_DEADLINE_SECONDS, phrase_search),
    Strategy("collated", COLLATED_SEARCH_DEADLINE_SECONDS, collated_search),
    Strategy("substring", SUBSTRING_SEARCH_DEADLINE_SECONDS, substring_search),
)


class ResolutionCascade:
    def __init__(self, strategies: Sequence[Strategy] = DEFAULT_STRATEGIES, limit: int = MAX_RESULTS):
        self.strategies = tuple(strategies)
        self.limit = limit

    def _run(self, strategy: Strategy, store: KnowledgeStore, query: str) -> List[Record]:
        try:
            records = run_with_deadline(
                strategy.search,
                strategy.deadline,
                f"{strategy.name} search timeout",
                store,
                query,
                self.limit,
            )
        except Exception as e:
            logger.error("Lookup tier '%s' failed: %s", strategy.name, describe_store_error(e))
            return []
        return list(records or [])[: self.limit]

    def resolve(self, store: KnowledgeStore, query: str) -> ResolutionResult:
        """
        Look up ``query`` tier by tier.

        Args:
            store: Knowledge store handle
            query: Trimmed, non-empty query text

        Returns:
            Up to ``limit`` records from the first non-empty tier, or an
            empty result if every tier came back empty.
        """
        if not query or not query.strip():
            return ResolutionResult()

        for strategy in self.strategies:
            records = self._run(strategy, store, query)
            if records:
                logger.info("Query %r answered by '%s' tier (%d records)", query, strategy.name, len(records))
                return ResolutionResult(tuple(records), strategy.name)
            logger.debug("Lookup tier '%s' returned nothing for %r", strategy.name, query)

        logger.info("No records found for %r", query)
        return ResolutionResult()
