"""Pure trend aggregation over published ranking lists.

Scores are deliberately not normalized for list size: an item ranked first
in a 20-item list earns 20 Borda points while first place in a 3-item list
earns 3. Changing that is a product decision, not a bug fix.
"""

from __future__ import annotations

from collections import Counter, defaultdict
from collections.abc import Iterable
from dataclasses import dataclass


@dataclass(frozen=True)
class ListSnapshot:
    """The parts of a ranking list that trend aggregation reads."""

    list_id: str
    subject: str
    tags: frozenset[str]
    # (item_name, rank) pairs
    items: tuple[tuple[str, int], ...]

    @property
    def size(self) -> int:
        return len(self.items)


@dataclass(frozen=True)
class CountRow:
    key: str
    count: int


@dataclass(frozen=True)
class ItemScore:
    subject: str
    item_name: str
    borda_score: int
    average_rank: float
    occurrences: int


def borda_points(list_size: int, rank: int) -> int:
    """Points for position ``rank`` in a list of ``list_size`` items."""
    return list_size - rank + 1


def _ranked_counts(counter: Counter[str]) -> list[CountRow]:
    return [
        CountRow(key, count)
        for key, count in sorted(counter.items(), key=lambda pair: (-pair[1], pair[0]))
    ]


def count_subjects(lists: Iterable[ListSnapshot]) -> list[CountRow]:
    """Lists per subject, by count descending then subject ascending."""
    return _ranked_counts(Counter(snapshot.subject for snapshot in lists))


def count_tags(lists: Iterable[ListSnapshot]) -> list[CountRow]:
    """Lists per tag, by count descending then tag name ascending."""
    counter: Counter[str] = Counter()
    for snapshot in lists:
        counter.update(snapshot.tags)
    return _ranked_counts(counter)


def score_items(lists: Iterable[ListSnapshot]) -> list[ItemScore]:
    """Borda score and average rank for every (subject, item) pair.

    Returns:
        Scores ordered by Borda score descending, then item name ascending,
        then subject ascending.
    """
    borda: defaultdict[tuple[str, str], int] = defaultdict(int)
    rank_sum: defaultdict[tuple[str, str], int] = defaultdict(int)
    occurrences: Counter[tuple[str, str]] = Counter()

    for snapshot in lists:
        for item_name, rank in snapshot.items:
            key = (snapshot.subject, item_name)
            borda[key] += borda_points(snapshot.size, rank)
            rank_sum[key] += rank
            occurrences[key] += 1

    scores = [
        ItemScore(
            subject=subject,
            item_name=item_name,
            borda_score=borda[(subject, item_name)],
            average_rank=rank_sum[(subject, item_name)] / count,
            occurrences=count,
        )
        for (subject, item_name), count in occurrences.items()
    ]
    return by_borda(scores)


def by_borda(scores: Iterable[ItemScore]) -> list[ItemScore]:
    """Order scores by Borda score descending (higher is better), then item name."""
    return sorted(scores, key=lambda s: (-s.borda_score, s.item_name, s.subject))


def by_average_rank(scores: Iterable[ItemScore]) -> list[ItemScore]:
    """Order scores by average rank ascending (lower is better), then item name."""
    return sorted(scores, key=lambda s: (s.average_rank, s.item_name, s.subject))


def top_per_subject(scores: Iterable[ItemScore], limit: int) -> list[ItemScore]:
    """Keep the first ``limit`` scores of each subject, preserving order."""
    kept: list[ItemScore] = []
    taken: Counter[str] = Counter()
    for score in scores:
        if taken[score.subject] < limit:
            kept.append(score)
            taken[score.subject] += 1
    return kept


def retained_scores(scores: Iterable[ItemScore], limit: int) -> list[ItemScore]:
    """Scores that rank in a subject's top ``limit`` by either ordering.

    Both the Borda view and the average-rank view are read back from the same
    stored rows, so each one must find its own top ``limit`` there.

    Returns:
        The union, ordered by Borda score.
    """
    scores = list(scores)
    kept = {
        (s.subject, s.item_name): s
        for ordering in (by_borda, by_average_rank)
        for s in top_per_subject(ordering(scores), limit)
    }
    return by_borda(kept.values())
