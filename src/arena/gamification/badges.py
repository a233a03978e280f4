"""Badge catalog and unlock-progress evaluation.

Every badge unlocks when one metric reaches a threshold. Metrics are
computed by the caller (see router.py) and passed in as a plain dict.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass

METRICS = ("total_xp", "level", "cards_reviewed", "total_points")


@dataclass(frozen=True)
class BadgeDefinition:
    slug: str
    name: str
    description: str
    category: str
    rarity: str
    metric: str
    threshold: int
    xp_reward: int


@dataclass(frozen=True)
class BadgeProgress:
    slug: str
    name: str
    category: str
    rarity: str
    unlocked: bool
    current: int
    target: int
    progress_percent: float


BADGE_CATALOG: tuple[BadgeDefinition, ...] = (
    # Flashcards
    BadgeDefinition(
        "first_review", "First Flip", "Review your very first flashcard",
        "flashcards", "common", "cards_reviewed", 1, 25,
    ),
    BadgeDefinition(
        "reviews_100", "Card Shark", "Review 100 flashcards",
        "flashcards", "common", "cards_reviewed", 100, 100,
    ),
    BadgeDefinition(
        "reviews_1000", "Memory Palace", "Review 1,000 flashcards",
        "flashcards", "rare", "cards_reviewed", 1000, 300,
    ),
    # Practice
    BadgeDefinition(
        "points_500", "Quick Study", "Earn 500 practice points",
        "practice", "common", "total_points", 500, 50,
    ),
    BadgeDefinition(
        "points_10k", "Top of the Class", "Earn 10,000 practice points",
        "practice", "epic", "total_points", 10_000, 250,
    ),
    # Progression
    BadgeDefinition(
        "xp_1000", "Rising Star", "Collect 1,000 XP",
        "progression", "common", "total_xp", 1000, 0,
    ),
    BadgeDefinition(
        "level_5", "Adept", "Reach level 5",
        "progression", "rare", "level", 5, 0,
    ),
    BadgeDefinition(
        "level_10", "Luminary", "Reach level 10",
        "progression", "legendary", "level", 10, 0,
    ),
)


def evaluate_badges(
    metrics: Mapping[str, int],
    catalog: Sequence[BadgeDefinition] = BADGE_CATALOG,
) -> list[BadgeProgress]:
    """Progress towards every badge in the catalog.

    Missing metrics count as 0. progress_percent is capped at 100.
    """
    results = []
    for badge in catalog:
        current = int(metrics.get(badge.metric, 0))
        unlocked = current >= badge.threshold
        percent = 100.0 if unlocked else round(min(current / badge.threshold, 1.0) * 100, 1)
        results.append(BadgeProgress(
            slug=badge.slug,
            name=badge.name,
            category=badge.category,
            rarity=badge.rarity,
            unlocked=unlocked,
            current=current,
            target=badge.threshold,
            progress_percent=percent,
        ))
    return results


def newly_unlocked(
    before: Mapping[str, int],
    after: Mapping[str, int],
    catalog: Sequence[BadgeDefinition] = BADGE_CATALOG,
) -> list[str]:
    """Slugs whose threshold was crossed between two metric snapshots."""
    return [
        badge.slug
        for badge in catalog
        if before.get(badge.metric, 0) < badge.threshold <= after.get(badge.metric, 0)
    ]
