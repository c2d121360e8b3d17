"""Opinion aggregation: vote tallies per opinion -> percentage per option.

Each opinion contributes ``upvotes - downvotes`` to its option's weightage.
Weightages may be negative, so they are shifted by ``|max| + |min|`` before
being turned into shares of the shifted total.
"""
from collections import OrderedDict
from dataclasses import dataclass
from typing import Iterable, Sequence


@dataclass(frozen=True)
class OpinionTally:
    """Vote tally of a single opinion."""

    option: str
    upvotes: int
    downvotes: int

    @property
    def diff(self) -> int:
        return self.upvotes - self.downvotes


@dataclass(frozen=True)
class OptionPercentage:
    option: str
    percentage: float


def weightage_by_option(tallies: Iterable[OpinionTally]) -> "OrderedDict[str, int]":
    """Sum the signed vote difference of every opinion, grouped by option."""
    weightages: "OrderedDict[str, int]" = OrderedDict()
    for tally in tallies:
        weightages[tally.option] = weightages.get(tally.option, 0) + tally.diff
    return weightages


def calculate_percentage(value: float, total: float) -> float:
    """Share of value in total, exactly 100 when value is the whole total."""
    if value == total:
        return 100.0
    return value / total * 100


def percentages_from_weightage(weightages: "OrderedDict[str, int]") -> "OrderedDict[str, float]":
    """Shift weightages into the non-negative range and normalise to percentages.

    Only options present in ``weightages`` are returned. An empty input
    returns an empty mapping and performs no division.
    """
    if not weightages:
        return OrderedDict()

    values = list(weightages.values())
    shift = abs(max(values)) + abs(min(values))
    shifted = OrderedDict((option, weight + shift) for option, weight in weightages.items())
    total = sum(shifted.values())

    if total == 0:
        # every aggregated option sits at zero: an even tie
        share = 100.0 / len(shifted)
        return OrderedDict((option, share) for option in shifted)

    return OrderedDict(
        (option, calculate_percentage(weight, total)) for option, weight in shifted.items()
    )


def option_breakdown(
    options: Sequence[str], tallies: Iterable[OpinionTally]
) -> list[OptionPercentage]:
    """Percentage per question option, in question option order.

    Options nobody has an opinion on get 0.
    """
    percentages = percentages_from_weightage(weightage_by_option(tallies))
    return [OptionPercentage(option=o, percentage=percentages.get(o, 0.0)) for o in options]
