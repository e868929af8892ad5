"""Transaction aggregation - monthly buckets and recurring series detection"""

from collections import defaultdict
from datetime import date
from typing import Dict, Iterable, List, Sequence, Tuple

from finsight.domain.models import EXPENSE, INCOME, MonthlyBucket, RecurringSeries, Transaction
from finsight.utils.date_utils import generate_month_range, month_start
from finsight.utils.math_utils import mean, median

AMOUNT_TOLERANCE = 0.05  # cluster members within 5% of the smallest amount
INTERVAL_TOLERANCE_DAYS = 3
MIN_CONSISTENT_GAPS = 2


def category_key(category: str) -> str:
    """Normalized category name used to match transactions against budgets"""
    return category.strip().casefold()


def filter_window(transactions: Iterable[Transaction], window_months: int, as_of: date) -> List[Transaction]:
    """Transactions dated within the trailing window of months ending with as_of's month"""
    months = generate_month_range(as_of, window_months)
    start, end = months[0], months[-1]
    return [t for t in transactions if start <= month_start(t.date) <= end]


def bucket_monthly(transactions: Sequence[Transaction], window_months: int, as_of: date) -> List[MonthlyBucket]:
    """
    Bucket transactions into monthly income/expense totals.

    Every month of the trailing window gets a bucket, oldest first. Months
    without activity are kept with zero totals so averages divide by the
    full window for every user.
    """
    buckets = {m: MonthlyBucket(month_start=m) for m in generate_month_range(as_of, window_months)}

    for txn in transactions:
        bucket = buckets.get(month_start(txn.date))
        if bucket is None:
            continue
        if txn.kind == INCOME:
            bucket.total_income += txn.magnitude
        else:
            bucket.total_expenses += txn.magnitude
        bucket.transaction_count += 1

    return list(buckets.values())


def history_months(buckets: Sequence[MonthlyBucket]) -> int:
    """Number of buckets that contain at least one transaction"""
    return sum(1 for b in buckets if b.transaction_count > 0)


def bucket_category_spend(
    transactions: Sequence[Transaction],
    window_months: int,
    end_month: date,
) -> Dict[str, List[float]]:
    """Monthly expense totals per normalized category over the window ending with end_month"""
    months = generate_month_range(end_month, window_months)
    index_by_month = {m: i for i, m in enumerate(months)}
    spend: Dict[str, List[float]] = {}

    for txn in transactions:
        if txn.kind != EXPENSE:
            continue
        index = index_by_month.get(month_start(txn.date))
        if index is None:
            continue
        series = spend.setdefault(category_key(txn.category), [0.0] * window_months)
        series[index] += txn.magnitude

    return spend


def _cluster_amounts(transactions: List[Transaction]) -> List[List[Transaction]]:
    """Split transactions into clusters whose amounts stay within AMOUNT_TOLERANCE of the cluster's smallest"""
    ordered = sorted(transactions, key=lambda t: (t.magnitude, t.date))
    clusters: List[List[Transaction]] = []
    anchor = None

    for txn in ordered:
        if anchor is not None and txn.magnitude <= anchor * (1 + AMOUNT_TOLERANCE):
            clusters[-1].append(txn)
        else:
            clusters.append([txn])
            anchor = txn.magnitude

    return clusters


def _series_from_cluster(cluster: List[Transaction]) -> RecurringSeries | None:
    by_date = sorted(cluster, key=lambda t: t.date)
    gaps = [(b.date - a.date).days for a, b in zip(by_date, by_date[1:])]
    if len(gaps) < MIN_CONSISTENT_GAPS:
        return None

    typical_gap = median(gaps)
    if typical_gap < 1:
        return None

    consistent = [g for g in gaps if abs(g - typical_gap) <= INTERVAL_TOLERANCE_DAYS]
    if len(consistent) < MIN_CONSISTENT_GAPS:
        return None

    first = by_date[0]
    return RecurringSeries(
        category=first.category,
        kind=first.kind,
        amount=round(mean([t.magnitude for t in by_date]), 2),
        interval_days=int(round(typical_gap)),
        last_seen_date=by_date[-1].date,
        occurrence_count=len(by_date),
        first_seen_date=first.date,
    )


def detect_recurring_series(transactions: Sequence[Transaction]) -> List[RecurringSeries]:
    """
    Detect transactions that repeat at a regular cadence.

    Transactions are grouped by (category, kind) and split into clusters of
    near-equal amounts (within 5%). A cluster qualifies once at least two of
    its consecutive date gaps fall within ±3 days of the median gap, so a
    single repeat of a one-off purchase is never treated as recurring.

    Returns:
        Series sorted by category, kind and amount
    """
    groups: Dict[Tuple[str, str], List[Transaction]] = defaultdict(list)
    for txn in transactions:
        groups[(category_key(txn.category), txn.kind)].append(txn)

    series: List[RecurringSeries] = []
    for key in sorted(groups):
        for cluster in _cluster_amounts(groups[key]):
            found = _series_from_cluster(cluster)
            if found is not None:
                series.append(found)

    return sorted(series, key=lambda s: (category_key(s.category), s.kind, s.amount))
