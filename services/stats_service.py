"""Diary statistics.

Computed in memory over a user's already-fetched entries, using pandas for the
grouping. Group order is first-seen order, so ties that survive both sort keys
keep the order in which the entries were supplied.
"""
from datetime import datetime
from typing import Dict, Iterable, List, Optional

import pandas as pd

TOP_N = 5

TIME_RANGES = {
    '1month': 1,
    '3months': 3,
    '6months': 6,
    '1year': 12,
    'all': None,
}

TIME_RANGE_TEXT = {
    '1month': 'in the last month',
    '3months': 'in the last 3 months',
    '6months': 'in the last 6 months',
    '1year': 'in the last year',
    'all': 'all time',
}

DEFAULT_TIME_RANGE = '1month'


def normalize_time_range(time_range: Optional[str]) -> str:
    return time_range if time_range in TIME_RANGES else DEFAULT_TIME_RANGE


def get_coffees_df(coffees: Iterable) -> pd.DataFrame:
    records = [
        {
            'name': coffee.name,
            'brand': coffee.brand,
            'preparation': coffee.preparation,
            'rating': coffee.rating,
            'created_at': coffee.created_at,
        }
        for coffee in coffees
    ]
    if not records:
        return pd.DataFrame()

    df = pd.DataFrame(records)
    df['created_at'] = pd.to_datetime(df['created_at'])
    return df


def filter_by_time_range(df: pd.DataFrame, time_range: str, now: datetime) -> pd.DataFrame:
    """Keep entries created between the start of the range and now, both inclusive."""
    months = TIME_RANGES[time_range]
    if df.empty or months is None:
        return df

    end = pd.Timestamp(now)
    # calendar months, clamped to the end of shorter months
    start = end - pd.DateOffset(months=months)
    return df[(df['created_at'] >= start) & (df['created_at'] <= end)]


def aggregate_by_coffee(df: pd.DataFrame) -> pd.DataFrame:
    """One row per (name, brand) with count, rating total and average rating."""
    grouped = (
        df.groupby(['name', 'brand'], sort=False)
        .agg(count=('rating', 'size'), rating=('rating', 'sum'))
        .reset_index()
    )
    grouped['avg_rating'] = grouped['rating'] / grouped['count']
    return grouped


def _to_records(grouped: pd.DataFrame) -> List[Dict]:
    return [
        {
            'name': row['name'],
            'brand': row['brand'],
            'count': int(row['count']),
            'rating': int(row['rating']),
            'avg_rating': float(row['avg_rating']),
        }
        for row in grouped.to_dict('records')
    ]


def top_rated(grouped: pd.DataFrame, limit: int = TOP_N) -> List[Dict]:
    ordered = grouped.sort_values(['avg_rating', 'count'], ascending=[False, False], kind='mergesort')
    return _to_records(ordered.head(limit))


def most_consumed(grouped: pd.DataFrame, limit: int = TOP_N) -> List[Dict]:
    ordered = grouped.sort_values(['count', 'avg_rating'], ascending=[False, False], kind='mergesort')
    return _to_records(ordered.head(limit))


def most_common_preparation(df: pd.DataFrame) -> Optional[str]:
    """Most frequent preparation; on a tie the one seen first wins."""
    if df.empty:
        return None
    counts = df.groupby('preparation', sort=False).size()
    return counts.idxmax()


def compute_statistics(coffees: Iterable, time_range: Optional[str] = None,
                       now: Optional[datetime] = None) -> Dict:
    """
    Summarize a user's entries over a time range.

    Args:
        coffees: Coffee entries (anything with name, brand, preparation,
            rating and created_at attributes)
        time_range: One of TIME_RANGES; unknown values fall back to '1month'
        now: Reference time (naive UTC), defaults to the current time

    Returns:
        Dict with totals, averages, the most common preparation and the
        top-rated and most-consumed coffees
    """
    time_range = normalize_time_range(time_range)
    now = now or datetime.utcnow()

    df = filter_by_time_range(get_coffees_df(coffees), time_range, now)

    stats = {
        'time_range': time_range,
        'time_range_text': TIME_RANGE_TEXT[time_range],
        'total_coffees': 0,
        'days_with_coffee': 0,
        'average_per_day': 0.0,
        'average_rating': 0.0,
        'most_common_preparation': None,
        'top_rated': [],
        'most_consumed': [],
    }
    if df.empty:
        return stats

    total = len(df)
    days = df['created_at'].dt.strftime('%Y-%m-%d').nunique()
    grouped = aggregate_by_coffee(df)

    stats.update({
        'total_coffees': total,
        'days_with_coffee': int(days),
        'average_per_day': round(total / days, 1),
        'average_rating': round(float(df['rating'].sum()) / total, 1),
        'most_common_preparation': most_common_preparation(df),
        'top_rated': top_rated(grouped),
        'most_consumed': most_consumed(grouped),
    })
    return stats
