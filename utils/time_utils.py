from datetime import date, datetime

import pandas as pd


class TimeUtils:
    # Offsets for predefined reporting windows, measured back from "now"
    PREDEFINED_PERIODS = {
        "week": pd.DateOffset(days=7),
        "month": pd.DateOffset(months=1),
        "quarter": pd.DateOffset(months=3),
        "year": pd.DateOffset(years=1),
    }

    @staticmethod
    def resolve_now(now=None):
        """Return ``now`` as a UTC-naive Timestamp, reading the clock only if it is None."""
        if now is None:
            return pd.Timestamp.now(tz="UTC").tz_localize(None)
        ts = pd.Timestamp(now)
        if ts.tzinfo is not None:
            ts = ts.tz_convert("UTC").tz_localize(None)
        return ts

    @staticmethod
    def parse_dates(values):
        """Parse ISO-8601 date strings into UTC-naive Timestamps.

        Unparseable or missing values become NaT instead of raising, so callers
        can drop them explicitly.

        Args:
            values (iterable or pd.Series): Raw date values

        Returns:
            pd.Series: datetime64 series aligned with the input
        """
        series = pd.Series(values, dtype="object")
        if series.empty:
            return pd.Series(dtype="datetime64[ns]")
        # Only strings and datetimes are dates; numbers and containers are not.
        series = series.map(lambda v: v if isinstance(v, (str, datetime, date)) else None)
        parsed = pd.to_datetime(series, errors="coerce", utc=True, format="ISO8601")
        return parsed.dt.tz_localize(None)

    @staticmethod
    def get_period_dates(time_period, now=None):
        """Get start and end dates for a given time period.

        Args:
            time_period (str or int): Predefined period like 'week', 'month', 'quarter', 'year',
                                      or an integer for custom days.
            now (datetime, optional): Reference moment. Defaults to the current time.

        Returns:
            tuple: (start_date, end_date) as pandas Timestamps

        Raises:
            ValueError: If time_period is invalid
        """
        end = TimeUtils.resolve_now(now)
        if isinstance(time_period, bool):
            raise ValueError("time_period must be a string (predefined period) or an integer (custom days)")
        if isinstance(time_period, str):
            if time_period not in TimeUtils.PREDEFINED_PERIODS:
                raise ValueError(f"Invalid predefined time_period: {time_period}. "
                                 f"Supported: {list(TimeUtils.PREDEFINED_PERIODS.keys())}")
            return end - TimeUtils.PREDEFINED_PERIODS[time_period], end
        if isinstance(time_period, int):
            return end - pd.Timedelta(days=time_period), end
        raise ValueError("time_period must be a string (predefined period) or an integer (custom days)")

    @staticmethod
    def week_buckets(now=None, count=4):
        """Contiguous 7-day windows ending at ``now``, oldest first.

        Returns:
            list[tuple]: (start, end) pairs, each half-open [start, end)
        """
        end = TimeUtils.resolve_now(now)
        buckets = []
        for i in range(count - 1, -1, -1):
            start = end - pd.Timedelta(days=i * 7 + 7)
            buckets.append((start, start + pd.Timedelta(days=7)))
        return buckets

    @staticmethod
    def month_buckets(now=None, count=6):
        """Calendar-month windows, oldest first, the last one containing ``now``.

        Returns:
            list[tuple]: (period, start, end) triples, each half-open [start, end)
        """
        current = TimeUtils.resolve_now(now).to_period("M")
        buckets = []
        for i in range(count - 1, -1, -1):
            period = current - i
            buckets.append((period, period.start_time, (period + 1).start_time))
        return buckets
