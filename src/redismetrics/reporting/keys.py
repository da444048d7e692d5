"""Key suffixes written to the store, one per reported statistic."""

COUNT_KEY = ":count"
VALUE_KEY = ":value"
MEAN_KEY = ":mean"
ONE_MINUTE_KEY = ":one-minute-average"
FIVE_MINUTE_KEY = ":five-minute-average"
FIFTEEN_MINUTE_KEY = ":fifteen-minute-average"
MIN_KEY = ":min"
MAX_KEY = ":max"
STDDEV_KEY = ":stddev"
MEDIAN_KEY = ":median"
PERCENTILE_75_KEY = ":75th-percentile"
PERCENTILE_95_KEY = ":95th-percentile"
PERCENTILE_98_KEY = ":98th-percentile"
PERCENTILE_99_KEY = ":99th-percentile"
PERCENTILE_999_KEY = ":999th-percentile"

ALL_SUFFIXES = (
    COUNT_KEY,
    VALUE_KEY,
    MEAN_KEY,
    ONE_MINUTE_KEY,
    FIVE_MINUTE_KEY,
    FIFTEEN_MINUTE_KEY,
    MIN_KEY,
    MAX_KEY,
    STDDEV_KEY,
    MEDIAN_KEY,
    PERCENTILE_75_KEY,
    PERCENTILE_95_KEY,
    PERCENTILE_98_KEY,
    PERCENTILE_99_KEY,
    PERCENTILE_999_KEY,
)


def key_for(metric_name: str, suffix: str) -> str:
    """Store key for one statistic of a metric.

    Names are not validated or escaped; keeping them collision-free is up to
    whoever registers the metrics.
    """
    return metric_name + suffix
