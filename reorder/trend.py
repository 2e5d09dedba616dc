from . import settings
from .schemas import DemandEstimate, TrendSignal
from .utils import round_half_up


def detect_trend(demand: DemandEstimate, total_months: float) -> TrendSignal:
    """
    Flags a hot seller: the last 3 months' monthly rate is at least 1.5x the
    rate 6-12 months back, on at least 3 recent units (so 1 -> 2 sales is not a
    trend). Without sales in that earlier window the comparison falls back to
    the unadjusted demand rate. The lookback length does not move either window.
    """
    if demand.method == "none" or total_months * settings.DAYS_PER_MONTH < settings.MIN_HISTORY_DAYS:
        return TrendSignal()

    prior_start, prior_end = settings.TREND_PRIOR_WINDOW_MONTHS

    last_rate = demand.recent_sales / min(settings.RECENT_WINDOW_MONTHS, total_months)
    if total_months > prior_start and demand.trend_prior_sales > 0:
        prior_rate = demand.trend_prior_sales / min(prior_end - prior_start, total_months - prior_start)
    else:
        prior_rate = demand.rate

    ratio = last_rate / prior_rate if prior_rate > 0 else 1.0
    is_hot = ratio >= settings.HOT_RATIO_THRESHOLD and demand.recent_sales >= settings.HOT_MIN_RECENT_UNITS

    return TrendSignal(
        last_rate=last_rate,
        prior_rate=prior_rate,
        ratio=round_half_up(ratio, 2),
        is_hot=is_hot,
    )
