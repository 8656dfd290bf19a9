"""
Point extraction, descriptive statistics, regression and X-range filtering.

Everything here is a pure function of its inputs. Undefined quantities (empty
input, zero variance) are returned as None rather than NaN so the view layer can
tell "undefined" apart from a number.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Any, Dict, NamedTuple, Optional, Sequence, Tuple

import numpy as np
import statsmodels.api as sm

from .csv_processor import RawTable, parse_decimal

logger = logging.getLogger(__name__)

# Minimum number of points for the statsmodels OLS diagnostics (needs residual dof).
MIN_DIAGNOSTIC_POINTS = 3


class Point(NamedTuple):
    x: float
    y: float


Points = Tuple[Point, ...]


@dataclass(frozen=True)
class Statistics:
    """
    Summary over a point sequence.

    correlation, slope, intercept and the regression endpoints are None when
    undefined (a zero standard deviation / zero x variance).
    """

    count: int
    x_min: float
    x_max: float
    y_min: float
    y_max: float
    mean_x: float
    mean_y: float
    std_x: float
    std_y: float
    covariance: float
    correlation: Optional[float]
    slope: Optional[float]
    intercept: Optional[float]
    left_point: Optional[Point]
    right_point: Optional[Point]

    @property
    def has_regression(self) -> bool:
        return self.slope is not None and self.intercept is not None


def to_points(i: int, j: int, table: Optional[RawTable]) -> Optional[Points]:
    """
    Convert columns i (x) and j (y) of the table into points.

    Returns None when either index is out of range or the table has no rows.
    A row yields a point only when both of its cells parse as decimal numbers;
    other rows are dropped. Row order is preserved.
    """
    if table is None or table.row_count == 0:
        return None
    ncols = table.column_count
    if not (0 <= i < ncols and 0 <= j < ncols):
        return None

    points = []
    for row in table.rows:
        x = parse_decimal(row[i])
        y = parse_decimal(row[j])
        if x is None or y is None:
            continue
        points.append(Point(x, y))
    dropped = table.row_count - len(points)
    if dropped:
        logger.debug(f"to_points({i}, {j}): dropped {dropped} non-numeric row(s)")
    return tuple(points)


def _sample_std(values: np.ndarray) -> float:
    # n == 1 has no sample deviation; report 0 instead of dividing by zero
    if values.size < 2:
        return 0.0
    return float(np.std(values, ddof=1))


def compute_statistics(points: Optional[Sequence[Point]]) -> Optional[Statistics]:
    """
    Descriptive statistics and OLS regression over the points.

    - Standard deviations and covariance use the (n-1) denominator; both are 0 for n == 1
      and for a column whose values are all equal.
    - correlation = cov / (std_x * std_y), None if either deviation is 0.
    - slope = cov / var_x, intercept = mean_y - slope * mean_x, None if var_x is 0.
    - Endpoints lie on the regression line at x_min and x_max.

    Returns None for an empty (or absent) sequence.
    """
    if not points:
        return None

    xs = np.fromiter((p.x for p in points), dtype=float, count=len(points))
    ys = np.fromiter((p.y for p in points), dtype=float, count=len(points))
    n = xs.size

    mean_x = float(xs.mean())
    mean_y = float(ys.mean())
    # Constant columns are decided on the raw values; the rounded mean of e.g. [0.1]*3
    # leaves a residual deviation around 1e-17
    constant_x = float(np.ptp(xs)) == 0.0
    constant_y = float(np.ptp(ys)) == 0.0
    std_x = 0.0 if constant_x else _sample_std(xs)
    std_y = 0.0 if constant_y else _sample_std(ys)
    if n < 2 or constant_x or constant_y:
        covariance = 0.0
    else:
        covariance = float(np.sum((xs - mean_x) * (ys - mean_y)) / (n - 1))

    correlation: Optional[float] = None
    if std_x > 0 and std_y > 0:
        correlation = covariance / (std_x * std_y)
        # rounding can push |r| a hair past 1
        correlation = max(-1.0, min(1.0, correlation))

    x_min = float(xs.min())
    x_max = float(xs.max())
    variance_x = std_x * std_x
    slope: Optional[float] = None
    intercept: Optional[float] = None
    left_point: Optional[Point] = None
    right_point: Optional[Point] = None
    if variance_x > 0:
        slope = covariance / variance_x
        intercept = mean_y - slope * mean_x
        left_point = Point(x_min, slope * x_min + intercept)
        right_point = Point(x_max, slope * x_max + intercept)

    return Statistics(
        count=int(n),
        x_min=x_min,
        x_max=x_max,
        y_min=float(ys.min()),
        y_max=float(ys.max()),
        mean_x=mean_x,
        mean_y=mean_y,
        std_x=std_x,
        std_y=std_y,
        covariance=covariance,
        correlation=correlation,
        slope=slope,
        intercept=intercept,
        left_point=left_point,
        right_point=right_point,
    )


def error_bar_half_width(
    points: Optional[Sequence[Point]], confidence: Optional[float] = 1.0
) -> Optional[float]:
    """
    Half-width of the error bars: confidence * std_y.

    The multiplier scales one standard deviation directly (a +/- c*sigma band); it
    is not a confidence-interval quantile. An absent multiplier means 1.0.
    """
    stats = compute_statistics(points)
    if stats is None:
        return None
    c = 1.0 if confidence is None else float(confidence)
    return c * stats.std_y


def mean_line(points: Optional[Sequence[Point]]) -> Points:
    """Constant-y sequence at mean_y with one point per input x (input order)."""
    stats = compute_statistics(points)
    if stats is None:
        return ()
    return tuple(Point(p.x, stats.mean_y) for p in points)


def filter_by_x_range(
    points: Points, x_min: Optional[float] = None, x_max: Optional[float] = None
) -> Points:
    """
    Keep points with x_min <= x <= x_max; a None bound leaves that side open.

    With both bounds absent the input is returned unchanged. Statistics are not
    recomputed here.
    """
    if x_min is None and x_max is None:
        return points
    return tuple(
        p
        for p in points
        if (x_min is None or p.x >= x_min) and (x_max is None or p.x <= x_max)
    )


def regression_diagnostics(points: Optional[Sequence[Point]]) -> Dict[str, Any]:
    """
    Fit y ~ const + x with statsmodels OLS and collect fit-quality statistics.

    Returns a dict with a 'fit_message' token in every case. On success it also holds
    R-squared, adjusted R-squared, F-statistic, its p-value, coefficient standard
    errors and 95% confidence intervals keyed by 'const' / 'x'.
    """
    if not points or len(points) < MIN_DIAGNOSTIC_POINTS:
        return {"fit_message": f"needs at least {MIN_DIAGNOSTIC_POINTS} points"}
    xs = np.array([p.x for p in points], dtype=float)
    ys = np.array([p.y for p in points], dtype=float)
    if float(np.ptp(xs)) == 0.0:
        return {"fit_message": "x has zero variance"}

    X = sm.add_constant(xs, has_constant="add")
    try:
        with np.errstate(divide="ignore", invalid="ignore"):
            res = sm.OLS(ys, X).fit()
            conf = np.asarray(res.conf_int(alpha=0.05))
            diag: Dict[str, Any] = {
                "fit_message": "ok",
                "R-squared": float(res.rsquared),
                "Adj. R-squared": float(res.rsquared_adj),
                "F-statistic": float(res.fvalue),
                "p-value": float(res.f_pvalue),
                "Standard Errors": {
                    "const": float(res.bse[0]),
                    "x": float(res.bse[1]),
                },
                "Confidence Intervals": {
                    "const": (float(conf[0, 0]), float(conf[0, 1])),
                    "x": (float(conf[1, 0]), float(conf[1, 1])),
                },
            }
    except Exception as e:
        logger.warning(f"OLS diagnostics failed: {e}")
        return {"fit_message": "error", "error": str(e)}

    # Perfect fits give infinite F and undefined p; keep those out of the report.
    for key in ("R-squared", "Adj. R-squared", "F-statistic", "p-value"):
        if not math.isfinite(diag[key]):
            diag[key] = None
    return diag
