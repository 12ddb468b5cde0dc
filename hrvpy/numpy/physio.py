# Copyright (c) 2025 Philipp Rouast
#
# Permission is hereby granted, free of charge, to any person obtaining a copy
# of this software and associated documentation files (the "Software"), to deal
# in the Software without restriction, including without limitation the rights
# to use, copy, modify, merge, publish, distribute, sublicense, and/or sell
# copies of the Software, and to permit persons to whom the Software is
# furnished to do so, subject to the following conditions:
#
# The above copyright notice and this permission notice shall be included in all
# copies or substantial portions of the Software.
#
# THE SOFTWARE IS PROVIDED "AS IS", WITHOUT WARRANTY OF ANY KIND, EXPRESS OR
# IMPLIED, INCLUDING BUT NOT LIMITED TO THE WARRANTIES OF MERCHANTABILITY,
# FITNESS FOR A PARTICULAR PURPOSE AND NONINFRINGEMENT. IN NO EVENT SHALL THE
# AUTHORS OR COPYRIGHT HOLDERS BE LIABLE FOR ANY CLAIM, DAMAGES OR OTHER
# LIABILITY, WHETHER IN AN ACTION OF CONTRACT, TORT OR OTHERWISE, ARISING FROM,
# OUT OF OR IN CONNECTION WITH THE SOFTWARE OR THE USE OR OTHER DEALINGS IN THE
# SOFTWARE.

from dataclasses import dataclass, asdict
import logging
import numpy as np
from typing import Tuple, Union

from hrvpy.constants import SECONDS_PER_MINUTE
from hrvpy.constants import LOW_PASS_HALF_WIDTH, HIGH_PASS_HALF_WIDTH
from hrvpy.constants import PEAK_WINDOW_SIZE, THRESHOLD_RATIO
from hrvpy.constants import MIN_RR_INTERVALS, MIN_SIGNAL_RANGE, LF_HF_EPSILON
from hrvpy.constants import SDNN_SCALE, SDNN_WEIGHT, RMSSD_SCALE, RMSSD_WEIGHT
from hrvpy.constants import LF_HF_TARGET, LF_HF_OFFSET, LF_HF_WEIGHT
from hrvpy.constants import CONTRIBUTION_MIN, CONTRIBUTION_MAX
from hrvpy.exceptions import InsufficientDataError, DegenerateSignalError
from hrvpy.numpy.detect import detect_peaks
from hrvpy.numpy.filters import bandpass, detrend

@dataclass(frozen=True)
class HRVMetrics:
  """Result of one completed HRV measurement."""
  sdnn: float
  rmssd: float
  lf_hf_ratio: float
  normalized_score: int

  def to_dict(self) -> dict:
    return asdict(self)

  def to_measurement(self) -> dict:
    """Payload in the shape stored by the measurement API."""
    return {
      'sdnn': self.sdnn,
      'rmssd': self.rmssd,
      'lf_hf_ratio': self.lf_hf_ratio,
      'hrvScore': self.normalized_score
    }

@dataclass
class PipelineDebug:
  filtered: np.ndarray
  detrended: np.ndarray
  threshold: float
  det_idxs: np.ndarray
  rr_intervals: np.ndarray

def _round_half_up(x: float, decimals: int = 0) -> float:
  """Round half away from zero for non-negative x (unlike Python's round)."""
  factor = 10. ** decimals
  return float(np.floor(x * factor + 0.5) / factor)

def rr_intervals_from_detections(det_idxs: np.ndarray) -> np.ndarray:
  """Sample-count distances between consecutive detections.

  Args:
    det_idxs: The detection indices. Shape (n_dets,)
  Returns:
    rr: The RR intervals in samples. Shape (max(n_dets-1, 0),)
  """
  det_idxs = np.asarray(det_idxs)
  if det_idxs.ndim != 1: raise ValueError("`det_idxs` must be 1-D")
  return np.diff(det_idxs)

def estimate_sdnn(rr: np.ndarray) -> float:
  """Population standard deviation of the RR intervals."""
  rr = np.asarray(rr, dtype=np.float64)
  if rr.size < 1: raise ValueError("Need at least one RR interval")
  return float(np.sqrt(np.mean(np.square(rr - np.mean(rr)))))

def estimate_rmssd(rr: np.ndarray) -> float:
  """Root mean square of successive RR interval differences."""
  rr = np.asarray(rr, dtype=np.float64)
  if rr.size < 2: raise ValueError("Need at least two RR intervals")
  return float(np.sqrt(np.mean(np.square(np.diff(rr)))))

def estimate_lf_hf_ratio(sdnn: float, rmssd: float) -> float:
  """Time-domain approximation of the LF/HF ratio."""
  return sdnn / (rmssd + LF_HF_EPSILON)

def score_contributions(
    sdnn: float,
    rmssd: float,
    lf_hf_ratio: float,
    sdnn_scale: float = SDNN_SCALE,
    rmssd_scale: float = RMSSD_SCALE
  ) -> Tuple[float, float, float]:
  """Score contributions of sdnn, rmssd and lf/hf ratio.

  Each contribution is clamped to [0, 100] individually.

  Args:
    sdnn, rmssd, lf_hf_ratio: The unrounded HRV statistics
    sdnn_scale: sdnn value worth a contribution of SDNN_WEIGHT
    rmssd_scale: rmssd value worth a contribution of RMSSD_WEIGHT
  Returns:
    Tuple of the sdnn, rmssd and ratio contributions
  """
  if sdnn_scale <= 0 or rmssd_scale <= 0: raise ValueError("Score scales must be positive")
  sdnn_c = (sdnn / sdnn_scale) * SDNN_WEIGHT
  rmssd_c = (rmssd / rmssd_scale) * RMSSD_WEIGHT
  ratio_c = (1. / (abs(lf_hf_ratio - LF_HF_TARGET) + LF_HF_OFFSET)) * LF_HF_WEIGHT
  return tuple(float(np.clip(c, CONTRIBUTION_MIN, CONTRIBUTION_MAX)) for c in (sdnn_c, rmssd_c, ratio_c))

def normalized_hrv_score(
    sdnn: float,
    rmssd: float,
    lf_hf_ratio: float,
    sdnn_scale: float = SDNN_SCALE,
    rmssd_scale: float = RMSSD_SCALE
  ) -> int:
  """Rounded sum of the clamped contributions.

  - Note: The sum itself is not clamped and may exceed 100.
  """
  total = sum(score_contributions(sdnn, rmssd, lf_hf_ratio, sdnn_scale, rmssd_scale))
  return int(_round_half_up(total))

def estimate_hrv_from_rr_intervals(
    rr: np.ndarray,
    *,
    min_rr_intervals: int = MIN_RR_INTERVALS,
    sdnn_scale: float = SDNN_SCALE,
    rmssd_scale: float = RMSSD_SCALE
  ) -> HRVMetrics:
  """
  Compute HRV metrics from RR intervals given in samples.

  Args:
    rr: The RR intervals. Shape (n_rr,)
    min_rr_intervals: Minimum number of intervals required for calculation. At least 2.
    sdnn_scale: Scale of the sdnn score contribution.
    rmssd_scale: Scale of the rmssd score contribution.
  Returns:
    metrics: The HRVMetrics, with sdnn and rmssd rounded to 1 decimal and
      lf_hf_ratio rounded to 2 decimals.
  """
  rr = np.asarray(rr, dtype=np.float64)
  if rr.ndim != 1: raise ValueError("`rr` must be 1-D")
  if min_rr_intervals < 2: raise ValueError("`min_rr_intervals` must be at least 2")
  if rr.size < min_rr_intervals:
    raise InsufficientDataError(
      f"Only {rr.size} RR intervals available, need at least {min_rr_intervals}")
  if not np.all(np.isfinite(rr)):
    raise DegenerateSignalError("RR intervals contain non-finite values")
  if np.any(rr <= 0): raise ValueError("RR intervals must be positive")
  sdnn = estimate_sdnn(rr)
  rmssd = estimate_rmssd(rr)
  lf_hf_ratio = estimate_lf_hf_ratio(sdnn, rmssd)
  if not np.all(np.isfinite([sdnn, rmssd, lf_hf_ratio])):
    raise DegenerateSignalError(
      f"Non-finite HRV statistics (sdnn={sdnn}, rmssd={rmssd}, lf_hf_ratio={lf_hf_ratio})")
  score = normalized_hrv_score(
    sdnn, rmssd, lf_hf_ratio, sdnn_scale=sdnn_scale, rmssd_scale=rmssd_scale)
  return HRVMetrics(
    sdnn=_round_half_up(sdnn, 1),
    rmssd=_round_half_up(rmssd, 1),
    lf_hf_ratio=_round_half_up(lf_hf_ratio, 2),
    normalized_score=score)

def estimate_hrv_from_detections(
    det_idxs: np.ndarray,
    *,
    min_rr_intervals: int = MIN_RR_INTERVALS,
    sdnn_scale: float = SDNN_SCALE,
    rmssd_scale: float = RMSSD_SCALE
  ) -> HRVMetrics:
  """
  Compute HRV metrics from detected peak indices.

  Args:
    det_idxs: The detection indices. Shape (n_dets,)
    min_rr_intervals: Minimum number of intervals required for calculation.
    sdnn_scale, rmssd_scale: Scales of the score contributions.
  Returns:
    metrics: The HRVMetrics
  """
  rr = rr_intervals_from_detections(det_idxs)
  return estimate_hrv_from_rr_intervals(
    rr, min_rr_intervals=min_rr_intervals, sdnn_scale=sdnn_scale, rmssd_scale=rmssd_scale)

def estimate_hrv_from_signal(
    signal: np.ndarray,
    *,
    low_pass_half_width: int = LOW_PASS_HALF_WIDTH,
    high_pass_half_width: int = HIGH_PASS_HALF_WIDTH,
    detrend_degree: int = 1,
    window_size: int = PEAK_WINDOW_SIZE,
    threshold_ratio: float = THRESHOLD_RATIO,
    threshold_trim: float = 0.,
    min_rr_intervals: int = MIN_RR_INTERVALS,
    min_signal_range: float = MIN_SIGNAL_RANGE,
    sdnn_scale: float = SDNN_SCALE,
    rmssd_scale: float = RMSSD_SCALE,
    return_debug: bool = False
  ) -> Union[HRVMetrics, Tuple[HRVMetrics, PipelineDebug]]:
  """
  Estimate HRV metrics from raw brightness samples.

  Runs bandpass -> detrend -> peak detection -> metrics once over the
    complete signal. Sample index is used as a proxy for time.

  Args:
    signal: The raw brightness samples. Shape (n,)
    low_pass_half_width: Half-width of the narrow bandpass window.
    high_pass_half_width: Half-width of the wide bandpass window.
    detrend_degree: 1 (linear) or 2 (quadratic) trend removal.
    window_size: Half-width of the peak detection window.
    threshold_ratio: Ratio for the adaptive peak threshold.
    threshold_trim: Trim fraction for the adaptive peak threshold.
    min_rr_intervals: Minimum number of RR intervals required.
    min_signal_range: Signals with a smaller peak-to-peak range are rejected.
    sdnn_scale: Scale of the sdnn score contribution.
    rmssd_scale: Scale of the rmssd score contribution.
    return_debug: If True, also return a `PipelineDebug` object.
  Returns:
    metrics: The HRVMetrics
    debug: PipelineDebug (only if `return_debug`)
  """
  signal = np.asarray(signal, dtype=np.float64)
  if signal.ndim != 1: raise ValueError("`signal` must be 1-D")
  if signal.size <= 2 * window_size:
    raise InsufficientDataError(
      f"Only {signal.size} samples available, need more than {2 * window_size}")
  finite = signal[np.isfinite(signal)]
  if finite.size < 2 or np.ptp(finite) <= min_signal_range:
    raise DegenerateSignalError("Signal is flat or has too few finite samples")
  filtered = bandpass(signal, low_half_width=low_pass_half_width, high_half_width=high_pass_half_width)
  detrended = detrend(filtered, degree=detrend_degree)
  det_idxs, peak_debug = detect_peaks(
    detrended,
    window_size=window_size,
    threshold_ratio=threshold_ratio,
    threshold_trim=threshold_trim,
    return_debug=True)
  rr = rr_intervals_from_detections(det_idxs)
  logging.debug(f"{det_idxs.size} peaks, {rr.size} RR intervals from {signal.size} samples")
  metrics = estimate_hrv_from_rr_intervals(
    rr, min_rr_intervals=min_rr_intervals, sdnn_scale=sdnn_scale, rmssd_scale=rmssd_scale)
  if not return_debug:
    return metrics
  debug = PipelineDebug(
    filtered=filtered,
    detrended=detrended,
    threshold=peak_debug.threshold,
    det_idxs=det_idxs,
    rr_intervals=rr)
  return metrics, debug

def estimate_heart_rate(
    det_idxs: np.ndarray,
    f_s: float
  ) -> float:
  """Estimate heart rate per minute from detection indices.

  Args:
    det_idxs: The detection indices. Shape (n_dets,)
    f_s: The sampling frequency [Hz]
  Returns:
    The heart rate [1/min], or NaN if fewer than two detections
  """
  if f_s <= 0: raise ValueError("`f_s` must be positive")
  rr = rr_intervals_from_detections(det_idxs)
  if rr.size == 0:
    return np.nan
  return float(SECONDS_PER_MINUTE * f_s / np.median(rr))
