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

from dataclasses import dataclass
import logging
import numpy as np
from numpy.lib.stride_tricks import sliding_window_view
from typing import Union

from hrvpy.constants import PEAK_WINDOW_SIZE, THRESHOLD_RATIO

@dataclass
class PeakDetectDebug:
  vals: np.ndarray
  threshold: float
  window_size: int
  candidates: np.ndarray
  det_idxs: np.ndarray

def adaptive_threshold(
    vals: np.ndarray,
    ratio: float = THRESHOLD_RATIO,
    trim: float = 0.
  ) -> float:
  """Global threshold between the signal mean and its maximum.

  Args:
    vals: The signal values (n,)
    ratio: Position of the threshold between mean (0) and max (1)
    trim: Fraction of lowest and highest values to discard before computing
      the statistics, e.g. 0.1 drops the bottom and top 10%.
  Returns:
    threshold: mean + (max - mean) * ratio
  """
  if not 0. <= trim < 0.5: raise ValueError("`trim` must be in [0, 0.5)")
  vals = np.asarray(vals, dtype=np.float64)
  if vals.size == 0: raise ValueError("`vals` must not be empty")
  if trim > 0.:
    sorted_vals = np.sort(vals)
    kept = sorted_vals[int(np.floor(vals.size * trim)):int(np.floor(vals.size * (1 - trim)))]
    if kept.size > 0:
      vals = kept
  mean = np.mean(vals)
  return float(mean + (np.max(vals) - mean) * ratio)

def detect_peaks(
    vals: np.ndarray,
    *,
    window_size: int = PEAK_WINDOW_SIZE,
    threshold_ratio: float = THRESHOLD_RATIO,
    threshold_trim: float = 0.,
    return_debug: bool = False
  ) -> Union[np.ndarray, tuple]:
  """
  Detect heartbeat peaks as strict local maxima above an adaptive threshold.

  Index i is a peak if vals[i] is strictly greater than every other value in
    [i-window_size, i+window_size] and strictly greater than the threshold.
    Only indices in [window_size, n-window_size-1] are considered. After a
    peak is accepted, the next `window_size // 2` indices are skipped.

  Args:
    vals: The detrended signal values (n,)
    window_size: Half-width of the local maximum window in number of samples
    threshold_ratio: Ratio for `adaptive_threshold`
    threshold_trim: Trim fraction for `adaptive_threshold`
    return_debug: If True, also return a `PeakDetectDebug` object.
  Returns:
    det_idxs: Strictly increasing peak indices (n_peaks,)
    debug: PeakDetectDebug (only if `return_debug`)
  """
  if not isinstance(window_size, (int, np.integer)) or window_size < 1:
    raise ValueError("`window_size` must be a positive integer")
  vals = np.asarray(vals, dtype=np.float64)
  if vals.ndim != 1: raise ValueError("`vals` must be 1-D")
  size = vals.shape[0]
  threshold = adaptive_threshold(vals, ratio=threshold_ratio, trim=threshold_trim) if size > 0 else np.nan
  if size <= 2 * window_size:
    candidates = np.empty(0, dtype=int)
  else:
    view = sliding_window_view(vals, 2 * window_size + 1)
    center = view[:, window_size]
    others = np.delete(view, window_size, axis=1)
    # Row k of the view is centred on index k + window_size
    is_peak = np.logical_and(center > np.max(others, axis=1), center > threshold)
    candidates = np.where(is_peak)[0] + window_size
  skip = window_size // 2
  det_idxs = []
  next_allowed = 0
  for idx in candidates:
    if idx >= next_allowed:
      det_idxs.append(idx)
      next_allowed = idx + skip + 1
  det_idxs = np.asarray(det_idxs, dtype=int)
  logging.debug(f"Detected {det_idxs.size} peaks above threshold {threshold:.4f}")
  if det_idxs.size == 0:
    logging.warning("No peaks found - signal may be too noisy or too short.")
  if not return_debug:
    return det_idxs
  debug = PeakDetectDebug(
    vals=vals,
    threshold=threshold,
    window_size=window_size,
    candidates=candidates,
    det_idxs=det_idxs)
  return det_idxs, debug
