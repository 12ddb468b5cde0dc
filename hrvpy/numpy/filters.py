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

import logging
import numpy as np
from scipy.ndimage import uniform_filter1d

from hrvpy.constants import LOW_PASS_HALF_WIDTH, HIGH_PASS_HALF_WIDTH

def moving_average(
    x: np.ndarray,
    half_width: int
  ) -> np.ndarray:
  """NaN-aware moving average over a clamped symmetric window.

  The window for index i is [i-half_width, i+half_width] intersected with
    the valid index range, i.e. it shrinks at the edges instead of padding.

  Args:
    x: The input data. Shape (n,)
    half_width: Half-width of the window in number of samples
  Returns:
    y: The averaged data. Shape (n,)
  """
  if not isinstance(half_width, (int, np.integer)) or half_width < 0:
    raise ValueError('`half_width` must be a non-negative integer')
  x = np.asarray(x, dtype=np.float64)
  if x.ndim != 1: raise ValueError('`x` must be 1-D')
  if x.size == 0 or half_width == 0:
    return x.copy()
  size = 2 * int(half_width) + 1
  valid = np.isfinite(x)
  filled = np.where(valid, x, 0.)
  valid = valid.astype(np.float64)
  # Zero padding and non-finite samples contribute to neither the sum nor the count
  win_sum = uniform_filter1d(filled, size, mode='constant', cval=0.0)
  win_count = uniform_filter1d(valid, size, mode='constant', cval=0.0)
  with np.errstate(divide='ignore', invalid='ignore'):
    out = win_sum / win_count
  out[win_count * size < 0.5] = np.nan
  return out

def bandpass(
    x: np.ndarray,
    low_half_width: int = LOW_PASS_HALF_WIDTH,
    high_half_width: int = HIGH_PASS_HALF_WIDTH
  ) -> np.ndarray:
  """Two-pass moving average bandpass filter.

  The narrow moving average removes sensor noise; subtracting a wider moving
    average of that result removes slow illumination drift.

  Args:
    x: The raw brightness samples. Shape (n,)
    low_half_width: Half-width of the narrow (low-pass) window
    high_half_width: Half-width of the wide window. Must exceed `low_half_width`.
  Returns:
    y: The band-limited signal. Shape (n,)
  """
  if high_half_width <= low_half_width:
    raise ValueError('`high_half_width` must be greater than `low_half_width`')
  low = moving_average(x, half_width=low_half_width)
  wide = moving_average(low, half_width=high_half_width)
  return low - wide

def detrend(
    z: np.ndarray,
    degree: int = 1
  ) -> np.ndarray:
  """Remove the least-squares polynomial trend over the sample index.

  For `degree=1` the slope and intercept are computed in closed form from
    the sums of i, z, i*z and i^2.

  Args:
    z: The input signal. Shape (n,)
    degree: 1 for a linear trend, 2 for a quadratic trend
  Returns:
    proc_z: The detrended signal. Shape (n,)
  """
  if degree not in (1, 2): raise ValueError('`degree` must be 1 or 2')
  z = np.asarray(z, dtype=np.float64)
  if z.ndim != 1: raise ValueError('`z` must be 1-D')
  n = z.shape[0]
  if n < 2:
    return z.copy()
  z = np.nan_to_num(z) # Replace NAs with 0
  i = np.arange(n, dtype=np.float64)
  if degree == 2 and n >= 3:
    coef = np.polyfit(i, z, deg=2)
    return z - np.polyval(coef, i)
  if degree == 2:
    logging.debug("Too few samples for a quadratic trend. Using linear trend.")
  sum_i = i.sum()
  sum_z = z.sum()
  sum_iz = np.dot(i, z)
  sum_ii = np.dot(i, i)
  slope = (n * sum_iz - sum_i * sum_z) / (n * sum_ii - sum_i * sum_i)
  intercept = (sum_z - slope * sum_i) / n
  return z - (slope * i + intercept)
