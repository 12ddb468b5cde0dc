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

import numpy as np
from typing import Tuple

from hrvpy.constants import ROI_SIZE

def centered_roi(
    h: int,
    w: int,
    roi_size: int = ROI_SIZE
  ) -> Tuple[int, int, int, int]:
  """
  Square ROI centred in a frame, clipped to the frame.

  Args:
    h, w: Frame height and width.
    roi_size: Side length of the square ROI in pixels.
  Returns:
    roi: The roi in form (x0, y0, x1, y1)
  """
  if roi_size < 1: raise ValueError("`roi_size` must be positive")
  x0 = w // 2 - roi_size // 2
  y0 = h // 2 - roi_size // 2
  roi = np.array([x0, y0, x0 + roi_size, y0 + roi_size])
  # x coords -> [0, w], y coords -> [0, h]
  roi[[0, 2]] = np.clip(roi[[0, 2]], 0, w)
  roi[[1, 3]] = np.clip(roi[[1, 3]], 0, h)
  return tuple(int(v) for v in roi)

def roi_mean(
    frames: np.ndarray,
    roi_size: int = ROI_SIZE,
    channel: int = 0
  ) -> np.ndarray:
  """
  Reduce frames to brightness samples by averaging one channel over the centred ROI.

  Args:
    frames: A frame (h, w, c) or a batch of frames (n, h, w, c)
    roi_size: Side length of the square ROI in pixels.
    channel: The colour channel to average (0 = red for rgb24)
  Returns:
    out: The brightness samples. Shape () for a single frame or (n,)
  """
  frames = np.asarray(frames)
  if frames.ndim not in (3, 4): raise ValueError("`frames` must have shape (h, w, c) or (n, h, w, c)")
  if not 0 <= channel < frames.shape[-1]: raise ValueError(f"`channel` out of range for {frames.shape[-1]} channels")
  h, w = frames.shape[-3], frames.shape[-2]
  x0, y0, x1, y1 = centered_roi(h, w, roi_size=roi_size)
  roi = frames[..., y0:y1, x0:x1, channel]
  return np.mean(roi, axis=(-2, -1), dtype=np.float64)
