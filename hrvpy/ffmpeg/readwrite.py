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

import ffmpeg
import logging
import numpy as np
import os
from typing import Optional, Tuple

from hrvpy.constants import ROI_SIZE
from hrvpy.ffmpeg.probe import probe_video
from hrvpy.numpy.image import centered_roi

def read_brightness_from_path(
    path: str,
    roi_size: int = ROI_SIZE,
    channel: int = 0,
    target_fps: Optional[float] = None,
    quiet: bool = True
  ) -> Tuple[np.ndarray, float]:
  """Read brightness samples from a recorded video.

  The centred square ROI is cropped by ffmpeg, so only ROI pixels are
    decoded into memory.

  Args:
    path: The path from which video will be read.
    roi_size: Side length of the square ROI in pixels.
    channel: The rgb channel to average (0 = red).
    target_fps: Try to downsample frames to achieve this framerate.
    quiet: Whether to suppress ffmpeg output
  Returns:
    Tuple of
     - samples: The brightness samples (n,)
     - fps: The sampling frequency of the samples
  """
  if not os.path.exists(path):
    raise FileNotFoundError(f"File {path} does not exist")
  if not 0 <= channel < 3: raise ValueError("`channel` must be 0, 1 or 2")
  fps, _, w, h, r = probe_video(path=path)
  if abs(r) in (90, 270):
    # ffmpeg autorotates before filtering
    logging.debug(f"Rotation {r} present in video; W and H swapped.")
    w, h = h, w
  x0, y0, x1, y1 = centered_roi(h, w, roi_size=roi_size)
  roi_w, roi_h = x1 - x0, y1 - y0
  stream = ffmpeg.input(path)
  ds_factor = 1
  if target_fps is not None and target_fps > fps: logging.debug("target_fps should not be greater than fps. Ignoring.")
  elif target_fps is not None: ds_factor = max(round(fps / target_fps), 1)
  if ds_factor > 1:
    stream = ffmpeg.filter(stream, 'select', f'not(mod(n,{ds_factor}))')
    stream = stream.setpts('N/FRAME_RATE/TB')
  stream = stream.crop(x0, y0, roi_w, roi_h)
  stream = stream.output("pipe:", vsync="passthrough", format="rawvideo", pix_fmt="rgb24")
  out, _ = stream.run(capture_stdout=True, capture_stderr=True, quiet=quiet)
  frames = np.frombuffer(out, np.uint8)
  frame_size = roi_w * roi_h * 3
  if frames.size == 0 or frames.size % frame_size != 0:
    raise ValueError("ffmpeg was not able to read the video into the expected shape. There may be an issue with the video file.")
  frames = frames.reshape([-1, roi_h, roi_w, 3])
  samples = np.mean(frames[..., channel], axis=(1, 2), dtype=np.float64)
  return samples, fps / ds_factor
