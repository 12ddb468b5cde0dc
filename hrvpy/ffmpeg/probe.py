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

from fractions import Fraction
import json
import logging
import os
import subprocess
from typing import Optional, Tuple

def probe_video(path: str) -> Tuple[float, Optional[int], int, int, int]:
  """Probe a video file for the metadata needed to extract brightness samples.

  Args:
    path: The path to the video file.
  Returns:
    A tuple containing:
      - fps: Frame rate (float)
      - total_frames: Total number of frames, or None if unknown (int)
      - width: Video width as stored (int)
      - height: Video height as stored (int)
      - rotation: Rotation in degrees (int)
  """
  if not isinstance(path, str):
    raise ValueError("Path must be a string")
  if not os.path.exists(path):
    raise FileNotFoundError(f"File {path} does not exist")
  cmd = ["ffprobe", "-v", "error", "-show_streams", "-show_format", "-print_format", "json", path]
  try:
    result = subprocess.run(cmd, capture_output=True, text=True, check=True)
  except subprocess.CalledProcessError as e:
    logging.warning(f"Exception probing video: {e}")
    raise
  probe = json.loads(result.stdout)
  video_stream = next((s for s in probe.get("streams", []) if s.get("codec_type") == "video"), None)
  if video_stream is None:
    raise ValueError("No video streams found")
  # avg_frame_rate is usually a string like "28.67/1"
  try:
    fps = float(Fraction(video_stream.get("avg_frame_rate", "0/0")))
  except ZeroDivisionError:
    fps = 0.
  if fps == 0:
    fps = float(Fraction(video_stream.get("r_frame_rate", "0/1")))
  if fps <= 0:
    raise ValueError("Frame rate information missing")
  frames_str = video_stream.get("nb_frames")
  duration = video_stream.get("duration", probe.get("format", {}).get("duration"))
  if frames_str is not None:
    total_frames = int(frames_str)
  elif duration is not None:
    logging.warning("Number of frames missing. Inferring using duration and fps.")
    total_frames = int(float(duration) * fps)
  else:
    logging.warning("Cannot infer number of total frames")
    total_frames = None
  rotation = 0
  if "rotate" in video_stream.get("tags", {}):
    rotation = int(video_stream["tags"]["rotate"])
  else:
    for data in video_stream.get("side_data_list", []):
      if "rotation" in data:
        rotation = int(data["rotation"])
        break
  return fps, total_frames, int(video_stream["width"]), int(video_stream["height"]), rotation
