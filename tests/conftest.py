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
import numpy as np
import os
import pytest
import shutil
import tempfile
from typing import Optional, Union

import sys
sys.path.append('../hrvpy')

SAMPLE_FPS = 30.
SAMPLE_DURATION = 30.
SAMPLE_HR = 72.
SAMPLE_VIDEO_FRAMES = 60
SAMPLE_VIDEO_WIDTH = 64
SAMPLE_VIDEO_HEIGHT = 48
SAMPLE_VIDEO_ROI = 20

def _make_synthetic_brightness(
    fs: float,
    duration: float,
    hr_bpm: float,
    *,
    rr_jitter_std: float = 0.0,
    baseline: float = 150.,
    amplitude: float = 2.,
    drift_per_s: float = 0.0,
    noise_std: float = 0.1,
    seed: Optional[Union[int, np.random.Generator]] = None,
  ) -> tuple:
  """Synthetic webcam brightness with a pulse at each beat and reproducible RNG."""
  rng = np.random.default_rng(seed)
  n = int(duration * fs)
  t = np.arange(n) / fs
  rr_mean = 60.0 / hr_bpm
  n_beats = int((duration + 4.) / rr_mean) + 2
  rr = rr_mean + rng.normal(0, rr_jitter_std, n_beats)
  beats = np.cumsum(rr) - 2.
  # Pulse phase advances by one cycle per beat; cos peaks on each beat
  phase = np.interp(t, beats, np.arange(n_beats))
  sig = baseline + amplitude * np.cos(2 * np.pi * phase)
  sig += drift_per_s * t
  sig += rng.normal(0, noise_std, n)
  return t, sig

def _make_spike_train(n_peaks: int, spacing: int = 30, margin: int = 20) -> np.ndarray:
  """Zero signal with unit spikes, detected as exactly `n_peaks` peaks."""
  n = 2 * margin + spacing * (n_peaks - 1) + 1
  vals = np.zeros(n)
  vals[margin + spacing * np.arange(n_peaks)] = 1.
  return vals

@pytest.fixture(scope='session')
def temp_dir():
  with tempfile.TemporaryDirectory() as temp:
    yield temp

@pytest.fixture(scope='session')
def synthetic_brightness_static():
  _, sig = _make_synthetic_brightness(
    fs=SAMPLE_FPS,
    duration=SAMPLE_DURATION,
    hr_bpm=SAMPLE_HR,
    seed=3
  )
  return sig

@pytest.fixture(scope='session')
def synthetic_brightness_variable():
  _, sig = _make_synthetic_brightness(
    fs=SAMPLE_FPS,
    duration=SAMPLE_DURATION,
    hr_bpm=SAMPLE_HR,
    rr_jitter_std=0.04,
    drift_per_s=0.05,
    noise_std=0.2,
    seed=7
  )
  return sig

@pytest.fixture
def spike_train():
  return _make_spike_train

def _make_sample_video_data() -> np.ndarray:
  """Frames with a flat red patch in the centre whose level cycles every 10 frames."""
  data = np.zeros((SAMPLE_VIDEO_FRAMES, SAMPLE_VIDEO_HEIGHT, SAMPLE_VIDEO_WIDTH, 3), dtype=np.uint8)
  # Centred 20x20 patch: x in [22, 42), y in [14, 34)
  data[:, 14:34, 22:42, 0] = (100 + 3 * (np.arange(SAMPLE_VIDEO_FRAMES) % 10))[:, np.newaxis, np.newaxis]
  data[:, 14:34, 22:42, 1] = 50
  return data

@pytest.fixture(scope='session')
def sample_video_brightness():
  return (100 + 3 * (np.arange(SAMPLE_VIDEO_FRAMES) % 10)).astype(np.float64)

@pytest.fixture(scope='session')
def sample_video_file(temp_dir):
  if shutil.which('ffmpeg') is None or shutil.which('ffprobe') is None:
    pytest.skip("ffmpeg not available")
  data = _make_sample_video_data()
  path = os.path.join(temp_dir, 'brightness.nut')
  # Uncompressed rgb24 so that pixel values survive the round trip
  stream = ffmpeg.input(
    'pipe:', format='rawvideo', pix_fmt='rgb24',
    s=f'{SAMPLE_VIDEO_WIDTH}x{SAMPLE_VIDEO_HEIGHT}', r=SAMPLE_FPS)
  stream = stream.output(path, vcodec='rawvideo', pix_fmt='rgb24')
  stream.overwrite_output().run(input=data.tobytes(), quiet=True)
  return path
