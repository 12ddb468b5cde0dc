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
from enum import IntEnum
import logging
import numpy as np
import time
from typing import Callable, Optional

from hrvpy.constants import CAPTURE_DURATION, LOW_PASS_HALF_WIDTH, HIGH_PASS_HALF_WIDTH
from hrvpy.constants import FINGER_LOW_PASS_HALF_WIDTH, FINGER_HIGH_PASS_HALF_WIDTH
from hrvpy.constants import PEAK_WINDOW_SIZE, THRESHOLD_RATIO
from hrvpy.constants import FINGER_THRESHOLD_RATIO, FINGER_THRESHOLD_TRIM
from hrvpy.constants import MIN_RR_INTERVALS, MIN_SIGNAL_RANGE
from hrvpy.constants import SDNN_SCALE, RMSSD_SCALE, FINGER_SDNN_SCALE, FINGER_RMSSD_SCALE
from hrvpy.exceptions import SignalError
from hrvpy.numpy.physio import HRVMetrics, estimate_hrv_from_signal, estimate_heart_rate

CAMERA_ACCESS_MESSAGE = "Failed to access camera. Please check camera permissions."

class ESessionState(IntEnum):
  """Lifecycle of a single HRV measurement."""
  IDLE = 0
  CAPTURING = 1
  PROCESSING = 2
  COMPLETE = 3
  FAILED = 4

@dataclass(frozen=True)
class CaptureConfig:
  """Capture duration and pipeline parameters for a measurement."""
  duration: float = CAPTURE_DURATION
  low_pass_half_width: int = LOW_PASS_HALF_WIDTH
  high_pass_half_width: int = HIGH_PASS_HALF_WIDTH
  detrend_degree: int = 1
  window_size: int = PEAK_WINDOW_SIZE
  threshold_ratio: float = THRESHOLD_RATIO
  threshold_trim: float = 0.
  min_rr_intervals: int = MIN_RR_INTERVALS
  min_signal_range: float = MIN_SIGNAL_RANGE
  sdnn_scale: float = SDNN_SCALE
  rmssd_scale: float = RMSSD_SCALE

  def __post_init__(self):
    if self.high_pass_half_width <= self.low_pass_half_width:
      raise ValueError("`high_pass_half_width` must be greater than `low_pass_half_width`")
    if self.low_pass_half_width < 0: raise ValueError("`low_pass_half_width` must be non-negative")
    if self.detrend_degree not in (1, 2): raise ValueError("`detrend_degree` must be 1 or 2")
    if self.window_size < 1: raise ValueError("`window_size` must be positive")
    if not 0. <= self.threshold_trim < 0.5: raise ValueError("`threshold_trim` must be in [0, 0.5)")
    if self.min_rr_intervals < 2: raise ValueError("`min_rr_intervals` must be at least 2")
    if self.sdnn_scale <= 0 or self.rmssd_scale <= 0: raise ValueError("Score scales must be positive")

  def pipeline_kwargs(self) -> dict:
    """Keyword arguments for `estimate_hrv_from_signal`."""
    kw = asdict(self)
    del kw['duration']
    return kw

# Webcam pointed at the face
FACE_CONFIG = CaptureConfig()

# Fingertip covering the camera lens and flash
FINGER_CONFIG = CaptureConfig(
  low_pass_half_width=FINGER_LOW_PASS_HALF_WIDTH,
  high_pass_half_width=FINGER_HIGH_PASS_HALF_WIDTH,
  detrend_degree=2,
  threshold_ratio=FINGER_THRESHOLD_RATIO,
  threshold_trim=FINGER_THRESHOLD_TRIM,
  sdnn_scale=FINGER_SDNN_SCALE,
  rmssd_scale=FINGER_RMSSD_SCALE)

class CaptureSession:
  """
  Buffers the brightness samples of one measurement and runs the HRV pipeline
    once the capture window has closed.

  The acquisition loop (camera frames -> brightness) lives outside this class
    and feeds samples via `add_sample` / `add_samples`. Each session owns its
    buffers; use one session per concurrent measurement.

  Args:
    config: The capture configuration.
    on_complete: Called with the `HRVMetrics` after a successful measurement,
      e.g. to persist the result.
    clock: Monotonic clock in seconds, used when no elapsed time is passed.
  """
  def __init__(
      self,
      config: CaptureConfig = FACE_CONFIG,
      on_complete: Optional[Callable[[HRVMetrics], None]] = None,
      clock: Callable[[], float] = time.monotonic
    ):
    self.config = config
    self.on_complete = on_complete
    self._clock = clock
    self._state = ESessionState.IDLE
    self._clear()

  def _clear(self):
    self._samples = []
    self._start_t = None
    self._elapsed = 0.
    self.metrics: Optional[HRVMetrics] = None
    self.heart_rate: Optional[float] = None
    self.error: Optional[BaseException] = None
    self.message: Optional[str] = None

  def _transition(self, state: ESessionState):
    logging.info(f"Capture session {self._state.name} -> {state.name}")
    self._state = state

  def _require(self, *states: ESessionState):
    if self._state not in states:
      raise RuntimeError(
        f"Invalid operation in state {self._state.name}; requires {' or '.join(s.name for s in states)}")

  @property
  def state(self) -> ESessionState:
    return self._state

  @property
  def elapsed(self) -> float:
    return self._elapsed

  @property
  def progress(self) -> float:
    """Capture progress in percent."""
    if self.config.duration <= 0:
      return 100.
    return min(100., self._elapsed / self.config.duration * 100.)

  @property
  def samples(self) -> np.ndarray:
    return np.asarray(self._samples, dtype=np.float64)

  @property
  def frame_rate(self) -> float:
    """Approximate sampling frequency [Hz] of the buffered samples."""
    if self._elapsed <= 0 or len(self._samples) == 0:
      return np.nan
    return len(self._samples) / self._elapsed

  def start(self):
    """Begin capturing. Camera access was granted by the caller."""
    self._require(ESessionState.IDLE)
    self._clear()
    self._start_t = self._clock()
    self._transition(ESessionState.CAPTURING)

  def fail_acquisition(
      self,
      error: Optional[BaseException] = None,
      message: str = CAMERA_ACCESS_MESSAGE
    ):
    """Mark the measurement as failed because frames could not be acquired."""
    self._require(ESessionState.IDLE, ESessionState.CAPTURING)
    self._clear()
    self.error = error
    self.message = message
    logging.warning(f"Capture failed during acquisition: {error if error is not None else message}")
    self._transition(ESessionState.FAILED)

  def _update_elapsed(self, t: Optional[float]) -> bool:
    self._elapsed = float(t) if t is not None else self._clock() - self._start_t
    if self._elapsed >= self.config.duration:
      self.finish()
      return True
    return False

  def add_sample(
      self,
      value: float,
      t: Optional[float] = None
    ) -> bool:
    """Append one brightness sample.

    Args:
      value: The brightness value
      t: Elapsed time since `start` in seconds (default: read from clock)
    Returns:
      True if the capture window closed and the measurement was processed
    """
    self._require(ESessionState.CAPTURING)
    self._samples.append(float(value))
    return self._update_elapsed(t)

  def add_samples(
      self,
      values: np.ndarray,
      t: Optional[float] = None
    ) -> bool:
    """Append several brightness samples; `t` refers to the last one."""
    self._require(ESessionState.CAPTURING)
    self._samples.extend(np.asarray(values, dtype=np.float64).ravel().tolist())
    return self._update_elapsed(t)

  def finish(self) -> Optional[HRVMetrics]:
    """Process the buffered samples.

    Returns:
      The HRVMetrics, or None if the measurement failed (see `error` and `message`)
    Raises:
      Any non-signal exception from the pipeline, after entering FAILED
    """
    self._require(ESessionState.CAPTURING)
    samples = self.samples
    frame_rate = self.frame_rate
    self._transition(ESessionState.PROCESSING)
    try:
      metrics, debug = estimate_hrv_from_signal(
        samples, return_debug=True, **self.config.pipeline_kwargs())
    except (SignalError, FloatingPointError) as e:
      self._clear()
      self.error = e
      self.message = getattr(e, 'user_message', SignalError.default_user_message)
      logging.warning(f"HRV measurement failed: {e}")
      self._transition(ESessionState.FAILED)
      return None
    except Exception as e:
      # Not a signal problem; leave PROCESSING and let the caller see it
      self._clear()
      self.error = e
      self.message = SignalError.default_user_message
      logging.warning(f"HRV processing raised unexpectedly: {e}")
      self._transition(ESessionState.FAILED)
      raise
    self.metrics = metrics
    if np.isfinite(frame_rate):
      self.heart_rate = estimate_heart_rate(debug.det_idxs, f_s=frame_rate)
    self._transition(ESessionState.COMPLETE)
    if self.on_complete is not None:
      self.on_complete(metrics)
    return metrics

  def cancel(self):
    """Abort capturing and discard the buffered samples."""
    self._require(ESessionState.CAPTURING)
    self._clear()
    self._transition(ESessionState.IDLE)

  def reset(self):
    """Return to IDLE for a new measurement, discarding all state."""
    self._require(ESessionState.COMPLETE, ESessionState.FAILED)
    self._clear()
    self._transition(ESessionState.IDLE)
