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

import sys
sys.path.append('../hrvpy')

from hrvpy.exceptions import SignalError, InsufficientDataError, DegenerateSignalError
from hrvpy.numpy.detect import detect_peaks
from hrvpy.numpy.physio import HRVMetrics, _round_half_up
from hrvpy.numpy.physio import rr_intervals_from_detections, estimate_sdnn, estimate_rmssd
from hrvpy.numpy.physio import estimate_lf_hf_ratio, score_contributions, normalized_hrv_score
from hrvpy.numpy.physio import estimate_hrv_from_rr_intervals, estimate_hrv_from_detections
from hrvpy.numpy.physio import estimate_hrv_from_signal, estimate_heart_rate

import dataclasses
import numpy as np
import pytest

RR_FIXTURE = np.array([800, 820, 780, 810, 790, 805, 815, 795, 808, 812])
RR_FIXTURE_SDNN = np.sqrt(136.05)       # population std
RR_FIXTURE_RMSSD = np.sqrt(4210. / 9.)  # rms of successive differences

def test_rr_intervals_from_detections():
  np.testing.assert_equal(rr_intervals_from_detections(np.array([3, 10, 40, 41])), [7, 30, 1])
  assert rr_intervals_from_detections(np.array([5])).size == 0
  with pytest.raises(ValueError):
    rr_intervals_from_detections(np.zeros((2, 2)))

def test_estimate_sdnn_is_population_std():
  assert estimate_sdnn(RR_FIXTURE) == pytest.approx(RR_FIXTURE_SDNN, rel=1e-12)
  assert estimate_sdnn(RR_FIXTURE) == pytest.approx(np.std(RR_FIXTURE, ddof=0), rel=1e-12)
  assert estimate_sdnn(RR_FIXTURE) < np.std(RR_FIXTURE, ddof=1)

def test_estimate_rmssd():
  assert estimate_rmssd(RR_FIXTURE) == pytest.approx(RR_FIXTURE_RMSSD, rel=1e-12)
  assert estimate_rmssd(np.array([25, 25, 25])) == 0.
  with pytest.raises(ValueError):
    estimate_rmssd(np.array([25]))

def test_estimate_lf_hf_ratio():
  assert estimate_lf_hf_ratio(2., 1.99) == pytest.approx(1.)
  assert estimate_lf_hf_ratio(0., 0.) == 0.
  assert estimate_lf_hf_ratio(1., 0.) == pytest.approx(100.)

def test_estimate_hrv_regression_fixture():
  rr = RR_FIXTURE.copy()
  metrics = estimate_hrv_from_rr_intervals(rr)
  assert metrics == HRVMetrics(sdnn=11.7, rmssd=21.6, lf_hf_ratio=0.54, normalized_score=214)
  # No side effects
  np.testing.assert_equal(rr, RR_FIXTURE)

def test_score_contributions_clamp_individually():
  # sdnn drives its contribution far above 100 while the others stay in range
  sdnn_c, rmssd_c, ratio_c = score_contributions(sdnn=1000., rmssd=0.5, lf_hf_ratio=1.5)
  assert sdnn_c == 100.
  assert rmssd_c == pytest.approx(15.)
  assert ratio_c == pytest.approx(40.)
  assert normalized_hrv_score(sdnn=1000., rmssd=0.5, lf_hf_ratio=1.5) == 155

def test_score_contributions_unclamped():
  assert score_contributions(sdnn=0.75, rmssd=1., lf_hf_ratio=1.5) == pytest.approx((25., 30., 40.))
  assert normalized_hrv_score(sdnn=0.75, rmssd=1., lf_hf_ratio=1.5) == 95

def test_normalized_hrv_score_total_can_exceed_100():
  # The total is deliberately not clamped to 100
  assert normalized_hrv_score(sdnn=1000., rmssd=1000., lf_hf_ratio=1.5) == 240
  assert estimate_hrv_from_rr_intervals(RR_FIXTURE).normalized_score > 100

def test_round_half_up():
  assert _round_half_up(2.5) == 3.
  assert _round_half_up(0.125, 2) == 0.13
  assert _round_half_up(11.66404, 1) == 11.7
  assert _round_half_up(0.5390, 2) == 0.54

@pytest.mark.parametrize("n_peaks,ok", [(10, False), (11, True)])
def test_estimate_hrv_from_detections_minimum_intervals(spike_train, n_peaks, ok):
  det_idxs = detect_peaks(spike_train(n_peaks))
  assert det_idxs.size == n_peaks
  if ok:
    # Evenly spaced beats: no variability
    metrics = estimate_hrv_from_detections(det_idxs)
    assert metrics == HRVMetrics(sdnn=0., rmssd=0., lf_hf_ratio=0., normalized_score=10)
  else:
    with pytest.raises(InsufficientDataError):
      estimate_hrv_from_detections(det_idxs)

@pytest.mark.parametrize("n", [0, 1, 2, 9])
def test_estimate_hrv_from_rr_intervals_insufficient(n):
  with pytest.raises(InsufficientDataError) as e:
    estimate_hrv_from_rr_intervals(RR_FIXTURE[:n])
  assert "heartbeats" in e.value.user_message

def test_estimate_hrv_from_rr_intervals_custom_minimum():
  metrics = estimate_hrv_from_rr_intervals(RR_FIXTURE[:5], min_rr_intervals=5)
  assert isinstance(metrics, HRVMetrics)
  with pytest.raises(InsufficientDataError):
    estimate_hrv_from_rr_intervals(RR_FIXTURE[:4], min_rr_intervals=5)

@pytest.mark.parametrize("bad", [np.nan, np.inf])
def test_estimate_hrv_from_rr_intervals_non_finite(bad):
  rr = RR_FIXTURE.astype(float)
  rr[3] = bad
  with pytest.raises(DegenerateSignalError):
    estimate_hrv_from_rr_intervals(rr)

def test_estimate_hrv_from_rr_intervals_non_positive():
  rr = RR_FIXTURE.copy()
  rr[0] = 0
  with pytest.raises(ValueError):
    estimate_hrv_from_rr_intervals(rr)

def test_hrv_metrics_record():
  metrics = HRVMetrics(sdnn=11.7, rmssd=21.6, lf_hf_ratio=0.54, normalized_score=214)
  assert metrics.to_dict() == {'sdnn': 11.7, 'rmssd': 21.6, 'lf_hf_ratio': 0.54, 'normalized_score': 214}
  assert metrics.to_measurement() == {'sdnn': 11.7, 'rmssd': 21.6, 'lf_hf_ratio': 0.54, 'hrvScore': 214}
  with pytest.raises(dataclasses.FrozenInstanceError):
    metrics.sdnn = 0.

@pytest.mark.parametrize("fixture", ["synthetic_brightness_static", "synthetic_brightness_variable"])
def test_estimate_hrv_from_signal(fixture, request):
  signal = request.getfixturevalue(fixture)
  signal_copy = signal.copy()
  metrics, debug = estimate_hrv_from_signal(signal, return_debug=True)
  assert isinstance(metrics.normalized_score, int)
  assert metrics.normalized_score >= 0
  assert np.all(np.isfinite([metrics.sdnn, metrics.rmssd, metrics.lf_hf_ratio]))
  assert debug.filtered.shape == signal.shape
  assert debug.detrended.shape == signal.shape
  assert np.all(np.diff(debug.det_idxs) > 0)
  np.testing.assert_equal(debug.rr_intervals, np.diff(debug.det_idxs))
  assert debug.rr_intervals.size >= 10
  # No side effects
  np.testing.assert_equal(signal, signal_copy)

def test_estimate_hrv_from_signal_variability_ordering(synthetic_brightness_static, synthetic_brightness_variable):
  static = estimate_hrv_from_signal(synthetic_brightness_static)
  variable = estimate_hrv_from_signal(synthetic_brightness_variable)
  assert variable.sdnn > static.sdnn

def test_estimate_hrv_from_signal_is_deterministic(synthetic_brightness_variable):
  a = estimate_hrv_from_signal(synthetic_brightness_variable.copy())
  b = estimate_hrv_from_signal(synthetic_brightness_variable.copy())
  assert a == b

@pytest.mark.parametrize("n", [0, 1, 20])
def test_estimate_hrv_from_signal_too_short(n):
  with pytest.raises(InsufficientDataError):
    estimate_hrv_from_signal(np.linspace(100., 110., n))

@pytest.mark.parametrize("signal", [np.full(900, 150.), np.full(900, np.nan), np.concatenate([[150.], np.full(899, np.nan)])])
def test_estimate_hrv_from_signal_degenerate(signal):
  with pytest.raises(DegenerateSignalError) as e:
    estimate_hrv_from_signal(signal)
  assert isinstance(e.value, SignalError)
  assert not isinstance(e.value, InsufficientDataError)

def test_estimate_hrv_from_signal_spike_train_too_few_beats(spike_train):
  # Ten beats only yield nine intervals
  with pytest.raises(InsufficientDataError):
    estimate_hrv_from_signal(150. + spike_train(10))

def test_estimate_heart_rate():
  assert estimate_heart_rate(25 * np.arange(20), f_s=30.) == pytest.approx(72.)
  assert estimate_heart_rate(np.array([3, 33, 58, 88]), f_s=30.) == pytest.approx(60.)
  assert np.isnan(estimate_heart_rate(np.array([4]), f_s=30.))
  with pytest.raises(ValueError):
    estimate_heart_rate(25 * np.arange(20), f_s=0.)

RR_SMALL = np.array([25, 26, 25, 24, 25, 26, 25, 24, 25, 26])

def test_estimate_hrv_score_scales():
  # sdnn ~0.6993, rmssd 1.0, lf_hf ~0.6924: no contribution saturates
  face = estimate_hrv_from_rr_intervals(RR_SMALL)
  finger = estimate_hrv_from_rr_intervals(RR_SMALL, sdnn_scale=2.0, rmssd_scale=1.5)
  assert face.normalized_score == 69
  assert finger.normalized_score == 53
  assert (face.sdnn, face.rmssd, face.lf_hf_ratio) == (finger.sdnn, finger.rmssd, finger.lf_hf_ratio)
  # Saturated contributions are unaffected by the scales
  assert estimate_hrv_from_rr_intervals(RR_FIXTURE, sdnn_scale=2.0, rmssd_scale=1.5).normalized_score == 214

def test_score_contributions_scales():
  assert score_contributions(sdnn=1., rmssd=1.5, lf_hf_ratio=1.5, sdnn_scale=2.0, rmssd_scale=1.5) == \
    pytest.approx((25., 30., 40.))
  with pytest.raises(ValueError):
    score_contributions(sdnn=1., rmssd=1., lf_hf_ratio=1., sdnn_scale=0.)

@pytest.mark.parametrize("min_rr_intervals", [-1, 0, 1])
def test_estimate_hrv_from_rr_intervals_invalid_minimum(min_rr_intervals):
  with pytest.raises(ValueError) as e:
    estimate_hrv_from_rr_intervals(RR_FIXTURE, min_rr_intervals=min_rr_intervals)
  assert not isinstance(e.value, SignalError)

@pytest.mark.parametrize("bad", [np.inf, -np.inf, np.nan])
def test_estimate_hrv_from_signal_single_bad_sample(synthetic_brightness_static, bad):
  signal = synthetic_brightness_static.copy()
  signal[450] = bad
  metrics = estimate_hrv_from_signal(signal)
  assert isinstance(metrics, HRVMetrics)
  assert np.isfinite(metrics.sdnn)
