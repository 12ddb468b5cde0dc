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

MILLIS_PER_SECOND = 1000.0
SECONDS_PER_MINUTE = 60.0

# Capture
CAPTURE_DURATION = 30.        # seconds
ROI_SIZE = 100                # pixels

# Bandpass filter (half-widths in samples)
LOW_PASS_HALF_WIDTH = 3
HIGH_PASS_HALF_WIDTH = 15
FINGER_LOW_PASS_HALF_WIDTH = 5
FINGER_HIGH_PASS_HALF_WIDTH = 30

# Peak detection
PEAK_WINDOW_SIZE = 10         # samples
THRESHOLD_RATIO = 0.6         # unitless
FINGER_THRESHOLD_RATIO = 0.4  # unitless
FINGER_THRESHOLD_TRIM = 0.1   # fraction

# HRV metrics
MIN_RR_INTERVALS = 10
MIN_SIGNAL_RANGE = 1e-6       # brightness units
LF_HF_EPSILON = 0.01
SDNN_SCALE = 1.5
SDNN_WEIGHT = 50.
RMSSD_SCALE = 1.0
RMSSD_WEIGHT = 30.
FINGER_SDNN_SCALE = 2.0
FINGER_RMSSD_SCALE = 1.5
LF_HF_TARGET = 1.5
LF_HF_OFFSET = 0.5
LF_HF_WEIGHT = 20.
CONTRIBUTION_MIN = 0.
CONTRIBUTION_MAX = 100.
