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

from enum import IntEnum

HRV_LEVEL_MODERATE = 50
HRV_LEVEL_GOOD = 70
HRV_LEVEL_EXCELLENT = 85

COMPATIBILITY_LEVEL_MIXED = 40
COMPATIBILITY_LEVEL_MODERATE = 60
COMPATIBILITY_LEVEL_STRONG = 75
COMPATIBILITY_LEVEL_EXCEPTIONAL = 90

class EHRVLevel(IntEnum):
  """Interpretation band of a normalized HRV score."""
  LOW = 0
  MODERATE = 1
  GOOD = 2
  EXCELLENT = 3

class ECompatibilityLevel(IntEnum):
  """Interpretation band of a pairwise compatibility score."""
  LIMITED = 0
  MIXED = 1
  MODERATE = 2
  STRONG = 3
  EXCEPTIONAL = 4

_HRV_DESCRIPTIONS = {
  EHRVLevel.EXCELLENT: "Excellent HRV indicates strong emotional resilience and stress recovery",
  EHRVLevel.GOOD: "Good HRV suggests healthy autonomic balance and effective stress adaptation",
  EHRVLevel.MODERATE: "Moderate HRV indicates adequate stress response and recovery capacity",
  EHRVLevel.LOW: "Lower HRV may indicate higher stress levels or reduced autonomic flexibility",
}

def hrv_level(score: float) -> EHRVLevel:
  """Map a normalized HRV score to its interpretation band."""
  if score >= HRV_LEVEL_EXCELLENT: return EHRVLevel.EXCELLENT
  if score >= HRV_LEVEL_GOOD: return EHRVLevel.GOOD
  if score >= HRV_LEVEL_MODERATE: return EHRVLevel.MODERATE
  return EHRVLevel.LOW

def describe_hrv_score(score: float) -> str:
  return _HRV_DESCRIPTIONS[hrv_level(score)]

def compatibility_level(score: float) -> ECompatibilityLevel:
  """Map a compatibility score in [0, 100] to its interpretation band."""
  if score >= COMPATIBILITY_LEVEL_EXCEPTIONAL: return ECompatibilityLevel.EXCEPTIONAL
  if score >= COMPATIBILITY_LEVEL_STRONG: return ECompatibilityLevel.STRONG
  if score >= COMPATIBILITY_LEVEL_MODERATE: return ECompatibilityLevel.MODERATE
  if score >= COMPATIBILITY_LEVEL_MIXED: return ECompatibilityLevel.MIXED
  return ECompatibilityLevel.LIMITED
