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

from typing import Optional

class SignalError(ValueError):
  """Base class for failures of the HRV pipeline on a given signal.

  Carries a `user_message` suitable for showing to the person being measured.
  """
  default_user_message = "Could not calculate HRV. Please try again."

  def __init__(self, message: str, user_message: Optional[str] = None):
    super().__init__(message)
    self.user_message = user_message if user_message is not None else self.default_user_message

class InsufficientDataError(SignalError):
  """Too few samples or heartbeats to compute reliable HRV statistics."""
  default_user_message = "Not enough heartbeats detected. Please retry in better lighting and stay still."

class DegenerateSignalError(SignalError):
  """Flat or non-finite signal which would produce NaN statistics."""
  default_user_message = "The signal was too flat to detect heartbeats. Please retry and make sure the camera can see you clearly."
