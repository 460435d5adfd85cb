"""Core building blocks shared by the harnesses and runners."""

import sys

PLATFORM = sys.platform
WINDOWS = "win"
