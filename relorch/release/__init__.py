"""Release pipeline: version -> matrix builds -> normalized artifacts -> release."""

from __future__ import annotations
