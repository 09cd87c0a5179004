"""
Verification failures raised by the trial loop.

All of them derive from AssertionError so a failing trial reads as an ordinary
test failure under pytest.
"""

from typing import Optional


class VerificationError(AssertionError):
    """A trial did not verify"""

    def __init__(self, message: str, trial: Optional[int] = None, seed: Optional[int] = None):
        self.trial = trial
        self.seed = seed
        context = []
        if trial is not None:
            context.append(f"trial = {trial}")
        if seed is not None:
            context.append(f"seed = {seed}")
        if context:
            message = f"{message} ({', '.join(context)})"
        super().__init__(message)


class DegenerateDataError(VerificationError):
    """Generated data has no contrast and cannot discriminate a broken kernel"""


class ToleranceExceededError(VerificationError):
    def __init__(
        self,
        x: int,
        channel: int,
        expected: float,
        observed: int,
        tolerance: float,
        trial: Optional[int] = None,
        seed: Optional[int] = None
    ):
        self.x = x
        self.channel = channel
        self.expected = expected
        self.observed = observed
        self.tolerance = tolerance
        super().__init__(
            f"x = {x}, channel = {channel}: expected {expected:.6f}, "
            f"got {observed} (tolerance {tolerance})",
            trial=trial,
            seed=seed,
        )


class OutputCorruptionError(VerificationError):
    """The kernel wrote into output row padding"""

    def __init__(self, offset: int, trial: Optional[int] = None, seed: Optional[int] = None):
        self.offset = offset
        super().__init__(f"output padding byte {offset} was overwritten", trial=trial, seed=seed)
