"""Sentinel values shared between collaborators and the executor.

A loader or compute body that cannot produce a value for one record
returns FAILED instead of raising, so the rest of the batch proceeds.
What happens to that record is decided by the configured FailurePolicy.

Example usage:
    from fieldplan.contracts.sentinels import FAILED

    def load_profiles(keys, selectors, **options):
        found = fetch(keys)
        return {key: found.get(key, FAILED) for key in keys}
"""

from typing import Final


class FailedSentinel:
    """Sentinel class marking a per-record collaborator failure.

    This is a singleton - use the FAILED instance, not the class directly.
    Comparison should always use `is` identity, never equality.
    """

    __slots__ = ()

    def __repr__(self) -> str:
        return "<FAILED>"


FAILED: Final[FailedSentinel] = FailedSentinel()
"""Singleton sentinel indicating a collaborator could not resolve a record.

Use identity comparison: `if value is FAILED:`
"""
