"""
Quota Gate Interface.

The conversion service asks a QuotaGate whether a caller may start a
conversion before any work is done. Quota bookkeeping itself (plans,
counters, billing) lives outside this package; any object with a matching
``check_allowed`` method can be plugged in.
"""

from dataclasses import dataclass
from typing import Awaitable, Optional, Protocol, Union


@dataclass(frozen=True)
class QuotaDecision:
    """
    Answer of a quota gate.

    Attributes:
        allowed: Whether the conversion may start
        retry_after_ms: When refused, milliseconds until a retry may succeed
    """
    allowed: bool
    retry_after_ms: Optional[int] = None


class QuotaGate(Protocol):
    """Pre-flight check; may be implemented synchronously or as a coroutine."""

    def check_allowed(
        self,
        identity: Optional[str]
    ) -> Union[QuotaDecision, Awaitable[QuotaDecision]]:
        ...
