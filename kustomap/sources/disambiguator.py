"""Branch/sub-path disambiguation for repository URLs.

``/tree/release/v2/deploy/prod`` can mean branch ``release/v2`` with path
``deploy/prod`` or branch ``release`` with path ``v2/deploy/prod``. The
provider is asked about candidate branches from the longest prefix to the
shortest; the first one that exists wins because a longer match is always at
least as specific.

The process is a small state machine::

    Probing(length) --confirmed--> Confirmed(branch, sub_path)
    Probing(length) --rejected---> Probing(length - 1)
    Probing(1)      --rejected---> Exhausted(whole remainder, "")

Probes run strictly one after the other; they are never parallelised.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass

from kustomap.observability.logging import get_logger

_log = get_logger("sources.disambiguator")

BranchProbe = Callable[[str], Awaitable[bool]]


@dataclass(frozen=True)
class Probing:
    """Next probe treats the first ``length`` segments as the branch."""

    length: int


@dataclass(frozen=True)
class Confirmed:
    branch: str
    sub_path: str


@dataclass(frozen=True)
class Exhausted:
    """No candidate was confirmed; the whole remainder is the branch."""

    branch: str
    sub_path: str = ""


DisambiguationState = Probing | Confirmed | Exhausted


class BranchPathDisambiguator:
    """Splits a ``branch/and/path`` remainder into branch and sub-path."""

    def __init__(self, segments: Sequence[str]) -> None:
        self._segments = [s for s in segments if s]
        if not self._segments:
            raise ValueError("branch and path remainder must not be empty")

    @property
    def segments(self) -> list[str]:
        return list(self._segments)

    def start(self) -> Probing:
        return Probing(length=len(self._segments))

    def candidate(self, state: Probing) -> tuple[str, str]:
        """Return the (branch, sub_path) split probed in *state*."""
        branch = "/".join(self._segments[: state.length])
        sub_path = "/".join(self._segments[state.length :])
        return branch, sub_path

    def advance(self, state: Probing, confirmed: bool) -> DisambiguationState:
        """Apply one probe outcome and return the next state."""
        if confirmed:
            branch, sub_path = self.candidate(state)
            return Confirmed(branch=branch, sub_path=sub_path)
        if state.length > 1:
            return Probing(length=state.length - 1)
        return Exhausted(branch="/".join(self._segments))

    async def run(self, probe: BranchProbe) -> Confirmed | Exhausted:
        """Drive the state machine with *probe* until it settles.

        Exceptions raised by *probe* propagate; callers decide which provider
        failures count as "not confirmed".
        """
        state: DisambiguationState = self.start()
        while isinstance(state, Probing):
            branch, sub_path = self.candidate(state)
            exists = await probe(branch)
            _log.debug(
                "branch_probe",
                branch=branch,
                sub_path=sub_path or ".",
                exists=exists,
            )
            state = self.advance(state, exists)

        if isinstance(state, Exhausted):
            _log.warning(
                "branch_not_confirmed",
                branch=state.branch,
                candidates=len(self._segments),
            )
        return state
