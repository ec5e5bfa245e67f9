"""One-shot conditional triggers.

ChangeScheduler runs an effect once a predicate holds. The predicate is
evaluated when the trigger is registered and again every time the scheduler
is notified of a state change, so it always reads live state (such as a
policy flag toggled after the trigger was registered) rather than a value
captured at registration time.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Hashable, List, Optional

from formstate.events import FormEvent

logger = logging.getLogger(__name__)

Predicate = Callable[[], bool]
Effect = Callable[[], None]
Disposer = Callable[[], None]


@dataclass(eq=False)
class _Reaction:
    predicate: Predicate
    effect: Effect
    key: Optional[Hashable] = None
    disposed: bool = False


def _noop() -> None:
    return None


class ChangeScheduler:
    """Registry of pending "when P, run E once" reactions.

    Examples:
        >>> flags = {"on": False}
        >>> ran = []
        >>> scheduler = ChangeScheduler()
        >>> _ = scheduler.when(lambda: flags["on"], lambda: ran.append(1))
        >>> scheduler.notify()
        >>> ran
        []
        >>> flags["on"] = True
        >>> scheduler.notify()
        >>> ran
        [1]
    """

    def __init__(self):
        self._reactions: List[_Reaction] = []

    @property
    def pending_count(self) -> int:
        return len(self._reactions)

    def when(
        self,
        predicate: Predicate,
        effect: Effect,
        key: Optional[Hashable] = None,
    ) -> Disposer:
        """Run ``effect`` once ``predicate()`` is true.

        If the predicate already holds, the effect runs immediately, before
        this call returns. Otherwise the reaction waits for a later notify().
        A reaction registered with a ``key`` that is already pending is
        merged into the pending one.

        Returns:
            A callable that cancels the reaction if it has not run yet
        """
        if predicate():
            effect()
            return _noop

        if key is not None:
            for pending in self._reactions:
                if pending.key == key:
                    return lambda: self._discard(pending)

        reaction = _Reaction(predicate=predicate, effect=effect, key=key)
        self._reactions.append(reaction)
        logger.debug("Deferred reaction %r registered (%d pending)", key, len(self._reactions))
        return lambda: self._discard(reaction)

    def notify(self, event: Optional[FormEvent] = None) -> None:
        """Re-evaluate pending reactions and run those whose predicate holds."""
        ready = [r for r in self._reactions if not r.disposed and r.predicate()]
        # Detach everything first so effects that notify again cannot refire these
        for reaction in ready:
            self._discard(reaction)
        for reaction in ready:
            reaction.effect()

    def dispose(self) -> None:
        """Drop all pending reactions without running them."""
        for reaction in self._reactions:
            reaction.disposed = True
        self._reactions.clear()

    def _discard(self, reaction: _Reaction) -> None:
        reaction.disposed = True
        if reaction in self._reactions:
            self._reactions.remove(reaction)


__all__ = ["ChangeScheduler"]
