from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, FrozenSet, Iterable, List, Optional

from auracontrols.core.types import InteractionOutput, OutputKind

logger = logging.getLogger(__name__)

Callback = Callable[[InteractionOutput], None]


@dataclass(frozen=True, eq=False)
class _Subscription:
    callback: Callback
    kinds: Optional[FrozenSet[OutputKind]]


class EventBus:
    """
    Synchronous fan-out of interaction outputs to consumers.

    Callbacks run inside the tick, in subscription order. A consumer that
    raises is logged and skipped; the tick and the other consumers go on.
    """

    def __init__(self) -> None:
        self._subs: List[_Subscription] = []

    def subscribe(self, callback: Callback, kinds: Optional[Iterable[OutputKind]] = None) -> Callable[[], None]:
        sub = _Subscription(callback=callback, kinds=frozenset(kinds) if kinds is not None else None)
        self._subs.append(sub)

        def unsubscribe() -> None:
            if sub in self._subs:
                self._subs.remove(sub)

        return unsubscribe

    def publish(self, output: InteractionOutput) -> None:
        for sub in list(self._subs):
            if sub.kinds is not None and output.kind not in sub.kinds:
                continue
            try:
                sub.callback(output)
            except Exception:
                logger.exception("consumer %r failed on %s", sub.callback, output.kind.value)

    def publish_all(self, outputs: Iterable[InteractionOutput]) -> None:
        for output in outputs:
            self.publish(output)

    def __len__(self) -> int:
        return len(self._subs)
