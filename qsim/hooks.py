# Copyright (c) 2025
# MIT License
# -----------------------------------------------------------------------------
# hooks.py
# -----------------------------------------------------------------------------
# Purpose:
#   Ordered observer lists used as extension points by every kernel component
#   (queues, processors, arrival processes and arrival behaviors).
#
# Design notes:
#   - Observers run synchronously, in registration order.
#   - OverrideHook is the one place where return values matter: the last
#     observer returning something other than None wins.
#
# Usage:
#   q.after_append.register(lambda q, job: ...)
#   @proc.after_finish.register
#   def on_finish(proc, job): ...
# -----------------------------------------------------------------------------

from __future__ import annotations
from typing import Any, Callable, List, Optional


class Hook:
    """A list of callbacks fired together."""
    __slots__ = ("name", "_callbacks")

    def __init__(self, name: str = ""):
        self.name = name
        self._callbacks: List[Callable[..., Any]] = []

    def register(self, fn: Callable[..., Any]) -> Callable[..., Any]:
        self._callbacks.append(fn)
        return fn

    def fire(self, *args) -> None:
        for cb in self._callbacks:
            cb(*args)

    def __len__(self) -> int:
        return len(self._callbacks)

    def __repr__(self) -> str:
        return f"<Hook {self.name} ({len(self._callbacks)} callbacks)>"


class OverrideHook(Hook):
    """Hook whose callbacks may return a value overriding a default decision."""
    __slots__ = ()

    def resolve(self, *args) -> Optional[Any]:
        """Run every callback in order and return the last non-None result."""
        result = None
        for cb in self._callbacks:
            ret = cb(*args)
            if ret is not None:
                result = ret
        return result
