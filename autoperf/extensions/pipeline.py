#!filepath: autoperf/extensions/pipeline.py
from __future__ import annotations

import inspect
from typing import Any, Iterable, List, Optional, Sequence, Tuple

from autoperf import logs

HOOKS = (
    "before_all_runs",
    "before_run",
    "after_run",
    "after_all_runs",
    "before_all_retrieves",
    "before_retrieve",
    "after_retrieve",
    "after_all_retrieves",
)


class ExtensionPipeline:
    """
    Ordered extension hooks (FINAL)

    - extensions run in registration order
    - every hook is optional; sync and async hooks both work
    - hooks mutate test / result in place before the engine persists them
    - one failing extension is logged and skipped; the others and the
      action continue
    """

    def __init__(self, extensions: Optional[Iterable[Tuple[str, Any]]] = None):
        self._extensions: List[Tuple[str, Any]] = list(extensions or [])

    def add(self, name: str, extension: Any) -> None:
        self._extensions.append((name, extension))

    @property
    def names(self) -> List[str]:
        return [name for name, _ in self._extensions]

    def select(self, names: Optional[Sequence[str]]) -> "ExtensionPipeline":
        """
        Sub-pipeline for one action. None -> all; order stays the
        registration order.
        """
        if names is None:
            return self
        wanted = set(names)
        unknown = wanted - set(self.names)
        if unknown:
            logs.warning(f"[Extension] not configured, ignored: {sorted(unknown)}")
        return ExtensionPipeline([(n, e) for n, e in self._extensions if n in wanted])

    async def call(self, hook: str, **context: Any) -> None:
        if hook not in HOOKS:
            raise ValueError(f"unknown extension hook {hook!r}")

        for name, extension in self._extensions:
            fn = getattr(extension, hook, None)
            if fn is None:
                continue
            try:
                outcome = fn(**context)
                if inspect.isawaitable(outcome):
                    await outcome
            except Exception as e:
                logs.error(f"[Extension] {name}.{hook} failed: {e!r}")
