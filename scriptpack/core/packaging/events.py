# SPDX-License-Identifier: GPL-3.0-or-later
"""Package notifications shared between the pipeline and its observers."""
from __future__ import annotations

import logging
from collections import defaultdict
from typing import Callable, DefaultDict, List

from scriptpack.models import ScriptDescriptor

__all__ = [
    "IGNORE_PACKAGE",
    "CREATE_PACKAGE",
    "PackageListener",
    "PackageEvents",
]

logger = logging.getLogger(__name__)

IGNORE_PACKAGE = "ignore-package"
CREATE_PACKAGE = "create-package"

PackageListener = Callable[[ScriptDescriptor], None]


class PackageEvents:
    """Synchronous callback registry; listeners run in emission order."""

    def __init__(self) -> None:
        self._listeners: DefaultDict[str, List[PackageListener]] = defaultdict(list)

    def on(self, event: str, listener: PackageListener) -> "PackageEvents":
        self._listeners[event].append(listener)
        return self

    def off(self, event: str, listener: PackageListener) -> None:
        listeners = self._listeners.get(event, [])
        if listener in listeners:
            listeners.remove(listener)

    def emit(self, event: str, descriptor: ScriptDescriptor) -> None:
        for listener in list(self._listeners.get(event, ())):
            try:
                listener(descriptor)
            except Exception:  # noqa: BLE001 - listeners must not break packaging
                logger.exception("事件 %s 的监听器执行失败: %s", event, descriptor.script_name)
