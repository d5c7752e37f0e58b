from __future__ import annotations

from collections.abc import Awaitable, Callable

from .domain.ens_registrar_task import index_ens_registrar_task as domain__index_ens_registrar_task

TaskFn = Callable[..., Awaitable[None]]

TASKS: dict[str, TaskFn] = {
    "domain__index_ens_registrar_task": domain__index_ens_registrar_task,
}
