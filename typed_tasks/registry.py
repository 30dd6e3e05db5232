"""
Task registry mapping queue names to their scheduler configuration.

Populated once while the client is constructed, then frozen. Lookups after
that are plain reads, so no locking is needed.
"""

import logging
from collections.abc import Iterator

from typed_tasks.exceptions import RegistryFrozenError
from typed_tasks.types.task import TaskConfig

logger = logging.getLogger(__name__)


class TaskRegistry:
    """Write-once registry of per-queue deduplication settings."""

    def __init__(self) -> None:
        self._configs: dict[str, TaskConfig] = {}
        self._frozen = False

    def register(self, queue_name: str, config: TaskConfig) -> None:
        """
        Register the configuration for a queue.

        The stored configuration always carries the effective
        use_deduplication value.

        Raises:
            RegistryFrozenError: If the registry has been frozen.
            ValueError: If the queue is already registered.
        """
        if self._frozen:
            raise RegistryFrozenError(f"Cannot register {queue_name!r}: registry is frozen")
        if queue_name in self._configs:
            raise ValueError(f"Queue {queue_name!r} is already registered")

        self._configs[queue_name] = config.normalized()
        logger.debug(
            f"Registered task config for queue: {queue_name}",
            extra={
                "queue_name": queue_name,
                "deduplication_window_seconds": config.deduplication_window_seconds,
                "use_deduplication": config.effective_use_deduplication,
            },
        )

    def lookup(self, queue_name: str) -> TaskConfig | None:
        """Get the configuration for a queue, None if it has none."""
        return self._configs.get(queue_name)

    def freeze(self) -> None:
        """End the registration phase."""
        self._frozen = True

    @property
    def frozen(self) -> bool:
        return self._frozen

    @property
    def queue_names(self) -> frozenset[str]:
        """Names of all queues with registered configuration."""
        return frozenset(self._configs)

    def __contains__(self, queue_name: object) -> bool:
        return queue_name in self._configs

    def __iter__(self) -> Iterator[str]:
        return iter(self._configs)

    def __len__(self) -> int:
        return len(self._configs)
