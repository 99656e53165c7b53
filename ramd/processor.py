"""Messages carrying actions on live objects, and their processing."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass

from .storage import Storage, StorageError, hash_sha256

logger = logging.getLogger("ramd.processor")


@dataclass(frozen=True)
class CreateLiveObjectAction:
    """Store a live object's wasm code under its SHA-256 hash."""

    wasm_bytes: bytes

    def perform(self, cache: Storage) -> None:
        key = hash_sha256(self.wasm_bytes)
        try:
            cache.set(key, self.wasm_bytes)
        except StorageError as err:
            logger.error("Failed to set wasm bytes to cache with error `%s`", err)
            raise
        logger.info("Successfully performed create action")


@dataclass(frozen=True)
class ExecuteLiveObjectAction:
    """Call a method of an existing live object."""

    live_object_id: bytes
    method: str
    args: bytes

    def __post_init__(self) -> None:
        if len(self.live_object_id) != 32:
            raise ValueError("live_object_id must be exactly 32 bytes")

    def perform(self, cache: Storage) -> bool:
        """Perform the action; return whether the target live object is stored."""
        known = cache.has(self.live_object_id)
        if not known:
            logger.debug(
                "Live object %s is not stored; method `%s` has no code to run",
                self.live_object_id.hex(),
                self.method,
            )
        logger.info("Successfully performed execute action")
        return known


Action = CreateLiveObjectAction | ExecuteLiveObjectAction


@dataclass(frozen=True)
class Message:
    """A unit of work submitted to the processor."""

    action: Action

    def process(self, cache: Storage) -> None:
        self.action.perform(cache)


class Processor:
    """Applies messages to storage in order."""

    def __init__(self, storage: Storage) -> None:
        self._storage = storage

    def process_messages(self, messages: Iterable[Message]) -> None:
        """Process messages in order, stopping at the first failure."""
        cache = self._storage
        for message in messages:
            try:
                message.process(cache)
            except StorageError:
                logger.error("Failed to process a message")
                return