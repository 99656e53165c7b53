"""The node that accepts live-object requests and hands them to the processor."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod

from .config import NodeConfig
from .processor import CreateLiveObjectAction, Message, Processor
from .storage import Storage

logger = logging.getLogger("ramd.node")


class LiveObjectHandler(ABC):
    """Something that can create live objects from wasm code."""

    @abstractmethod
    def create_live_object(self, wasm_bytes: bytes) -> None:
        """Create a live object from its wasm code."""


class Node(LiveObjectHandler):
    """A node that turns requests into messages for its processor."""

    def __init__(self, config: NodeConfig, storage: Storage) -> None:
        self.config = config
        self._processor = Processor(storage)

    def create_live_object(self, wasm_bytes: bytes) -> None:
        messages = [Message(CreateLiveObjectAction(bytes(wasm_bytes)))]
        logger.info("New message with create action")
        self._processor.process_messages(messages)