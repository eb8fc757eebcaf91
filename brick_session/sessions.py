"""Per-scene sessions: writer serialization, scene lifetime and polling.

The engine (``brick_engine.mutation.SceneEditor``) assumes a single writer
per scene. This module is the embedding layer that makes that true when
several clients talk to the same process:

  * ``SceneSession`` pairs a ``SceneEditor`` with a lock. Every mutation
    runs under the lock, so "is this placement valid?" and the commit that
    follows can never interleave with another writer's commit.
  * ``SceneRegistry`` decides scene lifetime. With the ``"shared"`` policy
    every client id maps to one global scene; with ``"per_client"`` each
    client id gets (and can drop) its own scene.

Readers poll with the last version they saw; ``poll`` returns a fresh
snapshot only when the scene has changed since.

``place_batch`` takes the lock once per brick rather than for the whole
batch, so viewers see bricks appear progressively and a cancel request
(``threading.Event``) is honoured between bricks. Bricks committed before
the cancel are kept.
"""

from __future__ import annotations

import logging
import threading
from typing import Callable

from brick_engine.catalog import TypeLookup
from brick_engine.mutation import (
    BatchResult,
    ImportResult,
    MutationResult,
    SceneEditor,
    run_batch,
)
from brick_engine.types import EngineConfig, Scene

logger = logging.getLogger(__name__)

POLICIES = ("shared", "per_client")

_SHARED_KEY = "__shared__"


class SceneSession:
    def __init__(
        self,
        scene: Scene,
        lookup: TypeLookup,
        config: EngineConfig | None = None,
        id_factory: Callable[[], str] | None = None,
    ) -> None:
        self.editor = SceneEditor(scene, lookup, config, id_factory)
        self._lock = threading.Lock()

    @property
    def scene(self) -> Scene:
        return self.editor.scene

    @property
    def version(self) -> int:
        return self.editor.scene.version

    def apply(self, request: dict) -> MutationResult | ImportResult:
        with self._lock:
            return self.editor.apply(request)

    def place(self, *args, **kwargs) -> MutationResult:
        with self._lock:
            return self.editor.place(*args, **kwargs)

    def move(self, brick_id: str, x: int, y: int, z: int) -> MutationResult:
        with self._lock:
            return self.editor.move(brick_id, x, y, z)

    def rotate(self, brick_id: str, rotation: int | str) -> MutationResult:
        with self._lock:
            return self.editor.rotate(brick_id, rotation)

    def paint(self, brick_id: str, color: str) -> MutationResult:
        with self._lock:
            return self.editor.paint(brick_id, color)

    def remove(self, brick_id: str) -> MutationResult:
        with self._lock:
            return self.editor.remove(brick_id)

    def clear(self) -> MutationResult:
        with self._lock:
            return self.editor.clear()

    def import_scene(self, raw: dict | str | bytes) -> ImportResult:
        with self._lock:
            return self.editor.import_scene(raw)

    def snapshot(self) -> dict:
        with self._lock:
            return self.editor.snapshot()

    def poll(self, last_version: int | None) -> dict | None:
        """Snapshot if the version differs from ``last_version``, else None."""
        with self._lock:
            if last_version is not None and last_version == self.version:
                return None
            return self.editor.snapshot()

    def place_batch(
        self,
        requests: list[dict],
        cancel: threading.Event | None = None,
        on_placed: Callable[[MutationResult], None] | None = None,
    ) -> BatchResult:
        """Place bricks one lock acquisition at a time, lowest first."""

        def place_one(request: dict) -> MutationResult:
            with self._lock:
                return self.editor.place_request(request)

        should_stop = cancel.is_set if cancel is not None else None
        return run_batch(requests, place_one, should_stop, on_placed)


class SceneRegistry:
    def __init__(
        self,
        lookup: TypeLookup,
        policy: str = "shared",
        config: EngineConfig | None = None,
        id_factory: Callable[[], str] | None = None,
    ) -> None:
        if policy not in POLICIES:
            raise ValueError(
                f"Unknown scene policy {policy!r}; expected one of {POLICIES}"
            )
        self.lookup = lookup
        self.policy = policy
        self.config = config or EngineConfig()
        self._id_factory = id_factory
        self._sessions: dict[str, SceneSession] = {}
        self._lock = threading.Lock()

    def _key(self, client_id: str) -> str:
        return _SHARED_KEY if self.policy == "shared" else client_id

    def session(self, client_id: str) -> SceneSession:
        """Return the client's session, creating an empty scene if needed."""
        key = self._key(client_id)
        with self._lock:
            existing = self._sessions.get(key)
            if existing is not None:
                return existing
            scene = Scene(name=self.config.default_scene_name)
            created = SceneSession(
                scene, self.lookup, self.config, self._id_factory
            )
            self._sessions[key] = created
            logger.debug("Created scene session for %s", key)
            return created

    def drop(self, client_id: str) -> bool:
        """Forget a per-client session. The shared scene is never dropped."""
        if self.policy == "shared":
            return False
        with self._lock:
            return self._sessions.pop(client_id, None) is not None

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)
