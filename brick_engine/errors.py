"""Typed, recoverable errors raised by ``SceneEditor`` operations.

Each error echoes the attempted parameters in ``params`` so a transport
layer can report exactly what was rejected. None of them leave the scene
partially mutated.
"""

from __future__ import annotations


class BrickError(Exception):
    kind = "brick_error"

    def __init__(self, message: str, **params) -> None:
        super().__init__(message)
        self.message = message
        self.params = params

    def to_dict(self) -> dict:
        return {"error": self.kind, "message": self.message, **self.params}


class UnknownBrickType(BrickError):
    kind = "unknown_brick_type"


class OutOfBounds(BrickError):
    kind = "out_of_bounds"


class Unsupported(BrickError):
    kind = "unsupported"


class Collision(BrickError):
    kind = "collision"


class InvalidImportFormat(BrickError):
    kind = "invalid_import_format"


class BrickNotFound(BrickError):
    kind = "brick_not_found"


class InvalidRotation(BrickError):
    kind = "invalid_rotation"
