import os
from collections.abc import Mapping


DEFAULT_MAX_INPUT_SIZE = 64 * 1024 * 1024
DEFAULT_MAX_EDIT_DISTANCE = 2_000
DEFAULT_COMPRESSION_LEVEL = -1

ENV_MAX_INPUT_SIZE = "BYTEPATCH_MAX_INPUT_SIZE"
ENV_MAX_EDIT_DISTANCE = "BYTEPATCH_MAX_EDIT_DISTANCE"
ENV_COMPRESSION_LEVEL = "BYTEPATCH_COMPRESSION_LEVEL"


class PatchSettings:
    """
    Tunables for building and serializing patches.

    Args:
        max_input_size: Upper bound on len(base) + len(target) accepted by the aligner.
        max_edit_distance: Upper bound on the number of single-byte edits the
                           aligner explores before giving up.
        compression_level: zlib level used for the serialized patch (-1 .. 9).
    """

    def __init__(
        self,
        max_input_size: int = DEFAULT_MAX_INPUT_SIZE,
        max_edit_distance: int = DEFAULT_MAX_EDIT_DISTANCE,
        compression_level: int = DEFAULT_COMPRESSION_LEVEL,
    ) -> None:
        if max_input_size <= 0:
            raise ValueError(f"max_input_size must be positive, got {max_input_size}")
        if max_edit_distance <= 0:
            raise ValueError(f"max_edit_distance must be positive, got {max_edit_distance}")
        if not -1 <= compression_level <= 9:
            raise ValueError(f"compression_level must be between -1 and 9, got {compression_level}")

        self.max_input_size = max_input_size
        self.max_edit_distance = max_edit_distance
        self.compression_level = compression_level

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "PatchSettings":
        """Builds settings from BYTEPATCH_* environment variables, falling back to defaults."""
        if environ is None:
            environ = os.environ

        def _int_var(name: str, default: int) -> int:
            raw = environ.get(name)
            if raw is None or raw.strip() == "":
                return default
            try:
                return int(raw)
            except ValueError as e:
                raise ValueError(f"{name} must be an integer, got '{raw}'") from e

        return cls(
            max_input_size=_int_var(ENV_MAX_INPUT_SIZE, DEFAULT_MAX_INPUT_SIZE),
            max_edit_distance=_int_var(ENV_MAX_EDIT_DISTANCE, DEFAULT_MAX_EDIT_DISTANCE),
            compression_level=_int_var(ENV_COMPRESSION_LEVEL, DEFAULT_COMPRESSION_LEVEL),
        )

    def __repr__(self) -> str:
        return (f"PatchSettings(max_input_size={self.max_input_size}, "
                f"max_edit_distance={self.max_edit_distance}, "
                f"compression_level={self.compression_level})")
