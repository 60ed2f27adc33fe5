"""Float32 blob encoding for stored embeddings."""

from __future__ import annotations

from typing import Sequence

import numpy as np
import sqlite_vec


def encode_vector(vector: Sequence[float]) -> bytes:
    """Serialize *vector* as a little-endian float32 blob (sqlite-vec format)."""
    if len(vector) < 1:
        raise ValueError("cannot encode an empty vector")
    return sqlite_vec.serialize_float32([float(v) for v in vector])


def decode_vector(blob: bytes, dimensions: int | None = None) -> list[float]:
    """Inverse of encode_vector().

    Raises:
        ValueError: If the blob length is not a whole number of float32 values,
            or does not match *dimensions* when given.
    """
    if len(blob) % 4:
        raise ValueError(f"embedding blob has {len(blob)} bytes, not a float32 multiple")
    values = np.frombuffer(blob, dtype=np.float32)
    if dimensions is not None and values.shape[0] != dimensions:
        raise ValueError(
            f"embedding has {values.shape[0]} dimensions, expected {dimensions}"
        )
    return values.astype(float).tolist()
