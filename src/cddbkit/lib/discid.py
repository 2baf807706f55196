"""Disc fingerprint (CDDB disc ID) calculation.

The disc ID packs three values into 32 bits:

    checksum (8 bits) | disc length - 2 (16 bits) | track count (8 bits)

where the checksum is the sum of the decimal digits of every track's start
time in whole seconds, modulo 255. The formula must be reproduced bit for
bit to interoperate with existing CDDB databases.
"""

from __future__ import annotations

from collections.abc import Sequence

FRAMES_PER_SECOND = 75

# Seconds of lead-in subtracted from the disc length (150 frames)
_LEAD_IN_SECONDS = 2


def digit_sum(n: int) -> int:
    """Sum the base-10 digits of a non-negative integer."""
    total = 0
    while n > 0:
        total += n % 10
        n //= 10
    return total


def compute_disc_id(offsets: Sequence[int], total_length: int) -> str:
    """Compute the CDDB disc ID for a table of contents.

    Args:
        offsets: Track start offsets in frames (75 frames per second).
        total_length: Total disc length in seconds.

    Returns:
        Lowercase hex disc ID. Not zero-padded: callers that need the
        conventional 8 characters get them from ``Disc.disc_id``.

    Examples:
        >>> compute_disc_id([150], 60)
        '2003a01'
    """
    n = sum(digit_sum(offset // FRAMES_PER_SECOND) for offset in offsets)
    value = (
        (n % 0xFF) << 24
        | (total_length - _LEAD_IN_SECONDS) << 8
        | len(offsets)
    )
    return format(value & 0xFFFFFFFF, "x")


def frames_to_seconds(frames: int) -> int:
    """Round a frame count to whole seconds, halves rounding up."""
    return (2 * frames + FRAMES_PER_SECOND) // (2 * FRAMES_PER_SECOND)


def derive_track_lengths(offsets: Sequence[int], disc_length: int) -> list[int]:
    """Derive track lengths in seconds from consecutive offsets.

    Every track but the last is the rounded distance to the next offset.
    The last track runs from its offset to the end of the disc.

    Args:
        offsets: Track start offsets in frames.
        disc_length: Disc length in seconds.

    Returns:
        One length per offset (empty when there are no offsets).
    """
    if not offsets:
        return []
    lengths = [
        frames_to_seconds(end - start)
        for start, end in zip(offsets, offsets[1:], strict=False)
    ]
    lengths.append(disc_length - offsets[-1] // FRAMES_PER_SECOND)
    return lengths
