from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import Literal


BlockSelector = int | str
_EARLIEST: Literal["earliest"] = "earliest"
_LATEST: Literal["latest"] = "latest"


async def resolve_block_bounds(
    *,
    from_block: BlockSelector,
    to_block: BlockSelector,
    earliest: int,
    latest: Callable[[], Awaitable[int]],
) -> tuple[int, int]:
    """
    Resolve from_block / to_block into concrete block numbers.

    - If both are ints -> they are returned as-is.
    - If from_block is "earliest" / "" -> `earliest` (registrar deployment block).
    - If to_block is "latest" / ""     -> chain head from `latest()`.
    - Numeric strings are accepted as block numbers.
    """
    if isinstance(from_block, int) and isinstance(to_block, int):
        return from_block, to_block

    if isinstance(from_block, int):
        fb = from_block
    else:
        fb_str = from_block.strip().lower()
        if fb_str in ("", _EARLIEST):
            fb = earliest
        elif fb_str.isdigit():
            fb = int(fb_str)
        else:
            raise ValueError(f"Unsupported from_block value: {from_block!r}")

    if isinstance(to_block, int):
        tb = to_block
    else:
        tb_str = to_block.strip().lower()
        if tb_str in ("", _LATEST):
            tb = await latest()
        elif tb_str.isdigit():
            tb = int(tb_str)
        else:
            raise ValueError(f"Unsupported to_block value: {to_block!r}")

    return fb, tb
