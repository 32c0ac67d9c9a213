from __future__ import annotations

from typing import Any, Optional, Sequence

from common.asm16 import assemble
from top.params import CoreParams
from top.top import HazardCoreTop


def build(
    program: str | Sequence[int],
    params: Optional[CoreParams] = None,
    **overrides: Any,
) -> HazardCoreTop:
    """Construct a ready-to-run core from assembly text or a word image."""
    words = assemble(program) if isinstance(program, str) else [int(w) for w in program]
    if overrides:
        base = (params if params is not None else CoreParams()).to_mapping()
        base.update(overrides)
        params = CoreParams.from_mapping(base)
    return HazardCoreTop(words, params)
