"""Best-effort side effects that must never fail the main operation."""

import logging
from typing import Callable, Iterable, List, Tuple

logger = logging.getLogger(__name__)

SideEffect = Tuple[str, Callable[[], None]]


def run_side_effects(effects: Iterable[SideEffect]) -> List[str]:
    """
    Run each (name, callable) independently.

    A failing effect is logged and skipped so the others still run.
    Returns the names of the effects that failed.
    """
    failed = []
    for name, effect in effects:
        try:
            effect()
        except Exception:
            logger.exception(f"Side effect '{name}' failed")
            failed.append(name)
    return failed
