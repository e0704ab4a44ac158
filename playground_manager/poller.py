"""Fixed-interval polling with a bounded attempt budget."""

import time
from collections.abc import Callable

from playground_manager.logging_config import get_logger

logger = get_logger(__name__)


def poll_until(
    condition: Callable[[], bool],
    target: bool,
    max_attempts: int,
    interval_ms: int,
    sleep: Callable[[float], None] = time.sleep,
) -> bool:
    """
    Evaluate ``condition`` until it returns ``target`` or the budget runs out.

    There is no sleep after a matching attempt or after the last attempt.
    Exceptions raised by ``condition`` propagate immediately.

    Args:
        condition: Zero-argument callable returning the observed state
        target: Value that ends the loop
        max_attempts: Maximum number of evaluations (>= 1)
        interval_ms: Pause between two evaluations, in milliseconds
        sleep: Sleep function, replaceable in tests

    Returns:
        The last observed value. Compare it with ``target`` to tell success
        from timeout.
    """
    if max_attempts < 1:
        raise ValueError(f"max_attempts must be at least 1, got {max_attempts}")

    observed = not target
    for attempt in range(1, max_attempts + 1):
        observed = condition()
        logger.debug(f"Poll attempt {attempt}/{max_attempts}: observed {observed}")
        if observed == target:
            break
        if attempt < max_attempts:
            sleep(interval_ms / 1000)

    return observed
