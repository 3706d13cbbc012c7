"""
Cosmetic progress for recipe generation.

The model call gives no real progress signal, so the chat walks a fixed list
of labelled stages timed against the expected duration of the call. The
walk never finishes the generation itself; it is cancelled once the call
settles.
"""

import asyncio
import logging
import math
import random
from typing import Awaitable, Callable, List, Tuple

logger = logging.getLogger(__name__)

PROGRESS_STAGES: List[Tuple[str, int]] = [
    ("Starting recipe search...", 5),
    ("Searching cookbooks...", 15),
    ("Analyzing ingredients...", 25),
    ("Creating recipe drafts...", 35),
    ("Optimizing ingredient list...", 45),
    ("Refining spices...", 55),
    ("Calculating quantities...", 65),
    ("Checking combinations...", 75),
    ("Finalizing recipes...", 85),
    ("Preparing suggestions...", 95),
]

SERVING_STAGE = "Serving the finished recipes..."
DONE_STAGE = "Done! Enjoy your meal!"
ERROR_STAGE = "Oops! The soup is burnt.."

BASE_DURATION = 55.0  # seconds
PER_RECIPE_DURATION = 5.0
INTERVAL_VARIATION = 0.4  # +/- 20% around the base interval
INTERMEDIATE_STEPS = 4
INTERMEDIATE_DELAY = 0.1

ProgressCallback = Callable[[str, float], None]
Sleep = Callable[[float], Awaitable[None]]


def expected_duration(recipe_count: int) -> float:
    """Expected generation time in seconds."""
    return BASE_DURATION + recipe_count * PER_RECIPE_DURATION


def stage_interval(recipe_count: int, rng: random.Random) -> float:
    """Jittered wait before the next stage."""
    base = expected_duration(recipe_count) / (len(PROGRESS_STAGES) + 1)
    variation = base * INTERVAL_VARIATION
    return base + (rng.random() * variation - variation / 2)


def _bounce(previous: int, target: int, step: int) -> float:
    increment = (target - previous) / INTERMEDIATE_STEPS
    value = previous + increment * step + math.sin(step * math.pi / 2) * 2
    return min(100.0, max(0.0, value))


async def run_progress(
    update: ProgressCallback,
    recipe_count: int,
    rng: random.Random = None,
    sleep: Sleep = asyncio.sleep,
):
    """
    Walk the progress stages until done or cancelled.

    Args:
        update: Called with (stage label, percent) on every tick
        recipe_count: Number of recipes being generated
        rng: Random source for the interval jitter
        sleep: Awaitable sleep (injectable for tests)
    """
    rng = rng or random.Random()

    label, percent = PROGRESS_STAGES[0]
    update(label, percent)

    for index in range(1, len(PROGRESS_STAGES)):
        await sleep(stage_interval(recipe_count, rng))

        previous = PROGRESS_STAGES[index - 1][1]
        label, percent = PROGRESS_STAGES[index]
        for step in range(1, INTERMEDIATE_STEPS + 1):
            update(label, _bounce(previous, percent, step))
            await sleep(INTERMEDIATE_DELAY)

        update(label, percent)

    logger.debug("Progress walk reached the last stage")


async def run_completion(update: ProgressCallback, sleep: Sleep = asyncio.sleep, delay: float = 0.05):
    """Short ramp from the last stage to 100%."""
    for percent in range(PROGRESS_STAGES[-1][1], 101):
        update(SERVING_STAGE, percent)
        if delay:
            await sleep(delay)
