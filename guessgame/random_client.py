"""
- HTTP call with clear fallback
Get the secret target (1..100) from random.org. If anything goes wrong (no internet,
timeout, bad response), we fall back to a local secure random generator so the game still works.
"""

import logging
from secrets import randbelow
from typing import Optional

import requests

from .config import settings
from .types import MAX_GUESS, MIN_GUESS

logger = logging.getLogger(__name__)

RANDOM_URL = "https://www.random.org/integers/"


def local_target() -> int:
    # randbelow(100) gives 0..99, shift to 1..100
    return randbelow(MAX_GUESS - MIN_GUESS + 1) + MIN_GUESS


def fetch_target(use_network: Optional[bool] = None) -> int:
    if use_network is None:
        use_network = settings.use_random_org
    if not use_network:
        return local_target()

    params = {
        "num": 1,
        "min": MIN_GUESS,
        "max": MAX_GUESS,
        "col": 1,
        "base": 10,
        "format": "plain",
        "rnd": "new",
    }

    # keep network quick; if it takes too long, we will just fallback
    timeout_seconds = 3.0

    try:
        response = requests.get(RANDOM_URL, params=params, timeout=timeout_seconds)
        response.raise_for_status()

        # The body looks like: "42\n"
        lines = [line.strip() for line in response.text.splitlines() if line.strip()]
        if len(lines) != 1:
            raise ValueError(f"random.org returned {len(lines)} values, expected 1.")

        value = int(lines[0])
        if value < MIN_GUESS or value > MAX_GUESS:
            raise ValueError(f"random.org number {value} out of range {MIN_GUESS}..{MAX_GUESS}.")
        return value

    except (requests.RequestException, ValueError) as exc:
        logger.warning("random.org unavailable, using local target: %s", exc)
        return local_target()
