"""
Record locator (PNR) generation.

A PNR is the airline code followed by a fixed number of characters drawn
uniformly from A-Z and 0-9, e.g. ``AA7K2P9X``. Candidates are checked
against the booking store and regenerated until an unused one is found,
within a bounded number of attempts.
"""

import logging
import re
import secrets
import string
from typing import Callable, Optional

from ..errors import LocatorSpaceExhaustedError

logger = logging.getLogger(__name__)

PNR_ALPHABET = string.ascii_uppercase + string.digits
DEFAULT_SUFFIX_LENGTH = 6
DEFAULT_MAX_ATTEMPTS = 100

_AIRLINE_CODE = re.compile(r"^[A-Z0-9]{2,3}$")


class LocatorGenerator:
    """
    Generates unique airline-prefixed record locators.

    Args:
        exists: Predicate telling whether a PNR is already taken, usually
            BookingStore.pnr_exists
        suffix_length: Number of random characters after the airline code
        max_attempts: Collision retries before LocatorSpaceExhaustedError
    """

    def __init__(
        self,
        exists: Callable[[str], bool],
        suffix_length: int = DEFAULT_SUFFIX_LENGTH,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        rng: Optional[secrets.SystemRandom] = None,
    ):
        if suffix_length < 1:
            raise ValueError("suffix_length must be positive")
        if max_attempts < 1:
            raise ValueError("max_attempts must be positive")
        self.exists = exists
        self.suffix_length = suffix_length
        self.max_attempts = max_attempts
        self._rng = rng or secrets.SystemRandom()

    def random_suffix(self) -> str:
        return "".join(self._rng.choice(PNR_ALPHABET) for _ in range(self.suffix_length))

    def generate(self, airline_code: str) -> str:
        """
        Return a PNR not present among existing bookings.

        Raises:
            ValueError: if the airline code is malformed
            LocatorSpaceExhaustedError: if every attempt collided
        """
        code = normalize_airline_code(airline_code)

        for attempt in range(1, self.max_attempts + 1):
            pnr = code + self.random_suffix()
            if not self.exists(pnr):
                if attempt > 1:
                    logger.info(f"Generated PNR {pnr} after {attempt} attempts")
                return pnr
            logger.warning(f"PNR collision on {pnr} (attempt {attempt})")

        logger.error(f"No unique PNR for airline {code} after {self.max_attempts} attempts")
        raise LocatorSpaceExhaustedError(code, self.max_attempts)


def normalize_airline_code(airline_code: str) -> str:
    code = (airline_code or "").strip().upper()
    if not _AIRLINE_CODE.match(code):
        raise ValueError(f"Invalid airline code: {airline_code!r}")
    return code


def is_valid_pnr(pnr: str, suffix_length: int = DEFAULT_SUFFIX_LENGTH) -> bool:
    pattern = rf"^[A-Z0-9]{{2,3}}[A-Z0-9]{{{suffix_length}}}$"
    return bool(re.match(pattern, pnr or ""))
