from __future__ import annotations

import random
import string
from collections.abc import Callable

JOB_CODE_MIN = 100
JOB_CODE_MAX = 999
INTERVIEW_CODE_ALPHABET = string.ascii_uppercase + string.digits
INTERVIEW_CODE_LENGTH = 6


class MeetingCodeExhaustedError(RuntimeError):
    pass


def generate_meeting_code(rng: random.Random | None = None) -> str:
    rng = rng or random.SystemRandom()
    return str(rng.randint(JOB_CODE_MIN, JOB_CODE_MAX))


def generate_unique_meeting_code(
    is_taken: Callable[[str], bool],
    *,
    rng: random.Random | None = None,
    max_attempts: int = 200,
) -> str:
    """Rejection-sample a 3-digit job code that ``is_taken`` reports as free.

    Uniqueness is checked, not enforced by the store, so two concurrent
    creators can still race onto the same code.
    """
    for _ in range(max_attempts):
        code = generate_meeting_code(rng)
        if not is_taken(code):
            return code
    raise MeetingCodeExhaustedError(f"no free meeting code after {max_attempts} attempts")


def generate_interview_code(rng: random.Random | None = None) -> str:
    rng = rng or random.SystemRandom()
    return "".join(rng.choice(INTERVIEW_CODE_ALPHABET) for _ in range(INTERVIEW_CODE_LENGTH))
