"""
Join Code Allocation
Short human-typable codes for joining a waiting game
FILE: quizblitz/services/join_codes.py
"""
import logging
import secrets
from typing import Awaitable, Callable, TypeVar

from quizblitz.core.errors import DuplicateGameCodeError, PersistenceError
from quizblitz.db.gateway import PersistenceGateway

logger = logging.getLogger(__name__)

# No 0/O or 1/I: codes are read aloud and typed on phones
JOIN_CODE_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"
JOIN_CODE_LENGTH = 6

T = TypeVar("T")


def generate_join_code(length: int = JOIN_CODE_LENGTH) -> str:
    return "".join(secrets.choice(JOIN_CODE_ALPHABET) for _ in range(length))


def normalize_join_code(code: str) -> str:
    """Codes are case-insensitive at entry"""
    return code.strip().upper()


async def allocate_with_unique_code(
    storage: PersistenceGateway,
    create: Callable[[str], Awaitable[T]],
    length: int = JOIN_CODE_LENGTH,
    max_attempts: int = 100
) -> T:
    """
    Draw codes until one is free and create() succeeds with it

    The existence check keeps retries cheap; the store's own uniqueness
    check on insert closes the race between check and create.

    Args:
        storage: Gateway used to look up existing codes
        create: Coroutine function that persists an entity with the code
        length: Code length
        max_attempts: Give up after this many collisions

    Returns:
        Whatever create() returns

    Raises:
        PersistenceError: If no free code was found
    """
    for attempt in range(1, max_attempts + 1):
        code = generate_join_code(length)

        if await storage.get_session_by_code(code) is not None:
            logger.debug(f"Join code collision on attempt {attempt}: {code}")
            continue

        try:
            return await create(code)
        except DuplicateGameCodeError:
            logger.warning(f"⚠️ Join code {code} taken concurrently, retrying")
            continue

    logger.error(f"❌ No free join code after {max_attempts} attempts")
    raise PersistenceError("Could not allocate a unique game code")
