"""Short external identifiers."""

import secrets
import string
from typing import Callable

UID_ALPHABET = string.ascii_letters + string.digits
UID_LENGTH = 14

UidGenerator = Callable[[], str]


def generate_short_uid(length: int = UID_LENGTH) -> str:
    """Generate a random alphanumeric identifier.

    Fourteen characters over a 62-symbol alphabet give roughly 83 bits of
    entropy, so collisions inside one org are not a practical concern; the
    ``(org_id, uid)`` unique constraint still rejects them.
    """
    return "".join(secrets.choice(UID_ALPHABET) for _ in range(length))
