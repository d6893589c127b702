"""Short human-readable business keys such as APP-7K2Q9Z and PAY-04MXTB."""
import random
import string

_ALPHABET = string.ascii_uppercase + string.digits
_LENGTH = 6

APPLICATION_PREFIX = "APP"
PAYMENT_PREFIX = "PAY"


def generate_id(prefix: str) -> str:
    """Return "<PREFIX>-XXXXXX". Not a security token; no collision check."""
    suffix = "".join(random.choice(_ALPHABET) for _ in range(_LENGTH))
    return f"{prefix}-{suffix}"
