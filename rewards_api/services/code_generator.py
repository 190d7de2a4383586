"""Discount code generation."""

import secrets
import string

CODE_ALPHABET = string.ascii_uppercase + string.digits
CODE_LENGTH = 12


def generate_code(length: int = CODE_LENGTH) -> str:
    """Return a random discount code of ``length`` characters from ``[A-Z0-9]``.

    Characters come from ``secrets`` so codes cannot be guessed from earlier
    ones. Uniqueness is not checked here; Shopify rejects a duplicate code
    within a shop.
    """
    if length < 1:
        raise ValueError("length must be positive")
    return "".join(secrets.choice(CODE_ALPHABET) for _ in range(length))
