"""Random string ID generator for profiles, listings and images.

IDs are never checked for collisions, so each one carries 80 bits from
the OS CSPRNG, rendered in base36 (16 chars, zero padded).
"""

import secrets

_ALPHABET = "0123456789abcdefghijklmnopqrstuvwxyz"


class RandomIdGenerator:
    """Base36 random ID generator.

    80 bits keeps the birthday bound far beyond any realistic profile or
    listing count (~1e12 IDs before a 1-in-a-million collision chance).
    """

    _ENTROPY_BITS = 80
    _LENGTH = 16  # ceil(80 / log2(36))

    def __init__(self, entropy_bits: int = _ENTROPY_BITS) -> None:
        if entropy_bits < 64:
            raise ValueError(f"entropy_bits must be >= 64, got {entropy_bits}")
        self._entropy_bits = entropy_bits

    def next_id(self) -> str:
        value = secrets.randbits(self._entropy_bits)
        chars: list[str] = []
        while value:
            value, rem = divmod(value, 36)
            chars.append(_ALPHABET[rem])
        return "".join(reversed(chars)).rjust(self._LENGTH, "0")


_default_generator = RandomIdGenerator()


def generate_id() -> str:
    """Generate a random base36 string ID using the module-level default generator."""
    return _default_generator.next_id()
