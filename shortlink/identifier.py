"""Short identifier generation."""

import secrets
import string


# nanoid alphabet: alphanumerics plus two URL-safe symbols (64 characters)
URL_SAFE_ALPHABET = string.ascii_uppercase + string.ascii_lowercase + string.digits + "_-"


class IdentifierGenerator:
    """Generate random, URL-safe short identifiers.

    The generator keeps no history. Uniqueness is enforced by the store, and
    callers retry with a fresh identifier when an insert collides.
    """

    def __init__(self, length: int = 6, alphabet: str = URL_SAFE_ALPHABET):
        """Initialize identifier generator.

        Args:
            length: Number of characters per identifier
            alphabet: Characters to draw from
        """
        if length < 1:
            raise ValueError("Identifier length must be at least 1")
        if len(set(alphabet)) < 2:
            raise ValueError("Alphabet needs at least two distinct characters")

        self.length = length
        self.alphabet = alphabet

    def next(self) -> str:
        """Generate a new random identifier.

        Returns:
            Identifier of exactly ``self.length`` characters
        """
        return "".join(secrets.choice(self.alphabet) for _ in range(self.length))

    @staticmethod
    def is_valid_format(identifier: str, alphabet: str = URL_SAFE_ALPHABET) -> bool:
        """Check that an identifier only uses characters from the alphabet.

        Length is not checked, so identifiers issued under a different
        configured length are still accepted.

        Args:
            identifier: Identifier to check
            alphabet: Allowed characters

        Returns:
            True if non-empty and every character is in the alphabet
        """
        if not identifier or not isinstance(identifier, str):
            return False
        return all(c in alphabet for c in identifier)
