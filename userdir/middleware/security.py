from validators import email as validate_email
from validators.utils import ValidationError


class Security:
    """E-mail validator for user input.

    Behavior:
    - Accepts a plain address only (`name@example.com`); surrounding whitespace is ignored.
    - Rejects display names (`Ada <ada@example.com>`), missing local part or domain.
    - Uses validators.email for the actual format check.
    """

    def is_valid_email(self, address: str) -> bool:
        if not address or not isinstance(address, str):
            return False

        raw = address.strip()
        if not raw or ' ' in raw:
            return False

        try:
            return validate_email(raw) is True
        except (ValidationError, UnicodeError):
            return False
