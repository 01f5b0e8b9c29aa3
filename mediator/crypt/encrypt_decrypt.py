import bcrypt
import re
import uuid
from typing import List

MIN_PASSWORD_LENGTH = 8

PASSWORD_RULES = [
    (re.compile(r"[a-z]"), "a lowercase letter"),
    (re.compile(r"[A-Z]"), "an uppercase letter"),
    (re.compile(r"\d"), "a digit"),
    (re.compile(r"[!@#$%^&*(),.?\":{}|<>]"), "a special character"),
]
"""Complexity rules a registration password must satisfy, with the wording used in error messages."""


class EncryptionDec:
    """
    Credential and invitation helpers used at registration, login and invite time.

    Methods
    -------
    hash_password(text: str) -> str
        bcrypt hash stored in `app_user.password`.
    check_passwords(plain_text: str, passwd: str) -> bool
        Login check against the stored hash.
    missing_password_rules(password: str) -> list[str]
        Which parts of the registration policy a password fails.
    is_valid_password(password: str) -> bool
        True when `missing_password_rules` is empty.
    password_policy_message(password: str) -> str
        The error text `register_user` reports for a rejected password.
    generate_invite_token() -> str
        Token embedded in the link that lets the second party join a case.
    """

    def hash_password(self, text: str) -> str:
        salt = bcrypt.gensalt()
        return bcrypt.hashpw(text.encode("utf-8"), salt).decode("utf-8")

    def check_passwords(self, plain_text: str, passwd: str) -> bool:
        """True if `plain_text` hashes to the stored `passwd`."""
        return bcrypt.checkpw(plain_text.encode("utf-8"), passwd.encode("utf-8"))

    def missing_password_rules(self, password: str) -> List[str]:
        """
        List the policy requirements `password` does not meet.

        Policy: at least `MIN_PASSWORD_LENGTH` characters and one match for
        every entry of `PASSWORD_RULES`.

        Returns
        -------
        list[str]
            Human-readable requirements, in policy order; empty if valid.
        """
        missing = []
        if len(password) < MIN_PASSWORD_LENGTH:
            missing.append(f"at least {MIN_PASSWORD_LENGTH} characters")
        missing.extend(description for pattern, description in PASSWORD_RULES if not pattern.search(password))
        return missing

    def is_valid_password(self, password: str) -> bool:
        return not self.missing_password_rules(password)

    def password_policy_message(self, password: str) -> str:
        """
        Example
        -------
        >>> EncryptionDec().password_policy_message("password")
        'Invalid input: password needs an uppercase letter, a digit, a special character'
        """
        return "Invalid input: password needs " + ", ".join(self.missing_password_rules(password))

    def generate_invite_token(self) -> str:
        return str(uuid.uuid4())
