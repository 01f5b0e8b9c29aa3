"""
The `crypt` package provides the security helpers used by authentication
and case invitations.

Contents
--------
- encrypt_decrypt
    `EncryptionDec` and the registration password policy (`PASSWORD_RULES`):
        * `hash_password` / `check_passwords` — bcrypt hashing and login check
        * `missing_password_rules` — which requirements a password fails
          (8+ characters, lowercase, uppercase, digit, special character)
        * `password_policy_message` — the 400 message shown at registration
        * `generate_invite_token` — random token for a case invite link
"""
