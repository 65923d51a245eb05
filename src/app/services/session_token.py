import secrets

# 32 random bytes = 256 bits of entropy, hex encoded to 64 chars
SESSION_TOKEN_BYTES = 32


def generate_session_token() -> str:
    return secrets.token_hex(SESSION_TOKEN_BYTES)
