"""
Invitation token generation
"""
import secrets

# 32 random bytes -> 256 bits of entropy, 43 URL-safe characters
TOKEN_BYTES = 32


def generate_invitation_token():
    """Generate an unguessable, URL-safe invitation token"""
    return secrets.token_urlsafe(TOKEN_BYTES)
