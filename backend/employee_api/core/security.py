import bcrypt

from employee_api.core.config import settings


def _prepare_password(password: str) -> bytes:
    """
    Prepare password for bcrypt by encoding and truncating to 72 bytes.

    Args:
        password: Plain text password

    Returns:
        Password bytes truncated to 72 bytes (bcrypt limit)
    """
    return password.encode('utf-8')[:72]


def get_password_hash(password: str) -> str:
    """
    Hash a password using bcrypt with a fresh random salt.

    Args:
        password: Plain text password

    Returns:
        Hashed password

    Raises:
        ValueError: If the password is empty
    """
    if not password:
        raise ValueError("Password must not be empty")
    salt = bcrypt.gensalt(rounds=settings.BCRYPT_ROUNDS)
    hashed = bcrypt.hashpw(_prepare_password(password), salt)
    return hashed.decode('utf-8')


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """
    Verify a plain password against a hashed password.

    bcrypt compares digests in constant time. A mismatch returns False;
    a malformed hash raises ValueError.

    Args:
        plain_password: The plain text password
        hashed_password: The hashed password from database

    Returns:
        True if password matches, False otherwise
    """
    return bcrypt.checkpw(
        _prepare_password(plain_password),
        hashed_password.encode('utf-8')
    )


def validate_password_strength(password: str) -> bool:
    """
    Check a password against the configured policy.

    The policy is a minimum length plus an optional special-character rule.
    """
    if len(password) < settings.MIN_PASSWORD_LENGTH:
        return False
    if settings.REQUIRE_SPECIAL_CHARS and not any(not c.isalnum() for c in password):
        return False
    return True


def password_policy_message() -> str:
    message = f"Password must be at least {settings.MIN_PASSWORD_LENGTH} characters long"
    if settings.REQUIRE_SPECIAL_CHARS:
        message += " and include at least one special character"
    return message
