from passlib.context import CryptContext

# Only admin accounts carry a password; customers and vendors sign in by OTP or Google.
admin_pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

BCRYPT_MAX_BYTES = 72


def _truncate(password: str) -> str:
    return password.encode("utf-8")[:BCRYPT_MAX_BYTES].decode("utf-8", errors="ignore")


def hash_password(password: str) -> str:
    return admin_pwd_context.hash(_truncate(password))


def check_admin_password(password: str, password_hash: str | None) -> tuple[bool, str | None]:
    """Verify an admin password and return (ok, replacement_hash).

    replacement_hash is set when the stored hash uses outdated parameters
    and should be written back.
    """
    if not password_hash:
        return False, None
    return admin_pwd_context.verify_and_update(_truncate(password), password_hash)
