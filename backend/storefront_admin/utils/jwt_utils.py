"""JWT utilities: RS256 keypair management, admin token signing and verification"""
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Tuple

from jose import JWTError, jwt

from storefront_admin.config import settings
from storefront_admin.errors import InvalidTokenError
from storefront_admin.utils.logger import logger
from storefront_admin.utils.timestamps import to_epoch_ms

# ---------------------------------------------------------------------------
# Keypair management
# ---------------------------------------------------------------------------

_private_key: Any = None   # cryptography RSAPrivateKey object
_public_key: Any = None    # cryptography RSAPublicKey object


def _load_keypair() -> None:
    """Load or auto-generate the RSA keypair.

    Reads JWT_PRIVATE_KEY from settings (PEM string).
    If absent, generates a fresh RSA-2048 keypair and logs the private key PEM
    so the operator can paste it into .env to make it persistent across restarts.
    """
    global _private_key, _public_key

    from cryptography.hazmat.primitives import serialization
    from cryptography.hazmat.primitives.asymmetric import rsa

    if settings.JWT_PRIVATE_KEY:
        pem = settings.JWT_PRIVATE_KEY.encode()
        _private_key = serialization.load_pem_private_key(pem, password=None)
        _public_key = _private_key.public_key()
        logger.info("JWT keypair loaded from JWT_PRIVATE_KEY setting")
    else:
        _private_key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
        _public_key = _private_key.public_key()

        pem_str = _private_key.private_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PrivateFormat.TraditionalOpenSSL,
            encryption_algorithm=serialization.NoEncryption(),
        ).decode()

        logger.warning(
            "JWT_PRIVATE_KEY not set; auto-generated RSA-2048 keypair for this process. "
            "All admin sessions will be invalidated on restart. "
            "Set the following in backend/.env to persist the key:\n"
            f"JWT_PRIVATE_KEY=\"{pem_str.strip()}\""
        )


def get_private_key() -> Any:
    """Return the loaded private key, initialising on first call."""
    if _private_key is None:
        _load_keypair()
    return _private_key


def get_public_key() -> Any:
    """Return the loaded public key, initialising on first call."""
    if _public_key is None:
        _load_keypair()
    return _public_key


# ---------------------------------------------------------------------------
# Token creation
# ---------------------------------------------------------------------------

def create_admin_token(admin) -> Tuple[str, datetime]:
    """Sign a session token for an authenticated admin.

    The token embeds the admin identity and the credential ``last_updated``
    value at issuance (``lastUpdated``, epoch milliseconds) so later edits to
    the record can be detected without any server-side state.

    Args:
        admin: AdminUser whose password has already been checked.

    Returns:
        ``(token, issued_at)``, where issued_at is a naive UTC datetime suitable for
        the session registry.
    """
    issued_at = datetime.now(timezone.utc)
    now = int(issued_at.timestamp())

    payload: Dict[str, Any] = {
        "sub": admin.admin_id,
        "id": admin.admin_id,
        "name": admin.name,
        "isAdmin": True,
        "lastUpdated": to_epoch_ms(admin.last_updated),
        "jti": str(uuid.uuid4()),
        "iat": now,
        "exp": now + settings.ADMIN_TOKEN_EXPIRE_SECONDS,
    }

    if settings.JWT_KEY_ID:
        payload["kid"] = settings.JWT_KEY_ID

    token = jwt.encode(payload, get_private_key(), algorithm=settings.JWT_ALGORITHM)
    return token, issued_at.replace(tzinfo=None)


# ---------------------------------------------------------------------------
# Token verification
# ---------------------------------------------------------------------------

def decode_admin_token(token: str) -> Dict[str, Any]:
    """Verify signature and expiry and return the payload.

    Only the cryptographic checks live here; identity and freshness checks
    belong to :mod:`storefront_admin.services.authenticator`.

    Raises:
        InvalidTokenError: on a bad signature, malformed token or expiry.
    """
    try:
        return jwt.decode(token, get_public_key(), algorithms=[settings.JWT_ALGORITHM])
    except JWTError as exc:
        logger.debug(f"JWT decode failed: {exc}")
        raise InvalidTokenError()
