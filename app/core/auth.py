import logging
import time
from typing import Optional, Dict, Any

import httpx
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import jwt, jwk
from jose.exceptions import JWTError, JWKError, ExpiredSignatureError, JWTClaimsError
from pydantic import BaseModel
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.config import settings
from app.db.session import get_db
from app.models.user import ROLE_ADMIN, ROLE_USER, User
from app.services.filters import ViewerContext

logger = logging.getLogger(__name__)

# Security scheme for Bearer token
security = HTTPBearer()
optional_security = HTTPBearer(auto_error=False)

# JWKS cache with TTL
_jwks_cache: Optional[Dict[str, Any]] = None
_jwks_cache_time: float = 0
JWKS_CACHE_TTL = 600  # 10 minutes in seconds

SUPPORTED_ALGORITHMS = ["ES256", "RS256"]


def _auth_failed(detail: str = "Token verification failed") -> HTTPException:
    return HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=detail)


def fetch_jwks() -> Dict[str, Any]:
    """
    Fetch the identity provider's JWKS, cached for JWKS_CACHE_TTL seconds.
    Falls back to an expired cache if the endpoint is unreachable.

    Raises:
        HTTPException: 503 if no keys are available at all
    """
    global _jwks_cache, _jwks_cache_time

    current_time = time.time()
    if _jwks_cache is not None and (current_time - _jwks_cache_time) < JWKS_CACHE_TTL:
        logger.debug("Using cached JWKS")
        return _jwks_cache

    try:
        logger.info(f"Fetching JWKS from {settings.auth_jwks_url}")
        response = httpx.get(settings.auth_jwks_url, timeout=10.0)
        response.raise_for_status()
        jwks_data = response.json()
        if not isinstance(jwks_data, dict) or "keys" not in jwks_data:
            raise ValueError("Invalid JWKS structure: missing 'keys' field")
    except (httpx.HTTPError, ValueError) as e:
        logger.error(f"Failed to fetch JWKS: {e}")
        if _jwks_cache is not None:
            logger.warning("Using expired JWKS cache due to fetch failure")
            return _jwks_cache
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Unable to verify token: JWKS endpoint unavailable",
        )

    _jwks_cache = jwks_data
    _jwks_cache_time = current_time
    logger.info(f"JWKS fetched successfully, {len(jwks_data['keys'])} keys found")
    return jwks_data


def get_signing_key(token: str, jwks: Dict[str, Any]) -> Dict[str, Any]:
    """Find the JWK matching the token header's ``kid``."""
    try:
        kid = jwt.get_unverified_header(token).get("kid")
    except JWTError as e:
        logger.warning(f"Malformed token header: {e}")
        raise _auth_failed()

    if not kid:
        logger.warning("Token missing 'kid' in header")
        raise _auth_failed()

    for key in jwks.get("keys", []):
        if key.get("kid") == kid:
            return key

    logger.warning(f"Key ID '{kid}' not found in JWKS")
    raise _auth_failed()


class Identity(BaseModel):
    """Authenticated identity taken from verified token claims."""
    provider: str
    uid: str
    email: Optional[str] = None
    name: Optional[str] = None


def verify_token(token: str) -> dict:
    """
    Verify a bearer JWT against the provider's JWKS and return its claims.
    Signature, audience, issuer and expiry are all checked.
    """
    jwk_key = get_signing_key(token, fetch_jwks())
    try:
        key = jwk.construct(jwk_key)
    except JWKError as e:
        logger.error(f"Failed to construct key from JWK: {e}")
        raise _auth_failed()

    header_alg = jwt.get_unverified_header(token).get("alg")
    jwk_alg = jwk_key.get("alg")
    if header_alg and jwk_alg and header_alg != jwk_alg:
        logger.warning(f"Algorithm mismatch: header={header_alg}, JWK={jwk_alg}")
        raise _auth_failed()
    if (header_alg or jwk_alg or "ES256") not in SUPPORTED_ALGORITHMS:
        logger.warning(f"Unsupported algorithm: {header_alg or jwk_alg}")
        raise _auth_failed()

    try:
        payload = jwt.decode(
            token,
            key,
            algorithms=SUPPORTED_ALGORITHMS,
            audience=settings.auth_jwt_audience,
            issuer=settings.auth_issuer,
        )
    except ExpiredSignatureError:
        logger.warning("Token has expired")
        raise _auth_failed()
    except JWTClaimsError as e:
        logger.warning(f"Token claims validation failed: {e}")
        raise _auth_failed()
    except JWTError as e:
        logger.warning(f"JWT verification error: {e}")
        raise _auth_failed()

    logger.debug(f"Token verified for sub: {payload.get('sub')}")
    return payload


def identity_from_claims(claims: dict) -> Identity:
    uid = claims.get("sub")
    if not uid:
        logger.warning("Token missing subject (sub) claim")
        raise _auth_failed("Token missing subject (sub) claim")

    app_metadata = claims.get("app_metadata") or {}
    user_metadata = claims.get("user_metadata") or {}
    provider = app_metadata.get("provider") or user_metadata.get("provider") or "email"
    name = user_metadata.get("name") or user_metadata.get("full_name")
    return Identity(provider=provider, uid=str(uid), email=claims.get("email"), name=name)


def get_or_create_user(db: Session, identity: Identity) -> User:
    """
    Get the user for an identity, or create one on first sign-in.
    New users start as ``user``; emails listed in settings.admin_emails start as ``admin``.
    On a duplicate-key race the existing row is returned.
    """
    user = db.query(User).filter(User.external_auth_uid == identity.uid).first()
    if user:
        was_updated = False
        if identity.email is not None and user.email is None:
            user.email = identity.email
            was_updated = True
        if identity.name and not user.name:
            user.name = identity.name
            was_updated = True
        if was_updated:
            db.commit()
            db.refresh(user)
        return user

    admin_emails = {e.lower() for e in settings.admin_emails}
    role = ROLE_ADMIN if identity.email and identity.email.lower() in admin_emails else ROLE_USER
    logger.info(f"Creating user for external_auth_uid={identity.uid}, provider={identity.provider}, role={role}")
    user = User(
        external_auth_uid=identity.uid,
        external_auth_provider=identity.provider,
        email=identity.email,
        name=identity.name,
        role=role,
    )
    db.add(user)
    try:
        db.commit()
        db.refresh(user)
        return user
    except IntegrityError:
        db.rollback()
        user = db.query(User).filter(User.external_auth_uid == identity.uid).first()
        if user is not None:
            return user
        raise


def _ensure_active(user: User) -> User:
    if not user.is_active:
        raise _auth_failed("User account is deactivated")
    return user


def get_current_identity(
    credentials: HTTPAuthorizationCredentials = Depends(security)
) -> Identity:
    """Verify the Bearer token and return the identity it carries."""
    token = credentials.credentials
    if not token:
        raise _auth_failed("Missing token")
    identity = identity_from_claims(verify_token(token))
    logger.info(f"Authenticated user: sub={identity.uid}, provider={identity.provider}")
    return identity


def get_current_user(
    identity: Identity = Depends(get_current_identity),
    db: Session = Depends(get_db)
) -> User:
    """Resolve the authenticated identity to its User row (created on first use)."""
    return _ensure_active(get_or_create_user(db, identity))


def get_current_user_optional(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(optional_security),
    db: Session = Depends(get_db)
) -> Optional[User]:
    """
    Current user if a valid token is present, otherwise None.
    For endpoints open to guests (browsing, anonymous submissions).
    """
    if not credentials or not credentials.credentials:
        return None
    try:
        identity = identity_from_claims(verify_token(credentials.credentials))
    except HTTPException as e:
        logger.info(f"Ignoring invalid optional credentials: {e.detail}")
        return None
    user = get_or_create_user(db, identity)
    return user if user.is_active else None


def require_admin(current_user: User = Depends(get_current_user)) -> User:
    if not current_user.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"User role '{current_user.role}' is not authorized to access this route",
        )
    return current_user


def viewer_context(user: Optional[User]) -> Optional[ViewerContext]:
    if user is None:
        return None
    return ViewerContext(id=user.id, role=user.role)


def get_viewer_context(
    user: Optional[User] = Depends(get_current_user_optional),
) -> Optional[ViewerContext]:
    """Caller identity for visibility rules; None for anonymous requests."""
    return viewer_context(user)
