"""Authentication Middleware"""
import os
import logging
import requests
from jose import JWTError
from fastapi import HTTPException, status, Depends
from fastapi.security import HTTPBearer

from app.auth.models import JWTPayload
from app.auth.jwt_verifier import JWTVerifier
from app.auth.permissions_manager import PermissionsManager

logger = logging.getLogger(__name__)

# Initialize components
security = HTTPBearer()
jwt_verifier = JWTVerifier(
    keycloak_url=os.getenv("KEYCLOAK_URL", "http://localhost:8080"),
    realm=os.getenv("KEYCLOAK_REALM", "clinic"),
    algorithm=os.getenv("JWT_ALGORITHM", "RS256")
)
permissions_manager = PermissionsManager()


async def verify_token(credentials = Depends(security)) -> JWTPayload:
    """
    Verify JWT token from Keycloak and extract payload.

    Expected JWT claims:
    - sub: user_id
    - email: staff email (optional)
    - realm_access.roles: list of role names (doctor, admin)
    """
    token = credentials.credentials

    try:
        payload = jwt_verifier.verify_and_decode(token)
    except JWTError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Invalid token: {str(e)}"
        )
    except requests.RequestException as e:
        logger.error(f"Could not reach Keycloak JWKS endpoint: {e}")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Token verification is temporarily unavailable"
        )

    # Extract roles from realm_access
    roles = payload.get("realm_access", {}).get("roles", [])

    # Map roles to permissions
    permissions = permissions_manager.get_permissions_for_roles(roles)

    return JWTPayload(
        sub=payload["sub"],
        email=payload.get("email"),
        roles=roles,
        permissions=permissions,
        iat=payload.get("iat"),
        exp=payload.get("exp")
    )


def check_permission(jwt_payload: JWTPayload, required_permission: str):
    """
    Check if user has required permission.

    Args:
        jwt_payload: JWT payload containing user permissions
        required_permission: Permission string to check

    Raises:
        HTTPException: If user lacks required permission
    """
    if required_permission not in jwt_payload.permissions:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"Missing required permission: {required_permission}"
        )
