"""JWT Token Verification"""
import logging
import requests
from jose import jwt, JWTError
from typing import Dict, Optional

logger = logging.getLogger(__name__)


class JWTVerifier:
    """Verifies staff access tokens against the Keycloak realm's JWKS"""

    def __init__(self, keycloak_url: str, realm: str, algorithm: str = "RS256", timeout: float = 5.0):
        self.keycloak_url = keycloak_url
        self.realm = realm
        self.algorithm = algorithm
        self.timeout = timeout
        self.jwks_url = f"{keycloak_url}/realms/{realm}/protocol/openid-connect/certs"
        self.issuer = f"{keycloak_url}/realms/{realm}"
        self._jwks_cache: Optional[Dict] = None

    def _get_jwks(self, refresh: bool = False) -> Dict:
        """Fetch JWKS from Keycloak (cached until a refresh is forced)"""
        if self._jwks_cache is None or refresh:
            response = requests.get(self.jwks_url, timeout=self.timeout)
            response.raise_for_status()
            self._jwks_cache = response.json()
        return self._jwks_cache

    def _decode(self, token: str, jwks: Dict) -> Dict:
        return jwt.decode(
            token,
            jwks,
            algorithms=[self.algorithm],
            issuer=self.issuer,
            options={
                "verify_aud": False  # Keycloak doesn't always set audience
            },
        )

    def _has_signing_key(self, token: str, jwks: Dict) -> bool:
        """Whether the key named in the token header is in the key set"""
        try:
            kid = jwt.get_unverified_header(token).get("kid")
        except JWTError:
            return True
        if kid is None:
            return True
        return any(key.get("kid") == kid for key in jwks.get("keys", []))

    def verify_and_decode(self, token: str) -> Dict:
        """
        Verify JWT token signature and decode payload.

        Keys rotated on the Keycloak side are picked up by refetching the
        JWKS once when the token names a key the cached set does not hold.

        Raises:
            JWTError: Token is invalid or expired
        """
        jwks = self._get_jwks()
        try:
            return self._decode(token, jwks)
        except JWTError:
            if self._has_signing_key(token, jwks):
                raise
            logger.info("Token signing key not in cached JWKS, refreshing keys")
            return self._decode(token, self._get_jwks(refresh=True))
