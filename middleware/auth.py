import logging
from functools import wraps
from flask import request, current_app
import jwt
from jwt import PyJWKClient
from utils.response import error_response

logger = logging.getLogger(__name__)


class AuthMiddleware:
    """
    Resolves the acting user from a bearer JWT issued by the identity service.

    With JWT_SECRET configured tokens are HS256 with that shared secret,
    otherwise RS256 keys are fetched from JWT_JWKS_URL.
    """

    def decode(self, token):
        config = current_app.config
        options = {"verify_exp": True, "verify_aud": bool(config.get('JWT_AUDIENCE'))}

        if config.get('JWT_SECRET'):
            key, algorithms = config['JWT_SECRET'], ["HS256"]
        elif config.get('JWT_JWKS_URL'):
            jwks_client = PyJWKClient(config['JWT_JWKS_URL'])
            key, algorithms = jwks_client.get_signing_key_from_jwt(token).key, ["RS256"]
        else:
            raise jwt.InvalidTokenError("No signing key configured")

        return jwt.decode(
            token,
            key=key,
            algorithms=algorithms,
            audience=config.get('JWT_AUDIENCE'),
            options=options,
            leeway=60  # Allow 60 seconds of clock skew
        )

    def auth_required(self, f):
        @wraps(f)
        def decorated(*args, **kwargs):
            auth_header = request.headers.get("Authorization", "")

            if not auth_header.startswith("Bearer "):
                logger.warning("Missing or malformed Authorization header")
                return error_response("Unauthorized - No Bearer token", 401)

            token = auth_header.split("Bearer ")[1]

            try:
                payload = self.decode(token)
                user_id = int(payload["sub"])
            except jwt.ExpiredSignatureError:
                logger.warning("JWT token expired")
                return error_response("Token expired", 401)
            except jwt.InvalidTokenError as e:
                logger.warning("Invalid JWT token: %s", str(e))
                return error_response("Invalid token", 401)
            except (KeyError, TypeError, ValueError):
                logger.warning("JWT subject is not a user id")
                return error_response("Invalid token subject", 401)
            except jwt.PyJWKClientError as e:
                logger.error("JWKS lookup failed: %s", str(e))
                return error_response("Authentication failed", 500)

            request.user = payload
            request.user_id = user_id
            logger.debug("JWT validated for user: %s", user_id)

            return f(*args, **kwargs)

        return decorated


# Global instance
auth_middleware = AuthMiddleware()
auth_required = auth_middleware.auth_required
