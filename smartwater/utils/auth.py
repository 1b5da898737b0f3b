"""Authentication utilities and decorators"""
import base64
from datetime import datetime, timezone
from functools import wraps

import jwt
import requests
from cryptography.hazmat.backends import default_backend
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from flask import request, jsonify, current_app

GOOGLE_CERTS_URL = 'https://www.googleapis.com/oauth2/v3/certs'
GOOGLE_ISSUERS = ('accounts.google.com', 'https://accounts.google.com')
STAFF_ROLES = ('org_admin', 'admin', 'manager', 'office_staff')


def issue_access_token(user):
    """Sign a bearer token for a local or Google-authenticated user"""
    now = datetime.now(timezone.utc)
    claims = {
        'sub': str(user.id),
        'org': user.organization_id,
        'role': user.role,
        'iat': now,
        'exp': now + current_app.config['JWT_ACCESS_TOKEN_EXPIRES'],
    }
    return jwt.encode(claims, current_app.config['JWT_SECRET_KEY'], algorithm='HS256')


def decode_access_token(token):
    """Verify one of our own bearer tokens; returns the claims or None"""
    try:
        return jwt.decode(token, current_app.config['JWT_SECRET_KEY'], algorithms=['HS256'])
    except jwt.ExpiredSignatureError:
        current_app.logger.info("Access token has expired")
    except jwt.InvalidTokenError as e:
        current_app.logger.warning(f"Invalid access token: {e}")
    return None


def get_google_public_keys():
    """Fetch Google's signing keys for ID token verification"""
    try:
        response = requests.get(GOOGLE_CERTS_URL, timeout=5)
        response.raise_for_status()
        return response.json()
    except requests.RequestException as e:
        current_app.logger.error(f"Error fetching Google keys: {e}")
        return None


def get_public_key_from_jwk(jwk_data):
    """Convert JWK to PEM format for PyJWT"""
    n = base64.urlsafe_b64decode(jwk_data['n'] + '==')
    e = base64.urlsafe_b64decode(jwk_data['e'] + '==')

    # Convert bytes to integers
    n_int = int.from_bytes(n, 'big')
    e_int = int.from_bytes(e, 'big')

    public_key = rsa.RSAPublicNumbers(e_int, n_int).public_key(default_backend())

    return public_key.public_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PublicFormat.SubjectPublicKeyInfo
    )


def verify_google_id_token(id_token):
    """Verify and decode a Google ID token returned by the OAuth code exchange"""
    keys = get_google_public_keys()
    if not keys:
        return None

    try:
        kid = jwt.get_unverified_header(id_token).get('kid')
    except jwt.InvalidTokenError as e:
        current_app.logger.error(f"Malformed ID token: {e}")
        return None

    key_data = next((k for k in keys.get('keys', []) if k.get('kid') == kid), None)
    if not key_data:
        current_app.logger.error(f"Key with kid '{kid}' not found in Google JWKS")
        return None

    try:
        claims = jwt.decode(
            id_token,
            get_public_key_from_jwk(key_data),
            algorithms=['RS256'],
            audience=current_app.config['GOOGLE_CLIENT_ID'],
            options={"verify_exp": True}
        )
    except jwt.ExpiredSignatureError:
        current_app.logger.error("Google ID token has expired")
        return None
    except jwt.InvalidTokenError as e:
        current_app.logger.error(f"Invalid Google ID token: {e}")
        return None

    if claims.get('iss') not in GOOGLE_ISSUERS:
        current_app.logger.error(f"Unexpected ID token issuer: {claims.get('iss')}")
        return None
    return claims


def get_current_user():
    """Resolve the bearer token on the current request to an active User"""
    auth_header = request.headers.get('Authorization')
    if not auth_header:
        return None

    # Format: "Bearer <token>"
    token = auth_header.split(' ')[1] if ' ' in auth_header else auth_header
    claims = decode_access_token(token)
    if not claims:
        return None

    from smartwater import db
    from smartwater.models.user import User
    user = db.session.get(User, int(claims['sub']))
    if not user or not user.active:
        return None
    return user


def require_auth(f):
    """Decorator to require authentication"""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        user = get_current_user()
        if not user:
            return jsonify({'error': 'Unauthorized - Invalid or missing token'}), 401

        # Attach user to request context
        request.current_user = user
        return f(*args, **kwargs)
    return decorated_function


def require_role(*roles):
    """Decorator to require specific role(s); system admins pass every check"""
    def decorator(f):
        @wraps(f)
        @require_auth
        def decorated_function(*args, **kwargs):
            user_role = request.current_user.role
            if user_role != 'system_admin' and user_role not in roles:
                return jsonify({
                    'error': f'Forbidden - Required role: {", ".join(roles)}'
                }), 403
            return f(*args, **kwargs)
        return decorated_function
    return decorator

