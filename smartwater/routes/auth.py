from flask import Blueprint, request, jsonify, current_app, redirect
from itsdangerous import URLSafeTimedSerializer, BadSignature, SignatureExpired
from smartwater import db
from smartwater.models.organization import Organization
from smartwater.models.user import User
from smartwater.schemas.auth import LoginSchema, RegisterSchema
from smartwater.utils.auth import issue_access_token, get_current_user, verify_google_id_token
from urllib.parse import urlencode
import requests
import re
import uuid

bp = Blueprint('auth', __name__)
login_alias_bp = Blueprint('login_alias', __name__)

GOOGLE_AUTH_URL = 'https://accounts.google.com/o/oauth2/v2/auth'
GOOGLE_TOKEN_URL = 'https://oauth2.googleapis.com/token'
OAUTH_STATE_SALT = 'google-oauth-state'


def get_state_serializer():
    return URLSafeTimedSerializer(current_app.config['SECRET_KEY'], salt=OAUTH_STATE_SALT)


def new_oauth_state():
    return get_state_serializer().dumps({'nonce': uuid.uuid4().hex})


def login_redirect(error_code):
    """Send the browser back to the login page with a mapped error code"""
    current_app.logger.warning(f"Google sign-in failed: {error_code}")
    return redirect(f"{current_app.config['FRONTEND_URL']}/login?{urlencode({'error': error_code})}")


def session_payload(user, token=None):
    payload = {
        'authenticated': True,
        'user': user.to_dict(),
        'organization': user.organization.to_dict() if user.organization else None,
    }
    if token:
        payload['token'] = token
    return payload


def slugify(name):
    slug = re.sub(r'[^a-z0-9]+', '-', name.lower()).strip('-') or 'org'
    candidate, suffix = slug, 1
    while Organization.query.filter_by(slug=candidate).first():
        suffix += 1
        candidate = f"{slug}-{suffix}"
    return candidate


def _login():
    data = LoginSchema.model_validate(request.get_json(silent=True) or {})
    user = User.query.filter(
        db.or_(User.username == data.username, db.func.lower(User.email) == data.username.lower())
    ).first()
    if not user or not user.check_password(data.password):
        return jsonify({'error': 'Invalid username or password'}), 401
    if not user.active:
        return jsonify({'error': 'Account is disabled'}), 403

    current_app.logger.info(f"User {user.id} logged in")
    return jsonify(session_payload(user, issue_access_token(user))), 200


@bp.route('/login', methods=['POST'])
def login():
    """
    Log in with username (or email) and password
    ---
    tags:
      - Authentication
    requestBody:
      required: true
      content:
        application/json:
          schema:
            type: object
            required:
              - username
              - password
            properties:
              username:
                type: string
              password:
                type: string
    responses:
      200:
        description: Bearer token, user and organization
      400:
        description: Invalid request data
      401:
        description: Invalid username or password
    """
    return _login()


@login_alias_bp.route('/login', methods=['POST'])
def login_alias():
    return _login()


@bp.route('/register', methods=['POST'])
def register():
    """Create an organization and its first administrator"""
    data = RegisterSchema.model_validate(request.get_json(silent=True) or {})

    if User.query.filter_by(username=data.username).first():
        return jsonify({'error': 'Username already taken'}), 409
    if User.query.filter(db.func.lower(User.email) == data.email.lower()).first():
        return jsonify({'error': 'Email already registered'}), 409

    org_name = data.organization_name or f"{data.name}'s Pool Service"
    organization = Organization(name=org_name, slug=slugify(org_name), subscription_status='trialing')
    db.session.add(organization)
    db.session.flush()

    user = User(
        username=data.username,
        name=data.name,
        email=data.email.lower(),
        role='org_admin',
        organization_id=organization.id,
        auth_provider='local',
    )
    user.set_password(data.password)
    db.session.add(user)
    db.session.commit()

    current_app.logger.info(f"Registered organization {organization.slug} with admin {user.username}")
    return jsonify(session_payload(user, issue_access_token(user))), 201


@bp.route('/session', methods=['GET'])
def get_session():
    """
    Current session
    ---
    tags:
      - Authentication
    security:
      - Bearer: []
    responses:
      200:
        description: Authenticated user and organization
      401:
        description: No valid session
    """
    user = get_current_user()
    if not user:
        return jsonify({'authenticated': False, 'error': 'Not authenticated'}), 401
    return jsonify(session_payload(user)), 200


@bp.route('/logout', methods=['POST'])
def logout():
    # Tokens are stateless; the client discards its copy
    return jsonify({'success': True}), 200


@bp.route('/prepare-oauth', methods=['GET'])
def prepare_oauth():
    """Issue a signed state value for the Google sign-in round trip"""
    state = new_oauth_state()
    return jsonify({
        'state': state,
        'authUrl': f"/api/auth/google?{urlencode({'state': state})}",
        'expiresIn': current_app.config['OAUTH_STATE_MAX_AGE'],
    }), 200


@bp.route('/google', methods=['GET'])
def google_login():
    client_id = current_app.config.get('GOOGLE_CLIENT_ID')
    if not client_id:
        current_app.logger.error("GOOGLE_CLIENT_ID not configured")
        return login_redirect('server-error')

    params = {
        'client_id': client_id,
        'redirect_uri': current_app.config['GOOGLE_REDIRECT_URI'],
        'response_type': 'code',
        'scope': 'openid email profile',
        'state': request.args.get('state') or new_oauth_state(),
        'prompt': 'select_account',
    }
    return redirect(f"{GOOGLE_AUTH_URL}?{urlencode(params)}")


@bp.route('/google/callback', methods=['GET'])
def google_callback():
    """Finish Google sign-in and hand a bearer token to the frontend"""
    if request.args.get('error'):
        return login_redirect('access-denied' if request.args['error'] == 'access_denied' else 'google-auth-failed')

    try:
        get_state_serializer().loads(request.args.get('state', ''), max_age=current_app.config['OAUTH_STATE_MAX_AGE'])
    except SignatureExpired:
        return login_redirect('authentication-timeout')
    except BadSignature:
        return login_redirect('state-mismatch')

    code = request.args.get('code')
    if not code:
        return login_redirect('google-auth-failed')

    try:
        response = requests.post(GOOGLE_TOKEN_URL, data={
            'code': code,
            'client_id': current_app.config['GOOGLE_CLIENT_ID'],
            'client_secret': current_app.config['GOOGLE_CLIENT_SECRET'],
            'redirect_uri': current_app.config['GOOGLE_REDIRECT_URI'],
            'grant_type': 'authorization_code',
        }, timeout=10)
    except requests.RequestException as e:
        current_app.logger.error(f"Google token exchange failed: {e}")
        return login_redirect('network-error')
    if response.status_code != 200:
        current_app.logger.error(f"Google token exchange returned {response.status_code}: {response.text[:200]}")
        return login_redirect('google-auth-failed')

    claims = verify_google_id_token(response.json().get('id_token', ''))
    if not claims or not claims.get('email'):
        return login_redirect('google-auth-failed')

    user = User.query.filter_by(google_id=claims['sub']).first()
    if not user:
        user = User.query.filter(db.func.lower(User.email) == claims['email'].lower()).first()
        if user:
            user.google_id = claims['sub']
            user.photo_url = user.photo_url or claims.get('picture')

    if not user or not user.organization:
        return login_redirect('no-organization')
    if not user.active:
        return login_redirect('access-denied')

    status = user.organization.subscription_status
    if status == 'none':
        return login_redirect('no-subscription')
    if status == 'canceled':
        return login_redirect('inactive-subscription')
    if status == 'past_due':
        return login_redirect('invalid-subscription')

    db.session.commit()
    token = issue_access_token(user)
    current_app.logger.info(f"User {user.id} signed in with Google")
    return redirect(f"{current_app.config['FRONTEND_URL']}/oauth-complete#{urlencode({'token': token})}")
