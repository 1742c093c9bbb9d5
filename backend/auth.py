import logging
import time

from flask import Blueprint, current_app, jsonify, request
from flask_jwt_extended import (
    create_access_token, current_user, get_jwt, jwt_required,
    set_access_cookies, unset_jwt_cookies,
)
from sqlalchemy.exc import IntegrityError

from backend.database import db
from backend.errors import AuthenticationError, ConflictError
from backend.extensions import jwt
from backend.models import User
from backend.schemas import LoginRequest, RegisterRequest, parse
from backend.storage import Storage

logger = logging.getLogger(__name__)

auth = Blueprint('auth', __name__, url_prefix='/api')


def get_blocklist():
    return current_app.extensions['parkpal.blocklist']


def _unauthenticated():
    # Unauthenticated requests get a bare 401
    return '', 401


# ==========================================
# SESSION (JWT) CALLBACKS
# ==========================================

@jwt.user_lookup_loader
def load_session_user(jwt_header, jwt_data):
    return db.session.get(User, int(jwt_data['sub']))


@jwt.token_in_blocklist_loader
def is_session_revoked(jwt_header, jwt_data):
    return get_blocklist().is_revoked(jwt_data['jti'])


@jwt.unauthorized_loader
def missing_session(reason):
    return _unauthenticated()


@jwt.invalid_token_loader
def invalid_session(reason):
    logger.debug(f"Rejected session token: {reason}")
    return _unauthenticated()


@jwt.expired_token_loader
def expired_session(jwt_header, jwt_data):
    return _unauthenticated()


@jwt.revoked_token_loader
def revoked_session(jwt_header, jwt_data):
    return _unauthenticated()


@jwt.user_lookup_error_loader
def unknown_session_user(jwt_header, jwt_data):
    logger.warning(f"Session for unknown user id {jwt_data.get('sub')}")
    return _unauthenticated()


def _start_session(user, body, status):
    token = create_access_token(identity=str(user.id))
    response = jsonify(body(token))
    response.status_code = status
    set_access_cookies(response, token)
    return response


# ==========================================
# AUTHENTICATION ROUTES
# ==========================================

@auth.route('/register', methods=['POST'])
def register():
    data = parse(RegisterRequest, request.get_json(silent=True))
    storage = Storage(db.session)

    # Check for duplicate users
    if storage.get_user_by_username(data.username):
        raise ConflictError("Username taken")

    try:
        user = storage.create_user(data.username, data.password, email=data.email)
        storage.commit()
    except IntegrityError:
        storage.rollback()
        raise ConflictError("Username taken")

    logger.info(f"New user registered: {user.username} (#{user.id})")
    return _start_session(user, lambda token: user.to_dict(), 201)


@auth.route('/login', methods=['POST'])
def login():
    data = parse(LoginRequest, request.get_json(silent=True))
    user = Storage(db.session).get_user_by_username(data.username)

    if not user or not user.check_password(data.password):
        logger.info(f"Failed login attempt for {data.username}")
        raise AuthenticationError("Bad credentials")

    logger.info(f"Login successful for {user.username}")
    return _start_session(user, lambda token: {'user': user.to_dict(), 'accessToken': token}, 200)


@auth.route('/logout', methods=['POST'])
@jwt_required()
def logout():
    claims = get_jwt()
    expires_in = claims['exp'] - time.time()
    get_blocklist().revoke(claims['jti'], expires_in)
    logger.info(f"User {claims['sub']} logged out")

    response = jsonify({'message': 'Logged out'})
    unset_jwt_cookies(response)
    return response, 200


@auth.route('/user', methods=['GET'])
@jwt_required()
def session_user():
    return jsonify(current_user.to_dict()), 200
