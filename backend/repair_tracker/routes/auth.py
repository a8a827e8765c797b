from flask import Blueprint, request
from flask_jwt_extended import jwt_required, get_jwt
from repair_tracker import get_services
from repair_tracker.services.policy import permissions_for, check_page_access
from repair_tracker.utils.validation import validate_login

auth_bp = Blueprint('auth', __name__)


@auth_bp.post('/login')
def login():
    username, password = validate_login(request.get_json(silent=True) or {})
    result = get_services().auth.login(username, password)
    return {
        'success': True,
        'session': {
            'token': result.token,
            'username': result.account.username,
            'role': result.account.role.name,
        },
        'permissions': result.permissions.to_json(),
    }


@auth_bp.get('/validate')
@jwt_required()
def validate_session():
    claims = get_jwt()
    perms = permissions_for(claims.get('role'))
    return {
        'success': True,
        'session': {
            'username': claims.get('username'),
            'role': claims.get('role'),
            'permissions': perms.to_json() if perms else None,
        },
    }


@auth_bp.post('/logout')
@jwt_required()
def logout():
    # tokens are discarded client-side; nothing to revoke
    return {'success': True, 'message': 'Logged out successfully'}


@auth_bp.get('/check-access')
@jwt_required()
def check_access():
    result = check_page_access(get_jwt().get('role'), request.args.get('page'))
    return {'success': True, **result}
