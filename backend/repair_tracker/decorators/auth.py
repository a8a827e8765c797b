from functools import wraps
from flask_jwt_extended import verify_jwt_in_request, get_jwt, get_jwt_identity
from repair_tracker.constants.permissions import Capability
from repair_tracker.errors import InsufficientPermission
from repair_tracker.services.lifecycle import Actor
from repair_tracker.services.policy import current_has_capability


def require_capability(capability: Capability):
    """Token first (401 on failure), then the role's capability (403)."""
    def outer(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            verify_jwt_in_request()
            if not current_has_capability(capability):
                raise InsufficientPermission()
            return fn(*args, **kwargs)
        return wrapper
    return outer


def current_actor() -> Actor:
    identity = get_jwt_identity()
    claims = get_jwt()
    return Actor(id=int(identity) if identity is not None else None, username=claims.get('username'))
