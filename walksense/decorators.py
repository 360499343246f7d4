# walksense/decorators.py
from functools import wraps
from flask_login import current_user
from walksense.errors import RoleNotAllowed, Unauthenticated


def guardian_required(f):
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if not current_user.is_authenticated:
            raise Unauthenticated()
        if not current_user.is_guardian:
            raise RoleNotAllowed('Only guardians can view PWD locations.')
        return f(*args, **kwargs)
    return decorated_function
