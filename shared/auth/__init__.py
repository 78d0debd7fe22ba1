# shared/auth/__init__.py
from .jwt_auth import OperatorBearer, create_access_token, create_refresh_token, decode_operator_token
from .api_auth import AdminKeyBearer, check_admin_key

__all__ = [
    'OperatorBearer',
    'create_access_token',
    'create_refresh_token',
    'decode_operator_token',
    'AdminKeyBearer',
    'check_admin_key'
]
