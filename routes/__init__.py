# Blueprint registration module

# Import all blueprints
from .auth import auth_bp
from .coffees import coffees_bp
from .avatars import avatars_bp

__all__ = [
    'auth_bp',
    'coffees_bp',
    'avatars_bp',
]
