from ulingo.models.user import User
from ulingo.models.level import Level

__all__ = [
    'User',
    'Level'
]
