from .auth import User
from .inventory import Sweet
from .purchases import Purchase

__all__ = [
    'User',
    'Sweet',
    'Purchase',
]
