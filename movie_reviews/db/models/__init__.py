from .user import User
from .review import Review, ReviewLike

__all__ = ["User", "Review", "ReviewLike"]
