# Importing the models registers both tables on Base.metadata
from photomemo.models.user import User
from photomemo.models.post import Post

__all__ = ["User", "Post"]
