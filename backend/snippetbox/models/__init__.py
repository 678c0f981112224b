"""ORM models. Importing this package registers every table with `Base.metadata`."""

from snippetbox.models.snippet import Snippet
from snippetbox.models.user import User

__all__ = ["Snippet", "User"]
