"""
Identity providers

The engine stamps requester / validator fields and looks up the actor's role
through one of these instead of reading request globals itself.
"""

from typing import Optional
from flask_login import current_user


class FlaskLoginIdentity:
    """Actor taken from the Flask-Login session"""

    def current_actor(self):
        if current_user and current_user.is_authenticated:
            # current_user is a LocalProxy; hand out the real User row
            return current_user._get_current_object()
        return None

    def current_actor_id(self) -> Optional[int]:
        actor = self.current_actor()
        return actor.id if actor is not None else None


class StaticIdentity:
    """Fixed actor for scripts, seeders and tests"""

    def __init__(self, user=None):
        self.user = user

    def current_actor(self):
        return self.user

    def current_actor_id(self) -> Optional[int]:
        return self.user.id if self.user is not None else None

    def switch(self, user) -> None:
        self.user = user
