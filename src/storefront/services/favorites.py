from typing import List

from storefront.db.crud import ProfileStore
from storefront.utils.errors import NotFoundError, TransportError
from storefront.utils.logger import get_logger
from storefront.utils.state import Session

_logger = get_logger(__name__)


class Favorites:
    """
    A signed-in shopper's favourite products, mirrored in their profile.

    ``toggle`` updates the local list first; if the write fails the list is
    put back the way it was.
    """

    def __init__(self, session: Session, profiles: ProfileStore):
        self.session = session
        self.profiles = profiles
        self.items: List[str] = []

    def _user_id(self):
        user = self.session.current_user()
        if user is None or user.is_guest:
            return None
        return user.id

    async def load(self) -> List[str]:
        user_id = self._user_id()
        if user_id is None:
            self.items = []
            return self.items
        try:
            self.items = await self.profiles.get_favorites(user_id)
        except (TransportError, NotFoundError) as e:
            _logger.error(f"Error fetching favorites for {user_id}: {e}")
        return self.items

    def contains(self, product_id) -> bool:
        return str(product_id) in self.items

    async def toggle(self, product_id) -> bool:
        """Flip one product; returns whether the change was kept."""
        user_id = self._user_id()
        if user_id is None:
            _logger.warning("Favorites need a signed-in, non-guest user")
            return False

        previous = list(self.items)
        pid = str(product_id)
        self.items = [p for p in previous if p != pid] if pid in previous else previous + [pid]
        try:
            await self.profiles.save_favorites(user_id, self.items)
        except (TransportError, NotFoundError) as e:
            _logger.error(f"Error updating favorites for {user_id}: {e}")
            self.items = previous
            return False
        return True
