# Repository pattern: typed access to the items index

from itemsearch.repositories.item_repository import ItemRepository

__all__ = ["ItemRepository"]
