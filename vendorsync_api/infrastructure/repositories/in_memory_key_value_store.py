from vendorsync_api.application.interfaces.service_interfaces import KeyValueStoreInterface


class InMemoryKeyValueStore(KeyValueStoreInterface):
    """In-memory key/value store, used by tests and ``store_type=in_memory``."""
    def __init__(self):
        self._items: dict[str, str] = {}

    def get_item(self, key: str) -> str | None:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._items[key] = str(value)

    def remove_item(self, key: str) -> None:
        self._items.pop(key, None)
