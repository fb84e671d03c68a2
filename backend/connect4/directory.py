"""Справочник ников: ник без учёта регистра -> id сессии."""


class Directory:
    def __init__(self):
        self._by_nickname: dict[str, str] = {}

    def register(self, nickname: str, session_id: str) -> bool:
        """Занять ник. False если он уже занят (без учёта регистра)."""
        key = nickname.lower()
        if key in self._by_nickname:
            return False
        self._by_nickname[key] = session_id
        return True

    def unregister(self, nickname: str) -> bool:
        return self._by_nickname.pop(nickname.lower(), None) is not None

    def lookup(self, nickname: str) -> str | None:
        return self._by_nickname.get(nickname.lower())

    def __contains__(self, nickname: str) -> bool:
        return nickname.lower() in self._by_nickname

    def __len__(self) -> int:
        return len(self._by_nickname)
