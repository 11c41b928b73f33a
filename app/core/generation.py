"""Request-generation tokens for discarding stale async results."""


class RequestGeneration:
    """Monotonic counter handed out per async request.

    A caller takes a token with :meth:`next` before awaiting remote work and
    commits the result only if :meth:`is_current` still holds afterwards.
    """

    def __init__(self):
        self._current = 0

    @property
    def current(self) -> int:
        return self._current

    def next(self) -> int:
        self._current += 1
        return self._current

    def invalidate(self) -> None:
        self._current += 1

    def is_current(self, token: int) -> bool:
        return token == self._current
