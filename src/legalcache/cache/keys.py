"""Cache key conventions shared by route handlers.

Keys are ``<domain>:<id>[:<part>...]`` so a whole domain, or everything
cached for one id, can be dropped with ``invalidate_pattern``.
"""

import re


class CacheKeyBuilder:
    """Builder for consistent cache key generation."""

    @classmethod
    def chat(cls, session_id: str, *parts: str) -> str:
        """Build cache key for chat data (titles, answers, history).

        Args:
            session_id: Chat session identifier.
            parts: Additional parts, e.g. "title".

        Returns:
            Cache key string.
        """
        return cls._build("chat", session_id, *parts)

    @classmethod
    def user(cls, user_id: str, *parts: str) -> str:
        """Build cache key for user profile lookups."""
        return cls._build("user", user_id, *parts)

    @classmethod
    def document(cls, document_id: str, *parts: str) -> str:
        """Build cache key for document metadata."""
        return cls._build("document", document_id, *parts)

    @classmethod
    def session(cls, session_id: str, *parts: str) -> str:
        """Build cache key for session state."""
        return cls._build("session", session_id, *parts)

    @staticmethod
    def page(key: str, page: int) -> str:
        """Build cache key for one page of a paginated query."""
        return f"{key}:page:{page}"

    @staticmethod
    def pattern(domain: str, identifier: str | None = None) -> re.Pattern[str]:
        """Build a regex matching a domain, or one id within a domain.

        Args:
            domain: Key domain, e.g. "chat".
            identifier: Optional id; matches only that id's keys.

        Returns:
            Compiled pattern for ``invalidate_pattern``.
        """
        if identifier is None:
            return re.compile(f"^{re.escape(domain)}:")
        return re.compile(f"^{re.escape(domain)}:{re.escape(identifier)}(:|$)")

    @staticmethod
    def _build(domain: str, identifier: str, *parts: str) -> str:
        return ":".join((domain, identifier, *parts))
