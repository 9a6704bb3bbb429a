from __future__ import annotations

from collections.abc import Iterable, Iterator, Sequence
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .content import Post


class PostCollection(Sequence["Post"]):
    """Lightweight helper for working with lists of Posts in templates and code."""

    def __init__(self, posts: Iterable[Post]):
        self._posts = list(posts)

    def __iter__(self) -> Iterator[Post]:
        return iter(self._posts)

    def __len__(self) -> int:
        return len(self._posts)

    def __getitem__(self, item):
        if isinstance(item, slice):
            return PostCollection(self._posts[item])
        return self._posts[item]

    def sorted(self, reverse: bool = True) -> PostCollection:
        """Sort posts by date, then by slug.

        Args:
            reverse: If True (default), newest first. If False, oldest first.

        Returns:
            A new PostCollection with sorted posts.
        """
        return PostCollection(
            sorted(self._posts, key=lambda p: (p.date, p.slug), reverse=reverse)
        )

    def __repr__(self) -> str:  # pragma: no cover - for debugging
        return f"PostCollection({len(self._posts)} posts)"


class LabelIndex:
    """Posts grouped by a label field (categories or tags).

    Iterating yields ``(label, posts)`` pairs, the way a Liquid hash iterates,
    so templates can write ``{% for tag in site.tags %}{{ tag[0] }}``.
    Labels keep the order in which they first appear.
    """

    def __init__(self, mapping: dict[str, Iterable[Post]]):
        self._mapping = {k: PostCollection(v) for k, v in mapping.items()}

    @classmethod
    def from_posts(cls, posts: Iterable[Post], field: str) -> LabelIndex:
        grouped: dict[str, list[Post]] = {}
        for post in posts:
            for label in getattr(post, field):
                grouped.setdefault(label, []).append(post)
        return cls(grouped)

    def __getitem__(self, key: str) -> PostCollection:
        return self._mapping[key]

    def __iter__(self) -> Iterator[tuple[str, PostCollection]]:
        return iter(self._mapping.items())

    def __len__(self) -> int:
        return len(self._mapping)

    def __contains__(self, key: object) -> bool:
        return key in self._mapping

    def get(self, key: str, default=None):
        return self._mapping.get(key, default)

    def keys(self):
        return self._mapping.keys()

    def items(self):
        return self._mapping.items()

    def __repr__(self) -> str:  # pragma: no cover - for debugging
        return f"LabelIndex({len(self._mapping)} labels)"
