"""
Maven-style version ordering.

Versions are split into numeric items, qualifiers and nested lists the
way Maven's ComparableVersion does it, so that ``1.2 < 1.10`` and
``1.0-SNAPSHOT < 1.0``.
"""

from functools import total_ordering

SNAPSHOT_SUFFIX = "-SNAPSHOT"

# Ranked qualifiers; "" is a plain release.
_QUALIFIERS = ("alpha", "beta", "milestone", "rc", "snapshot", "", "sp")
_ALIASES = {"ga": "", "final": "", "release": "", "cr": "rc"}
_RELEASE_RANK = str(_QUALIFIERS.index(""))


def _qualifier_rank(qualifier: str) -> str:
    # Compared as strings; unknown qualifiers sort after every known one.
    if qualifier in _QUALIFIERS:
        return str(_QUALIFIERS.index(qualifier))
    return f"{len(_QUALIFIERS)}-{qualifier}"


def _sign(value: int) -> int:
    return (value > 0) - (value < 0)


class _IntItem:
    __slots__ = ("value",)

    def __init__(self, digits: str):
        self.value = int(digits)

    def is_null(self) -> bool:
        return self.value == 0

    def compare(self, other) -> int:
        if other is None:
            return 0 if self.value == 0 else 1
        if isinstance(other, _IntItem):
            return _sign(self.value - other.value)
        # numbers outrank qualifiers and sub-lists
        return 1

    def __repr__(self) -> str:
        return str(self.value)


class _StringItem:
    __slots__ = ("value",)

    def __init__(self, value: str, followed_by_digit: bool = False):
        if followed_by_digit and len(value) == 1:
            value = {"a": "alpha", "b": "beta", "m": "milestone"}.get(value, value)
        self.value = _ALIASES.get(value, value)

    def is_null(self) -> bool:
        return _qualifier_rank(self.value) == _RELEASE_RANK

    def compare(self, other) -> int:
        rank = _qualifier_rank(self.value)
        if other is None:
            return (rank > _RELEASE_RANK) - (rank < _RELEASE_RANK)
        if isinstance(other, _StringItem):
            other_rank = _qualifier_rank(other.value)
            return (rank > other_rank) - (rank < other_rank)
        return -1

    def __repr__(self) -> str:
        return self.value


class _ListItem(list):
    def is_null(self) -> bool:
        return len(self) == 0

    def normalize(self) -> None:
        """Drop trailing null items, stopping at the first non-list value."""
        for i in range(len(self) - 1, -1, -1):
            item = self[i]
            if item.is_null():
                del self[i]
            elif not isinstance(item, _ListItem):
                break

    def compare(self, other) -> int:
        if other is None:
            if not self:
                return 0
            return self[0].compare(None)
        if isinstance(other, _IntItem):
            return -1
        if isinstance(other, _StringItem):
            return 1

        for i in range(max(len(self), len(other))):
            left = self[i] if i < len(self) else None
            right = other[i] if i < len(other) else None
            if left is None:
                result = 0 if right is None else -right.compare(None)
            else:
                result = left.compare(right)
            if result != 0:
                return result
        return 0


def _parse_item(is_digit: bool, text: str):
    if is_digit:
        return _IntItem(text)
    return _StringItem(text)


def _parse(version: str) -> _ListItem:
    text = version.lower()
    items = _ListItem()
    current = items
    stack = [current]
    is_digit = False
    start = 0

    for i, char in enumerate(text):
        if char in ".-":
            if i == start:
                current.append(_IntItem("0"))
            else:
                current.append(_parse_item(is_digit, text[start:i]))
            start = i + 1
            if char == "-":
                sub = _ListItem()
                current.append(sub)
                current = sub
                stack.append(current)
        elif char.isdigit():
            if not is_digit and i > start:
                # qualifier directly followed by a number, e.g. "rc1"
                current.append(_StringItem(text[start:i], followed_by_digit=True))
                start = i
                sub = _ListItem()
                current.append(sub)
                current = sub
                stack.append(current)
            is_digit = True
        else:
            if is_digit and i > start:
                current.append(_parse_item(True, text[start:i]))
                start = i
                sub = _ListItem()
                current.append(sub)
                current = sub
                stack.append(current)
            is_digit = False

    if len(text) > start:
        current.append(_parse_item(is_digit, text[start:]))

    while stack:
        stack.pop().normalize()

    return items


@total_ordering
class ComparableVersion:
    """
    A version string with Maven ordering semantics.

    Equality follows the ordering, so ``ComparableVersion("1.0") ==
    ComparableVersion("1")``.
    """

    __slots__ = ("value", "_items")

    def __init__(self, value: str):
        self.value = value
        self._items = _parse(value)

    def compare(self, other: "ComparableVersion") -> int:
        return self._items.compare(other._items)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ComparableVersion):
            return NotImplemented
        return self.compare(other) == 0

    def __lt__(self, other: "ComparableVersion") -> bool:
        if not isinstance(other, ComparableVersion):
            return NotImplemented
        return self.compare(other) < 0

    def __hash__(self) -> int:
        return hash(repr(self._items))

    def __repr__(self) -> str:
        return f"ComparableVersion({self.value!r})"

    def __str__(self) -> str:
        return self.value


def compare_versions(left: str, right: str) -> int:
    """Compare two version strings, returning -1, 0 or 1."""
    return ComparableVersion(left).compare(ComparableVersion(right))


def is_snapshot(version: str) -> bool:
    """Return True if the version carries the snapshot suffix."""
    return version.endswith(SNAPSHOT_SUFFIX)


def strip_snapshot(version: str) -> str:
    """Return the version with a trailing snapshot suffix removed."""
    if is_snapshot(version):
        return version[: -len(SNAPSHOT_SUFFIX)]
    return version
