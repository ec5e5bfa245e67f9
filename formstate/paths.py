"""Path-addressed access to nested values, errors and touched trees.

A path is a string of segments separated by dots. Numeric segments address
list elements, and bracket-index notation is accepted anywhere a path is:
``"friends[0].name"`` and ``"friends.0.name"`` address the same location and
normalize to the same canonical string.

Usage:
    >>> tree = {}
    >>> set_in(tree, "social.twitter", "@jane")
    {'social': {'twitter': '@jane'}}
    >>> get_in(tree, "social[0]") is None
    True
    >>> normalize_path("friends[2].name")
    'friends.2.name'
"""

import re
from typing import Any, Dict, Iterator, List, Mapping, MutableMapping, Tuple, Union

Tree = Union[MutableMapping[str, Any], List[Any]]

_INDEX_PATTERN = re.compile(r"\[(\d+)\]")

# Marks an absent segment, since None is a legitimate stored value
_MISSING = object()


def normalize_path(path: str) -> str:
    """Convert bracket-index notation to the canonical dotted form.

    Raises:
        TypeError: If path is not a string
        ValueError: If path has no segments
    """
    if not isinstance(path, str):
        raise TypeError(f"Path must be a string, got {type(path).__name__}")
    normalized = _INDEX_PATTERN.sub(r".\1", path).strip(".")
    if not normalized:
        raise ValueError("Path must contain at least one segment")
    return normalized


def split_path(path: str) -> List[str]:
    """Split a path into its canonical segments."""
    return normalize_path(path).split(".")


def _key_for(node: Mapping, segment: str) -> Any:
    # Mappings built from Python literals may use int keys for numeric segments
    if segment not in node and segment.isdigit() and int(segment) in node:
        return int(segment)
    return segment


def _child(node: Any, segment: str) -> Any:
    if isinstance(node, Mapping):
        key = _key_for(node, segment)
        return node[key] if key in node else _MISSING
    if isinstance(node, list) and segment.isdigit():
        index = int(segment)
        return node[index] if index < len(node) else _MISSING
    return _MISSING


def _assign(node: Tree, segment: str, value: Any) -> None:
    if isinstance(node, list):
        if not segment.isdigit():
            raise TypeError(f"Cannot address a list element with non-numeric segment '{segment}'")
        index = int(segment)
        if index >= len(node):
            node.extend([None] * (index + 1 - len(node)))
        node[index] = value
    else:
        node[_key_for(node, segment)] = value


def get_in(tree: Any, path: str, default: Any = None) -> Any:
    """Resolve a path, returning ``default`` if any segment is absent.

    Examples:
        >>> get_in({"friends": ["ann", "bob"]}, "friends[1]")
        'bob'
        >>> get_in({"friends": []}, "friends.3", default="n/a")
        'n/a'
    """
    node = tree
    for segment in split_path(path):
        node = _child(node, segment)
        if node is _MISSING:
            return default
    return node


def set_in(tree: Tree, path: str, value: Any, create_sequences: bool = True) -> Tree:
    """Set the leaf at ``path``, creating intermediate containers as needed.

    Missing or non-container intermediates are replaced by a new container: a
    list when the following segment is numeric and ``create_sequences`` is
    true, a dict otherwise. Assigning past the end of a list pads it with
    None.

    Args:
        tree: Root mapping or list, mutated in place
        path: Dotted or bracket-index path
        value: Leaf value to store
        create_sequences: Whether numeric segments create lists

    Returns:
        The same tree, for chaining
    """
    if not isinstance(tree, (MutableMapping, list)):
        raise TypeError(f"Tree root must be a mapping or list, got {type(tree).__name__}")

    segments = split_path(path)
    node = tree
    for index, segment in enumerate(segments[:-1]):
        child = _child(node, segment)
        if not isinstance(child, (MutableMapping, list)):
            child = [] if create_sequences and segments[index + 1].isdigit() else {}
            _assign(node, segment, child)
        node = child
    _assign(node, segments[-1], value)
    return tree


def delete_in(tree: Tree, path: str) -> bool:
    """Remove the leaf at ``path``.

    List elements are removed outright, shifting later indices.

    Returns:
        True if something was removed
    """
    segments = split_path(path)
    parent = tree
    if len(segments) > 1:
        parent = get_in(tree, ".".join(segments[:-1]), _MISSING)

    leaf = segments[-1]
    if isinstance(parent, MutableMapping):
        key = _key_for(parent, leaf)
        if key in parent:
            del parent[key]
            return True
    elif isinstance(parent, list) and leaf.isdigit() and int(leaf) < len(parent):
        del parent[int(leaf)]
        return True
    return False


def delete_and_prune(tree: Tree, path: str) -> bool:
    """Remove the leaf at ``path`` and drop its direct parent if left empty.

    Only the immediate parent mapping is pruned; emptied ancestors further up
    are left in place.

    Examples:
        >>> errors = {"social": {"twitter": "Too long"}}
        >>> delete_and_prune(errors, "social.twitter")
        True
        >>> errors
        {}
    """
    removed = delete_in(tree, path)
    segments = split_path(path)
    if len(segments) > 1:
        parent_path = ".".join(segments[:-1])
        parent = get_in(tree, parent_path)
        if isinstance(parent, Mapping) and len(parent) == 0:
            delete_in(tree, parent_path)
    return removed


def iter_leaves(tree: Any, prefix: str = "") -> Iterator[Tuple[str, Any]]:
    """Yield ``(path, value)`` for every non-container, non-None leaf."""
    if isinstance(tree, Mapping):
        items = ((str(key), value) for key, value in tree.items())
    elif isinstance(tree, list):
        items = ((str(index), value) for index, value in enumerate(tree))
    else:
        if tree is not None and prefix:
            yield prefix, tree
        return

    for segment, value in items:
        yield from iter_leaves(value, f"{prefix}.{segment}" if prefix else segment)


def count_leaves(tree: Any) -> int:
    """Number of leaves in a tree (see iter_leaves)."""
    return sum(1 for _ in iter_leaves(tree))


def deep_equal(left: Any, right: Any) -> bool:
    """Structural equality that never equates values of different types.

    Unlike ``==``, ``0`` and ``False`` (or ``1`` and ``1.0``) differ.
    NaN equals NaN.

    Examples:
        >>> deep_equal({"friends": ["ann"]}, {"friends": ["ann"]})
        True
        >>> deep_equal({"agree": 1}, {"agree": True})
        False
    """
    if type(left) is not type(right):
        return False
    if isinstance(left, Mapping):
        return left.keys() == right.keys() and all(deep_equal(left[key], right[key]) for key in left)
    if isinstance(left, (list, tuple)):
        return len(left) == len(right) and all(deep_equal(a, b) for a, b in zip(left, right))
    if left != left and right != right:
        return True
    return left == right


def prune_empty(tree: Mapping[str, Any]) -> Dict[str, Any]:
    """Copy a mapping tree, dropping None leaves and mappings left empty.

    Examples:
        >>> prune_empty({"email": None, "social": {"twitter": None}, "name": "Required"})
        {'name': 'Required'}
    """
    result: Dict[str, Any] = {}
    for key, value in tree.items():
        if isinstance(value, Mapping):
            value = prune_empty(value)
            if not value:
                continue
        elif value is None:
            continue
        result[key] = value
    return result


def expand_paths(mapping: Mapping[str, Any]) -> Dict[str, Any]:
    """Build a nested dict from a mapping whose keys may be paths.

    Numeric segments become string keys, matching how errors and touched
    trees are stored.

    Examples:
        >>> expand_paths({"social.twitter": "Too long", "friends[0]": "Required"})
        {'social': {'twitter': 'Too long'}, 'friends': {'0': 'Required'}}
    """
    result: Dict[str, Any] = {}
    for key, value in mapping.items():
        if isinstance(value, Mapping):
            value = expand_paths(value)
        set_in(result, str(key), value, create_sequences=False)
    return result


__all__ = [
    "normalize_path",
    "split_path",
    "get_in",
    "set_in",
    "delete_in",
    "delete_and_prune",
    "iter_leaves",
    "count_leaves",
    "deep_equal",
    "prune_empty",
    "expand_paths",
]
