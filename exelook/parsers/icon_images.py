"""
Icon Image Collector
=====================

Pulls the encoded bytes of the icon variants listed by a group
directory out of the ``RT_ICON`` resource subtree.
"""

from __future__ import annotations

from typing import Collection, Iterator

from exelook.parsers.icon_group import RT_ICON
from exelook.parsers.resources import ResourceTree


def icons(tree: ResourceTree, requested_ids: Collection[int]) -> Iterator[bytes]:
    """Return a lazy iterator over the raw images of *requested_ids*.

    The ``RT_ICON`` directory is resolved immediately, so a missing
    directory raises here.  Entries that are named, or whose id was not
    requested, are skipped.  A requested entry that cannot be resolved
    raises from the iterator at its position in the directory.
    """
    directory = tree.find_directory(RT_ICON)
    wanted = frozenset(requested_ids)

    def _collect() -> Iterator[bytes]:
        for entry in directory.entries():
            name = entry.name
            if isinstance(name, str) or name not in wanted:
                continue
            yield entry.directory().first_entry().data().read()

    return _collect()
