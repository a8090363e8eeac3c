"""Label helpers shared by clusters and nodes."""

from collections.abc import Iterable, Mapping


def apply_label_changes(
    labels: Mapping[str, str],
    add: Mapping[str, str] | None = None,
    remove: Iterable[str] | None = None,
) -> dict[str, str]:
    """
    Return a new label mapping with additions merged and removals dropped.

    Additions are applied before removals, so a key present in both ends up
    removed.
    """
    result = dict(labels)
    if add:
        result.update(add)
    if remove:
        for key in remove:
            result.pop(key, None)
    return result
