"""Manual ordering of notes on the board."""

from typing import Any, Sequence, TypeVar

from .models import BoardOrder

T = TypeVar("T")


def to_unique_string_array(value: Any) -> list[str]:
    """
    Coerce an untrusted value into a list of unique strings.

    Keeps first-seen order; non-string entries and later duplicates are
    dropped. Anything that is not a list or tuple yields an empty list.
    """
    if not isinstance(value, (list, tuple)):
        return []

    seen: set[str] = set()
    ids: list[str] = []

    for item in value:
        if not isinstance(item, str):
            continue
        if item in seen:
            continue
        seen.add(item)
        ids.append(item)

    return ids


def merge_note_order_ids(saved_ids: Sequence[str], current_ids: Sequence[str]) -> list[str]:
    """
    Merge a saved manual order with the current set of note ids.

    Ids missing from the saved order (new notes) come first in their current
    order, followed by the saved ids that still exist, in saved order.
    Deleted ids and duplicates are dropped.

    Args:
        saved_ids: Previously persisted order
        current_ids: Ids of the live notes

    Returns:
        Merged, duplicate-free order
    """
    current_set = set(current_ids)

    seen: set[str] = set()
    kept_saved: list[str] = []

    for note_id in saved_ids:
        if note_id not in current_set:
            continue
        if note_id in seen:
            continue
        seen.add(note_id)
        kept_saved.append(note_id)

    missing: list[str] = []

    for note_id in current_ids:
        if note_id in seen:
            continue
        seen.add(note_id)
        missing.append(note_id)

    return missing + kept_saved


def array_move(items: Sequence[T], from_index: int, to_index: int) -> list[T]:
    """Return a copy of `items` with the element at `from_index` moved to `to_index`."""
    result = list(items)
    if from_index < 0 or from_index >= len(result):
        return result

    item = result.pop(from_index)
    result.insert(to_index, item)
    return result


def reconcile_board_order(
    order: BoardOrder,
    pinned_ids: Sequence[str],
    other_ids: Sequence[str],
) -> BoardOrder:
    """Merge both board sections against the live pinned and other notes."""
    return BoardOrder(
        pinned=merge_note_order_ids(order.pinned, pinned_ids),
        other=merge_note_order_ids(order.other, other_ids),
    )
