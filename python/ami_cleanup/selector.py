#!/usr/bin/env python3
"""
Selection state for the interactive AMI list.

SelectorState is immutable. Every operator command goes through
reduce(state, command), which returns a new state, so transitions can be
tested without a terminal. The flattened list of visible rows (items) is
re-derived from (trees, expanded, hide_private, statuses) whenever any of
those change, and the cursor is clamped to it afterwards.
"""

from dataclasses import dataclass, replace
from enum import Enum
from typing import FrozenSet, Iterable, Iterator, List, Optional, Sequence, Tuple, Union

from ami_cleanup.models import AMI, AMIStatus, AMITree

# Screen rows reserved around the list (title, totals, banners, scroll info)
HEADER_LINES = 7
HELP_LINES = 16
COLLAPSED_HELP_LINES = 1
SCROLL_INDICATOR_LINES = 2
MIN_VISIBLE_ITEMS = 10

DEFAULT_HEIGHT = 24
DEFAULT_WIDTH = 80


class Command(Enum):
    """Operator commands understood by reduce()"""

    UP = "up"
    DOWN = "down"
    PAGE_UP = "page_up"
    PAGE_DOWN = "page_down"
    HOME = "home"
    END = "end"
    ACTIVATE = "activate"
    TOGGLE_SELECT = "toggle_select"
    TOGGLE_TREE_SELECT = "toggle_tree_select"
    EXPAND_ALL = "expand_all"
    COLLAPSE_ALL = "collapse_all"
    TOGGLE_HIDE_PRIVATE = "toggle_hide_private"
    TOGGLE_HELP = "toggle_help"
    CONFIRM = "confirm"
    CLEAR_ERROR = "clear_error"


@dataclass(frozen=True)
class Resize:
    """Terminal size change"""

    height: int
    width: int


Action = Union[Command, Resize]

# Commands that still work while revocations are in flight
_ALLOWED_WHILE_UPDATING = frozenset({Command.TOGGLE_HELP, Command.CLEAR_ERROR})


@dataclass(frozen=True)
class ListItem:
    """One visible row: a tree root or one of its children"""

    ami: AMI
    tree: AMITree
    is_root: bool
    is_last_child: bool = False

    @property
    def indent(self) -> int:
        return 0 if self.is_root else 1

    @property
    def has_children(self) -> bool:
        return self.is_root and bool(self.tree.children)


@dataclass(frozen=True)
class SelectorState:
    trees: Tuple[AMITree, ...]
    items: Tuple[ListItem, ...] = ()
    cursor: int = 0
    viewport: int = 0
    expanded: FrozenSet[str] = frozenset()
    selected: FrozenSet[str] = frozenset()
    hide_private: bool = False
    show_help: bool = True
    updating: bool = False
    # Keys handed to the dispatcher by the last confirm
    dispatched: FrozenSet[str] = frozenset()
    height: int = DEFAULT_HEIGHT
    width: int = DEFAULT_WIDTH
    update_status: str = ""
    status_msg: str = ""
    error_msg: str = ""

    def current_item(self) -> Optional[ListItem]:
        if not self.items:
            return None
        return self.items[self.cursor]

    def visible_item_count(self) -> int:
        help_lines = HELP_LINES if self.show_help else COLLAPSED_HELP_LINES
        available = self.height - HEADER_LINES - help_lines - SCROLL_INDICATOR_LINES - 1
        if available < 1:
            return MIN_VISIBLE_ITEMS
        return available

    def page_size(self) -> int:
        return max(1, (self.height - 10) // 2)

    def can_confirm(self) -> bool:
        return bool(self.selected) and not self.updating

    def is_selected(self, ami: AMI) -> bool:
        return ami.key in self.selected


def iter_amis(trees: Iterable[AMITree]) -> Iterator[AMI]:
    for tree in trees:
        yield from tree.members()


def find_amis(trees: Iterable[AMITree], key: str) -> List[AMI]:
    """All records whose key matches (normally exactly one)"""
    return [ami for ami in iter_amis(trees) if ami.key == key]


def public_keys(trees: Iterable[AMITree]) -> FrozenSet[str]:
    return frozenset(ami.key for ami in iter_amis(trees) if ami.is_public)


def build_items(trees: Sequence[AMITree], expanded: FrozenSet[str], hide_private: bool) -> Tuple[ListItem, ...]:
    """Flatten the forest into visible rows.

    With hide_private, private children are always dropped and a private
    root is dropped unless at least one of its children is public.
    """
    items: List[ListItem] = []
    for tree in trees:
        if hide_private and tree.root.status == AMIStatus.PRIVATE:
            if not any(child.is_public for child in tree.children):
                continue

        items.append(ListItem(ami=tree.root, tree=tree, is_root=True))

        if tree.key not in expanded or not tree.children:
            continue

        children = [
            child for child in tree.children if not (hide_private and child.status == AMIStatus.PRIVATE)
        ]
        for index, child in enumerate(children):
            items.append(
                ListItem(ami=child, tree=tree, is_root=False, is_last_child=index == len(children) - 1)
            )
    return tuple(items)


def _clamp_cursor(cursor: int, item_count: int) -> int:
    if item_count == 0:
        return 0
    return max(0, min(cursor, item_count - 1))


def _fit_viewport(cursor: int, viewport: int, item_count: int, visible: int) -> int:
    """Scroll just enough to keep the cursor on screen"""
    if cursor < viewport:
        viewport = cursor
    elif cursor >= viewport + visible:
        viewport = cursor - visible + 1

    max_viewport = max(0, item_count - visible)
    return max(0, min(viewport, max_viewport))


def _move_cursor(state: SelectorState, cursor: int) -> SelectorState:
    cursor = _clamp_cursor(cursor, len(state.items))
    viewport = _fit_viewport(cursor, state.viewport, len(state.items), state.visible_item_count())
    return replace(state, cursor=cursor, viewport=viewport)


def with_view(state: SelectorState, **changes) -> SelectorState:
    """Apply changes, then re-derive the rows, clamp the cursor and fit the viewport"""
    state = replace(state, **changes)
    items = build_items(state.trees, state.expanded, state.hide_private)
    state = replace(state, items=items)
    return _move_cursor(state, state.cursor)


def initial_state(
    trees: Sequence[AMITree],
    height: int = DEFAULT_HEIGHT,
    width: int = DEFAULT_WIDTH,
    show_help: bool = True,
    hide_private: bool = False,
) -> SelectorState:
    """All trees collapsed, nothing selected, cursor on the first row"""
    state = SelectorState(
        trees=tuple(trees),
        height=height,
        width=width,
        show_help=show_help,
        hide_private=hide_private,
    )
    return with_view(state)


def _toggle_expanded(state: SelectorState, item: ListItem) -> SelectorState:
    key = item.tree.key
    expanded = state.expanded - {key} if key in state.expanded else state.expanded | {key}
    return with_view(state, expanded=expanded)


def _toggle_selected(state: SelectorState, item: Optional[ListItem]) -> SelectorState:
    if item is None or not item.ami.is_public:
        return state
    key = item.ami.key
    selected = state.selected - {key} if key in state.selected else state.selected | {key}
    return replace(state, selected=selected)


def _toggle_tree_selected(state: SelectorState, item: Optional[ListItem]) -> SelectorState:
    if item is None:
        return state
    keys = frozenset(ami.key for ami in item.tree.public_members())
    if not keys:
        return state
    if keys <= state.selected:
        return replace(state, selected=state.selected - keys)
    return replace(state, selected=state.selected | keys)


def _activate(state: SelectorState) -> SelectorState:
    item = state.current_item()
    if item is None:
        return state
    if item.has_children:
        return _toggle_expanded(state, item)
    return _toggle_selected(state, item)


def _confirm(state: SelectorState) -> SelectorState:
    if not state.can_confirm():
        return state

    # Keys left over from a failed revoke are no longer public; drop them
    batch = state.selected & public_keys(state.trees)
    if not batch:
        return replace(state, selected=batch)

    return replace(
        state,
        selected=batch,
        dispatched=batch,
        updating=True,
        update_status=f"Updating {len(batch)} AMI(s)...",
        status_msg="",
    )


def reduce(state: SelectorState, action: Action) -> SelectorState:
    """Apply one operator command or resize and return the next state"""
    if isinstance(action, Resize):
        return _move_cursor(replace(state, height=action.height, width=action.width), state.cursor)

    # Any key press clears the last error banner
    state = replace(state, error_msg="")

    if state.updating and action not in _ALLOWED_WHILE_UPDATING:
        return state

    if action is Command.UP:
        return _move_cursor(state, state.cursor - 1) if state.cursor > 0 else state
    if action is Command.DOWN:
        return _move_cursor(state, state.cursor + 1) if state.cursor < len(state.items) - 1 else state
    if action is Command.PAGE_UP:
        return _move_cursor(state, state.cursor - state.page_size())
    if action is Command.PAGE_DOWN:
        return _move_cursor(state, state.cursor + state.page_size())
    if action is Command.HOME:
        return _move_cursor(state, 0)
    if action is Command.END:
        return _move_cursor(state, len(state.items) - 1)
    if action is Command.ACTIVATE:
        return _activate(state)
    if action is Command.TOGGLE_SELECT:
        return _toggle_selected(state, state.current_item())
    if action is Command.TOGGLE_TREE_SELECT:
        return _toggle_tree_selected(state, state.current_item())
    if action is Command.EXPAND_ALL:
        return with_view(state, expanded=frozenset(tree.key for tree in state.trees if tree.children))
    if action is Command.COLLAPSE_ALL:
        return with_view(state, expanded=frozenset())
    if action is Command.TOGGLE_HIDE_PRIVATE:
        return with_view(state, hide_private=not state.hide_private)
    if action is Command.TOGGLE_HELP:
        # The help panel changes how many rows fit
        return _move_cursor(replace(state, show_help=not state.show_help), state.cursor)
    if action is Command.CONFIRM:
        return _confirm(state)
    if action is Command.CLEAR_ERROR:
        return state

    raise ValueError(f"Unknown command: {action!r}")
