"""
Rendering of the selector state as rich Text.

Styles live on a Theme instance that is passed in, so nothing here reads
global state and the same state always renders the same way.
"""

from dataclasses import dataclass, field
from typing import List

from rich.style import Style
from rich.text import Text

from ami_cleanup.models import AMI, AMIStatus
from ami_cleanup.selector import ListItem, SelectorState, iter_amis

TITLE = "Public AMI Cleanup Tool"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

HELP_TEXT = [
    "Controls:",
    "  ↑/↓ or j/k     : Navigate",
    "  PgUp/PgDn      : Scroll page",
    "  g/G or Home/End: Go to top/bottom",
    "  Space/Enter    : Expand/collapse tree or toggle selection",
    "  s              : Toggle selection (without expanding)",
    "  a              : Toggle all in current tree",
    "  e              : Expand all trees",
    "  x              : Collapse all trees",
    "  p              : Toggle hide private AMIs",
    "  c              : Confirm and make private",
    "  h/?            : Toggle help",
    "  q/Ctrl+C       : Quit",
]


def _fg(color: int, bold: bool = False) -> Style:
    return Style(color=f"color({color})", bold=bold)


@dataclass(frozen=True)
class Theme:
    title: Style = field(default_factory=lambda: _fg(39, bold=True))
    selected: Style = field(default_factory=lambda: _fg(42, bold=True))
    cursor: Style = field(default_factory=lambda: _fg(212, bold=True))
    tree: Style = field(default_factory=lambda: _fg(241))
    help: Style = field(default_factory=lambda: _fg(241))
    region: Style = field(default_factory=lambda: _fg(33))
    ami_id: Style = field(default_factory=lambda: _fg(214))
    public: Style = field(default_factory=lambda: _fg(196, bold=True))
    private: Style = field(default_factory=lambda: _fg(34, bold=True))
    updating: Style = field(default_factory=lambda: _fg(226, bold=True))
    error: Style = field(default_factory=lambda: _fg(196, bold=True))
    scroll: Style = field(default_factory=lambda: _fg(240))
    date: Style = field(default_factory=lambda: _fg(245))
    status: Style = field(default_factory=lambda: _fg(42))


DEFAULT_THEME = Theme()


def status_badge(ami: AMI, theme: Theme) -> Text:
    badges = {
        AMIStatus.PUBLIC: ("[PUBLIC]", theme.public),
        AMIStatus.PRIVATE: ("[PRIVATE]", theme.private),
        AMIStatus.UPDATING: ("[UPDATING...]", theme.updating),
        AMIStatus.ERROR: ("[ERROR]", theme.error),
    }
    label, style = badges[ami.status]
    return Text(label, style=style)


def selection_box(state: SelectorState, ami: AMI, theme: Theme) -> Text:
    """[✓]/[ ] for public AMIs, blank for anything that cannot be selected"""
    if not ami.is_public:
        return Text("   ")
    if state.is_selected(ami):
        return Text("[✓]", style=theme.selected)
    return Text("[ ]")


def format_date(ami: AMI) -> str:
    if ami.created_date is None:
        return "unknown".ljust(19)
    return ami.created_date.strftime(DATE_FORMAT)


def truncate_name(name: str, width: int) -> str:
    max_len = max(20, width - 85)
    if len(name) > max_len:
        return name[:max_len - 3] + "..."
    return name


def render_item(state: SelectorState, item: ListItem, is_current: bool, theme: Theme) -> Text:
    ami = item.ami
    line = Text()
    line.append_text(Text("> ", style=theme.cursor) if is_current else Text("  "))
    line.append("  " * item.indent)

    if item.is_root:
        if item.has_children:
            line.append("▼" if item.tree.key in state.expanded else "▶", style=theme.tree)
        else:
            line.append(" ")
        line.append(" ")
        line.append_text(selection_box(state, ami, theme))
        line.append(f" {truncate_name(ami.name, state.width)} ")
    else:
        line.append("└─" if item.is_last_child else "├─", style=theme.tree)
        line.append(" ")
        line.append_text(selection_box(state, ami, theme))
        line.append(" ")

    line.append(ami.id, style=theme.ami_id)
    line.append(" (")
    line.append(ami.region, style=theme.region)
    line.append(f") {ami.architecture:<7} ")
    line.append(format_date(ami), style=theme.date)
    line.append(" ")
    line.append_text(status_badge(ami, theme))

    if item.has_children:
        public_copies, private_copies = item.tree.copy_counts()
        line.append(f" ({public_copies} public, {private_copies} private)")

    if ami.status == AMIStatus.ERROR and ami.error_msg:
        line.append(" ")
        line.append(ami.error_msg, style=theme.error)

    line.truncate(state.width, overflow="ellipsis")
    return line


def render_header(state: SelectorState, theme: Theme) -> List[Text]:
    amis = list(iter_amis(state.trees))
    public_count = sum(1 for ami in amis if ami.status == AMIStatus.PUBLIC)
    private_count = sum(1 for ami in amis if ami.status == AMIStatus.PRIVATE)

    lines = [
        Text(TITLE, style=theme.title),
        Text(""),
        Text(
            f"Total: {len(amis)} AMIs | Public: {public_count} | "
            f"Private: {private_count} | Selected: {len(state.selected)}"
        ),
    ]
    if state.update_status:
        lines.append(Text(state.update_status, style=theme.status))
    if state.status_msg:
        lines.append(Text(state.status_msg, style=theme.status))
    if state.error_msg:
        lines.append(Text(state.error_msg, style=theme.error))

    if state.items:
        last = min(state.viewport + state.visible_item_count(), len(state.items))
        lines.append(Text(f"[{state.viewport + 1}-{last} of {len(state.items)}]", style=theme.scroll))
    else:
        lines.append(Text("No AMIs to show", style=theme.scroll))
    lines.append(Text(""))
    return lines


def render_help(state: SelectorState, theme: Theme) -> List[Text]:
    if not state.show_help:
        return [Text(""), Text("Press h or ? for help", style=theme.help)]
    lines = [Text("")] + [Text(line, style=theme.help) for line in HELP_TEXT]
    if state.updating:
        lines += [Text(""), Text("Updates in progress...", style=theme.updating)]
    return lines


def render_view(state: SelectorState, theme: Theme = DEFAULT_THEME) -> Text:
    """Render the whole screen for the current state"""
    lines = render_header(state, theme)

    end = min(state.viewport + state.visible_item_count(), len(state.items))
    for index in range(state.viewport, end):
        lines.append(render_item(state, state.items[index], index == state.cursor, theme))

    if state.viewport > 0:
        lines.append(Text("  ↑ more above", style=theme.scroll))
    if end < len(state.items):
        lines.append(Text("  ↓ more below", style=theme.scroll))

    lines.extend(render_help(state, theme))
    return Text("\n").join(lines)
