"""
Full-screen interactive AMI list.

The app owns the only SelectorState. Key presses are turned into reducer
commands; dispatcher events arrive through a queue drained by a thread
worker that hands each one back to the app loop with call_from_thread, so
input and status events are applied strictly one after another.
"""

import queue
from typing import Optional, Sequence

from textual import events, work
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.widgets import Static
from textual.worker import get_current_worker

from ami_cleanup.dispatcher import RevocationDispatcher, Revoker
from ami_cleanup.models import AMITree
from ami_cleanup.render import DEFAULT_THEME, TITLE, Theme, render_view
from ami_cleanup.selector import Command, Resize, SelectorState, initial_state, reduce
from ami_cleanup.status import StatusEvent, apply_status_event

QUEUE_POLL_SECONDS = 0.1


class AMICleanupApp(App):
    """Browse AMI lineage trees and make selected public AMIs private"""

    TITLE = TITLE

    CSS = """
    Screen {
        overflow: hidden;
    }

    #ami-list {
        height: 1fr;
    }
    """

    BINDINGS = [
        Binding("q,ctrl+c", "quit", "Quit", priority=True),
        Binding("up,k", "command('up')", show=False),
        Binding("down,j", "command('down')", show=False),
        Binding("pageup", "command('page_up')", show=False),
        Binding("pagedown", "command('page_down')", show=False),
        Binding("home,g", "command('home')", show=False),
        Binding("end,G,shift+g", "command('end')", show=False),
        Binding("space,enter", "command('activate')", show=False),
        Binding("s", "command('toggle_select')", show=False),
        Binding("a", "command('toggle_tree_select')", show=False),
        Binding("e", "command('expand_all')", show=False),
        Binding("x", "command('collapse_all')", show=False),
        Binding("p", "command('toggle_hide_private')", show=False),
        Binding("c", "command('confirm')", show=False),
        Binding("h,question_mark", "command('toggle_help')", show=False),
    ]

    def __init__(
        self,
        trees: Sequence[AMITree],
        revoker: Revoker,
        show_help: bool = True,
        hide_private: bool = False,
        ami_theme: Optional[Theme] = None,
    ):
        super().__init__()
        self.selector: SelectorState = initial_state(trees, show_help=show_help, hide_private=hide_private)
        self.ami_theme = ami_theme or DEFAULT_THEME
        self.status_events: "queue.Queue[StatusEvent]" = queue.Queue()
        self.dispatcher = RevocationDispatcher(revoker, self.status_events)

    def compose(self) -> ComposeResult:
        yield Static(id="ami-list")

    def on_mount(self) -> None:
        self.selector = reduce(self.selector, Resize(height=self.size.height, width=self.size.width))
        self.refresh_view()
        self.listen_for_updates()

    def on_resize(self, event: events.Resize) -> None:
        self.selector = reduce(self.selector, Resize(height=event.size.height, width=event.size.width))
        self.refresh_view()

    def on_key(self, event: events.Key) -> None:
        # Unbound keys never reach action_command but still dismiss the error banner
        if self.selector.error_msg:
            self.selector = reduce(self.selector, Command.CLEAR_ERROR)
            self.refresh_view()

    def refresh_view(self) -> None:
        self.query_one("#ami-list", Static).update(render_view(self.selector, self.ami_theme))

    def action_command(self, name: str) -> None:
        command = Command(name)
        previous = self.selector
        self.selector = reduce(previous, command)

        if command is Command.CONFIRM and self.selector.updating and not previous.updating:
            self.dispatcher.dispatch(self.selector.dispatched)
        self.refresh_view()

    def apply_event(self, event: StatusEvent) -> None:
        self.selector = apply_status_event(self.selector, event)
        self.refresh_view()

    @work(thread=True, exclusive=True, group="status-events")
    def listen_for_updates(self) -> None:
        worker = get_current_worker()
        while not worker.is_cancelled:
            try:
                event = self.status_events.get(timeout=QUEUE_POLL_SECONDS)
            except queue.Empty:
                continue
            self.call_from_thread(self.apply_event, event)
