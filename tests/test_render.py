"""Unit tests for ami_cleanup/render.py"""

import sys
from dataclasses import replace
from pathlib import Path

import pytest

_python_dir = Path(__file__).parent.parent / "python"
if str(_python_dir.absolute()) not in sys.path:
    sys.path.insert(0, str(_python_dir.absolute()))

from ami_cleanup.models import AMIStatus
from ami_cleanup.render import DEFAULT_THEME, TITLE, format_date, render_view, status_badge, truncate_name
from ami_cleanup.selector import Command, initial_state, reduce

from helpers import make_ami, make_tree


@pytest.fixture
def tree():
    return make_tree(
        make_ami("ami-root", name="capa-ami-a"),
        make_ami("ami-c1", name="capa-ami-a", region="eu-west-1"),
        make_ami("ami-c2", name="capa-ami-a", region="us-west-2", status=AMIStatus.PRIVATE),
    )


def _lines(state):
    return render_view(state).plain.split("\n")


class TestPieces:
    """Tests for badges, dates and names"""

    @pytest.mark.parametrize(
        "status,label",
        [
            (AMIStatus.PUBLIC, "[PUBLIC]"),
            (AMIStatus.PRIVATE, "[PRIVATE]"),
            (AMIStatus.UPDATING, "[UPDATING...]"),
            (AMIStatus.ERROR, "[ERROR]"),
        ],
    )
    def test_status_badges(self, status, label):
        assert status_badge(make_ami("ami-1", status=status), DEFAULT_THEME).plain == label

    def test_missing_date_is_padded(self):
        ami = make_ami("ami-1")
        ami.created_date = None
        assert format_date(ami) == "unknown            "

    def test_date_format(self):
        assert format_date(make_ami("ami-1")) == "2024-05-01 10:22:33"

    def test_truncate_name_keeps_minimum_width(self):
        name = "capa-ami-" + "x" * 40
        assert truncate_name(name, 80) == name[:17] + "..."
        assert truncate_name(name, 200) == name


class TestRenderView:
    """Tests for the full screen text"""

    def test_header_counts(self, tree):
        state = reduce(initial_state([tree], height=40, width=200), Command.TOGGLE_SELECT)
        lines = _lines(state)

        assert lines[0] == TITLE
        assert lines[2] == "Total: 3 AMIs | Public: 2 | Private: 1 | Selected: 1"
        assert "[1-1 of 1]" in lines

    def test_collapsed_root_row(self, tree):
        row = next(line for line in _lines(initial_state([tree], height=40, width=200)) if "ami-root" in line)

        assert row.startswith("> ▶ [ ] capa-ami-a ami-root (us-east-1) x86_64")
        assert row.endswith("[PUBLIC] (1 public, 1 private)")

    def test_expanded_tree_connectors(self, tree):
        state = reduce(initial_state([tree], height=40, width=200), Command.ACTIVATE)
        lines = _lines(state)

        root_row = next(line for line in lines if "ami-root" in line)
        first_child = next(line for line in lines if "ami-c1" in line)
        last_child = next(line for line in lines if "ami-c2" in line)
        assert "▼" in root_row
        assert first_child.startswith("    ├─ [ ] ami-c1 (eu-west-1)")
        # Private rows have no selection box
        assert last_child.startswith("    └─     ami-c2 (us-west-2)")

    def test_selected_and_error_rows(self, tree):
        tree.children[1].status = AMIStatus.ERROR
        tree.children[1].error_msg = "UnauthorizedOperation"
        state = reduce(initial_state([tree], height=40, width=200), Command.TOGGLE_TREE_SELECT)
        state = reduce(state, Command.ACTIVATE)
        lines = _lines(state)

        assert any("[✓] ami-c1" in line for line in lines)
        assert any(line.endswith("[ERROR] UnauthorizedOperation") for line in lines)

    def test_banners(self, tree):
        state = replace(
            initial_state([tree], height=40, width=200),
            update_status="Updating 1 AMI(s)...",
            status_msg="✓ Made us-east-1:ami-root private",
            error_msg="✗ Failed to update eu-west-1:ami-c1: boom",
        )
        lines = _lines(state)

        assert lines[3:6] == [
            "Updating 1 AMI(s)...",
            "✓ Made us-east-1:ami-root private",
            "✗ Failed to update eu-west-1:ami-c1: boom",
        ]

    def test_empty_view(self):
        assert "No AMIs to show" in _lines(initial_state([]))

    def test_scroll_indicators(self):
        trees = [make_tree(make_ami(f"ami-{i:02d}", name=f"capa-ami-{i:02d}")) for i in range(40)]
        state = initial_state(trees, height=30, width=120, show_help=False)

        lines = _lines(state)
        assert "  ↓ more below" in lines
        assert "  ↑ more above" not in lines

        state = reduce(state, Command.END)
        lines = _lines(state)
        assert "  ↑ more above" in lines
        assert "  ↓ more below" not in lines

    def test_help_panel(self, tree):
        shown = _lines(initial_state([tree], height=40, width=200, show_help=True))
        hidden = _lines(initial_state([tree], height=40, width=200, show_help=False))

        assert "Controls:" in shown
        assert "Press h or ? for help" in hidden
        assert "Controls:" not in hidden

    def test_rows_fit_width(self, tree):
        tree.root.name = "capa-ami-" + "y" * 200
        state = initial_state([tree], height=40, width=90)

        assert all(len(line) <= 90 for line in _lines(state))
