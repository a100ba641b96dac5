"""Tests for the public_ami_cleanup entry point"""

import sys
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

_python_dir = Path(__file__).parent.parent / "python"
if str(_python_dir.absolute()) not in sys.path:
    sys.path.insert(0, str(_python_dir.absolute()))

import public_ami_cleanup
from ami_cleanup.config_manager import ConfigValidationError
from ami_cleanup.error_utils import create_aws_credentials_error

from helpers import make_ami


@pytest.fixture
def config():
    config = MagicMock()
    config.get_log_level.return_value = 20
    config.get_regions.return_value = ["us-east-1", "eu-west-1"]
    config.get_canonical_region.return_value = "us-east-1"
    config.get_name_prefix.return_value = "capa-ami-"
    config.get_log_file.return_value = "/tmp/public-ami-cleanup-test.log"
    return config


@pytest.fixture
def patched(config):
    """Patch everything run_app talks to outside the process"""
    with patch.object(public_ami_cleanup, "ConfigManager", return_value=config), \
            patch.object(public_ami_cleanup, "AMIInventory") as inventory_cls, \
            patch.object(public_ami_cleanup, "EC2ImageProvider"), \
            patch.object(public_ami_cleanup, "LaunchPermissionRevoker"), \
            patch.object(public_ami_cleanup, "route_logging_to_file") as route_logging, \
            patch.object(public_ami_cleanup, "AMICleanupApp") as app_cls:
        inventory = inventory_cls.return_value
        inventory.regions = ["us-east-1", "eu-west-1"]
        inventory.failed_regions = {}
        yield {"inventory": inventory, "app_cls": app_cls, "route_logging": route_logging}


class TestRunApp:
    """Tests for exit codes and startup flow"""

    def test_runs_app_with_resolved_trees(self, patched, capsys):
        patched["inventory"].fetch_amis.return_value = [
            make_ami("ami-root", name="capa-ami-a"),
            make_ami("ami-copy", name="capa-ami-a", region="eu-west-1"),
        ]

        assert public_ami_cleanup.run_app() == 0

        trees = patched["app_cls"].call_args[0][0]
        assert [tree.root.id for tree in trees] == ["ami-root"]
        assert [child.id for child in trees[0].children] == ["ami-copy"]
        patched["route_logging"].assert_called_once()
        patched["app_cls"].return_value.run.assert_called_once()
        assert "Fetching AMIs across regions..." in capsys.readouterr().out

    def test_no_amis_exits_cleanly(self, patched, capsys):
        patched["inventory"].fetch_amis.return_value = []

        assert public_ami_cleanup.run_app() == 0
        assert "No AMIs found with prefix 'capa-ami-'" in capsys.readouterr().out
        patched["app_cls"].assert_not_called()

    def test_every_region_failing_is_an_error(self, patched, capsys):
        patched["inventory"].fetch_amis.return_value = []
        patched["inventory"].failed_regions = {"us-east-1": "denied", "eu-west-1": "denied"}

        assert public_ami_cleanup.run_app() == 1
        assert "failed to fetch AMIs" in capsys.readouterr().err

    def test_partial_region_failure_is_reported(self, patched, capsys):
        patched["inventory"].fetch_amis.return_value = [make_ami("ami-root")]
        patched["inventory"].failed_regions = {"eu-west-1": "denied"}

        assert public_ami_cleanup.run_app() == 0
        assert "Skipped regions: eu-west-1" in capsys.readouterr().out

    def test_credentials_error_exits_before_fetching(self, patched, config, capsys):
        config.get_session.side_effect = create_aws_credentials_error("missing")

        assert public_ami_cleanup.run_app() == 1
        assert "Unable to load AWS credentials" in capsys.readouterr().err
        patched["inventory"].fetch_amis.assert_not_called()

    def test_invalid_config_exits(self, capsys):
        with patch.object(public_ami_cleanup, "ConfigManager", side_effect=ConfigValidationError("bad regions")):
            assert public_ami_cleanup.run_app() == 1
        assert "bad regions" in capsys.readouterr().err

    def test_app_crash_exits_with_error(self, patched, capsys):
        patched["inventory"].fetch_amis.return_value = [make_ami("ami-root")]
        patched["app_cls"].return_value.run.side_effect = RuntimeError("terminal gone")

        assert public_ami_cleanup.run_app() == 1
        assert "terminal gone" in capsys.readouterr().err
