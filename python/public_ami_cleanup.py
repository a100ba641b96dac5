#!/usr/bin/env python3
"""
Find public AMIs matching a naming convention across regions, show how the
cross-region copies relate to their source AMI, and make selected AMIs
private from a full-screen list.

Configuration comes from config.yaml (or CONFIG_FILE) and environment
variables; there are no command-line flags.
"""

import logging
import sys

from ami_cleanup.config_manager import ConfigManager, ConfigValidationError
from ami_cleanup.error_utils import ActionableError
from ami_cleanup.inventory import AMIInventory, EC2ImageProvider, LaunchPermissionRevoker
from ami_cleanup.lineage import LineageResolver
from ami_cleanup.logging_utils import get_logger, log_exception, route_logging_to_file, setup_logging
from ami_cleanup.tui import AMICleanupApp

logger = get_logger(__name__)


def run_app() -> int:
    """Collect inventory, then hand the terminal to the interactive list.

    Returns:
        Process exit code
    """
    setup_logging()

    try:
        config = ConfigManager()
        log_level = config.get_log_level()
        logging.getLogger().setLevel(log_level)
        session = config.get_session()
    except (ConfigValidationError, ActionableError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    regions = config.get_regions()
    print("Fetching AMIs across regions...")
    provider = EC2ImageProvider(session, config.get_owners(), config.get_name_filter())
    inventory = AMIInventory(provider, regions)
    amis = inventory.fetch_amis()

    if not amis:
        if inventory.failed_regions and len(inventory.failed_regions) == len(inventory.regions):
            print("Error: failed to fetch AMIs: every region returned an error", file=sys.stderr)
            return 1
        print(f"No AMIs found with prefix '{config.get_name_prefix()}'")
        return 0

    forest = LineageResolver(config.get_canonical_region()).resolve(amis)
    trees = forest.all_trees()
    public_count = sum(1 for ami in amis if ami.is_public)
    print(
        f"Found {len(amis)} AMIs ({public_count} public) in {len(forest.trees)} trees"
        f" and {len(forest.orphans)} orphans"
    )
    if inventory.failed_regions:
        print(f"Skipped regions: {', '.join(sorted(inventory.failed_regions))}")

    # The screen owns the terminal from here on
    route_logging_to_file(config.get_log_file(), level=log_level)

    app = AMICleanupApp(
        trees,
        LaunchPermissionRevoker(session),
        show_help=config.show_help_by_default(),
        hide_private=config.hide_private_by_default(),
    )
    try:
        app.run()
    except Exception as e:
        log_exception(logger, "Error running program", e)
        print(f"Error: error running program: {e}", file=sys.stderr)
        return 1
    return 0


def main() -> None:
    sys.exit(run_app())


if __name__ == "__main__":
    main()
