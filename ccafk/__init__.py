import sys
import os
import argparse
from pydantic import ValidationError
from ccafk.manager import CcAfkManager
from ccafk.exceptions import CcAfkRuntimeError
from ccafk.info import __app_name__, __description__, __author__, __author_email__, __author_url__, __license__

__version__ = ""
with open(os.path.join(os.path.dirname(__file__), "VERSION"), "r") as f:
    __version__ = f.read().strip()


def main():
    # get args from command line
    parser = argparse.ArgumentParser(description=__description__)

    parser.add_argument("--config", dest="config_file", help="Path to the config file")
    parser.add_argument("--data", dest="data_directory", help="Path to the data directory")
    parser.add_argument("--log", dest="log_file", help="Log file where to write logs")
    parser.add_argument("--log-level", dest="log_level", help="Log level", choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"])
    parser.add_argument("--version", action="version", version=f"{__app_name__} {__version__}")

    subparsers = parser.add_subparsers(title="Commands", dest="command")

    backups_parser = subparsers.add_parser("backups", help="Backup management commands")
    backups_subparsers = backups_parser.add_subparsers(title="Backup Commands", dest="subcommand", required=True)

    backups_list_parser = backups_subparsers.add_parser("list", help="List the most recent backups")
    backups_list_parser.add_argument("--limit", type=int, default=20, help="Maximum number of backups to list")

    backups_latest_parser = backups_subparsers.add_parser("latest", help="Show the most recent backup")
    backups_latest_parser.add_argument("--code-only", action="store_true", help="Print only the save code")

    backups_create_parser = backups_subparsers.add_parser("create", help="Capture and store a backup now")

    backups_prune_parser = backups_subparsers.add_parser("prune", help="Delete all but the most recent backups")
    backups_prune_parser.add_argument("--keep", type=int, required=True, help="Number of backups to keep")

    backups_clear_parser = backups_subparsers.add_parser("clear", help="Delete all backups")

    global_keys = ["log_file", "log_level", "config_file", "data_directory"]

    args = parser.parse_args()

    global_args = {key: getattr(args, key) for key in global_keys}
    cmd_args = {k: v for k, v in vars(args).items() if k not in global_keys}

    try:
        ccafk = CcAfkManager(**global_args, app_version=__version__)
    except ValidationError as e:
        print(f"Configuration contains {e.error_count()} error(s):")

        for error in e.errors(include_url=False):
            loc = ".".join(str(x) for x in error["loc"]) if error["loc"] else "general"
            print(f"  - {loc}: {error['msg']}")

        print(f"\nCheck documentation for more information on how to configure {__app_name__}")
        sys.exit(2)
    except CcAfkRuntimeError as e:
        print(f"Error: {e}")
        sys.exit(2)

    sys.exit(ccafk.run(**cmd_args))
