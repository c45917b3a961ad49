import argparse
import sys

from pydantic import ValidationError

from coach.core.config import DeploymentTarget, Settings, settings
from coach.services.relay_client import check_relay_connection


def main(argv=None) -> int:
    """Probe the relay server for the configured (or given) deployment target."""
    parser = argparse.ArgumentParser(description="Check the voice relay connection")
    parser.add_argument(
        "--target",
        choices=[t.value for t in DeploymentTarget],
        help="Override DEPLOYMENT_TARGET for this check",
    )
    parser.add_argument("--timeout", type=float, help="Override RELAY_TIMEOUT_SECONDS")
    args = parser.parse_args(argv)

    cfg = settings
    if args.target:
        try:
            cfg = Settings(deployment_target=args.target)
        except ValidationError as e:
            print(f"Invalid relay configuration: {e}", file=sys.stderr)
            return 2
    timeout = args.timeout if args.timeout is not None else cfg.relay_timeout_seconds

    result = check_relay_connection(cfg.relay_base_url, timeout)
    print(result.message)
    if result.voices_count is not None:
        print(f"Voices available: {result.voices_count}")
    return 0 if result.success and result.connected else 1


if __name__ == "__main__":
    sys.exit(main())
