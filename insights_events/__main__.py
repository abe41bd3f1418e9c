"""Allow insights-events to be executable through `python -m insights_events`."""
from insights_events.cli import cli


if __name__ == "__main__":  # pragma: no cover
    cli(prog_name="insights-events")
