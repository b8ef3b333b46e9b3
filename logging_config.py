import logging

from rich.logging import RichHandler


def configure(level: str = "WARNING") -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(message)s",
        handlers=[RichHandler(rich_tracebacks=True, show_time=False, show_path=False)],
    )
    # Keep urllib3's connection chatter out of verbose output.
    logging.getLogger("urllib3").setLevel(logging.WARNING)
