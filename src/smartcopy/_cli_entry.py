"""Console-script entry point; reports a missing ``cli`` extra instead of a traceback."""

import sys

_NEED_EXTRA = (
    "smartcopy: the command line is not available ({reason}).\n"
    "Install it with:  pip install 'smartcopy[cli]'"
)


def main(argv=None):
    try:
        from .cli import main as cli_main
    except ImportError as exc:
        sys.exit(_NEED_EXTRA.format(reason=exc))
    cli_main(args=argv, prog_name="smartcopy")
