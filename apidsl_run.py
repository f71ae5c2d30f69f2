import sys
from pathlib import Path

from apidsl.apidsl_runtime import DesignRunner
from apidsl.apidsl_serialize import serialize

USAGE = "usage: apidsl_run.py DESIGN.py [json|yaml|xml]"


def run_design_file(file_path: str, fmt: str = "yaml") -> int:
    """Evaluate a design file and print it, or its errors. Returns the exit status."""
    runner = DesignRunner(source_dir=str(Path.cwd()))
    result = runner.run_file(file_path)
    if result.status == 'error':
        print(result.format_error(), file=sys.stderr)
        return 1
    for effect in result.side_effects:
        if effect.get('topics') == ['stdout']:
            print(effect.get('message', ''))
    print(serialize(result.value, fmt=fmt))
    return 0


def main(argv=None) -> int:
    args = list(sys.argv[1:] if argv is None else argv)
    if not args or args[0].startswith("-"):
        print(USAGE, file=sys.stderr)
        return 2
    fmt = args[1] if len(args) > 1 else "yaml"
    if fmt not in ("json", "yaml", "xml"):
        print(f"Error: unsupported format: {fmt}", file=sys.stderr)
        print(USAGE, file=sys.stderr)
        return 2
    return run_design_file(args[0], fmt)


if __name__ == "__main__":
    raise SystemExit(main())
