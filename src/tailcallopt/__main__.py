"""CLI entry point: `tailcallopt file.js` or `python -m tailcallopt file.js`."""

import logging
import sys
from pathlib import Path
from typing import Any, List


def _parse_argument(text: str) -> Any:
    """Command-line argument to a JavaScript value: number, boolean, null, or string."""
    from .runtime.values import UNDEFINED
    literals = {"true": True, "false": False, "null": None, "undefined": UNDEFINED}
    if text in literals:
        return literals[text]
    try:
        return float(text)
    except ValueError:
        return text


def main(argv: List[str] = None) -> int:
    import argparse
    from .compiler.driver import TailCallOptimizer
    from .runtime.errors import JSRuntimeError
    from .runtime.interpreter import Interpreter
    from .runtime.values import to_string
    from .shared.serialization import serialize_tree
    from .utils.io_utils import read_source_file, write_source_file

    parser = argparse.ArgumentParser(
        prog="tailcallopt",
        description="Eliminate self-recursive tail calls in a JavaScript file.",
    )
    parser.add_argument("file", type=Path, help="Path to .js source file")
    parser.add_argument("-o", "--output", type=Path, help="Write the optimized source here instead of stdout")
    parser.add_argument("--dump-tree", action="store_true", help="Print the rewritten tree as an S-expression")
    parser.add_argument("--no-validate", action="store_true", help="Skip validation of the rewritten tree")
    parser.add_argument("--run", nargs="+", metavar=("NAME", "ARG"),
                        help="Call function NAME of the optimized program with the given arguments")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    path = args.file.resolve()
    try:
        source = read_source_file(path)
    except (OSError, UnicodeDecodeError) as e:
        sys.stderr.write(f"tailcallopt: error: {e}\n")
        return 1

    optimizer = TailCallOptimizer(validate=not args.no_validate)
    result = optimizer.compile(source, str(path), dump_tree=args.verbose and args.dump_tree)

    if not result.success:
        sys.stderr.write(result.pcx.reporter.format_all_errors() + "\n")
        return 1

    if args.run:
        name, *raw_args = args.run
        interpreter = Interpreter()
        try:
            interpreter.run(result.tree)
            value = interpreter.get_function(name)(*[_parse_argument(a) for a in raw_args])
        except JSRuntimeError as e:
            sys.stderr.write(f"tailcallopt: runtime error: {e}\n")
            return 1
        print(to_string(value))
        return 0

    text = serialize_tree(result.tree) if args.dump_tree else result.output
    if args.output is not None:
        write_source_file(args.output, text)
    else:
        print(text)
    return 0


if __name__ == "__main__":
    sys.exit(main())
