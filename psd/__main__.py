"""CLI entry point for the pseudocode interpreter.

Usage:
    python -m psd [-v|-vv|-vvv] [--no-banner] <program_file>

Options:
  -v            Increase debug verbosity (can be repeated)
  --no-banner   Print only the program output, without the execution banner

Debug information is written to `debug.txt` in the current directory when
verbosity is greater than zero. Input statements read from standard input.
Any structure, declaration or runtime error is reported on stderr and the
process exits with status 1.
"""

import argparse
import sys
from datetime import datetime
from pathlib import Path
from .errors import PsdError
from .interpreter import Interpreter
from .source import format_report, load_program


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="Pseudocode (kamus/algoritma) interpreter")
    parser.add_argument('-v', action='count', default=0, help='increase debug verbosity (can be repeated)')
    parser.add_argument('--no-banner', action='store_true', help='print only the program output')
    parser.add_argument('program', help='program file to execute')
    args = parser.parse_args(argv)

    program_file = Path(args.program)
    if not program_file.exists():
        print(f"Error: file {program_file} not found", file=sys.stderr)
        sys.exit(1)
    with open(program_file, 'r', encoding='utf-8') as f:
        source = f.read()

    started = datetime.now()
    try:
        program = load_program(source)
        output = Interpreter(debug_level=args.v).run(program)
    except PsdError as e:
        print(e.report(), file=sys.stderr)
        sys.exit(1)

    lines = output if args.no_banner else format_report(program.name, started, output)
    for line in lines:
        print(line)


if __name__ == '__main__':
    main()
