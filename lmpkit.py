#!/usr/bin/env python3
"""
lmpkit — Little Man Plus toolkit
================================

One CLI for the assembler and the virtual machine:
    lmpkit asm      — Assemble source to a memory image or listing
    lmpkit disasm   — Disassemble a memory image
    lmpkit run      — Assemble (or load an image) and run it

Usage:
    python lmpkit.py <command> [options]
    python lmpkit.py <command> --help

Examples:
    python lmpkit.py asm examples/bubble_sort.lmp -o sort.img
    python lmpkit.py asm examples/bubble_sort.lmp --listing
    python lmpkit.py disasm sort.img
    python lmpkit.py run examples/bubble_sort.lmp
    python lmpkit.py run examples/add_two.lmp --input 3,4
    python lmpkit.py run sort.img --image --trace
    python lmpkit.py run examples/countdown.lmp --input 5 --dump

Memory images are plain text, one decimal cell value per line.
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from rich.logging import RichHandler

from lmp_asm import Assembler, AssemblerError, __version__, disassemble
from lmp_vm import VirtualMachine, VMError, StopReason

log = logging.getLogger('lmp')


def setup_logging(verbose: int = 0) -> logging.Logger:
    """Attach a rich console handler to the 'lmp' logger tree."""
    if verbose >= 1:
        level = logging.DEBUG
    else:
        level = logging.WARNING

    logger = logging.getLogger('lmp')
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    ch = RichHandler(
        level=level,
        show_time=False,
        show_path=False,
        markup=False,
        rich_tracebacks=True,
    )
    logger.addHandler(ch)
    logger.setLevel(level)
    logger.propagate = False
    return logger


def parse_inputs(text: Optional[str]) -> List[int]:
    """Parse '1,2, 3' into [1, 2, 3]."""
    if not text:
        return []
    return [int(part) for part in text.replace(' ', '').split(',') if part]


def read_image(path: Path) -> List[int]:
    cells = []
    for line_num, line in enumerate(path.read_text(encoding='utf-8').splitlines(), 1):
        line = line.strip()
        if not line:
            continue
        try:
            cells.append(int(line))
        except ValueError:
            raise ValueError(f"{path}:{line_num}: not an integer: {line!r}") from None
    return cells


def _print_output(value: int):
    print(value, flush=True)


def _prompt_input() -> int:
    while True:
        sys.stderr.write("INP> ")
        sys.stderr.flush()
        line = sys.stdin.readline()
        if not line:
            raise EOFError("input required but stdin is closed")
        try:
            return int(line.strip())
        except ValueError:
            print(f"Not an integer: {line.strip()!r}", file=sys.stderr)


# ──────────────────────────────────────────────
# Commands
# ──────────────────────────────────────────────

def cmd_asm(args) -> int:
    source = Path(args.input).read_text(encoding='utf-8')
    asm = Assembler()
    asm.assemble(source)
    if args.listing:
        print(asm.get_listing())
    image = '\n'.join(str(v) for v in asm.image()) + '\n'
    if args.output:
        Path(args.output).write_text(image, encoding='utf-8')
        log.info("wrote %d cells to %s", len(asm.program), args.output)
    elif not args.listing:
        sys.stdout.write(image)
    return 0


def cmd_disasm(args) -> int:
    cells = read_image(Path(args.input))
    for line in disassemble(cells):
        print(line)
    return 0


def cmd_run(args) -> int:
    vm = VirtualMachine()
    path = Path(args.input)
    if args.image:
        vm.load_image(read_image(path))
    else:
        vm.compile(path.read_text(encoding='utf-8'))

    if args.trace:
        vm.enable_trace()

    input_fn = None if args.no_prompt else _prompt_input
    result = vm.run(max_cycles=args.max_cycles,
                    inputs=parse_inputs(args.input_values),
                    input_fn=input_fn,
                    output_fn=_print_output)

    if args.trace:
        print(vm.get_trace(), file=sys.stderr)
    if args.dump:
        print(vm.dump(), file=sys.stderr)

    if result.reason is StopReason.HALT:
        log.info("halted after %d cycles", vm.cycles)
        return 0
    if result.reason is StopReason.FAULT:
        print(f"Fault: {result.fault}", file=sys.stderr)
    elif result.reason is StopReason.INPUT:
        print("Stopped: input required", file=sys.stderr)
    elif result.reason is StopReason.TIMEOUT:
        print(f"Stopped: cycle limit reached ({vm.cycles} cycles)", file=sys.stderr)
    return 1


# ──────────────────────────────────────────────
# Entry point
# ──────────────────────────────────────────────

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="lmpkit",
        description="Little Man Plus toolkit — assemble, disassemble, run",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--version", action="version", version=f"lmpkit {__version__}")
    parser.add_argument("-v", "--verbose", action="count", default=0,
                        help="Log assembler/VM details to stderr")
    sub = parser.add_subparsers(dest="command", metavar="command")

    # ── asm ──
    p_asm = sub.add_parser("asm", help="Assemble source to a memory image")
    p_asm.add_argument("input", help="Input .lmp file")
    p_asm.add_argument("-o", "--output", help="Output image file (default: stdout)")
    p_asm.add_argument("--listing", action="store_true", help="Print listing to stdout")

    # ── disasm ──
    p_dis = sub.add_parser("disasm", help="Disassemble a memory image")
    p_dis.add_argument("input", help="Input image file")

    # ── run ──
    p_run = sub.add_parser("run", help="Run a program")
    p_run.add_argument("input", help="Input .lmp file (or image with --image)")
    p_run.add_argument("--image", action="store_true", help="Input is a memory image")
    p_run.add_argument("--input", dest="input_values", default=None,
                       help="Comma-separated values for INP, e.g. 3,4")
    p_run.add_argument("--no-prompt", action="store_true",
                       help="Stop instead of prompting when inputs run out")
    p_run.add_argument("--max-cycles", type=int, default=VirtualMachine.DEFAULT_MAX_CYCLES,
                       help="Cycle limit (default: %(default)s)")
    p_run.add_argument("--trace", action="store_true", help="Print a cycle trace to stderr")
    p_run.add_argument("--dump", action="store_true",
                       help="Print the final mailbox contents to stderr")

    return parser


COMMANDS = {
    "asm": cmd_asm,
    "disasm": cmd_disasm,
    "run": cmd_run,
}


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if not args.command:
        parser.print_help()
        return 1

    setup_logging(args.verbose)

    try:
        return COMMANDS[args.command](args)
    except FileNotFoundError as e:
        print(f"Error: File not found: {e.filename}", file=sys.stderr)
        return 1
    except AssemblerError as e:
        print(f"Assembler error: {e}", file=sys.stderr)
        return 1
    except VMError as e:
        print(f"VM error: {e}", file=sys.stderr)
        return 1
    except (ValueError, EOFError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except Exception as e:
        print(f"Internal error: {e}", file=sys.stderr)
        if args.verbose:
            import traceback
            traceback.print_exc()
        return 2


if __name__ == "__main__":
    sys.exit(main())
