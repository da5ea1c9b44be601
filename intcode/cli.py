"""intcode CLI entry point."""

from __future__ import annotations

import argparse
import contextlib
import logging
import os
import sys
from pathlib import Path
from typing import List, Optional

from .console import ConsolePrompt
from .disassemble import disassemble, format_listing
from .errors import IntcodeError
from .loader import load_program
from .machine import Machine, MachineConfig
from .pipeline import best_chain, best_feedback, run_chain, run_feedback_ring
from .robot import HullPaintingRobot
from .search import find_noun_verb

LOG = logging.getLogger("intcode.cli")


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _phase_list(text: str) -> List[int]:
    try:
        return [int(part) for part in text.split(",") if part.strip()]
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected comma-separated integers, got {text!r}") from None


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="intcode", description="IntCode virtual machine")
    parser.add_argument(
        "--log-level",
        default=os.environ.get("INTCODE_LOG", "WARNING"),
        help="Logging level (default WARNING, or $INTCODE_LOG)",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    run = sub.add_parser("run", help="Run one program and print its outputs")
    run.add_argument("program", type=Path, help="Program source file")
    run.add_argument("-i", "--input", dest="inputs", type=int, action="append", default=[], help="Input value (repeatable)")
    run.add_argument("--line", type=int, default=0, help="Index of the program line to load (default 0)")
    run.add_argument("--trace", action="store_true", help="Log every instruction at DEBUG level")
    run.add_argument("--trace-file", type=Path, help="Write the instruction trace to this file")
    run.add_argument("--max-steps", type=int, help="Stop after this many instructions")
    run.add_argument("--interactive", action="store_true", help="Prompt for input when the queue is empty")

    chain = sub.add_parser("chain", help="Run a linear amplifier chain")
    chain.add_argument("program", type=Path)
    chain.add_argument("--phases", type=_phase_list, default=[0, 1, 2, 3, 4], help="Comma-separated configuration values")
    chain.add_argument("--best", action="store_true", help="Search every ordering of the phases")

    feedback = sub.add_parser("feedback", help="Run a feedback ring")
    feedback.add_argument("program", type=Path)
    feedback.add_argument("--phases", type=_phase_list, default=[5, 6, 7, 8, 9], help="Comma-separated configuration values")
    feedback.add_argument("--best", action="store_true", help="Search every ordering of the phases")
    feedback.add_argument("--threaded", action="store_true", help="Run each machine on its own thread")

    paint = sub.add_parser("paint", help="Run the hull painting robot")
    paint.add_argument("program", type=Path)
    paint.add_argument("--start-color", type=int, choices=(0, 1), default=0, help="Colour of the starting panel")

    search = sub.add_parser("search", help="Find the noun/verb pair producing a target")
    search.add_argument("program", type=Path)
    search.add_argument("--target", type=int, required=True)

    disasm = sub.add_parser("disasm", help="Print a program listing")
    disasm.add_argument("program", type=Path)
    disasm.add_argument("--line", type=int, default=0)
    return parser


def _cmd_run(args: argparse.Namespace) -> int:
    program = load_program(args.program, line=args.line)
    provider = ConsolePrompt() if args.interactive else None
    with contextlib.ExitStack() as stack:
        trace_file = None
        if args.trace_file is not None:
            trace_file = stack.enter_context(args.trace_file.open("w", encoding="utf-8"))
        machine = Machine(
            program,
            MachineConfig(trace=args.trace),
            name="main",
            input_provider=provider,
            trace_file=trace_file,
        )
        machine.feed_input(*args.inputs)
        machine.run_until_complete(max_steps=args.max_steps)
    for value in machine.drain_outputs():
        print(value)
    if machine.fault is not None:
        print(f"error: {machine.fault}", file=sys.stderr)
        return 1
    if not machine.is_completed():
        print(f"error: stopped after {machine.steps} steps at ip={machine.ip}", file=sys.stderr)
        return 1
    return 0


def _cmd_chain(args: argparse.Namespace) -> int:
    program = load_program(args.program)
    if args.best:
        signal, order = best_chain(program, args.phases)
        print(f"{signal} {','.join(str(value) for value in order)}")
    else:
        print(run_chain(program, args.phases))
    return 0


def _cmd_feedback(args: argparse.Namespace) -> int:
    program = load_program(args.program)
    if args.best:
        signal, order = best_feedback(program, args.phases, threaded=args.threaded)
        print(f"{signal} {','.join(str(value) for value in order)}")
    else:
        print(run_feedback_ring(program, args.phases, threaded=args.threaded))
    return 0


def _cmd_paint(args: argparse.Namespace) -> int:
    robot = HullPaintingRobot(load_program(args.program), start_color=args.start_color)
    robot.run()
    print(robot.painted_count)
    picture = robot.render()
    if picture:
        print(picture)
    return 0


def _cmd_search(args: argparse.Namespace) -> int:
    try:
        noun, verb = find_noun_verb(load_program(args.program), args.target)
    except LookupError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1
    print(f"{noun} {verb} {100 * noun + verb}")
    return 0


def _cmd_disasm(args: argparse.Namespace) -> int:
    for line in format_listing(disassemble(load_program(args.program, line=args.line))):
        print(line)
    return 0


_COMMANDS = {
    "run": _cmd_run,
    "chain": _cmd_chain,
    "feedback": _cmd_feedback,
    "paint": _cmd_paint,
    "search": _cmd_search,
    "disasm": _cmd_disasm,
}


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_arg_parser()
    args = parser.parse_args(argv)
    _configure_logging(args.log_level)
    handler = _COMMANDS[args.command]
    try:
        return handler(args)
    except (IntcodeError, OSError, ValueError) as exc:
        LOG.debug("command %s failed", args.command, exc_info=True)
        print(f"error: {exc}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        print()
        return 130


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
