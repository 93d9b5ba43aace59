"""CLI entry point for studypaste."""

import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from .config import PasteConfig
from .dispatcher import PASTE_MODE_LABELS, PasteDispatcher, PasteMode
from .export import html_to_markdown
from .sanitize import sanitize_html

MODE_DESCRIPTIONS = {
    PasteMode.SMART: "Clean rich HTML, or structure plain text that shows structure",
    PasteMode.FORMATTED: "Clean the clipboard HTML when present, else structure the text",
    PasteMode.PLAIN: "Ignore HTML and structure the plain text",
}


def print_mode_list() -> None:
    """Print available paste modes."""
    print("Paste modes:")
    for mode, label in PASTE_MODE_LABELS.items():
        print(f"  {mode.value:<12} {label} - {MODE_DESCRIPTIONS[mode]}")


@dataclass
class PasteFlags:
    """Parsed studypaste flags."""
    mode: Optional[str] = None
    html_file: Optional[str] = None
    text_file: Optional[str] = None
    config_file: Optional[str] = None
    sanitize: bool = False
    markdown: bool = False
    list_modes: bool = False
    help: bool = False


def extract_flags(args: list[str]) -> tuple[PasteFlags, list[str]]:
    """Extract studypaste flags from args, return (flags, remaining_args)."""
    flags = PasteFlags()
    remaining = []
    valued = {
        "--mode": "mode",
        "--html": "html_file",
        "--text": "text_file",
        "--config": "config_file",
    }

    i = 0
    while i < len(args):
        arg = args[i]
        if arg in valued:
            if i + 1 < len(args):
                setattr(flags, valued[arg], args[i + 1])
                i += 2
            else:
                remaining.append(arg)
                i += 1
        elif arg == "--sanitize":
            flags.sanitize = True
            i += 1
        elif arg == "--markdown":
            flags.markdown = True
            i += 1
        elif arg == "--list-modes":
            flags.list_modes = True
            i += 1
        elif arg in ("--help", "-h"):
            flags.help = True
            i += 1
        else:
            remaining.append(arg)
            i += 1

    return flags, remaining


def print_help() -> None:
    """Print studypaste help."""
    print("studypaste - Turn clipboard HTML and plain text into clean study notes")
    print()
    print("Usage: studypaste [options] [text-file | -]")
    print()
    print("Options:")
    print("  --mode <mode>         Paste mode: smart, formatted or plain (default: from config)")
    print("  --html <file>         Clipboard HTML payload")
    print("  --text <file>         Clipboard plain-text payload (same as the positional file)")
    print("  --config <file>       Read settings from this YAML file")
    print("  --sanitize            Sanitize the HTML payload for display instead of pasting it")
    print("  --markdown            Print the result as Markdown")
    print("  --list-modes          List paste modes")
    print("  --help, -h            Show this help")
    print()
    print("Use '-' as the text file to read plain text from stdin.")
    print()
    print("Examples:")
    print("  studypaste notes.txt                        # Structure plain text")
    print("  studypaste --html page.html --text page.txt # Paste a rich clipboard")
    print("  pbpaste | studypaste --mode plain -")
    print("  studypaste --sanitize --html answer.html")


def _read(path: str) -> str:
    if path == "-":
        return sys.stdin.read()
    return Path(path).read_text(encoding="utf-8")


def run(args: Optional[list[str]] = None) -> int:
    """Run studypaste with the given arguments. Returns exit code."""
    if args is None:
        args = sys.argv[1:]

    flags, remaining = extract_flags(args)

    if flags.help:
        print_help()
        return 0

    if flags.list_modes:
        print_mode_list()
        return 0

    unknown = [arg for arg in remaining if arg.startswith("--")]
    if unknown:
        print(f"studypaste: unknown option '{unknown[0]}'", file=sys.stderr)
        print("Try 'studypaste --help' for more information.", file=sys.stderr)
        return 1

    if len(remaining) > 1:
        print("studypaste: expected at most one input file", file=sys.stderr)
        return 1

    text_source = flags.text_file or (remaining[0] if remaining else None)
    if text_source is None and flags.html_file is None:
        print("studypaste: no input", file=sys.stderr)
        print("Try 'studypaste --help' for more information.", file=sys.stderr)
        return 1

    try:
        html = _read(flags.html_file) if flags.html_file else ""
        text = _read(text_source) if text_source else ""
        config = PasteConfig(path=flags.config_file)

        if flags.sanitize:
            result = sanitize_html(html, config.policy)
        else:
            mode = PasteMode.parse(flags.mode) if flags.mode else None
            result = PasteDispatcher(config).route(html, text, mode)
    except (OSError, ValueError) as e:
        print(f"studypaste: {e}", file=sys.stderr)
        return 1

    if flags.markdown:
        result = html_to_markdown(result)

    sys.stdout.write(result)
    if result and not result.endswith("\n"):
        sys.stdout.write("\n")

    return 0


def main() -> None:
    """Main entry point."""
    sys.exit(run())


if __name__ == "__main__":
    main()
