import re

# Banner lines like "==> Formulae" separate sections in search/list output.
SECTION_HEADER_PREFIX = "==>"

_ANSI_OSC_RE = re.compile(r"\x1b\][^\x07]*(?:\x07|\x1b\\)")
_ANSI_CSI_RE = re.compile(r"\x1b\[[0-?]*[ -/]*[@-~]")
_ANSI_2CHAR_RE = re.compile(r"\x1b[@-Z\\-_]")


def decode_output(data: bytes | str) -> str:
    """Decodes process output as UTF-8, replacing invalid sequences."""
    if isinstance(data, str):
        return data
    return data.decode("utf-8", errors="replace")


def sanitize_output(text: str) -> str:
    """Normalizes newlines and strips common ANSI escape sequences."""
    if not text:
        return ""
    text = text.replace("\r\n", "\n").replace("\r", "\n")
    text = _ANSI_OSC_RE.sub("", text)
    text = _ANSI_CSI_RE.sub("", text)
    text = _ANSI_2CHAR_RE.sub("", text)
    return text


def parse_line_list(data: bytes | str) -> list[str]:
    """Parses line-oriented brew output (e.g. `brew search`) into entries.

    Lines are trimmed; empty lines and section banners are dropped.
    """
    entries: list[str] = []
    for line in sanitize_output(decode_output(data)).split("\n"):
        s = line.strip()
        if not s or s.startswith(SECTION_HEADER_PREFIX):
            continue
        entries.append(s)
    return entries


def parse_outdated_names(data: bytes | str) -> list[str]:
    """Parses `brew outdated` output into formula names.

    Verbose rows look like `name (1.0) < 1.1`; only the first token is kept.
    """
    return [entry.split()[0] for entry in parse_line_list(data)]


def count_nonempty_lines(data: bytes | str) -> int:
    """Counts lines that still hold text once ANSI escapes are stripped."""
    text = sanitize_output(decode_output(data))
    return sum(1 for line in text.split("\n") if line.strip())
