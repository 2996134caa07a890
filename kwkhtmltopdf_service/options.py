"""
Renderer option helpers.

Classifies option tokens (document output vs. PDF output) and builds the
masked argument view used for logging.
"""

from typing import Dict, List, Sequence

# Options that make the renderer print informational text instead of a PDF.
DOC_OPTIONS = frozenset({
    "-h",
    "--help",
    "-H",
    "--extended-help",
    "-V",
    "--version",
    "--readme",
    "--license",
    "--htmldoc",
    "--manpage",
})

# Sensitive flag -> number of plain tokens between the flag and its secret.
# --cookie <name> <value> keeps the cookie name visible.
SENSITIVE_OPTIONS: Dict[str, int] = {
    "--cookie": 1,
    "--password": 0,
    "--ssl-key-password": 0,
}

REDACTED = "***"

# Trailing output argument telling the renderer to write the PDF to stdout.
STDOUT_ARG = "-"


def is_doc_option(arg: str) -> bool:
    """Return True if arg asks the renderer for documentation output."""
    return arg in DOC_OPTIONS


def redact_args(args: Sequence[str]) -> List[str]:
    """
    Build a copy of args with secret values replaced by a mask.

    Only the secret token of each sensitive option is masked; flags, cookie
    names and all other tokens are kept. The input sequence is not modified.

    Args:
        args: Renderer argument sequence

    Returns:
        New list suitable for logging
    """
    redacted: List[str] = []
    i = 0
    while i < len(args):
        arg = args[i]
        skip = SENSITIVE_OPTIONS.get(arg)
        if skip is not None and i + skip + 1 < len(args):
            redacted.append(arg)
            redacted.extend(args[i + 1:i + 1 + skip])
            redacted.append(REDACTED)
            i += skip + 2
        else:
            redacted.append(arg)
            i += 1
    return redacted
