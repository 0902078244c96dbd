"""Parser for the multi-line ``secrets`` input.

Each non-blank line declares one secret::

    projects/my-project/secrets/db-password/versions/3:DB_PASSWORD
    my-project/api-key
    projects/my-project/locations/europe-west1/secrets/token

The part before the first unescaped ``:`` locates the secret, the optional
part after it names the output. Colons and backslashes inside a locator are
written ``\\:`` and ``\\\\``.
"""
import re
import logging
from typing import List, Optional, Tuple

from .errors import ParseError
from .models import SecretReference

logger = logging.getLogger(__name__)

LINE_BREAK = re.compile(r"\r\n|\r|\n")

_FULL_LOCATOR = re.compile(
    r"^projects/(?P<project>[^/\s]+)"
    r"(?:/locations/(?P<location>[^/\s]+))?"
    r"/secrets/(?P<secret>[^/\s]+)"
    r"(?:/versions/(?P<version>[^/\s]+))?$"
)
_SHORT_LOCATOR = re.compile(
    r"^(?P<project>[^/\s]+)/(?P<secret>[^/\s]+)(?:/(?P<version>[^/\s]+))?$"
)

OUTPUT_NAME_PATTERN = re.compile(r"^[A-Za-z_][A-Za-z0-9_-]*$")


def _split_unescaped(line: str, line_number: int) -> List[str]:
    """Split on ``:`` while honouring ``\\:`` and ``\\\\`` escapes."""
    pieces: List[List[str]] = [[]]
    chars = iter(line)
    for ch in chars:
        if ch == "\\":
            escaped = next(chars, None)
            if escaped not in (":", "\\"):
                raise ParseError(
                    f"invalid escape sequence '\\{escaped or ''}' (only '\\:' and '\\\\' are allowed)",
                    line_number,
                )
            pieces[-1].append(escaped)
        elif ch == ":":
            pieces.append([])
        else:
            pieces[-1].append(ch)
    return ["".join(piece) for piece in pieces]


def _split_locator(locator: str, line_number: int) -> Tuple[str, str, str, Optional[str]]:
    match = _FULL_LOCATOR.match(locator) or _SHORT_LOCATOR.match(locator)
    if not match:
        raise ParseError(
            f"invalid secret locator '{locator}', expected one of "
            "'projects/<project>/secrets/<secret>[/versions/<version>]', "
            "'projects/<project>/locations/<location>/secrets/<secret>[/versions/<version>]' or "
            "'<project>/<secret>[/<version>]'",
            line_number,
        )
    groups = match.groupdict()
    return (
        groups["project"],
        groups["secret"],
        groups.get("version") or "latest",
        groups.get("location"),
    )


def derive_output_name(secret_id: str) -> str:
    """
    Derive an identifier-safe output name from a secret id.

    Every character outside ``[A-Za-z0-9_]`` becomes ``_`` and a leading digit
    gets a ``_`` prefix, so ``db-password`` becomes ``db_password`` and
    ``2fa.seed`` becomes ``_2fa_seed``.
    """
    name = re.sub(r"[^A-Za-z0-9_]", "_", secret_id)
    if name[0].isdigit():
        name = f"_{name}"
    return name


def validate_output_name(name: str, line_number: Optional[int] = None) -> None:
    """
    Validate an explicit output name.

    Raises:
        ParseError: If the name is empty or not identifier-safe
    """
    if not name:
        raise ParseError("output name cannot be empty", line_number)
    if not OUTPUT_NAME_PATTERN.match(name):
        raise ParseError(
            f"invalid output name '{name}' (allowed: letters, digits, '_' and '-', "
            "not starting with a digit or '-')",
            line_number,
        )


def parse_reference(line: str, line_number: int = 1) -> SecretReference:
    """Parse a single, already trimmed, reference line."""
    pieces = _split_unescaped(line, line_number)
    if len(pieces) > 2:
        raise ParseError(
            f"too many ':' separators in '{line}' (escape literal colons as '\\:')",
            line_number,
        )

    locator = pieces[0].strip()
    if not locator:
        raise ParseError("missing secret locator", line_number)
    project, secret, version, location = _split_locator(locator, line_number)

    if len(pieces) == 2:
        output_name = pieces[1].strip()
        validate_output_name(output_name, line_number)
    else:
        output_name = derive_output_name(secret)

    return SecretReference(
        source_locator=locator,
        output_name=output_name,
        project=project,
        secret=secret,
        version=version,
        location=location,
    )


def parse_secrets_refs(raw: str) -> List[SecretReference]:
    """
    Parse the ``secrets`` input into references, in input order.

    Args:
        raw: Multi-line input, one reference per non-blank line

    Returns:
        List of SecretReference, one per non-blank line

    Raises:
        ParseError: If any non-blank line is malformed

    Duplicate output names are kept; the later reference wins when published.
    """
    refs: List[SecretReference] = []
    seen = {}
    for line_number, line in enumerate(LINE_BREAK.split(raw or ""), start=1):
        line = line.strip()
        if not line:
            continue

        ref = parse_reference(line, line_number)
        if ref.output_name in seen:
            logger.warning(
                f"Output '{ref.output_name}' on line {line_number} overrides the one on line "
                f"{seen[ref.output_name]}"
            )
        seen[ref.output_name] = line_number
        refs.append(ref)

    return refs
