"""Positional argument substitution for XPath templates.

A template such as ``PersVeh[@id = $id and @RatedDriverRef = $driver]``
contains placeholders: a sigil (``$`` by default) followed by zero or more
letters and digits. Placeholders are filled strictly by position; their names
are informational only. A sigil inside a single- or double-quoted literal of
the template is ordinary text.

Each argument is stripped of leading/trailing quote characters and wrapped in
double quotes. By default no other escaping is done, so an argument that
itself contains a double quote yields an invalid query; enable
``QueryConfig.escape_embedded_quotes`` to quote such values safely.
"""

from dataclasses import dataclass, field
from typing import Any, List, Optional, Sequence, Tuple

from fluidxml.shared import QueryConfig, get_logger

DEFAULT_SIGIL = "$"
QUOTE_CHARACTERS = "'\""

logger = get_logger(__name__, component="templating")


class ArgumentError(ValueError):
    """Raised when a template has more placeholders than supplied arguments."""

    def __init__(self, required: int, supplied: int) -> None:
        super().__init__(
            f"Number of XPath placeholders ({required}) is greater than "
            f"the number of arguments ({supplied})"
        )
        self.required = required
        self.supplied = supplied


@dataclass(frozen=True)
class Placeholder:
    """Location of one placeholder in a template."""

    start: int
    length: int  # includes the sigil
    name: str

    @property
    def end(self) -> int:
        return self.start + self.length


def find_placeholders(template: str, sigil: str = DEFAULT_SIGIL) -> List[Placeholder]:
    """Scan ``template`` left to right and locate its placeholders.

    Two independent flags track whether the scan is inside a single- or a
    double-quoted span. A quote character toggles its own flag only while the
    other flag is off, so ``"it's"`` is one double-quoted span.

    Args:
        template: XPath template text
        sigil: Character that introduces a placeholder

    Returns:
        Placeholders in order of appearance
    """
    placeholders: List[Placeholder] = []
    in_single = False
    in_double = False
    length = len(template)
    index = 0

    while index < length:
        char = template[index]
        if char == "'" and not in_double:
            in_single = not in_single
        elif char == '"' and not in_single:
            in_double = not in_double
        elif char == sigil and not (in_single or in_double):
            end = index + 1
            while end < length and template[end].isalnum():
                end += 1
            placeholders.append(
                Placeholder(start=index, length=end - index, name=template[index + 1:end])
            )
            index = end
            continue
        index += 1

    return placeholders


def quote_argument(
    value: Any,
    strip_quotes: bool = True,
    escape_embedded_quotes: bool = False,
) -> str:
    """Render one argument as an XPath string literal.

    Args:
        value: Argument; non-strings are converted with ``str()``
        strip_quotes: Remove leading/trailing ``'`` and ``"`` first, so
            callers that already quoted the value are not double-quoted
        escape_embedded_quotes: Pick a quoting that keeps the literal valid
            when the value contains ``"`` (single quotes, or ``concat()``
            when both quote kinds occur)

    Example:
        >>> quote_argument("'Veh1'")
        '"Veh1"'
    """
    text = value if isinstance(value, str) else str(value)
    if strip_quotes:
        text = text.strip(QUOTE_CHARACTERS)

    if not escape_embedded_quotes or '"' not in text:
        return f'"{text}"'
    if "'" not in text:
        return f"'{text}'"

    pieces = []
    for position, part in enumerate(text.split('"')):
        if position:
            pieces.append("'\"'")
        if part:
            pieces.append(f'"{part}"')
    return f"concat({', '.join(pieces)})"


def _render(
    template: str,
    placeholders: Sequence[Placeholder],
    arguments: Sequence[Any],
    config: QueryConfig,
) -> str:
    if len(arguments) < len(placeholders):
        raise ArgumentError(len(placeholders), len(arguments))
    if not placeholders:
        return template

    parts = []
    cursor = 0
    for placeholder, argument in zip(placeholders, arguments):
        parts.append(template[cursor:placeholder.start])
        parts.append(
            quote_argument(
                argument,
                strip_quotes=config.strip_argument_quotes,
                escape_embedded_quotes=config.escape_embedded_quotes,
            )
        )
        cursor = placeholder.end
    parts.append(template[cursor:])
    return "".join(parts)


def substitute(
    template: str,
    arguments: Sequence[Any] = (),
    config: Optional[QueryConfig] = None,
) -> str:
    """Fill the placeholders of an XPath template by position.

    Placeholders are always located in the original template, never in text
    produced by substitution. Unused extra arguments are ignored.

    Args:
        template: XPath template
        arguments: Values for the placeholders, in order
        config: Sigil and quoting options

    Returns:
        The concrete XPath; the template itself when it has no placeholders

    Raises:
        ArgumentError: If there are fewer arguments than placeholders

    Example:
        >>> substitute("A[@id = $id and @ref = $ref]", ["1", "2"])
        'A[@id = "1" and @ref = "2"]'
    """
    config = config or QueryConfig()
    arguments = list(arguments)
    placeholders = find_placeholders(template, config.sigil)
    logger.debug(
        "Substituting XPath arguments",
        extra={"placeholders": len(placeholders), "arguments": len(arguments)},
    )
    return _render(template, placeholders, arguments, config)


@dataclass(frozen=True)
class XPathTemplate:
    """Pre-scanned template that can be rendered many times.

    Example:
        >>> coverage = XPathTemplate("//PersVeh[@id = $veh]/Coverage")
        >>> coverage.render("Veh1")
        '//PersVeh[@id = "Veh1"]/Coverage'
    """

    template: str
    config: QueryConfig = field(default_factory=QueryConfig)
    placeholders: Tuple[Placeholder, ...] = field(init=False, repr=False)

    def __post_init__(self) -> None:
        object.__setattr__(
            self,
            "placeholders",
            tuple(find_placeholders(self.template, self.config.sigil)),
        )

    @property
    def placeholder_names(self) -> List[str]:
        return [placeholder.name for placeholder in self.placeholders]

    def render(self, *arguments: Any) -> str:
        """Substitute ``arguments`` into the template.

        Raises:
            ArgumentError: If there are fewer arguments than placeholders
        """
        return _render(self.template, self.placeholders, arguments, self.config)

    def __str__(self) -> str:
        return self.template
