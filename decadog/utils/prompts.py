"""
Interactive prompts for operator workflows.

The sprint engine never calls click directly. It receives a ``Prompter`` and
asks it for lines of input, confirmations and choices, so tests can drive a
whole triage session with a scripted prompter.

Key Exports:
    Prompter: Protocol the engine depends on.
    ClickPrompter: Terminal implementation using click.
    SelectOptions: Ordered options for a numbered single choice.
    FuzzyOptions: Options for a filter-as-you-type style choice.
"""

from collections.abc import Iterable, Iterator
from typing import Generic, Protocol, TypeVar

import click

from decadog.exceptions import UserInputError

V = TypeVar("V")


class SelectOptions(Generic[V]):
    """Options keyed by their display text, in the order given.

    Raises:
        UserInputError: If there are no options to choose from.
    """

    def __init__(self, values: Iterable[V]) -> None:
        self._lookup: dict[str, V] = {}
        for value in values:
            self._lookup.setdefault(str(value), value)
        if not self._lookup:
            raise UserInputError("Select requires at least 1 option.")

    def labels(self) -> list[str]:
        return list(self._lookup)

    def value_at(self, index: int) -> V:
        """Value at a zero-based position."""
        return list(self._lookup.values())[index]

    def __len__(self) -> int:
        return len(self._lookup)


class FuzzyOptions(Generic[V]):
    """Options keyed by a human readable description.

    ``kind`` names the options in errors, e.g. "Unknown pipeline choice 'x'".
    """

    def __init__(self, items: Iterable[tuple[str, V]], kind: str = "option") -> None:
        self._lookup: dict[str, V] = dict(items)
        self.kind = kind

    def keys(self) -> list[str]:
        return list(self._lookup)

    def get(self, key: str) -> V:
        """Look up a chosen key.

        Raises:
            UserInputError: If ``key`` is not one of the options.
        """
        try:
            return self._lookup[key]
        except KeyError:
            raise UserInputError(f"Unknown {self.kind} choice '{key}'") from None

    def __iter__(self) -> Iterator[str]:
        return iter(self._lookup)

    def __len__(self) -> int:
        return len(self._lookup)


class Prompter(Protocol):
    """Blocking operator interaction used by the sprint engine.

    Every method blocks until the operator answers. Cancelling (Ctrl-C)
    raises ``click.Abort`` and is never treated as an answer.
    """

    def echo(self, message: str = "") -> None:
        """Show a line of output to the operator."""
        ...

    def input(self, text: str) -> str:
        """Ask for a line of text."""
        ...

    def confirm(self, text: str, default: bool = True) -> bool:
        """Ask a yes/no question."""
        ...

    def select(self, text: str, options: SelectOptions[V]) -> V:
        """Ask for one of a numbered list of options."""
        ...

    def fuzzy_select(self, text: str, options: FuzzyOptions[V]) -> V:
        """Ask for one option by filtering on its description.

        Raises:
            UserInputError: If the operator's choice matches no option.
        """
        ...


def fuzzy_matches(query: str, candidates: Iterable[str]) -> list[str]:
    """Candidates containing the characters of ``query`` in order.

    Matching ignores case. An exact (case-insensitive) match is returned on
    its own.

    Example:
        >>> fuzzy_matches("inpr", ["In Progress", "Done", "Icebox"])
        ['In Progress']
    """
    needle = query.strip().lower()
    candidates = list(candidates)

    exact = [candidate for candidate in candidates if candidate.lower() == needle]
    if exact:
        return exact[:1]

    matches = []
    for candidate in candidates:
        remaining = iter(candidate.lower())
        if all(char in remaining for char in needle):
            matches.append(candidate)
    return matches


class ClickPrompter:
    """Terminal prompter built on ``click.prompt`` and ``click.confirm``."""

    def echo(self, message: str = "") -> None:
        click.echo(message)

    def input(self, text: str) -> str:
        return click.prompt(text, type=str).strip()

    def confirm(self, text: str, default: bool = True) -> bool:
        return click.confirm(text, default=default)

    def select(self, text: str, options: SelectOptions[V]) -> V:
        for index, label in enumerate(options.labels(), start=1):
            click.echo(f"  {index}. {label}")
        choice = click.prompt(text, type=click.IntRange(1, len(options)), default=1)
        return options.value_at(choice - 1)

    def fuzzy_select(self, text: str, options: FuzzyOptions[V]) -> V:
        query = click.prompt(f"{text} (type to filter)", type=str, default="", show_default=False)
        matches = fuzzy_matches(query, options.keys())

        if len(matches) == 1:
            return options.get(matches[0])
        if not matches:
            return options.get(query)

        for index, key in enumerate(matches, start=1):
            click.echo(f"  {index}. {key}")
        choice = click.prompt(text, type=click.IntRange(1, len(matches)), default=1)
        return options.get(matches[choice - 1])
