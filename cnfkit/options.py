"""Command-line options of the form ``-name=value`` and ``-flag``/``-no-flag``."""

from __future__ import annotations

import math
import re
import sys
from abc import ABC, abstractmethod
from dataclasses import dataclass

INT32_MIN = -(2**31)
INT32_MAX = 2**31 - 1
INT64_MIN = -(2**63)
INT64_MAX = 2**63 - 1

_FLOAT_RE = re.compile(
    r"\s*([+-]?(?:inf(?:inity)?|nan|(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?))",
    re.IGNORECASE,
)
_INT_RE = re.compile(r"\s*([+-]?)(\d+)")


class OptionError(ValueError):
    """Raised for an option value out of range or an unknown flag."""


@dataclass(frozen=True)
class IntRange:
    begin: int = INT32_MIN
    end: int = INT32_MAX


@dataclass(frozen=True)
class Int64Range:
    begin: int = INT64_MIN
    end: int = INT64_MAX


@dataclass(frozen=True)
class DoubleRange:
    begin: float = -math.inf
    begin_inclusive: bool = False
    end: float = math.inf
    end_inclusive: bool = False


def _strtod(text: str) -> float:
    """Read the longest leading float of ``text``; 0.0 when there is none."""
    match = _FLOAT_RE.match(text)
    return float(match.group(1)) if match else 0.0


def _strtol(text: str) -> int:
    """Read the leading integer of ``text``, saturated to 64 bits; 0 when none."""
    match = _INT_RE.match(text)
    if not match:
        return 0
    sign, digits = match.groups()
    negative = sign == "-"
    if len(digits.lstrip("0")) > 20:
        return INT64_MIN if negative else INT64_MAX
    value = -int(digits) if negative else int(digits)
    return max(INT64_MIN, min(INT64_MAX, value))


def _wrap32(value: int) -> int:
    return ((value + 2**31) % 2**32) - 2**31


def _too_large(text: str, name: str) -> OptionError:
    return OptionError(f'ERROR! value <{text}> is too large for option "{name}".')


def _too_small(text: str, name: str) -> OptionError:
    return OptionError(f'ERROR! value <{text}> is too small for option "{name}".')


class Option(ABC):
    """A named option that registers itself in a registry on creation."""

    type_name = ""

    def __init__(self, name, description, category, value, registry=None):
        self.name = name
        self.description = description
        self.category = category
        self.value = value
        target = default_registry if registry is None else registry
        target.register(self)

    def _value_text(self, text: str):
        prefix = f"-{self.name}="
        return text[len(prefix):] if text.startswith(prefix) else None

    def _details(self, verbose: bool) -> str:
        return f"\n        {self.description}\n\n" if verbose else ""

    @abstractmethod
    def parse(self, text):
        """Consume ``text`` if it sets this option; return whether it did."""

    @abstractmethod
    def help(self, verbose=False):
        """Return the help lines describing this option."""


class DoubleOption(Option):
    type_name = "<double>"

    def __init__(self, category, name, description, default=0.0,
                 value_range=DoubleRange(), *, registry=None):
        self.range = value_range
        super().__init__(name, description, category, float(default), registry)

    def parse(self, text):
        rest = self._value_text(text)
        if rest is None:
            return False
        tmp = _strtod(rest)
        r = self.range
        if tmp >= r.end and (not r.end_inclusive or tmp != r.end):
            raise _too_large(rest, self.name)
        if tmp <= r.begin and (not r.begin_inclusive or tmp != r.begin):
            raise _too_small(rest, self.name)
        self.value = tmp
        return True

    def help(self, verbose=False):
        r = self.range
        line = "  -%-12s = %-8s %s%4.2g .. %4.2g%s (default: %g)\n" % (
            self.name,
            self.type_name,
            "[" if r.begin_inclusive else "(",
            r.begin,
            r.end,
            "]" if r.end_inclusive else ")",
            self.value,
        )
        return line + self._details(verbose)


class IntOption(Option):
    type_name = "<int32>"

    def __init__(self, category, name, description, default=0,
                 value_range=IntRange(), *, registry=None):
        self.range = value_range
        super().__init__(name, description, category, int(default), registry)

    def parse(self, text):
        rest = self._value_text(text)
        if rest is None:
            return False
        tmp = _wrap32(_strtol(rest))
        if tmp > self.range.end:
            raise _too_large(rest, self.name)
        if tmp < self.range.begin:
            raise _too_small(rest, self.name)
        self.value = tmp
        return True

    def help(self, verbose=False):
        low = "imin" if self.range.begin == INT32_MIN else "%4d" % self.range.begin
        high = "imax" if self.range.end == INT32_MAX else "%4d" % self.range.end
        line = "  -%-12s = %-8s [%s .. %s] (default: %d)\n" % (
            self.name, self.type_name, low, high, self.value)
        return line + self._details(verbose)


class Int64Option(Option):
    type_name = "<int64>"

    def __init__(self, category, name, description, default=0,
                 value_range=Int64Range(), *, registry=None):
        self.range = value_range
        super().__init__(name, description, category, int(default), registry)

    def parse(self, text):
        rest = self._value_text(text)
        if rest is None:
            return False
        tmp = _strtol(rest)
        if tmp > self.range.end:
            raise _too_large(rest, self.name)
        if tmp < self.range.begin:
            raise _too_small(rest, self.name)
        self.value = tmp
        return True

    def help(self, verbose=False):
        low = "imin" if self.range.begin == INT64_MIN else "%4d" % self.range.begin
        high = "imax" if self.range.end == INT64_MAX else "%4d" % self.range.end
        line = "  -%-12s = %-8s [%s .. %s] (default: %d)\n" % (
            self.name, self.type_name, low, high, self.value)
        return line + self._details(verbose)


class StringOption(Option):
    type_name = "<string>"

    def __init__(self, category, name, description, default=None, *, registry=None):
        super().__init__(name, description, category, default, registry)

    def parse(self, text):
        rest = self._value_text(text)
        if rest is None:
            return False
        self.value = rest
        return True

    def help(self, verbose=False):
        return "  -%-10s = %8s\n" % (self.name, self.type_name) + self._details(verbose)


class BoolOption(Option):
    type_name = "<bool>"

    def __init__(self, category, name, description, default, *, registry=None):
        super().__init__(name, description, category, bool(default), registry)

    def parse(self, text):
        if not text.startswith("-"):
            return False
        rest = text[1:]
        value = True
        if rest.startswith("no-"):
            rest = rest[3:]
            value = False
        if rest == self.name:
            self.value = value
            return True
        return False

    def help(self, verbose=False):
        padding = " " * max(0, 32 - 2 * len(self.name))
        line = "  -%s, -no-%s%s (default: %s)\n" % (
            self.name, self.name, padding, "on" if self.value else "off")
        return line + self._details(verbose)


class OptionRegistry:
    """A set of options together with the usage text that describes them."""

    def __init__(self, usage_text=None, help_prefix=""):
        self.options: list[Option] = []
        self.usage_text = usage_text
        self.help_prefix = help_prefix

    def register(self, option):
        self.options.append(option)
        return option

    def parse_options(self, argv, strict=False):
        """Apply every recognised option in ``argv``; return the rest.

        The first element is the program name and is always kept. A help
        flag prints the usage to stderr and exits.
        """
        args = list(argv)
        if not args:
            return []
        program = args[0]
        remaining = [program]
        help_flag = f"--{self.help_prefix}help"
        for arg in args[1:]:
            if arg.startswith(help_flag):
                tail = arg[len(help_flag):]
                if not tail:
                    self._exit_with_usage(program, False)
                elif tail.startswith("-verb"):
                    self._exit_with_usage(program, True)
                continue
            if any(option.parse(arg) for option in self.options):
                continue
            if strict and arg.startswith("-"):
                raise OptionError(
                    f"ERROR! Unknown flag \"{arg}\". "
                    f"Use '--{self.help_prefix}help' for help."
                )
            remaining.append(arg)
        return remaining

    def usage(self, program, verbose=False):
        """Return the full help text, options grouped by category and type."""
        parts = []
        if self.usage_text is not None:
            parts.append(self.usage_text.replace("%s", program, 1))
        prev_category = prev_type = None
        for option in sorted(self.options, key=lambda o: (o.category, o.type_name)):
            if option.category != prev_category:
                parts.append(f"\n{option.category} OPTIONS:\n\n")
            elif option.type_name != prev_type:
                parts.append("\n")
            parts.append(option.help(verbose))
            prev_category, prev_type = option.category, option.type_name
        prefix = self.help_prefix
        parts.append("\nHELP OPTIONS:\n\n")
        parts.append(f"  --{prefix}help        Print help message.\n")
        parts.append(f"  --{prefix}help-verb   Print verbose help message.\n")
        parts.append("\n")
        return "".join(parts)

    def _exit_with_usage(self, program, verbose):
        sys.stderr.write(self.usage(program, verbose))
        raise SystemExit(0)


default_registry = OptionRegistry()


def parse_options(argv=None, strict=False):
    """Parse ``argv`` (``sys.argv`` by default) against the default registry."""
    return default_registry.parse_options(sys.argv if argv is None else argv, strict)


def print_usage_and_exit(argv=None, verbose=False):
    """Print the default registry's usage to stderr and exit with status 0."""
    args = sys.argv if argv is None else argv
    program = args[0] if args else ""
    default_registry._exit_with_usage(program, verbose)


def set_usage_help(text):
    default_registry.usage_text = text


def set_help_prefix_str(text):
    default_registry.help_prefix = text