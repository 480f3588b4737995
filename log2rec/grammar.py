# coding: utf-8

"""log2rec.grammar is a small library of matching primitives
used to describe the textual format of log lines.

A grammar is composed of :class:`Pattern` objects.
The semantics are those of parsing expression grammars:
choices are ordered (the first matching alternative wins),
repetitions are greedy, and a pattern that once matched
is never re-tried in another way when a later pattern fails.
Grammar authors compensate with :func:`choice` and :func:`until`.

Patterns work on :obj:`str`. Raw byte lines are decoded
with the ``surrogateescape`` error handler before matching,
so that one input byte is always one character position
(see :meth:`log2rec.Decoder.decode`).

Example:
    >>> from log2rec.grammar import *
    >>> p = sequence("[", capture("level", until("]")), "] ", integer("pid"))
    >>> Grammar(p).match("[error] 123")
    {'level': 'error', 'pid': 123}
"""

import string
from abc import ABC, abstractmethod

from . import _common

# the value of patterns that do not produce their own value;
# an enclosing capture records the consumed substring instead
_NOVALUE = object()

# exceptions of value transform functions considered as mismatch
_CONVERSION_ERRORS = (ValueError, TypeError, KeyError, OverflowError)


def _promote(obj):
    if isinstance(obj, Pattern):
        return obj
    elif isinstance(obj, str):
        return Literal(obj)
    else:
        msg = "{0!r} is not available as a grammar pattern".format(obj)
        raise _common.ParserDefinitionError(msg)


class Pattern(ABC):
    """Base class of grammar primitives.

    Patterns are immutable after construction, and can be shared
    by multiple grammars.

    Operators are available as shorthands:
    ``a + b`` is :func:`sequence` and ``a | b`` is :func:`choice`.
    Strings in such expressions are converted to :class:`Literal`.
    """

    @abstractmethod
    def _match(self, text, pos, caps):
        """Try matching at the position.

        A failed match must leave caps as it was.

        Args:
            text (str): Input text.
            pos (int): Cursor position.
            caps (list of tuple): Trail of (name, value) captures.

        Returns:
            tuple: End position and the produced value
            (:obj:`_NOVALUE` if nothing produced),
            or None if not matched.
        """
        raise NotImplementedError

    def match(self, text, pos=0):
        """Match this pattern at a position (prefix match).

        Args:
            text (str): Input text.
            pos (int, optional): Start position.

        Returns:
            tuple: End position and the capture mapping,
            or None if not matched.
        """
        caps = []
        ret = self._match(text, pos, caps)
        if ret is None:
            return None
        return ret[0], dict(caps)

    def test(self, string):
        """Test this pattern matches the whole input string or not.
        Note that this function is only for debugging your grammar
        (because it generates a :class:`Grammar` for every call).

        Args:
            string: Input string to test matching.

        Returns:
            dict or None: capture mapping if matched.
        """
        return Grammar(self).match(string)

    def __add__(self, other):
        return Sequence(self, other)

    def __radd__(self, other):
        return Sequence(other, self)

    def __or__(self, other):
        return Choice(self, other)

    def __ror__(self, other):
        return Choice(other, self)


class Literal(Pattern):
    """Match exactly the given text."""

    def __init__(self, text):
        if not isinstance(text, str) or text == "":
            msg = "literal requires a non-empty string, got {0!r}".format(text)
            raise _common.ParserDefinitionError(msg)
        self._text = text

    @property
    def text(self):
        return self._text

    def _match(self, text, pos, caps):
        if text.startswith(self._text, pos):
            return pos + len(self._text), _NOVALUE
        return None

    def __repr__(self):
        return "Literal({0!r})".format(self._text)


class ByteClass(Pattern):
    """Match exactly one character satisfying a condition.

    Args:
        allowed (str or callable): Allowed characters,
            or a predicate that receives one character.
    """

    def __init__(self, allowed):
        if isinstance(allowed, str):
            if allowed == "":
                raise _common.ParserDefinitionError("empty character set")
            self._pred = frozenset(allowed).__contains__
        elif callable(allowed):
            self._pred = allowed
        else:
            msg = "byte class requires a string or a predicate"
            raise _common.ParserDefinitionError(msg)

    def _match(self, text, pos, caps):
        if pos < len(text) and self._pred(text[pos]):
            return pos + 1, _NOVALUE
        return None


class Sequence(Pattern):
    """Match all patterns one after another."""

    def __init__(self, *patterns):
        self._patterns = []
        for p in patterns:
            p = _promote(p)
            if isinstance(p, Sequence):
                self._patterns += p._patterns
            else:
                self._patterns.append(p)
        if len(self._patterns) == 0:
            raise _common.ParserDefinitionError("empty sequence")

    def _match(self, text, pos, caps):
        mark = len(caps)
        current = pos
        for p in self._patterns:
            ret = p._match(text, current, caps)
            if ret is None:
                del caps[mark:]
                return None
            current = ret[0]
        return current, _NOVALUE


class Choice(Pattern):
    """Ordered choice: the first matching alternative wins.

    The order of alternatives is a part of the grammar.
    If some alternatives share a prefix,
    the longer (more specific) one should come first.
    """

    def __init__(self, *patterns):
        self._patterns = []
        for p in patterns:
            p = _promote(p)
            if isinstance(p, Choice):
                self._patterns += p._patterns
            else:
                self._patterns.append(p)
        if len(self._patterns) == 0:
            raise _common.ParserDefinitionError("empty choice")

    def _match(self, text, pos, caps):
        for p in self._patterns:
            ret = p._match(text, pos, caps)
            if ret is not None:
                return ret
        return None


class Repeat(Pattern):
    """Greedy repetition without backtracking.

    Args:
        pattern (Pattern): repeated pattern.
        minimum (int): least number of repetitions.
        maximum (int, optional): most number of repetitions.
            Unlimited if not given.
    """

    def __init__(self, pattern, minimum=0, maximum=None):
        if minimum < 0 or (maximum is not None and maximum < max(minimum, 1)):
            msg = "invalid repetition range: {0}..{1}".format(minimum, maximum)
            raise _common.ParserDefinitionError(msg)
        self._pattern = _promote(pattern)
        self._min = minimum
        self._max = maximum

    def _match(self, text, pos, caps):
        mark = len(caps)
        current = pos
        count = 0
        value = _NOVALUE
        while self._max is None or count < self._max:
            ret = self._pattern._match(text, current, caps)
            if ret is None:
                break
            count += 1
            end, value = ret
            if end == current:
                # empty match: repeating it again makes no progress
                break
            current = end
        if count < self._min:
            del caps[mark:]
            return None
        if self._max == 1 and count == 1:
            # optional pattern passes through the value
            return current, value
        return current, _NOVALUE


class Until(Pattern):
    """Match the longest run of characters in which
    the marker does not match at any position.
    Always succeeds (possibly with an empty run).

    Args:
        marker (str or Pattern): A string marker is searched
            as a literal with :meth:`str.find`.
    """

    def __init__(self, marker):
        self._marker = _promote(marker)

    def _match(self, text, pos, caps):
        if isinstance(self._marker, Literal):
            end = text.find(self._marker.text, pos)
            if end < 0:
                end = len(text)
            return end, _NOVALUE

        scratch = []
        end = pos
        length = len(text)
        while end < length and self._marker._match(text, end, scratch) is None:
            end += 1
        return end, _NOVALUE


class Rest(Pattern):
    """Match everything up to the end of input."""

    def _match(self, text, pos, caps):
        return len(text), _NOVALUE


class Capture(Pattern):
    """Record the value of a pattern with a name.

    The recorded value is the one produced by the inner pattern
    (e.g., by :class:`Transform`), or the consumed substring
    if the inner pattern produces nothing.
    """

    def __init__(self, name, pattern):
        self._name = name
        self._pattern = _promote(pattern)

    @property
    def name(self):
        return self._name

    def _match(self, text, pos, caps):
        ret = self._pattern._match(text, pos, caps)
        if ret is None:
            return None
        end, value = ret
        if value is _NOVALUE:
            value = text[pos:end]
        caps.append((self._name, value))
        return end, _NOVALUE


class Transform(Pattern):
    """Produce a value by applying a function to the consumed substring.

    If the function raises ValueError (or TypeError, KeyError,
    OverflowError), the pattern is considered not matched.
    """

    def __init__(self, pattern, func):
        self._pattern = _promote(pattern)
        self._func = func

    def _match(self, text, pos, caps):
        mark = len(caps)
        ret = self._pattern._match(text, pos, caps)
        if ret is None:
            return None
        end = ret[0]
        try:
            value = self._func(text[pos:end])
        except _CONVERSION_ERRORS:
            del caps[mark:]
            return None
        return end, value


class Components(Pattern):
    """Produce a value from the named captures inside a pattern.

    The inner pattern runs in a fresh capture scope,
    and the function receives the scope as a dict.
    The inner captures are not visible from outside.
    Conversion failures are handled same as :class:`Transform`.
    """

    def __init__(self, pattern, func):
        self._pattern = _promote(pattern)
        self._func = func

    def _match(self, text, pos, caps):
        scope = []
        ret = self._pattern._match(text, pos, scope)
        if ret is None:
            return None
        try:
            value = self._func(dict(scope))
        except _CONVERSION_ERRORS:
            return None
        return ret[0], value


class Grammar:
    """Top-level matching expression of a log format.

    A Grammar is built once (usually when a decoder is initialized),
    and used for every input line.

    Args:
        pattern (Pattern or str): matching expression.
        full (bool, optional): If true (default), the whole input
            need to be consumed. Otherwise, a prefix match is enough.
    """

    def __init__(self, pattern, full=True):
        self._pattern = _promote(pattern)
        self._full = full

    @property
    def pattern(self):
        return self._pattern

    def match(self, line):
        """Match a line with this grammar.

        Args:
            line (str): input text.

        Returns:
            dict or None: capture mapping, or None if mismatched.
        """
        caps = []
        ret = self._pattern._match(line, 0, caps)
        if ret is None:
            return None
        if self._full and ret[0] != len(line):
            return None
        return dict(caps)


# primitive constructors

def literal(text):
    return Literal(text)


def byte_class(allowed):
    return ByteClass(allowed)


def byte_range(low, high):
    """One character between low and high (inclusive)."""
    return ByteClass(lambda c: low <= c <= high)


def none_of(chars):
    """One character not included in chars."""
    excluded = frozenset(chars)
    return ByteClass(lambda c: c not in excluded)


def sequence(*patterns):
    return Sequence(*patterns)


def choice(*patterns):
    return Choice(*patterns)


def repeat_min(pattern, n):
    """Greedy repetition, n times or more."""
    return Repeat(pattern, minimum=n)


def optional(pattern):
    return Repeat(pattern, minimum=0, maximum=1)


def until(marker):
    return Until(marker)


def rest():
    return Rest()


def capture(name, pattern):
    return Capture(name, pattern)


def transform(pattern, func):
    return Transform(pattern, func)


def components(pattern, func):
    return Components(pattern, func)


# character classes (ASCII only)
DIGIT = ByteClass(string.digits)
ALPHA = ByteClass(string.ascii_letters)
ALNUM = ByteClass(string.ascii_letters + string.digits)
XDIGIT = ByteClass(string.hexdigits)
SPACE = ByteClass(string.whitespace)
ANY = ByteClass(lambda c: True)


def digits():
    return repeat_min(DIGIT, 1)


def integer(name):
    """Capture decimal digits as int."""
    return capture(name, transform(digits(), int))


def decimal(name):
    """Capture a decimal fraction like 0.015 as float."""
    return capture(name, transform(sequence(digits(), ".", digits()), float))


def word(name, allowed):
    """Capture one or more characters in allowed."""
    return capture(name, repeat_min(ByteClass(allowed), 1))


def mapped(pairs):
    """Ordered choice of keywords, producing the mapped values.

    Args:
        pairs (list of tuple): (keyword, value) in the matching order.

    Example:
        >>> p = capture("level", mapped([("warning", 4), ("warn", 4)]))
        >>> p.test("warn")
        {'level': 4}
    """
    pairs = list(pairs)
    table = dict(pairs)
    return transform(choice(*[keyword for keyword, _ in pairs]),
                     table.__getitem__)
