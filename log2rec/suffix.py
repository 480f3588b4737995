# coding: utf-8

"""log2rec.suffix extracts optional annotations appended
to the end of log lines, like ``, client: 192.0.2.1, server: example.com``
in Nginx error logs."""

from . import _common
from .grammar import (Grammar, byte_class, capture, literal, rest,
                      sequence, until)

_KEY_RESIDUAL = "_residual"
_KEY_VALUE = "value"

_quoted = Grammar(sequence(literal('"'),
                           capture(_KEY_VALUE, until(byte_class('"\n')))),
                  full=False)


def unquote(value):
    """Get the interior of a double-quoted value.

    If value starts with a double quote, returns the text after it
    up to the next double quote or line feed (or the end).
    Otherwise value is returned as is.
    """
    d = _quoted.match(value)
    if d is None:
        return value
    return d[_KEY_VALUE]


class SuffixExtractor:
    """Peel optional trailing annotations off a text one by one.

    Each annotation starts with a unique marker (e.g., ", client: ").
    For each (marker, field) pair in the given order,
    the first occurrence of the marker in the current residual text
    is searched from the left. If found, the text after the marker
    becomes the field value (unquoted with :func:`unquote`),
    and the text before the marker becomes the new residual text.
    If not found, the field is left unset.

    The order of pairs matters: give the outermost (rightmost)
    annotation first. If the marker of an inner annotation can appear
    in the value of an outer one, the inner annotation extracted first
    swallows the outer one.

    Example:
        >>> ext = SuffixExtractor([(", server: ", "server"), (", client: ", "client")])
        >>> ext.extract("refused, client: 192.0.2.1, server: example.com")
        ({'server': 'example.com', 'client': '192.0.2.1'}, 'refused')

    Args:
        pairs (list of tuple): (marker, field name) pairs.
    """

    def __init__(self, pairs):
        self._rules = []
        names = []
        for marker, name in pairs:
            if name == _KEY_RESIDUAL:
                msg = "field name {0} is reserved".format(name)
                raise _common.ParserDefinitionError(msg)
            pattern = sequence(capture(_KEY_RESIDUAL, until(marker)),
                               literal(marker),
                               capture(name, rest()))
            self._rules.append((name, Grammar(pattern)))
            names.append(name)
        if len(names) > len(set(names)):
            msg = "duplicated field names: {0}".format(names)
            raise _common.ParserDefinitionError(msg)

    @property
    def field_names(self):
        return [name for name, _ in self._rules]

    def extract(self, text):
        """Extract annotations from the text.

        Args:
            text (str): residual text of a matched line.

        Returns:
            tuple: dict of the extracted fields,
            and the remaining text (used as payload).
        """
        fields = {}
        residual = text
        for name, grammar in self._rules:
            d = grammar.match(residual)
            if d is None:
                continue
            fields[name] = unquote(d[name])
            residual = d[_KEY_RESIDUAL]
        return fields, residual
