# coding: utf-8

"""log2rec.delimited splits delimiter-separated lines (like TSV) into fields.

This is a naive splitter: quotes and escapes are not supported.
Delimiters or line feeds in field values are not distinguishable from
real separators, and break that field and the following ones.
Use delimiters that never appear in the values (e.g., tab).
"""

import logging

from . import _common
from .grammar import Grammar, capture

_logger = logging.getLogger(__name__)

_KEY_TIMESTAMP = "timestamp"
_LINE_FEED = "\n"


def split_names(names, delimiter):
    """Split a delimiter-separated list of field names."""
    return list(iter_segments(names, delimiter))


def iter_segments(line, delimiter):
    """Yield segments of a line from left to right.

    The last segment ends at the first line feed or the end of line.
    A line ending with a delimiter does not yield an empty last segment.
    """
    pos = 0
    length = len(line)
    while pos < length:
        found = line.find(delimiter, pos)
        if found >= 0:
            yield line[pos:found]
            pos = found + len(delimiter)
        else:
            end = line.find(_LINE_FEED, pos)
            if end < 0:
                end = length
            yield line[pos:end]
            return


class DelimitedSplitter:
    """Split lines into named fields.

    Field names are given positionally.
    If the names are exhausted (or not given), the fields are
    named as ``field_<n>`` (n starts from 1).

    One column can be a timestamp. The column is matched with
    the timestamp pattern, and if matched, it becomes the timestamp
    (and is not included in the fields).
    If not matched, it is kept as an ordinary field.

    Example:
        >>> DelimitedSplitter(",").split("a,b,c")
        ({'field_1': 'a', 'field_2': 'b', 'field_3': 'c'}, None)

    Args:
        delimiter (str, optional): Field delimiter. Defaults to ",".
        field_names (str or list of str, optional): Field names.
            A string is split with the delimiter.
        timestamp_index (int, optional): 1-based index of
            the timestamp column.
        timestamp_pattern (Pattern, optional): Pattern producing
            a timestamp, e.g., :meth:`~log2rec.timestamp.TimestampParser.strftime`.
            Both timestamp_index and timestamp_pattern are required
            to parse the timestamp; if only one is given, both are ignored.
    """

    def __init__(self, delimiter=",", field_names=None,
                 timestamp_index=None, timestamp_pattern=None):
        if not delimiter:
            raise _common.ParserDefinitionError("empty field delimiter")
        self._delimiter = delimiter

        if field_names is None:
            self._names = []
        elif isinstance(field_names, str):
            self._names = split_names(field_names, delimiter)
        else:
            self._names = list(field_names)

        if (timestamp_index is None) != (timestamp_pattern is None):
            _logger.warning("timestamp column and timestamp format "
                            "must be given together; "
                            "timestamp parsing is disabled")
            timestamp_index = None
            timestamp_pattern = None
        self._ts_index = timestamp_index
        if timestamp_pattern is None:
            self._ts_grammar = None
        else:
            self._ts_grammar = Grammar(capture(_KEY_TIMESTAMP,
                                               timestamp_pattern))

    @property
    def field_names(self):
        return list(self._names)

    def field_name(self, index):
        """Field name of the 1-based column index."""
        if index <= len(self._names):
            return self._names[index - 1]
        return "field_{0}".format(index)

    def split(self, line):
        """Split a line.

        Args:
            line (str)

        Returns:
            tuple: dict of fields, and timestamp (int ns or None).
        """
        fields = {}
        timestamp = None
        for i, segment in enumerate(iter_segments(line, self._delimiter),
                                    start=1):
            if i == self._ts_index:
                d = self._ts_grammar.match(segment)
                if d is not None:
                    timestamp = d[_KEY_TIMESTAMP]
                    continue
            fields[self.field_name(i)] = segment
        return fields, timestamp
