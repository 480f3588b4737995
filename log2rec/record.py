# coding: utf-8

"""log2rec.record defines the normalized output record
and the rules to assemble it from a capture mapping."""

import collections
import types

from . import _common
from .timestamp import ns_to_datetime, seconds_to_ns

TRUNCATION_MARKER = "..."

_HEADER_KEYS = (_common.KEY_TIMESTAMP, _common.KEY_SEVERITY,
                _common.KEY_PROCESS_ID, _common.KEY_HOSTNAME,
                _common.KEY_PAYLOAD)


class Record(collections.namedtuple(
        "Record", ["timestamp", "type", "severity", "process_id",
                   "hostname", "payload", "fields"])):
    """Normalized log record.

    Attributes:
        timestamp (int): nanoseconds since epoch, or None.
        type (str): configured label, or None.
        severity (int): syslog-style severity (0-7), or None.
        process_id (int): or None.
        hostname (str): or None.
        payload (str): free text not captured into fields, or None.
        fields (mapping): field name to int, float or str.
            Absent fields are omitted (never None).
    """
    __slots__ = ()

    def datetime(self, tz=None):
        """Get timestamp as aware datetime.datetime (or None)."""
        if self.timestamp is None:
            return None
        return ns_to_datetime(self.timestamp, tz)

    def as_dict(self):
        d = self._asdict()
        d["fields"] = dict(self.fields)
        return d


def truncate_payload(payload, limit):
    """Truncate payload in bytes (UTF-8), and append "...".

    A positive limit keeps the first limit bytes,
    and a negative limit removes the last abs(limit) bytes.
    Payloads not longer than a positive limit are returned as is.
    Multi-byte characters can be split; the split bytes are kept
    as surrogate escapes.

    Example:
        >>> truncate_payload("SELECT 1 FROM dual", 8)
        'SELECT 1...'
        >>> truncate_payload("SELECT 1 FROM dual", -10)
        'SELECT 1...'

    Args:
        payload (str or None)
        limit (int or None): None means no truncation.
    """
    if payload is None or limit is None:
        return payload
    raw = payload.encode("utf-8", "surrogateescape")
    if limit >= 0:
        if len(raw) <= limit:
            return payload
        raw = raw[:limit]
    else:
        raw = raw[:max(len(raw) + limit, 0)]
    return raw.decode("utf-8", "surrogateescape") + TRUNCATION_MARKER


def log_start(timestamp, duration, enabled=True):
    """Estimate when a logged operation started.

    Args:
        timestamp (int): finish timestamp in nanoseconds.
        duration (int or float): elapsed time in seconds.
        enabled (bool): If false, timestamp is returned as is.
    """
    if not enabled or timestamp is None or duration is None:
        return timestamp
    return timestamp - seconds_to_ns(duration)


class RecordAssembler:
    """Assemble :class:`Record` from a capture mapping.

    The same assembler is used for every line of a decoder,
    and each call generates a new Record;
    values of previous lines never remain in the new one.

    Args:
        msg_type (str, optional): type label of the records.
        header (dict, optional): record attribute name
            (timestamp, severity, process_id, hostname, payload)
            to capture name. The captures are moved out of fields.
        drop (list of str, optional): captures not exposed as fields
            (e.g., helper values only used to build the timestamp).
        rename (dict, optional): capture name to field name.
        derived (dict, optional): field name to a function
            that receives the capture mapping.
            Applied before drop; None results are omitted.
        duration (str, optional): capture name of the elapsed time
            (in seconds) subtracted from the timestamp.
        truncate_bytes (int, optional): payload truncation limit.
            See :func:`truncate_payload`.
        log_query_start (bool, optional): enable the subtraction
            of the duration. Defaults to True.
    """

    def __init__(self, msg_type=None, header=None, drop=None, rename=None,
                 derived=None, duration=None, truncate_bytes=None,
                 log_query_start=True):
        self._type = msg_type
        self._header = dict(header) if header is not None else dict()
        for key in self._header:
            if key not in _HEADER_KEYS:
                msg = "{0} is not a record header".format(key)
                raise _common.ParserDefinitionError(msg)
        self._drop = set(drop) if drop is not None else set()
        self._rename = dict(rename) if rename is not None else dict()
        self._derived = dict(derived) if derived is not None else dict()
        self._duration = duration
        self._truncate = truncate_bytes
        self._log_query_start = log_query_start

    def assemble(self, captures, **header):
        """Generate a record.

        Args:
            captures (dict): capture mapping of a matched line.
            **header: record header values given directly,
                prior to the header mapping
                (e.g., timestamp found by an external splitter).

        Returns:
            :class:`Record`
        """
        d = dict(captures)
        for name, func in self._derived.items():
            d[name] = func(captures)

        values = {}
        for key, name in self._header.items():
            values[key] = d.pop(name, None)
        for key, val in header.items():
            if key not in _HEADER_KEYS:
                raise TypeError("unexpected record header: {0}".format(key))
            values[key] = val

        timestamp = values.get(_common.KEY_TIMESTAMP)
        if self._duration is not None:
            timestamp = log_start(timestamp, captures.get(self._duration),
                                  self._log_query_start)

        for name in self._drop:
            d.pop(name, None)
        fields = {}
        for name, val in d.items():
            if val is None:
                continue
            fields[self._rename.get(name, name)] = val

        return Record(timestamp=timestamp,
                      type=self._type,
                      severity=values.get(_common.KEY_SEVERITY),
                      process_id=values.get(_common.KEY_PROCESS_ID),
                      hostname=values.get(_common.KEY_HOSTNAME),
                      payload=truncate_payload(values.get(_common.KEY_PAYLOAD),
                                               self._truncate),
                      fields=types.MappingProxyType(fields))
