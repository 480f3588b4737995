# coding: utf-8

import configparser
import logging
from abc import ABC, abstractmethod

_logger = logging.getLogger(__name__)

# keys in public
KEY_TIMESTAMP = "timestamp"
KEY_SEVERITY = "severity"
KEY_PROCESS_ID = "process_id"
KEY_HOSTNAME = "hostname"
KEY_PAYLOAD = "payload"

# return values of Decoder.process_message
STATUS_OK = 0
STATUS_FAILED = -1


class ParserDefinitionError(Exception):
    """ParserDefinitionError is raised when the given grammars
    or decoder options are inappropriate
    (e.g., unknown time zones or unsupported timestamp layouts).
    """
    pass


class LogParseFailure(Exception):
    """LogParseFailure is raised when the input log line
    does not match the format of the decoder,
    or some captured value cannot be converted
    (e.g., an out-of-range date).

    If you want to pass such mismatching log lines,
    use try-except with this exception.
    """
    pass


class DecoderConfig:
    """Decoder options, read once from the host.

    Values may be given in string (e.g., from configuration files),
    and are converted into the option types.

    ========================= ====== ========= ===========================
    option                    type   default   meaning
    ========================= ====== ========= ===========================
    type                      str    None      record type label
    tz                        str    None      time zone (None is UTC)
    truncate_bytes            int    None      payload truncation limit
    log_query_start           bool   True      subtract elapsed time
    field_delimiter           str    ","       delimited field separator
    field_names               str    None      delimited field names
    timestamp_field_index     int    None      1-based timestamp column
    timestamp_format          str    None      timestamp column layout
    ========================= ====== ========= ===========================

    Args:
        get_config (callable, optional): Function to get an option value
            by name. None for missing options.
    """

    _options = {"type": str,
                "tz": str,
                "truncate_bytes": int,
                "log_query_start": bool,
                "field_delimiter": str,
                "field_names": str,
                "timestamp_field_index": int,
                "timestamp_format": str}
    _defaults = {"log_query_start": True,
                 "field_delimiter": ","}

    def __init__(self, get_config=None):
        self._values = {}
        for name, vtype in self._options.items():
            value = None
            if get_config is not None:
                value = get_config(name)
            if value is None:
                value = self._defaults.get(name)
            else:
                value = self._convert(name, vtype, value)
            self._values[name] = value

    @classmethod
    def from_mapping(cls, mapping):
        return cls(mapping.get)

    @staticmethod
    def _convert(name, vtype, value):
        if vtype is bool:
            if isinstance(value, bool):
                return value
            key = str(value).strip().lower()
            if key in configparser.ConfigParser.BOOLEAN_STATES:
                return configparser.ConfigParser.BOOLEAN_STATES[key]
        elif vtype is int:
            if isinstance(value, int) and not isinstance(value, bool):
                return value
            try:
                return int(str(value).strip())
            except ValueError:
                pass
        else:
            return str(value)
        msg = "invalid value for option {0}: {1!r}".format(name, value)
        raise ParserDefinitionError(msg)

    def __getitem__(self, name):
        return self._values[name]

    def get(self, name, default=None):
        value = self._values.get(name)
        if value is None:
            return default
        return value

    def __repr__(self):
        return "DecoderConfig({0!r})".format(self._values)


class Decoder(ABC):
    """Base class of log decoders.

    A decoder is configured once, and then transforms each log line
    into a :class:`~log2rec.record.Record`.
    Grammars are built in the constructor and reused for every line.

    Example:
        >>> decoder = log2rec.init_decoder("nginx_error", {"type": "nginx"}.get)
        >>> r = decoder.decode("2014/09/24 17:19:56 [error] 123#45: message here")
        >>> r.severity, r.process_id, r.fields["thread_id"], r.payload
        (3, 123, 45, 'message here')

    Args:
        config (:class:`DecoderConfig` or dict, optional): decoder options.
    """

    name = None

    def __init__(self, config=None):
        from .record import RecordAssembler
        from .timestamp import TimestampParser
        if config is None:
            config = DecoderConfig()
        elif not isinstance(config, DecoderConfig):
            config = DecoderConfig.from_mapping(config)
        self._config = config
        self._tp = TimestampParser(config["tz"])
        self._assembler = RecordAssembler(
            msg_type=config["type"],
            truncate_bytes=config["truncate_bytes"],
            log_query_start=config["log_query_start"],
            **self._assembler_rules()
        )

    @property
    def config(self):
        return self._config

    @property
    def timestamp_parser(self):
        return self._tp

    def _assembler_rules(self):
        """Format-specific arguments of
        :class:`~log2rec.record.RecordAssembler`."""
        return {}

    @abstractmethod
    def process_line(self, line):
        """Parse a log line (without trailing line feed).

        Args:
            line (str)

        Returns:
            :class:`~log2rec.record.Record` or None if mismatched.
        """
        raise NotImplementedError

    def decode(self, line):
        """Decode a log line.

        If the line does not match the format,
        it raises a :class:`LogParseFailure` exception.

        Args:
            line (str or bytes): A log line. Line feed code will be removed.
                Bytes are decoded in UTF-8; undecodable bytes are kept
                as surrogate escapes.

        Returns:
            :class:`~log2rec.record.Record`
        """
        if isinstance(line, bytes):
            line = line.decode("utf-8", "surrogateescape")
        line = line.rstrip("\r\n")
        if line == "":
            raise LogParseFailure("empty line")
        record = self.process_line(line)
        if record is None:
            if len(line) > 50:
                tmp_msg = line[:50]
            else:
                tmp_msg = line
            msg = "{0} format mismatch: {1}".format(self.name, tmp_msg)
            raise LogParseFailure(msg)
        return record

    def process_message(self, get_current_line, emit):
        """Process one invocation from the host.

        Args:
            get_current_line (callable): returns the current raw line.
            emit (callable): receives the decoded record;
                called only if the line is decoded.

        Returns:
            int: :data:`STATUS_OK` or :data:`STATUS_FAILED`.
        """
        try:
            record = self.decode(get_current_line())
        except LogParseFailure as e:
            _logger.debug(str(e))
            return STATUS_FAILED
        emit(record)
        return STATUS_OK


def init_decoder(name, get_config=None):
    """Generate a :class:`Decoder` of the given log format.

    Args:
        name (str): decoder name, one of :data:`log2rec.preset.DECODERS`.
        get_config (callable, optional): Function to get
            decoder options by name (see :class:`DecoderConfig`).

    Returns:
        :class:`Decoder`
    """
    from . import preset
    try:
        decoder_class = preset.DECODERS[name]
    except KeyError:
        msg = "unknown decoder {0}; available: {1}".format(
            name, ", ".join(sorted(preset.DECODERS)))
        raise ParserDefinitionError(msg)
    return decoder_class(DecoderConfig(get_config))
