# coding: utf-8

"""log2rec.timestamp builds absolute timestamps from date/time components
extracted by grammars.

Timestamps are represented in integer nanoseconds since the Unix epoch
(1970-01-01T00:00:00Z).

Component patterns in this module capture the following names,
which are consumed by :meth:`TimestampParser.to_ns`.

* year (4 digits)
* year_nocentury (2 digits, expanded with the century)
* month (2 digits or month name like "Jan" or "January")
* day (digits, possibly space-padded)
* yday (day of the year, used if month and day are missing)
* hour, minute, second (digits, optional; 0 if missing)
* hour12 and ampm (12-hour clock, instead of hour)
* fraction (digits of the decimal part of seconds, optional)
* offset (UTC offset like "+0700", "+07:00" or "Z", optional)
* epoch (seconds since epoch, instead of all the others but fraction)
"""

import datetime

from dateutil import tz as dateutil_tz

from . import _common
from .grammar import (DIGIT, Repeat, capture, choice, components, byte_class,
                      digits, literal, optional, sequence)

NS_PER_SECOND = 10 ** 9

_EPOCH = datetime.datetime(1970, 1, 1, tzinfo=datetime.timezone.utc)

MONTH_NAMES = ("Jan", "Feb", "Mar", "Apr", "May", "Jun",
               "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")
WEEKDAY_NAMES = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")
MONTH_FULL_NAMES = ("January", "February", "March", "April", "May", "June",
                    "July", "August", "September", "October", "November",
                    "December")
WEEKDAY_FULL_NAMES = ("Monday", "Tuesday", "Wednesday", "Thursday",
                      "Friday", "Saturday", "Sunday")

KEY_YEAR = "year"
KEY_YEAR_NOCENTURY = "year_nocentury"
KEY_MONTH = "month"
KEY_DAY = "day"
KEY_YDAY = "yday"
KEY_HOUR = "hour"
KEY_HOUR12 = "hour12"
KEY_AMPM = "ampm"
KEY_MINUTE = "minute"
KEY_SECOND = "second"
KEY_FRACTION = "fraction"
KEY_OFFSET = "offset"
KEY_EPOCH = "epoch"

# component patterns
YEAR = capture(KEY_YEAR, sequence(DIGIT, DIGIT, DIGIT, DIGIT))
YEAR_NOCENTURY = capture(KEY_YEAR_NOCENTURY, sequence(DIGIT, DIGIT))
MONTH = capture(KEY_MONTH, sequence(DIGIT, DIGIT))
MONTH_ABBR = capture(KEY_MONTH, choice(*MONTH_NAMES))
MONTH_FULL = capture(KEY_MONTH, choice(*MONTH_FULL_NAMES))
DAY = capture(KEY_DAY, sequence(DIGIT, DIGIT))
DAY_SPACE_PADDED = capture(KEY_DAY, sequence(optional(" "), DIGIT,
                                             optional(DIGIT)))
YDAY = capture(KEY_YDAY, Repeat(DIGIT, minimum=1, maximum=3))
HOUR = capture(KEY_HOUR, sequence(DIGIT, DIGIT))
HOUR12 = capture(KEY_HOUR12, sequence(DIGIT, DIGIT))
AMPM = capture(KEY_AMPM, choice("AM", "PM", "am", "pm"))
MINUTE = capture(KEY_MINUTE, sequence(DIGIT, DIGIT))
SECOND = capture(KEY_SECOND, sequence(DIGIT, DIGIT))
FRACTION = sequence(".", capture(KEY_FRACTION, digits()))
OFFSET = capture(KEY_OFFSET, choice(
    "Z", sequence(byte_class("+-"), DIGIT, DIGIT, optional(":"), DIGIT, DIGIT)))
WEEKDAY_ABBR = choice(*WEEKDAY_NAMES)
WEEKDAY_FULL = choice(*WEEKDAY_FULL_NAMES)
EPOCH = capture(KEY_EPOCH, digits())

# directives of strptime-like layouts
_DIRECTIVES = {
    "Y": YEAR,
    "y": YEAR_NOCENTURY,
    "m": MONTH,
    "d": DAY,
    "e": DAY_SPACE_PADDED,
    "H": HOUR,
    "M": MINUTE,
    "S": SECOND,
    "f": capture(KEY_FRACTION, digits()),
    "I": HOUR12,
    "p": AMPM,
    "j": YDAY,
    "s": EPOCH,
    "b": MONTH_ABBR,
    "h": MONTH_ABBR,
    "B": MONTH_FULL,
    "a": WEEKDAY_ABBR,
    "A": WEEKDAY_FULL,
    "z": OFFSET,
    "T": sequence(HOUR, ":", MINUTE, ":", SECOND),
    "F": sequence(YEAR, "-", MONTH, "-", DAY),
    "D": sequence(MONTH, "/", DAY, "/", YEAR_NOCENTURY),
    "R": sequence(HOUR, ":", MINUTE),
    "n": literal("\n"),
    "t": literal("\t"),
    "%": literal("%"),
}


def compile_layout(layout):
    """Generate a component pattern from strptime-like layout string.

    Supported directives are
    :samp:`%Y %y %m %d %e %j %H %I %p %M %S %f %s %b %h %B %a %A %z`,
    :samp:`%T %F %D %R` as shorthands, and :samp:`%n %t %%`.
    Other characters are matched literally.
    Month and weekday names are English abbreviations
    (not locale-aware).

    Example:
        >>> p = compile_layout("[%d/%b/%Y:%H:%M:%S %z]")
        >>> p.test("[29/Sep/2014:11:55:15 +0700]")["month"]
        'Sep'

    Args:
        layout (str): layout string, e.g., "%Y/%m/%d %H:%M:%S".

    Returns:
        :class:`~log2rec.grammar.Pattern`
    """
    if not layout:
        raise _common.ParserDefinitionError("empty timestamp layout")

    parts = []
    buf = ""
    i = 0
    while i < len(layout):
        c = layout[i]
        if c != "%":
            buf += c
            i += 1
            continue
        if i + 1 >= len(layout):
            msg = "incomplete directive in layout {0!r}".format(layout)
            raise _common.ParserDefinitionError(msg)
        directive = layout[i + 1]
        if directive not in _DIRECTIVES:
            msg = "unsupported directive %{0} in layout {1!r}".format(
                directive, layout)
            raise _common.ParserDefinitionError(msg)
        if buf:
            parts.append(literal(buf))
            buf = ""
        parts.append(_DIRECTIVES[directive])
        i += 2
    if buf:
        parts.append(literal(buf))
    return sequence(*parts)


def resolve_timezone(tz):
    """Get tzinfo for a time zone name.

    Args:
        tz (str or datetime.tzinfo or None): IANA time zone name
            like "Asia/Novosibirsk". None or empty means UTC.

    Returns:
        datetime.tzinfo
    """
    if tz is None or tz == "":
        return datetime.timezone.utc
    if isinstance(tz, datetime.tzinfo):
        return tz
    if tz.upper() in ("UTC", "GMT"):
        return datetime.timezone.utc
    tzinfo = dateutil_tz.gettz(tz)
    if tzinfo is None:
        raise _common.ParserDefinitionError("unknown time zone: {0}".format(tz))
    return tzinfo


def parse_offset(string):
    """Parse UTC offset string like "+0700", "-03:00" or "Z"."""
    if string in ("Z", "z"):
        return datetime.timezone.utc

    # referring official _strptime.py (v3.7.2)
    z = string.lower()
    if len(z) > 3 and z[3] == ':':
        z = z[:3] + z[4:]
        if len(z) > 5:
            if z[5] != ':':
                raise ValueError("invalid utc offset: {0}".format(string))
            z = z[:5] + z[6:]
    hours = int(z[1:3])
    minutes = int(z[3:5])
    seconds = int(z[5:7] or 0)
    gmtoff = (hours * 60 * 60) + (minutes * 60) + seconds
    if z.startswith("-"):
        gmtoff = -gmtoff
    return datetime.timezone(datetime.timedelta(seconds=gmtoff))


def _str2month(string):
    if string in MONTH_NAMES:
        return MONTH_NAMES.index(string) + 1
    if string in MONTH_FULL_NAMES:
        return MONTH_FULL_NAMES.index(string) + 1
    return int(string)


def _yday2date(year, yday):
    # yday 366 is valid only in leap years
    if yday < 1:
        raise ValueError("day of the year out of range: {0}".format(yday))
    date = datetime.date(year, 1, 1) + datetime.timedelta(days=yday - 1)
    if date.year != year:
        raise ValueError("day of the year out of range: {0}".format(yday))
    return date.month, date.day


def _hour(d):
    # same as time.strptime: %I without %p is AM
    if d.get(KEY_HOUR12) is None:
        return int(d.get(KEY_HOUR) or 0)
    hour = int(d[KEY_HOUR12])
    if not 1 <= hour <= 12:
        raise ValueError("hour out of range for 12-hour clock: {0}".format(hour))
    if (d.get(KEY_AMPM) or "").upper() == "PM":
        return hour % 12 + 12
    return hour % 12


def _fraction_ns(string):
    if not string:
        return 0
    return int(string[:9].ljust(9, "0"))


def seconds_to_ns(seconds):
    """Convert a duration in seconds (int or float) to nanoseconds."""
    return int(round(seconds * NS_PER_SECOND))


def ns_to_datetime(ns, tz=None):
    """Convert nanoseconds since epoch into aware datetime.datetime.
    Digits under microseconds are discarded.
    """
    dt = _EPOCH + datetime.timedelta(microseconds=ns // 1000)
    return dt.astimezone(resolve_timezone(tz))


class TimestampParser:
    """Generate timestamps from date/time components.

    Timestamps without UTC offsets are interpreted in the given time zone.
    If the components include an offset, the offset is used instead.

    Args:
        tz (str or datetime.tzinfo, optional): Time zone for
            timestamps without offsets. Defaults to UTC.
        century (str, optional): Two digits used to expand
            two-digit years. Defaults to the century of current year
            (e.g., "20" for 2014).
    """

    def __init__(self, tz=None, century=None):
        self._tz = resolve_timezone(tz)
        if century is None:
            century = str(datetime.datetime.now().year)[:2]
        if len(century) != 2 or not century.isdigit():
            msg = "century must be 2 digits, got {0!r}".format(century)
            raise _common.ParserDefinitionError(msg)
        self._century = century

    @property
    def tz(self):
        return self._tz

    @property
    def century(self):
        return self._century

    def expand_year(self, year_nocentury):
        """Expand a two-digit year, e.g., "14" to 2014 in century "20"."""
        return int(self._century + year_nocentury)

    def to_ns(self, d):
        """Build a timestamp from components.

        Args:
            d (dict): captured components.

        Returns:
            int: nanoseconds since epoch.

        Raises:
            ValueError: if some component is missing or out of range.
        """
        if d.get(KEY_EPOCH) is not None:
            return (int(d[KEY_EPOCH]) * NS_PER_SECOND +
                    _fraction_ns(d.get(KEY_FRACTION)))

        if d.get(KEY_YEAR) is not None:
            year = int(d[KEY_YEAR])
        elif d.get(KEY_YEAR_NOCENTURY) is not None:
            year = self.expand_year(d[KEY_YEAR_NOCENTURY])
        else:
            raise ValueError("year is missing")
        if d.get(KEY_MONTH) is not None and d.get(KEY_DAY) is not None:
            month = _str2month(d[KEY_MONTH])
            day = int(d[KEY_DAY])
        elif d.get(KEY_YDAY) is not None:
            month, day = _yday2date(year, int(d[KEY_YDAY]))
        else:
            raise ValueError("month or day is missing")

        offset = d.get(KEY_OFFSET)
        if offset is None:
            tzinfo = self._tz
        else:
            tzinfo = parse_offset(offset)

        dt = datetime.datetime(year, month, day, _hour(d),
                               int(d.get(KEY_MINUTE) or 0),
                               int(d.get(KEY_SECOND) or 0),
                               tzinfo=tzinfo)
        delta = dt - _EPOCH
        seconds = delta.days * 86400 + delta.seconds
        return seconds * NS_PER_SECOND + _fraction_ns(d.get(KEY_FRACTION))

    def grammar(self, pattern):
        """Wrap a component pattern to produce a timestamp (int ns)."""
        return components(pattern, self.to_ns)

    def strftime(self, layout):
        """Generate a timestamp pattern from strptime-like layout.
        See :func:`compile_layout`.
        """
        return self.grammar(compile_layout(layout))
