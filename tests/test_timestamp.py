import datetime
import unittest

NS = 10 ** 9


def _utc_ns(*args):
    dt = datetime.datetime(*args, tzinfo=datetime.timezone.utc)
    return int(dt.timestamp()) * NS


def _ts(tp, layout, string):
    from log2rec.grammar import Grammar, capture
    d = Grammar(capture("ts", tp.strftime(layout))).match(string)
    if d is None:
        return None
    return d["ts"]


class TestTimestamp(unittest.TestCase):

    def test_to_ns_utc(self):
        from log2rec.timestamp import TimestampParser
        tp = TimestampParser()
        d = {"year": "2014", "month": "09", "day": "24",
             "hour": "17", "minute": "19", "second": "56"}
        assert tp.to_ns(d) == _utc_ns(2014, 9, 24, 17, 19, 56)
        assert tp.to_ns(d) == 1411579196 * NS

    def test_to_ns_defaults(self):
        from log2rec.timestamp import TimestampParser
        tp = TimestampParser()
        d = {"year": "2014", "month": "Sep", "day": " 4"}
        assert tp.to_ns(d) == _utc_ns(2014, 9, 4)

    def test_fraction(self):
        from log2rec.timestamp import TimestampParser
        tp = TimestampParser()
        base = {"year": "1970", "month": "01", "day": "01", "second": "01"}
        assert tp.to_ns(dict(base, fraction="5")) == NS + 500000000
        assert tp.to_ns(dict(base, fraction="123456")) == NS + 123456000
        assert tp.to_ns(dict(base, fraction="1234567891")) == NS + 123456789

    def test_time_zone(self):
        from log2rec.timestamp import TimestampParser
        tp = TimestampParser("Asia/Novosibirsk")
        d = {"year": "2014", "month": "09", "day": "24",
             "hour": "17", "minute": "19", "second": "56"}
        # UTC+7 until 2014-10-26
        assert tp.to_ns(d) == _utc_ns(2014, 9, 24, 10, 19, 56)

    def test_offset_overrides_time_zone(self):
        from log2rec.timestamp import TimestampParser
        tp = TimestampParser("Asia/Tokyo")
        d = {"year": "2014", "month": "09", "day": "29",
             "hour": "11", "minute": "55", "second": "15", "offset": "-0300"}
        assert tp.to_ns(d) == _utc_ns(2014, 9, 29, 14, 55, 15)
        d["offset"] = "Z"
        assert tp.to_ns(d) == _utc_ns(2014, 9, 29, 11, 55, 15)
        d["offset"] = "+07:00"
        assert tp.to_ns(d) == _utc_ns(2014, 9, 29, 4, 55, 15)

    def test_unknown_time_zone(self):
        from log2rec import ParserDefinitionError
        from log2rec.timestamp import TimestampParser
        with self.assertRaises(ParserDefinitionError):
            TimestampParser("Nowhere/Unknown_City")

    def test_two_digit_year(self):
        from log2rec.timestamp import TimestampParser
        tp = TimestampParser(century="20")
        assert tp.expand_year("14") == 2014
        d = {"year_nocentury": "14", "month": "05", "day": "07"}
        assert tp.to_ns(d) == _utc_ns(2014, 5, 7)

        tp = TimestampParser()
        assert tp.century == str(datetime.datetime.now().year)[:2]

    def test_out_of_range(self):
        from log2rec.timestamp import TimestampParser
        tp = TimestampParser()
        base = {"year": "2014", "month": "02", "day": "28"}
        tp.to_ns(base)
        for key, value in (("month", "13"), ("day", "30"), ("hour", "24"),
                           ("minute", "60"), ("second", "60")):
            with self.assertRaises(ValueError):
                tp.to_ns(dict(base, **{key: value}))
        with self.assertRaises(ValueError):
            tp.to_ns({"month": "02", "day": "28"})

    def test_strftime(self):
        from log2rec.grammar import Grammar, capture
        from log2rec.timestamp import TimestampParser
        tp = TimestampParser()
        g = Grammar(capture("ts", tp.strftime("[%d/%b/%Y:%H:%M:%S %z]")))
        assert g.match("[29/Sep/2014:11:55:15 +0700]") == \
            {"ts": _utc_ns(2014, 9, 29, 4, 55, 15)}

        g = Grammar(capture("ts", tp.strftime("%FT%T.%f")))
        assert g.match("2014-09-29T11:55:15.25") == \
            {"ts": _utc_ns(2014, 9, 29, 11, 55, 15) + 250000000}

        g = Grammar(capture("ts", tp.strftime("%a %b %e %T %Y")))
        assert g.match("Wed Sep  3 17:19:56 2014") == \
            {"ts": _utc_ns(2014, 9, 3, 17, 19, 56)}

    def test_strftime_names(self):
        from log2rec.timestamp import TimestampParser
        tp = TimestampParser()
        for layout, string, expected in (
                ("%d %B %Y", "07 May 2014", _utc_ns(2014, 5, 7)),
                ("%d %B %Y", "29 September 2014", _utc_ns(2014, 9, 29)),
                ("%d/%h/%Y", "29/Sep/2014", _utc_ns(2014, 9, 29)),
                ("%A, %d %B %Y", "Monday, 29 September 2014",
                 _utc_ns(2014, 9, 29))):
            assert _ts(tp, layout, string) == expected

    def test_strftime_shorthands(self):
        from log2rec.timestamp import TimestampParser
        tp = TimestampParser(century="20")
        assert _ts(tp, "%D %R", "09/29/14 11:55") == \
            _utc_ns(2014, 9, 29, 11, 55)
        assert _ts(tp, "%F%t%T", "2014-09-29\t11:55:15") == \
            _utc_ns(2014, 9, 29, 11, 55, 15)
        assert _ts(tp, "%F%n%T", "2014-09-29\n11:55:15") == \
            _utc_ns(2014, 9, 29, 11, 55, 15)
        assert _ts(tp, "%F%t%T", "2014-09-29 11:55:15") is None

    def test_strftime_12_hour_clock(self):
        from log2rec.timestamp import TimestampParser
        tp = TimestampParser()
        layout = "%F %I:%M:%S %p"
        assert _ts(tp, layout, "2014-09-29 11:55:15 PM") == \
            _utc_ns(2014, 9, 29, 23, 55, 15)
        assert _ts(tp, layout, "2014-09-29 11:55:15 am") == \
            _utc_ns(2014, 9, 29, 11, 55, 15)
        assert _ts(tp, layout, "2014-09-29 12:05:00 AM") == \
            _utc_ns(2014, 9, 29, 0, 5, 0)
        assert _ts(tp, layout, "2014-09-29 12:05:00 PM") == \
            _utc_ns(2014, 9, 29, 12, 5, 0)
        assert _ts(tp, layout, "2014-09-29 13:05:00 PM") is None
        assert _ts(tp, layout, "2014-09-29 00:05:00 AM") is None
        # without %p, same as AM
        assert _ts(tp, "%F %I:%M", "2014-09-29 12:05") == \
            _utc_ns(2014, 9, 29, 0, 5, 0)

    def test_strftime_day_of_year(self):
        from log2rec.timestamp import TimestampParser
        tp = TimestampParser()
        assert _ts(tp, "%Y %j", "2014 272") == _utc_ns(2014, 9, 29)
        assert _ts(tp, "%Y %j", "2014 1") == _utc_ns(2014, 1, 1)
        assert _ts(tp, "%Y %j", "2012 366") == _utc_ns(2012, 12, 31)
        assert _ts(tp, "%Y %j", "2014 366") is None
        assert _ts(tp, "%Y %j", "2014 000") is None

    def test_strftime_epoch(self):
        from log2rec.timestamp import TimestampParser
        tp = TimestampParser("Asia/Tokyo")
        assert _ts(tp, "%s", "1411579196") == 1411579196 * NS
        assert _ts(tp, "%s.%f", "1411579196.5") == 1411579196 * NS + 500000000

    def test_strftime_invalid_date_is_mismatch(self):
        from log2rec.grammar import Grammar, capture
        from log2rec.timestamp import TimestampParser
        tp = TimestampParser()
        g = Grammar(capture("ts", tp.strftime("%Y-%m-%d")))
        assert g.match("2014-02-30") is None
        assert g.match("2014-2-3") is None

    def test_invalid_layout(self):
        from log2rec import ParserDefinitionError
        from log2rec.timestamp import compile_layout
        for layout in ("", "%Y-%", "%Y %Q"):
            with self.assertRaises(ParserDefinitionError):
                compile_layout(layout)
        assert compile_layout("100%%").test("100%") == {}

    def test_ns_to_datetime(self):
        from log2rec.timestamp import ns_to_datetime, seconds_to_ns
        dt = ns_to_datetime(1411579196 * NS + 123456789)
        assert dt == datetime.datetime(2014, 9, 24, 17, 19, 56, 123456,
                                       tzinfo=datetime.timezone.utc)
        assert seconds_to_ns(7.24966) == 7249660000
        assert seconds_to_ns(2) == 2 * NS


if __name__ == "__main__":
    unittest.main()
