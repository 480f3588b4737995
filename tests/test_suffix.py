import unittest

PAIRS = [(", referrer: ", "referrer"),
         (", host: ", "host"),
         (", request: ", "request"),
         (", server: ", "server"),
         (", client: ", "client")]


class TestSuffix(unittest.TestCase):

    def test_extract(self):
        from log2rec.suffix import SuffixExtractor
        ext = SuffixExtractor(PAIRS)
        text = ('delaying request, excess: 0.015, by zone "common_ip", '
                'client: 148.251.112.123, server: example.com, '
                'request: "GET /index.php HTTP/1.1", host: "example.com", '
                'referrer: "http://example.com/"')
        fields, residual = ext.extract(text)
        assert fields == {"referrer": "http://example.com/",
                          "host": "example.com",
                          "request": "GET /index.php HTTP/1.1",
                          "server": "example.com",
                          "client": "148.251.112.123"}
        assert residual == 'delaying request, excess: 0.015, by zone "common_ip"'

    def test_absent_markers(self):
        from log2rec.suffix import SuffixExtractor
        ext = SuffixExtractor(PAIRS)
        assert ext.extract("no annotation") == ({}, "no annotation")
        assert ext.extract("refused, client: ::1") == \
            ({"client": "::1"}, "refused")
        assert ext.extract("") == ({}, "")

    def test_first_occurrence(self):
        from log2rec.suffix import SuffixExtractor
        ext = SuffixExtractor([(", host: ", "host")])
        # the leftmost marker splits the text
        assert ext.extract("a, host: b, host: c") == ({"host": "b, host: c"}, "a")

    def test_order_matters(self):
        from log2rec.suffix import SuffixExtractor
        text = "msg, client: 192.0.2.1, server: example.com"
        ext = SuffixExtractor([(", client: ", "client"),
                               (", server: ", "server")])
        # inner annotation extracted first swallows the outer one
        assert ext.extract(text) == \
            ({"client": "192.0.2.1, server: example.com"}, "msg")

    def test_unquote(self):
        from log2rec.suffix import unquote
        assert unquote('"GET / HTTP/1.1"') == "GET / HTTP/1.1"
        assert unquote('"unterminated') == "unterminated"
        assert unquote('"a"b"') == "a"
        assert unquote('"line\nfeed"') == "line"
        assert unquote('plain "x"') == 'plain "x"'
        assert unquote('""') == ""

    def test_invalid_pairs(self):
        from log2rec import ParserDefinitionError
        from log2rec.suffix import SuffixExtractor
        with self.assertRaises(ParserDefinitionError):
            SuffixExtractor([(", a: ", "x"), (", b: ", "x")])
        with self.assertRaises(ParserDefinitionError):
            SuffixExtractor([(", a: ", "_residual")])
        with self.assertRaises(ParserDefinitionError):
            SuffixExtractor([("", "x")])


if __name__ == "__main__":
    unittest.main()
