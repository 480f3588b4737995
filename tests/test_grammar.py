import unittest


class TestGrammar(unittest.TestCase):

    def test_literal(self):
        from log2rec.grammar import Grammar, literal
        g = Grammar(literal("abc"))
        assert g.match("abc") == {}
        assert g.match("abd") is None
        assert g.match("abcd") is None
        assert Grammar(literal("abc"), full=False).match("abcd") == {}

    def test_empty_literal(self):
        from log2rec import ParserDefinitionError
        from log2rec.grammar import literal
        with self.assertRaises(ParserDefinitionError):
            literal("")

    def test_byte_class(self):
        from log2rec.grammar import DIGIT, byte_class, byte_range, none_of
        assert DIGIT.test("7") == {}
        assert DIGIT.test("x") is None
        assert DIGIT.test("") is None
        assert byte_class("+-").test("-") == {}
        assert byte_range("a", "f").test("c") == {}
        assert byte_range("a", "f").test("g") is None
        assert none_of("]").test("]") is None
        assert none_of("]").test("a") == {}

    def test_sequence_failure_drops_captures(self):
        from log2rec.grammar import capture, choice, integer, sequence
        p = choice(sequence(integer("a"), "x"),
                   sequence(capture("b", "12"), "y"))
        assert p.test("12y") == {"b": "12"}
        assert p.test("12x") == {"a": 12}

    def test_ordered_choice(self):
        from log2rec.grammar import Grammar, capture, choice
        # the first alternative wins even if a later one is longer
        g = Grammar(capture("w", choice("ext", "ext2")), full=False)
        assert g.match("ext2") == {"w": "ext"}
        g = Grammar(capture("w", choice("ext2", "ext")), full=False)
        assert g.match("ext2") == {"w": "ext2"}

    def test_repeat_is_greedy(self):
        from log2rec.grammar import DIGIT, capture, repeat_min, sequence
        p = sequence(capture("n", repeat_min(DIGIT, 1)), DIGIT)
        # no backtracking: the repetition consumes every digit
        assert p.test("123") is None
        assert repeat_min(DIGIT, 2).test("1") is None
        assert repeat_min(DIGIT, 0).test("") == {}

    def test_optional(self):
        from log2rec.grammar import integer, optional, sequence
        p = sequence("a", optional(sequence("#", integer("n"))), "b")
        assert p.test("a#3b") == {"n": 3}
        assert p.test("ab") == {}
        assert p.test("a#b") is None

    def test_until(self):
        from log2rec.grammar import byte_class, capture, choice, sequence, until
        p = sequence(capture("v", until(";")), ";")
        assert p.test("SELECT 1;") == {"v": "SELECT 1"}
        assert p.test(";") == {"v": ""}
        assert capture("v", until(";")).test("no marker") == {"v": "no marker"}

        p = capture("v", until(choice(" #", " */")))
        assert p.match("abc */ x") == (3, {"v": "abc"})
        p = capture("v", until(byte_class('"\n')))
        assert p.match('a b"c') == (3, {"v": "a b"})

    def test_rest(self):
        from log2rec.grammar import capture, rest, sequence
        assert sequence("> ", capture("r", rest())).test("> all of it") == \
            {"r": "all of it"}
        assert sequence("> ", capture("r", rest())).test("> ") == {"r": ""}

    def test_transform(self):
        from log2rec.grammar import DIGIT, capture, integer, repeat_min, transform
        assert integer("n").test("0042") == {"n": 42}
        p = capture("n", transform(repeat_min(DIGIT, 1), lambda s: int(s) * 2))
        assert p.test("21") == {"n": 42}

    def test_transform_failure_is_mismatch(self):
        from log2rec.grammar import ANY, capture, choice, repeat_min, transform
        p = choice(capture("n", transform(repeat_min(ANY, 1), int)),
                   capture("s", repeat_min(ANY, 1)))
        assert p.test("12") == {"n": 12}
        assert p.test("1x") == {"s": "1x"}

    def test_components(self):
        from log2rec.grammar import capture, components, integer, sequence
        p = capture("sum", components(
            sequence(integer("a"), "+", integer("b")),
            lambda d: d["a"] + d["b"]))
        # inner captures are not visible
        assert p.test("1+2") == {"sum": 3}

    def test_decimal(self):
        from log2rec.grammar import decimal
        assert decimal("t").test("7.249660") == {"t": 7.24966}
        assert decimal("t").test("7") is None

    def test_mapped(self):
        from log2rec.grammar import capture, mapped
        p = capture("level", mapped([("warn", 4), ("error", 3)]))
        assert p.test("error") == {"level": 3}
        assert p.test("fatal") is None

    def test_operators(self):
        from log2rec.grammar import integer
        p = "[" + integer("pid") + "]"
        assert p.test("[12]") == {"pid": 12}
        p = integer("n") | "-"
        assert p.test("-") == {}
        assert p.test("5") == {"n": 5}

    def test_invalid_pattern(self):
        from log2rec import ParserDefinitionError
        from log2rec.grammar import sequence
        with self.assertRaises(ParserDefinitionError):
            sequence("a", 1)

    def test_surrogateescape(self):
        from log2rec.grammar import capture, rest, sequence
        line = b"msg \xff end".decode("utf-8", "surrogateescape")
        d = sequence("msg ", capture("r", rest())).test(line)
        assert d["r"].encode("utf-8", "surrogateescape") == b"\xff end"


if __name__ == "__main__":
    unittest.main()
