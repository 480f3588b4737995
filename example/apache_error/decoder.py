#!/usr/bin/env python

import sys

from log2rec import Decoder
from log2rec._common import KEY_TIMESTAMP, KEY_SEVERITY, KEY_PAYLOAD
from log2rec.grammar import *
from log2rec.timestamp import (YEAR, MONTH_ABBR, DAY, HOUR, MINUTE, SECOND,
                               WEEKDAY_ABBR)


class ApacheErrorDecoder(Decoder):
    """[Sun Dec 04 04:47:44 2005] [error] mod_jk child workerEnv in error state 6"""

    name = "apache_error"

    # tested in this order
    levels = (("debug", 7), ("info", 6), ("notice", 5), ("warn", 4),
              ("error", 3), ("crit", 2), ("alert", 1), ("emerg", 0))

    def __init__(self, config=None):
        super().__init__(config)
        timestamp = self._tp.grammar(sequence(
            WEEKDAY_ABBR, " ", MONTH_ABBR, " ", DAY, " ",
            HOUR, ":", MINUTE, ":", SECOND, " ", YEAR))
        client = sequence("[client ", capture("client", until("]")), "] ")
        self._grammar = Grammar(sequence(
            "[", capture("timestamp", timestamp), "] ",
            "[", capture("level", mapped(self.levels)), "] ",
            optional(client), capture("message", rest())))

    def _assembler_rules(self):
        return {"header": {KEY_TIMESTAMP: "timestamp",
                           KEY_SEVERITY: "level",
                           KEY_PAYLOAD: "message"}}

    def process_line(self, line):
        d = self._grammar.match(line)
        if d is None:
            return None
        return self._assembler.assemble(d)


if __name__ == "__main__":
    decoder = ApacheErrorDecoder({"type": "apache"})
    for line in sys.stdin:
        if line.strip() == "":
            continue
        print(decoder.decode(line))
