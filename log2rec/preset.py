# coding: utf-8

"""log2rec.preset is a submodule to provide decoders
for some server log formats.

Each decoder composes grammar primitives in its constructor.
Ordered choices (e.g., severity names) are listed in matching order;
reordering them changes the behavior.
"""

import string

from ._common import (Decoder, KEY_TIMESTAMP, KEY_SEVERITY, KEY_PROCESS_ID,
                      KEY_PAYLOAD)
from .delimited import DelimitedSplitter
from .grammar import *
from .suffix import SuffixExtractor
from .timestamp import (NS_PER_SECOND, YEAR, YEAR_NOCENTURY, MONTH,
                        MONTH_ABBR, DAY, DAY_SPACE_PADDED, HOUR, MINUTE,
                        SECOND, FRACTION, WEEKDAY_ABBR)

_KEY_LEVEL = "level"
_KEY_PID = "pid"
_KEY_REST = "rest"

_NAME_CHARS = string.ascii_letters + string.digits


class NginxErrorDecoder(Decoder):
    """Decoder for Nginx error logs (hard coded internal format).

    | e.g.,
        ``2014/09/24 17:19:56 [warn] 16842#0: *386031267 delaying request,
        excess: 0.015, by zone "common_ip", client: 148.251.112.123,
        server: example.com, request: "GET /index.php HTTP/1.1",
        host: "example.com", referrer: "http://example.com/"``

    Only the timestamp is mandatory. Severity, process id,
    thread id (``thread_id``) and connection id (``connection``)
    are extracted from the header if available.
    Optional annotations (client, server, request, subrequest,
    upstream, host, referrer) are extracted from the end of line,
    and the remaining text is used as payload.

    Hostname is not available in this format.
    """

    name = "nginx_error"

    # tested in this order
    levels = (("debug", 7),
              ("info", 6),
              ("notice", 5),
              ("warn", 4),
              ("error", 3),
              ("crit", 2),
              ("alert", 1),
              ("emerg", 0))

    # outermost first: nginx appends them in the reversed order
    suffixes = ((", referrer: ", "referrer"),
                (", host: ", "host"),
                (", upstream: ", "upstream"),
                (", subrequest: ", "subrequest"),
                (", request: ", "request"),
                (", server: ", "server"),
                (", client: ", "client"))

    def __init__(self, config=None):
        super().__init__(config)
        timestamp = capture(KEY_TIMESTAMP,
                            self._tp.strftime("%Y/%m/%d %H:%M:%S"))
        header = sequence(" [", capture(_KEY_LEVEL, mapped(self.levels)), "] ",
                          integer(_KEY_PID), "#", integer("thread_id"), ": ",
                          optional(sequence("*", integer("connection"), " ")))
        self._grammar = Grammar(sequence(timestamp, optional(header),
                                         capture(_KEY_REST, rest())))
        self._extractor = SuffixExtractor(self.suffixes)

    def _assembler_rules(self):
        return {"header": {KEY_TIMESTAMP: KEY_TIMESTAMP,
                           KEY_SEVERITY: _KEY_LEVEL,
                           KEY_PROCESS_ID: _KEY_PID,
                           KEY_PAYLOAD: _KEY_REST}}

    def process_line(self, line):
        d = self._grammar.match(line)
        if d is None:
            return None
        suffix_fields, d[_KEY_REST] = self._extractor.extract(d[_KEY_REST])
        d.update(suffix_fields)
        return self._assembler.assemble(d)


class PhpFpmDecoder(Decoder):
    """Decoder for PHP-FPM master process logs.

    | e.g., ``[24-Sep-2014 17:19:56] WARNING: failed to acquire scoreboard``

    | e.g., ``[24-Sep-2014 17:19:56] WARNING: [pool main] child 3456
        exited with code 0 after 629.227064 seconds from start``

    Pool name is extracted as ``pool`` field,
    and the child process id as process_id.
    """

    name = "php_fpm"

    # tested in this order
    levels = (("DEBUG", 7),
              ("NOTICE", 5),
              ("WARNING", 4),
              ("ERROR", 3),
              ("ALERT", 1))

    def __init__(self, config=None):
        super().__init__(config)
        header = sequence("[",
                          capture(KEY_TIMESTAMP,
                                  self._tp.strftime("%d-%b-%Y %H:%M:%S")),
                          "] ", capture(_KEY_LEVEL, mapped(self.levels)), ": ")
        child = sequence("[pool ", word("pool", _NAME_CHARS + "-_ "),
                         "] child ", integer(_KEY_PID), " ")
        self._grammar = Grammar(sequence(header, optional(child),
                                         capture(_KEY_REST, until("\n"))),
                                full=False)

    def _assembler_rules(self):
        return {"header": {KEY_TIMESTAMP: KEY_TIMESTAMP,
                           KEY_SEVERITY: _KEY_LEVEL,
                           KEY_PROCESS_ID: _KEY_PID,
                           KEY_PAYLOAD: _KEY_REST}}

    def process_line(self, line):
        d = self._grammar.match(line)
        if d is None:
            return None
        return self._assembler.assemble(d)


def _slave_lag(d):
    if d.get("ts_log") is None or d.get("ts_master") is None:
        return None
    return (d["ts_log"] - d["ts_master"] * NS_PER_SECOND) / NS_PER_SECOND


class PerconaSlowQueryDecoder(Decoder):
    """Decoder for Percona Server slow query logs
    (extended verbosity of version 5.5).

    One entry consists of multiple lines, so the input should be
    split at the lines starting with ``# Time:``::

        # Time: 140507 15:51:28
        # User@Host: syncrw[syncrw] @  [127.0.0.1]
        # Thread_id: 8  Schema: db  Last_errno: 0  Killed: 0
        # Query_time: 7.249660  Lock_time: 0.047038  Rows_sent: 5001  Rows_examined: 16458  Rows_affected: 0  Rows_read: 16458
        # Bytes_sent: 1109448  Tmp_tables: 0  Tmp_disk_tables: 0  Tmp_table_sizes: 0
        # InnoDB_trx_id: 9A3C4DD2
        # QC_Hit: No  Full_scan: Yes  Full_join: No  Tmp_table: No  Tmp_table_on_disk: No
        # Filesort: No  Filesort_on_disk: No  Merge_passes: 0
        #   InnoDB_IO_r_ops: 0  InnoDB_IO_r_bytes: 0  InnoDB_IO_r_wait: 0.000000
        #   InnoDB_rec_lock_wait: 0.000000  InnoDB_queue_wait: 0.000000
        #   InnoDB_pages_distinct: 1090
        SET timestamp=1399503088;
        SELECT * FROM items;

    The timestamp is the logged time minus ``query_time``
    (the time when the query started) unless log_query_start is false.
    ``slave_lag`` is the logged time minus ``SET timestamp`` in seconds.
    The SQL statement is the payload (truncated with truncate_bytes).
    """

    name = "percona_slow_query"

    def __init__(self, config=None):
        super().__init__(config)
        blank = repeat_min(SPACE, 1)
        sep = literal("\n")
        yes_no = choice("Yes", "No")

        log_time = self._tp.grammar(sequence(
            YEAR_NOCENTURY, MONTH, DAY, repeat_min(" ", 1),
            capture("hour", digits()), ":", MINUTE, ":", SECOND,
            optional(FRACTION)))
        time_line = sequence("# Time: ", capture("ts_log", log_time), sep)

        user_line = sequence(
            "# User@Host: ", until("["),
            "[", capture("username", repeat_min(none_of("]"), 1)), "]",
            blank, "@", blank, repeat_min(ALPHA, 0), repeat_min(SPACE, 0),
            "[", capture("hostname", until("]")), "]", sep)

        thread_line = sequence(
            "# Thread_id: ", integer("thread_id"), blank,
            "Schema: ", capture("db", repeat_min(none_of(" \n"), 1)), blank,
            "Last_errno:", blank, integer("last_errno"), blank,
            "Killed:", blank, integer("killed"), sep)

        querystat_line = sequence(
            "# Query_time: ", decimal("query_time"), blank,
            "Lock_time: ", decimal("lock_time"), blank,
            "Rows_sent: ", integer("rows_sent"), blank,
            "Rows_examined: ", integer("rows_examined"), blank,
            "Rows_affected: ", integer("rows_affected"), blank,
            "Rows_read: ", integer("rows_read"), sep)

        bytes_line = sequence(
            "# Bytes_sent: ", integer("bytes_sent"), blank,
            "Tmp_tables: ", integer("tmp_tables"), blank,
            "Tmp_disk_tables: ", integer("tmp_disk_tables"), blank,
            "Tmp_table_sizes: ", integer("tmp_table_sizes"), sep)

        trx_line = sequence(
            "# InnoDB_trx_id: ",
            capture("innodb_trx_id", repeat_min(XDIGIT, 1)), sep)

        qc_line = sequence(
            "# QC_Hit: ", capture("qc_hit", yes_no), blank,
            "Full_scan: ", capture("full_scan", yes_no), blank,
            "Full_join: ", capture("full_join", yes_no), blank,
            "Tmp_table: ", capture("tmp_table", yes_no), blank,
            "Tmp_table_on_disk: ", capture("tmp_table_on_disk", yes_no), sep)

        filesort_line = sequence(
            "# Filesort: ", capture("filesort", yes_no), blank,
            "Filesort_on_disk: ", capture("filesort_on_disk", yes_no), blank,
            "Merge_passes: ", integer("merge_passes"), sep)

        innodb_lines = sequence(
            "#   InnoDB_IO_r_ops: ", integer("innodb_io_r_ops"), blank,
            "InnoDB_IO_r_bytes: ", integer("innodb_io_r_bytes"), blank,
            "InnoDB_IO_r_wait: ", decimal("innodb_io_r_wait"), sep,
            "#   InnoDB_rec_lock_wait: ", decimal("innodb_rec_lock_wait"), blank,
            "InnoDB_queue_wait: ", decimal("innodb_queue_wait"), sep,
            "#   InnoDB_pages_distinct: ", integer("innodb_pages_distinct"), sep)

        use_line = sequence("use ", until("\n"), sep)
        set_line = sequence(
            "SET ",
            optional(sequence("last_insert_id=", digits(), ",")),
            optional(sequence("insert_id=", digits(), ",")),
            "timestamp=", integer("ts_master"), ";", sep)
        admin_line = sequence("# administrator command: ", until("\n"), sep)
        sql_query = capture("sql_query", sequence(until(";"), ";"))

        self._grammar = Grammar(sequence(
            time_line, user_line, thread_line, querystat_line, bytes_line,
            trx_line, qc_line, filesort_line, innodb_lines,
            optional(use_line), set_line, optional(admin_line), sql_query),
            full=False)

    def _assembler_rules(self):
        return {"header": {KEY_TIMESTAMP: "ts_log",
                           KEY_PAYLOAD: "sql_query"},
                "derived": {"slave_lag": _slave_lag},
                "drop": ["ts_master"],
                "duration": "query_time"}

    def process_line(self, line):
        d = self._grammar.match(line)
        if d is None:
            return None
        return self._assembler.assemble(d)


class SphinxQueryDecoder(Decoder):
    """Decoder for Sphinx search query logs (up to version 2.2).

    Two formats are tested in order.

    * plain format (``query_type`` is "plain")

    | e.g., ``[Wed Sep 24 17:19:56.123 2014] 0.011 sec 0.011 sec
        [ext/9/ext 7352 (0,100) @_id_city_district] [realty_arenda realty_arenda_delta]
        [ios=20 kb=24.0 ioms=0.200 cpums=10.2] query text``

    * SphinxQL format (``query_type`` is "SphinxQL")

    | e.g., ``/* Wed Sep 24 17:19:56.123 2014 conn 1176853648 real 0.006
        wall 0.006 found 10 */ SELECT * FROM goods LIMIT 0, 5000;
        /* error=unknown local index 'goods' in search request */``

    No payload is generated.
    """

    name = "sphinx_query"

    # tested in this order ("ext2" before "ext")
    match_modes = ("all", "any", "phr", "bool", "ext2", "ext", "scan")
    sort_modes = ("rel", "attr-", "attr+", "tsegs", "ext")

    def __init__(self, config=None):
        super().__init__(config)
        timestamp = capture(KEY_TIMESTAMP, sphinx_timestamp(self._tp))
        names = repeat_min(byte_class(_NAME_CHARS + " -_,"), 1)

        plain_times = sequence(
            decimal("real-time"), " sec ",
            optional(sequence(decimal("wall-time"), " sec ")),
            optional(sequence("x", integer("query_multiplier"), " ")))
        plain_stats = sequence(
            "[", capture("match-mode", choice(*self.match_modes)),
            "/", integer("filters-count"),
            "/", capture("sort-mode", choice(*self.sort_modes)),
            " ", integer("total-matches"),
            " (", integer("offset"), ",", integer("limit"), ")",
            optional(sequence(" @", capture("groupby-attr", names))), "]")
        plain_indexes = sequence(" [", capture("index-names", names), "]")
        plain_io = optional(sequence(" [", capture("io_stats", until("]")), "]"))
        self._plain_grammar = Grammar(sequence(
            "[", timestamp, "] ", plain_times, plain_stats, plain_indexes,
            plain_io, optional(" "), capture("query_plain", until("\n"))),
            full=False)

        sql_header = sequence(
            " conn ", integer("connection_id"),
            optional(sequence(" real ", decimal("real-time"))),
            " wall ", decimal("wall-time"),
            " found ", integer("total-matches"), " ")
        sql_error = optional(sequence(
            " ", choice("/*", "#"), " error=",
            capture("query_error", until(choice("\n", " #", " */"))),
            optional(" */")))
        sql_io = optional(sequence(
            " ", choice("/* ", "# "),
            capture("io_stats", until(choice("\n", " */"))),
            optional(" */")))
        self._sql_grammar = Grammar(sequence(
            "/* ", timestamp, sql_header, "*/ ",
            capture("query_sql", until(";")), ";", sql_error, sql_io),
            full=False)

    def _assembler_rules(self):
        return {"header": {KEY_TIMESTAMP: KEY_TIMESTAMP}}

    def process_line(self, line):
        d = self._plain_grammar.match(line)
        if d is not None:
            d["query_type"] = "plain"
            return self._assembler.assemble(d)
        d = self._sql_grammar.match(line)
        if d is not None:
            d["query_type"] = "SphinxQL"
            return self._assembler.assemble(d)
        return None


class SphinxSearchdDecoder(Decoder):
    """Decoder for Sphinx search daemon logs (up to version 2.2).

    | e.g., ``[Wed Sep 24 17:19:56.123 2014] [23678] WARNING:
        failed to send server version (client=127.0.0.1:50986(534692118))``
    """

    name = "sphinx_searchd"

    # tested in this order
    levels = (("DEBUG", 7),
              ("WARNING", 4),
              ("FATAL", 0))

    def __init__(self, config=None):
        super().__init__(config)
        timestamp = capture(KEY_TIMESTAMP, sphinx_timestamp(self._tp))
        level = sequence(capture(_KEY_LEVEL, mapped(self.levels)), ": ")
        self._grammar = Grammar(sequence(
            "[", timestamp, "] [", repeat_min(" ", 0), integer(_KEY_PID), "] ",
            optional(level), capture(_KEY_REST, until("\n"))),
            full=False)

    def _assembler_rules(self):
        return {"header": {KEY_TIMESTAMP: KEY_TIMESTAMP,
                           KEY_SEVERITY: _KEY_LEVEL,
                           KEY_PROCESS_ID: _KEY_PID,
                           KEY_PAYLOAD: _KEY_REST}}

    def process_line(self, line):
        d = self._grammar.match(line)
        if d is None:
            return None
        return self._assembler.assemble(d)


class DelimitedDecoder(Decoder):
    """Decoder for delimiter-separated logs, such as TSV access logs.

    Options field_delimiter, field_names, timestamp_field_index
    and timestamp_format are used. See :class:`~log2rec.delimited.DelimitedSplitter`.
    No payload is generated.
    """

    name = "delimited"

    def __init__(self, config=None):
        super().__init__(config)
        layout = self._config["timestamp_format"]
        if layout is None:
            ts_pattern = None
        else:
            ts_pattern = self._tp.strftime(layout)
        self._splitter = DelimitedSplitter(
            self._config["field_delimiter"],
            self._config["field_names"],
            self._config["timestamp_field_index"],
            ts_pattern)

    def process_line(self, line):
        fields, timestamp = self._splitter.split(line)
        return self._assembler.assemble(fields, timestamp=timestamp)


def sphinx_timestamp(tp):
    """Timestamp pattern of Sphinx logs,
    e.g., :samp:`Wed Sep 24 17:19:56.123 2014`.

    Args:
        tp (:class:`~log2rec.timestamp.TimestampParser`)
    """
    return tp.grammar(sequence(
        WEEKDAY_ABBR, " ", MONTH_ABBR, " ", DAY_SPACE_PADDED, " ",
        HOUR, ":", MINUTE, ":", SECOND, optional(FRACTION), " ", YEAR))


DECODERS = {cls.name: cls for cls in (NginxErrorDecoder,
                                      PhpFpmDecoder,
                                      PerconaSlowQueryDecoder,
                                      SphinxQueryDecoder,
                                      SphinxSearchdDecoder,
                                      DelimitedDecoder)}
