#!/usr/bin/env python

import json
import logging
import re
import sys

import click


def text_postprocess(line):
    return line.rstrip("\r\n")


def bin_postprocess(line, encoding="utf-8"):
    return line.decode(encoding, "surrogateescape").rstrip("\r\n")


def iter_lines(files, encoding="utf-8"):
    if len(files) == 0:
        for line in sys.stdin.buffer:
            yield bin_postprocess(line, encoding=encoding)
    else:
        for fp in files:
            if ".tar." in fp:
                import tarfile
                with tarfile.open(fp, 'r') as tar:
                    for info in tar.getmembers():
                        if info.isfile():
                            with tar.extractfile(info) as f:
                                for line in f:
                                    yield bin_postprocess(line, encoding=encoding)
            elif fp.endswith(".bz2"):
                import bz2
                with bz2.open(fp, 'rt', encoding=encoding,
                              errors="surrogateescape") as f:
                    for line in f:
                        yield text_postprocess(line)
            elif fp.endswith(".gz"):
                import gzip
                with gzip.open(fp, 'r') as f:
                    for line in f:
                        yield bin_postprocess(line, encoding=encoding)
            else:
                with open(fp, 'rt', encoding=encoding,
                          errors="surrogateescape") as f:
                    for line in f:
                        yield text_postprocess(line)


def iter_records(lines, record_start=None):
    """Group physical lines into log records.

    Without record_start, every non-empty line is a record.
    Otherwise a record starts at each line matching record_start
    (a compiled regular expression), and lines before the first
    such line are ignored.
    """
    if record_start is None:
        for line in lines:
            if line != "":
                yield line
        return

    buf = None
    for line in lines:
        if record_start.match(line):
            if buf is not None:
                yield "\n".join(buf)
            buf = [line]
        elif buf is not None:
            buf.append(line)
    if buf is not None:
        yield "\n".join(buf)


def parse_options(options):
    d = {}
    for option in options:
        key, sep, value = option.partition("=")
        if sep == "" or key.strip() == "":
            raise click.BadParameter("expected key=value, got {0}".format(option),
                                     param_hint="--option")
        d[key.strip()] = value
    return d


def format_record(record, format_type):
    if format_type == "object":
        return str(record)
    elif format_type == "json":
        return json.dumps(record.as_dict())


@click.command()
@click.argument("decoder_name", metavar="DECODER")
@click.argument("files", nargs=-1)
@click.option("--config", "-c", "config_path", default=None,
              help="configparser file of decoder options")
@click.option("--section", default=None,
              help="section name in the config file (default: DECODER)")
@click.option("--option", "-O", "options", multiple=True,
              help="decoder option in key=value, prior to the config file")
@click.option("--record-start", "record_start", default=None,
              help="regular expression matching the first line of a record")
@click.option("--encoding", default="utf-8",
              help="encoding to load input data")
@click.option("--output", "-o", default=None,
              help="output filename")
@click.option("--type", "-t", "format_type", default="object",
              type=click.Choice(["object", "json"]),
              help="output format type, one of [object, json]")
@click.option("--verbose", "-v", is_flag=True,
              help="verbose output to stderr")
def main(decoder_name, files, config_path, section, options, record_start,
         encoding, output, format_type, verbose):
    """Decode log records of DECODER format
    given in FILES (or stdin if FILES not given)."""

    from . import _common
    from .load import KEY_DECODER, config_getter, load_from_config

    if verbose:
        logging.basicConfig(level=logging.DEBUG, stream=sys.stderr)
    else:
        logging.basicConfig(level=logging.WARNING, stream=sys.stderr)

    conf = {}
    try:
        if config_path:
            if section is None:
                section = decoder_name
            conf = load_from_config(config_path, section)
            name = conf.get(KEY_DECODER)
            if name and name != decoder_name:
                raise click.BadParameter(
                    "section {0} is for decoder {1}".format(section, name),
                    param_hint="--section")
        conf.update(parse_options(options))
        decoder = _common.init_decoder(decoder_name, config_getter(conf))
    except _common.ParserDefinitionError as e:
        raise click.UsageError(str(e))

    if record_start is None:
        start_re = None
    else:
        try:
            start_re = re.compile(record_start)
        except re.error as e:
            raise click.BadParameter(str(e), param_hint="--record-start")

    if output:
        f_output = open(output, "w", encoding=encoding,
                        errors="surrogateescape")
    else:
        f_output = sys.stdout

    def _emit(record):
        f_output.write(format_record(record, format_type) + "\n")

    n_failed = 0
    lines = iter_lines(files, encoding=encoding)
    for buf in iter_records(lines, start_re):
        status = decoder.process_message(lambda: buf, _emit)
        if status == _common.STATUS_FAILED:
            n_failed += 1

    if output:
        f_output.close()
    if n_failed > 0:
        click.echo("{0} records failed to decode".format(n_failed), err=True)


if __name__ == "__main__":
    main()
